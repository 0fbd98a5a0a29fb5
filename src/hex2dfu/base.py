# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Conversion pipeline.

Intel HEX records are applied to the program image, which is validated and
given its application checksum; the DFU suffix is then appended, and the
resulting file is written at once.
"""

import logging
from typing import IO
from typing import Optional
from typing import Union

from .dfu import DfuFile
from .image import ProgramImage

logger = logging.getLogger(__name__)


def build(
    in_path_or_stream: Optional[Union[str, IO]],
    product: Optional[int] = None,
    vendor: Optional[int] = None,
) -> DfuFile:
    r"""Builds a DFU file from an Intel HEX file.

    Args:
        in_path_or_stream (str or bytes IO):
            Path of the Intel HEX file, or byte input stream.
            If ``None``, ``sys.stdin.buffer`` is used.

        product (int):
            USB product ID; default one if ``None``.

        vendor (int):
            USB vendor ID; default one if ``None``.

    Returns:
        :class:`DfuFile`: DFU file object.

    Raises:
        :class:`OutOfBoundsError`: Data outside of the application area.
        :class:`ChecksumOverlapError`: Data at the checksum location.
    """

    image = ProgramImage.load(in_path_or_stream)
    image.validate()
    image.apply_checksum()
    return DfuFile.from_image(image, product=product, vendor=vendor)


def convert(
    in_path_or_stream: Optional[Union[str, IO]],
    out_path_or_stream: Optional[Union[str, IO]],
    product: Optional[int] = None,
    vendor: Optional[int] = None,
) -> DfuFile:
    r"""Converts an Intel HEX file into a DFU file.

    The output is written only after the whole conversion succeeded, so
    that no invalid file is ever created.

    Args:
        in_path_or_stream (str or bytes IO):
            Path of the Intel HEX file, or byte input stream.
            If ``None``, ``sys.stdin.buffer`` is used.

        out_path_or_stream (str or bytes IO):
            Path of the DFU file, or byte output stream.
            If ``None``, ``sys.stdout.buffer`` is used.

        product (int):
            USB product ID; default one if ``None``.

        vendor (int):
            USB vendor ID; default one if ``None``.

    Returns:
        :class:`DfuFile`: Saved DFU file object.

    Raises:
        :class:`OutOfBoundsError`: Data outside of the application area.
        :class:`ChecksumOverlapError`: Data at the checksum location.

    Examples:
        >>> from hex2dfu import convert
        >>> _ = convert('app.hex', 'app.dfu')
    """

    file = build(in_path_or_stream, product=product, vendor=vendor)
    file.save(out_path_or_stream)
    logger.debug('saved %s', out_path_or_stream)
    return file
