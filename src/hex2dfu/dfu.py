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

r"""USB DFU file format.

A DFU file is the raw program memory image, followed by a fixed 16-byte
suffix holding the USB identifiers of the target and a CRC-32 of all
the preceding bytes.

See Also:
    `<https://www.usb.org/sites/default/files/DFU_1.1.pdf>`_
"""

import io
import logging
import struct
import sys
from typing import IO
from typing import Optional
from typing import Union

from .checksums import crc32
from .image import ProgramImage
from .utils import AnyBytes
from .utils import pack_le
from .utils import unpack_le

logger = logging.getLogger(__name__)


class DfuSuffix:
    r"""DFU suffix.

    Attributes:
        device (int):
            ``bcdDevice`` release number; ``0xFFFF`` stands for any.

        product (int):
            ``idProduct`` USB product ID.

        vendor (int):
            ``idVendor`` USB vendor ID.

        dfu_version (int):
            ``bcdDFU`` DFU specification release.

        signature (bytes):
            ``ucDfuSignature``, stored reversed as ``UFD``.

        length (int):
            ``bLength`` suffix length.

        crc (int):
            ``dwCRC`` raw CRC-32 of the file, suffix CRC field excluded.
    """

    FORMAT: str = '<HHHH3sB'
    r"""Layout of the fields before the CRC."""

    SIZE: int = 16
    r"""Suffix size, in bytes."""

    SIGNATURE: bytes = b'UFD'
    r"""DFU signature, as stored."""

    DEFAULT_DEVICE: int = 0xFFFF
    DEFAULT_PRODUCT: int = 0x0001
    DEFAULT_VENDOR: int = 0x1234
    DEFAULT_DFU_VERSION: int = 0x0100

    def __init__(
        self,
        device: Optional[int] = None,
        product: Optional[int] = None,
        vendor: Optional[int] = None,
        dfu_version: Optional[int] = None,
        signature: Optional[bytes] = None,
        length: Optional[int] = None,
        crc: Optional[int] = None,
    ):

        self.device: int = self.DEFAULT_DEVICE if device is None else device
        self.product: int = self.DEFAULT_PRODUCT if product is None else product
        self.vendor: int = self.DEFAULT_VENDOR if vendor is None else vendor
        self.dfu_version: int = self.DEFAULT_DFU_VERSION if dfu_version is None else dfu_version
        self.signature: bytes = self.SIGNATURE if signature is None else signature
        self.length: int = self.SIZE if length is None else length
        self.crc: Optional[int] = crc

    def __eq__(self, other) -> bool:

        if not isinstance(other, DfuSuffix):
            return NotImplemented

        return (self.device == other.device and
                self.product == other.product and
                self.vendor == other.vendor and
                self.dfu_version == other.dfu_version and
                self.signature == other.signature and
                self.length == other.length and
                self.crc == other.crc)

    def __repr__(self) -> str:

        crc = None if self.crc is None else f'0x{self.crc:08X}'
        return (f'{type(self).__name__}('
                f'device=0x{self.device:04X}, '
                f'product=0x{self.product:04X}, '
                f'vendor=0x{self.vendor:04X}, '
                f'dfu_version=0x{self.dfu_version:04X}, '
                f'signature={self.signature!r}, '
                f'length={self.length}, '
                f'crc={crc})')

    @classmethod
    def parse(
        cls,
        data: AnyBytes,
    ) -> 'DfuSuffix':
        r"""Parses a suffix.

        Args:
            data (bytes):
                Suffix bytes, or a whole DFU file.

        Returns:
            :class:`DfuSuffix`: Parsed suffix.

        Raises:
            ValueError: Not enough data, or wrong signature.
        """

        if len(data) < cls.SIZE:
            raise ValueError('data too short')

        data = bytes(data[-cls.SIZE:])
        head_size = struct.calcsize(cls.FORMAT)
        fields = struct.unpack(cls.FORMAT, data[:head_size])
        device, product, vendor, dfu_version, signature, length = fields

        if signature != cls.SIGNATURE:
            raise ValueError('wrong signature')

        crc = unpack_le(data[head_size:])
        return cls(device=device, product=product, vendor=vendor,
                   dfu_version=dfu_version, signature=signature,
                   length=length, crc=crc)

    def to_bytes_without_crc(self) -> bytes:
        r"""Serializes all the fields but the CRC.

        Returns:
            bytes: Suffix bytes covered by the CRC.

        Examples:
            >>> DfuSuffix().to_bytes_without_crc().hex()
            'ffff01003412000155464410'
        """

        return struct.pack(self.FORMAT,
                           self.device,
                           self.product,
                           self.vendor,
                           self.dfu_version,
                           self.signature,
                           self.length)

    def to_bytes(self) -> bytes:
        r"""Serializes the whole suffix.

        Returns:
            bytes: Suffix bytes.

        Raises:
            ValueError: Missing CRC.
        """

        if self.crc is None:
            raise ValueError('missing CRC')

        return self.to_bytes_without_crc() + pack_le(self.crc, 4)

    def compute_crc(
        self,
        image_data: AnyBytes,
    ) -> int:
        r"""Computes the CRC of a DFU file.

        Args:
            image_data (bytes):
                Program memory image preceding the suffix.

        Returns:
            int: Raw CRC-32 over the image and the suffix fields before
            the CRC itself.
        """

        crc = crc32(image_data)
        crc = crc32(self.to_bytes_without_crc(), crc)
        return crc

    def update_crc(
        self,
        image_data: AnyBytes,
    ) -> 'DfuSuffix':
        r"""Updates the CRC field.

        Args:
            image_data (bytes):
                Program memory image preceding the suffix.

        Returns:
            :class:`DfuSuffix`: *self*.
        """

        self.crc = self.compute_crc(image_data)
        return self


class DfuFile:
    r"""DFU file.

    Attributes:
        image_data (bytes):
            Program memory image.

        suffix (:class:`DfuSuffix`):
            DFU suffix.
    """

    Suffix = DfuSuffix

    def __init__(
        self,
        image_data: AnyBytes,
        suffix: Optional[DfuSuffix] = None,
    ):

        image_data = bytes(image_data)
        if suffix is None:
            suffix = self.Suffix()
        if suffix.crc is None:
            suffix.update_crc(image_data)

        self.image_data: bytes = image_data
        self.suffix: DfuSuffix = suffix

    @classmethod
    def from_image(
        cls,
        image: ProgramImage,
        product: Optional[int] = None,
        vendor: Optional[int] = None,
    ) -> 'DfuFile':
        r"""Creates a DFU file from a program image.

        The image must have passed validation, and its checksum must have
        been applied already.

        Args:
            image (:class:`ProgramImage`):
                Program memory image.

            product (int):
                USB product ID; default one if ``None``.

            vendor (int):
                USB vendor ID; default one if ``None``.

        Returns:
            :class:`DfuFile`: DFU file object.
        """

        suffix = cls.Suffix(product=product, vendor=vendor)
        file = cls(image.to_bytes(), suffix)
        logger.debug('CRC-32 0x%08X', file.suffix.crc)
        return file

    @classmethod
    def parse(
        cls,
        data: AnyBytes,
    ) -> 'DfuFile':
        r"""Parses a DFU file.

        Args:
            data (bytes):
                Whole DFU file contents.

        Returns:
            :class:`DfuFile`: DFU file object.

        Raises:
            ValueError: Invalid suffix.
        """

        suffix = cls.Suffix.parse(data)
        image_data = bytes(data[:-suffix.SIZE])
        return cls(image_data, suffix)

    def validate(self) -> 'DfuFile':
        r"""Validates the suffix CRC.

        Returns:
            :class:`DfuFile`: *self*.

        Raises:
            ValueError: Wrong CRC.
        """

        if self.suffix.crc != self.suffix.compute_crc(self.image_data):
            raise ValueError('wrong CRC')
        return self

    def to_bytes(self) -> bytes:
        r"""Serializes the whole file.

        Returns:
            bytes: Image followed by the suffix.
        """

        return self.image_data + self.suffix.to_bytes()

    def save(
        self,
        out_path_or_stream: Optional[Union[str, IO]],
    ) -> 'DfuFile':
        r"""Saves the DFU file into the filesystem.

        The whole file is written at once.

        Args:
            out_path_or_stream (str or bytes IO):
                Path of the file within the filesystem, or output byte stream.
                If ``None``, ``sys.stdout.buffer`` is used.

        Returns:
            :class:`DfuFile`: *self*.
        """

        data = self.to_bytes()

        if out_path_or_stream is None:
            out_path_or_stream = sys.stdout.buffer

        if isinstance(out_path_or_stream, io.IOBase):
            out_path_or_stream.write(data)
        else:
            path = str(out_path_or_stream)
            with open(path, 'wb') as stream:
                stream.write(data)
        return self
