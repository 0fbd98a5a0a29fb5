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

r"""Checksum algorithms.

Two independent checksums are required by the bootloader:

* a *modified CRC-14*, folded over the application area word by word and
  stored within the program memory itself;
* a raw *CRC-32*, stored in the DFU suffix.
"""

import struct
import zlib

from .utils import AnyBytes

CRC14_POLYNOMIAL: int = 0x23B1
r"""Modified CRC-14 feedback constant."""

CRC14_WORD_BITS: int = 16
r"""Bits shifted in for each program memory word."""

CRC32_INIT: int = 0xFFFFFFFF
r"""CRC-32 initial register value."""

_CRC32_MASK = 0xFFFFFFFF


def crc14_update(
    word: int,
    crc: int,
) -> int:
    r"""Folds a program memory word into a modified CRC-14.

    This is a modified CRC-14: it shifts in 16 bits rather than 14.

    Args:
        word (int):
            16-bit word value.

        crc (int):
            Running checksum.

    Returns:
        int: Updated checksum.

    Examples:
        >>> hex(crc14_update(0x3FFF, 0))
        '0xc2b'
    """

    for _ in range(CRC14_WORD_BITS):
        bit = (word ^ crc) & 1
        crc >>= 1
        word >>= 1
        if bit:
            crc ^= CRC14_POLYNOMIAL
    return crc


def crc14(
    data: AnyBytes,
    crc: int = 0,
) -> int:
    r"""Computes the modified CRC-14 of a byte string.

    Args:
        data (bytes):
            Byte string made of little-endian 16-bit words.

        crc (int):
            Initial checksum value.

    Returns:
        int: Modified CRC-14.

    Raises:
        ValueError: `data` has an odd length.
    """

    if len(data) % 2:
        raise ValueError('odd data length')

    for word, in struct.iter_unpack('<H', data):
        crc = crc14_update(word, crc)
    return crc


def crc32(
    data: AnyBytes,
    crc: int = CRC32_INIT,
) -> int:
    r"""Computes the raw CRC-32 register value.

    Same as the common IEEE 802.3 CRC-32, but without the final
    inversion of the register.
    The result can be passed back as `crc` to keep on computing.

    Args:
        data (bytes):
            Byte string.

        crc (int):
            Initial register value.

    Returns:
        int: Raw CRC-32 register.

    Examples:
        >>> hex(crc32(b'123456789'))
        '0x340bc6d9'
        >>> hex(crc32(b'56789', crc32(b'1234')))
        '0x340bc6d9'
    """

    return zlib.crc32(data, crc ^ _CRC32_MASK) ^ _CRC32_MASK
