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

r"""Generic utility functions."""

from typing import Union

AnyBytes = Union[bytes, bytearray, memoryview]


def readhex(
    text: AnyBytes,
    digits: int,
) -> int:
    r"""Reads a hexadecimal number of fixed length.

    Each digit is decoded on its own, so that malformed digits simply
    contribute zero to the result instead of raising an error.
    Digits beyond the end of `text` are decoded as zero too.

    Args:
        text (bytes):
            Source byte string.

        digits (int):
            Number of hexadecimal digits to read.

    Returns:
        int: Decoded unsigned integer.

    Examples:
        >>> readhex(b'1A', 2)
        26
        >>> readhex(b'beef', 4)
        48879
        >>> readhex(b'G1', 2)
        1
        >>> readhex(b'F', 2)
        240
    """

    result = 0
    for index in range(digits):
        result <<= 4
        c = text[index] if index < len(text) else 0

        if 0x30 <= c <= 0x39:  # '0'-'9'
            result += c - 0x30
        elif 0x41 <= c <= 0x46:  # 'A'-'F'
            result += c - 0x41 + 10
        elif 0x61 <= c <= 0x66:  # 'a'-'f'
            result += c - 0x61 + 10

    return result


def pack_le(
    value: int,
    size: int,
) -> bytes:
    r"""Serializes an unsigned integer as little-endian.

    Args:
        value (int):
            Unsigned integer value.

        size (int):
            Size of the field, in bytes.

    Returns:
        bytes: Little-endian byte string.

    Raises:
        ValueError: `value` does not fit within `size` bytes.

    Examples:
        >>> pack_le(0x1234, 2)
        b'4\x12'
        >>> pack_le(0xDEADBEEF, 4).hex()
        'efbeadde'
    """

    value = value.__index__()
    if not 0 <= value < (1 << (size * 8)):
        raise ValueError('value overflow')
    return value.to_bytes(size, byteorder='little')


def unpack_le(
    data: AnyBytes,
) -> int:
    r"""Deserializes an unsigned little-endian integer.

    Args:
        data (bytes):
            Little-endian byte string.

    Returns:
        int: Unsigned integer value.

    Examples:
        >>> hex(unpack_le(b'\xFF\x3F'))
        '0x3fff'
    """

    return int.from_bytes(data, byteorder='little')
