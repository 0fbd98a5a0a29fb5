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

r"""Intel HEX record reader.

Only the records relevant to the target program memory are recognized:
*Data*, *End Of File* and *Extended Linear Address*.
Any other line is ignored.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
from typing import Iterable
from typing import Iterator
from typing import Mapping
from typing import Optional

from .utils import AnyBytes
from .utils import readhex


class IhexTag(enum.IntEnum):
    r"""Intel HEX tag."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    def is_data(self) -> bool:

        return self == self.DATA

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record tag.

        Returns:
            bool: This is an End Of File record tag.

        Examples:
            >>> IhexTag.END_OF_FILE.is_eof()
            True
            >>> IhexTag.DATA.is_eof()
            False
        """

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record tag.

        Returns:
            bool: This is an Extended Address record tag.

        Examples:
            >>> IhexTag.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> IhexTag.DATA.is_extension()
            False
        """

        return self == self.EXTENDED_LINEAR_ADDRESS


TAG_FIELDS: Mapping[bytes, IhexTag] = {
    b'00': IhexTag.DATA,
    b'01': IhexTag.END_OF_FILE,
    b'04': IhexTag.EXTENDED_LINEAR_ADDRESS,
}
r"""Tag field text to record tag."""


class IhexRecord:
    r"""Intel HEX record object.

    Attributes:
        tag (:class:`IhexTag`):
            Record tag.

        address (int):
            16-bit address field.

        count (int):
            Declared byte count.

        data (bytes):
            Decoded payload; meaningful only for *Data* records.

        extension (int):
            Upper address value; meaningful only for
            *Extended Linear Address* records.
    """

    Tag = IhexTag

    def __init__(
        self,
        tag: IhexTag,
        address: int = 0,
        count: Optional[int] = None,
        data: AnyBytes = b'',
        extension: int = 0,
    ):

        data = bytes(data)
        if count is None:
            count = len(data)

        self.tag: IhexTag = tag
        self.address: int = address
        self.count: int = count
        self.data: bytes = data
        self.extension: int = extension

    def __eq__(self, other) -> bool:

        if not isinstance(other, IhexRecord):
            return NotImplemented

        return (self.tag == other.tag and
                self.address == other.address and
                self.count == other.count and
                self.data == other.data and
                self.extension == other.extension)

    def __repr__(self) -> str:

        return (f'{type(self).__name__}('
                f'tag={self.tag!r}, '
                f'address=0x{self.address:04X}, '
                f'count={self.count}, '
                f'data={self.data!r}, '
                f'extension=0x{self.extension:04X})')

    @classmethod
    def parse(
        cls,
        line: AnyBytes,
    ) -> Optional['IhexRecord']:
        r"""Parses a record from a text line.

        Fields are decoded at fixed column offsets.
        The payload of a *Data* record is made of `count` hex digit pairs;
        malformed or missing digits are decoded as zero.
        The record checksum is not checked.

        Args:
            line (bytes):
                Text line, with or without line terminator.

        Returns:
            :class:`IhexRecord`: Parsed record, or ``None`` if the line is
            not a recognized record.

        Examples:
            >>> record = IhexRecord.parse(b':040400008A01002845\r\n')
            >>> record.tag, hex(record.address), record.data.hex()
            (<IhexTag.DATA: 0>, '0x400', '8a010028')
            >>> IhexRecord.parse(b':0400000512345678E3') is None
            True
            >>> IhexRecord.parse(b'garbage') is None
            True
        """

        line = bytes(line)
        if not line.startswith(b':'):
            return None

        tag = TAG_FIELDS.get(line[7:9])
        if tag is None:
            return None

        count = readhex(line[1:3], 2)
        address = readhex(line[3:7], 4)

        if tag == IhexTag.DATA:
            data = bytes(readhex(line[(9 + i * 2):(11 + i * 2)], 2)
                         for i in range(count))
            return cls(tag, address=address, count=count, data=data)

        elif tag == IhexTag.EXTENDED_LINEAR_ADDRESS:
            extension = readhex(line[9:13], 4)
            return cls(tag, address=address, count=count, extension=extension)

        else:
            return cls(tag, address=address, count=count)


def iter_records(
    lines: Iterable[AnyBytes],
) -> Iterator[IhexRecord]:
    r"""Iterates through the records of Intel HEX text.

    Lines which are not records are skipped.
    Iteration stops right after the first *End Of File* record, without
    consuming the remaining lines; running out of lines is the same as
    reaching an *End Of File* record.

    Args:
        lines (iterable of bytes):
            Text lines, usually a binary input stream.

    Yields:
        :class:`IhexRecord`: Parsed records.

    Examples:
        >>> lines = [b':00000001FF\r\n', b':02000000AA55FF\r\n']
        >>> [r.tag for r in iter_records(lines)]
        [<IhexTag.END_OF_FILE: 1>]
    """

    for line in lines:
        record = IhexRecord.parse(line)
        if record is not None:
            yield record

            if record.tag.is_eof():
                break
