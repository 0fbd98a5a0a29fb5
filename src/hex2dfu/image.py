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

r"""Program memory image builder.

The image is shaped after the *PIC16F1454* program memory, as expected by
its USB DFU bootloader: the bootloader sits below the application, and the
application checksum lives in the last word before the high-endurance
flash area.
"""

import io
import logging
import sys
from typing import IO
from typing import Iterable
from typing import Optional
from typing import Union

from bytesparse import Memory

from .checksums import crc14
from .records import IhexRecord
from .records import iter_records
from .utils import pack_le

logger = logging.getLogger(__name__)


class ConversionError(ValueError):
    r"""The input file cannot be converted."""


class OutOfBoundsError(ConversionError):
    r"""Data was found outside of the application area."""

    def __init__(self, message='supplied input file is faulty and used out-of-bounds addresses'):
        super().__init__(message)


class ChecksumOverlapError(ConversionError):
    r"""Data was found at the checksum location."""

    def __init__(self, message='CRC address was occupied; app is in conflict with bootloader'):
        super().__init__(message)


class ProgramImage:
    r"""Program memory image.

    The whole program memory starts erased, with the pattern read back from
    unprogrammed 14-bit words.
    *Data* records are then written on top of it.

    Attributes:
        memory (:class:`bytesparse.Memory`):
            Byte addressed memory contents.

        upper_address (int):
            Latest *Extended Linear Address* value.
            *Data* records are applied only while it is zero.

        out_of_bounds (bool):
            Some data was addressed outside of the write window.

        crc_overlap (bool):
            The checksum location was already programmed.
    """

    PROGRAM_MEMORY_SIZE: int = 16384
    r"""Program memory size, in bytes."""

    CODE_OFFSET_ADDRESS: int = 0x200
    r"""Application start word address."""

    HIGH_ENDURANCE_ADDRESS: int = 0x1F80
    r"""High-endurance flash word address."""

    WRITE_START: int = 0x400
    r"""Inclusive start byte address of the write window."""

    WRITE_ENDEX: int = 0x8000
    r"""Exclusive end byte address of the write window."""

    ERASED_PATTERN: bytes = b'\xFF\x3F'
    r"""Erased program memory word, as little-endian bytes."""

    def __init__(self):

        pattern = self.ERASED_PATTERN
        memory = Memory.from_bytes(pattern * (self.PROGRAM_MEMORY_SIZE // len(pattern)))

        self.memory: Memory = memory
        self.upper_address: int = 0
        self.out_of_bounds: bool = False
        self.crc_overlap: bool = False

    @property
    def crc_address(self) -> int:
        r"""int: Byte address of the checksum word."""

        return (self.HIGH_ENDURANCE_ADDRESS << 1) - len(self.ERASED_PATTERN)

    @property
    def code_address(self) -> int:
        r"""int: Byte address of the application start."""

        return self.CODE_OFFSET_ADDRESS << 1

    def apply_record(
        self,
        record: IhexRecord,
    ) -> 'ProgramImage':
        r"""Applies a record to the image.

        *Data* records are written only while the upper address is zero;
        every byte addressed outside the write window is discarded and
        marks the image as out of bounds.
        *Extended Linear Address* records update the upper address.

        Args:
            record (:class:`IhexRecord`):
                Record to apply.

        Returns:
            :class:`ProgramImage`: *self*.
        """

        tag = record.tag

        if tag.is_data():
            if self.upper_address:
                logger.debug('ignoring data at 0x%04X, upper address 0x%04X',
                             record.address, self.upper_address)
            else:
                self._write(record.address, record.data)

        elif tag.is_extension():
            self.upper_address = record.extension

        return self

    def _write(self, address: int, data: bytes) -> None:

        start = self.WRITE_START
        endex = self.WRITE_ENDEX
        size = self.PROGRAM_MEMORY_SIZE

        for value in data:
            if start <= address < endex:
                if address >= size:
                    logger.debug('data at 0x%04X beyond program memory', address)
                self.memory.poke(address, value)
            else:
                self.out_of_bounds = True
            address += 1

    def apply_records(
        self,
        records: Iterable[IhexRecord],
    ) -> 'ProgramImage':
        r"""Applies records to the image.

        Args:
            records (iterable of :class:`IhexRecord`):
                Records to apply, in order.

        Returns:
            :class:`ProgramImage`: *self*.
        """

        for record in records:
            self.apply_record(record)
        return self

    @classmethod
    def parse(
        cls,
        stream: IO,
    ) -> 'ProgramImage':
        r"""Parses Intel HEX text into a program image.

        Args:
            stream (bytes IO):
                Binary input stream.

        Returns:
            :class:`ProgramImage`: Built image.
        """

        image = cls()
        image.apply_records(iter_records(stream))
        return image

    @classmethod
    def load(
        cls,
        in_path_or_stream: Optional[Union[str, IO]],
    ) -> 'ProgramImage':
        r"""Loads a program image from an Intel HEX file.

        Args:
            in_path_or_stream (str or bytes IO):
                Path of the file within the filesystem, or byte input stream.
                If ``None``, ``sys.stdin.buffer`` is used.

        Returns:
            :class:`ProgramImage`: Built image.
        """

        if in_path_or_stream is None:
            in_path_or_stream = sys.stdin.buffer

        if isinstance(in_path_or_stream, io.IOBase):
            return cls.parse(in_path_or_stream)
        else:
            path = str(in_path_or_stream)
            logger.debug('loading %s', path)
            with open(path, 'rb') as stream:
                return cls.parse(stream)

    def validate(self) -> 'ProgramImage':
        r"""Validates the image contents.

        Returns:
            :class:`ProgramImage`: *self*.

        Raises:
            :class:`OutOfBoundsError`: Data was addressed outside of the
            write window.
        """

        if self.out_of_bounds:
            raise OutOfBoundsError()
        return self

    def compute_checksum(self) -> int:
        r"""Computes the application checksum.

        The modified CRC-14 runs over the words from the application start
        up to the checksum location, excluded.

        Returns:
            int: Application checksum.
        """

        data = self.memory.to_bytes(self.code_address, self.crc_address)
        return crc14(data)

    def apply_checksum(self) -> int:
        r"""Stores the application checksum into the image.

        Returns:
            int: Application checksum.

        Raises:
            :class:`ChecksumOverlapError`: The checksum location was already
            programmed.
        """

        crc = self.compute_checksum()
        address = self.crc_address
        pattern = self.ERASED_PATTERN

        self.crc_overlap = self.memory.to_bytes(address, address + len(pattern)) != pattern
        self.memory.write(address, pack_le(crc, len(pattern)))
        logger.debug('CRC-14 0x%04X at 0x%04X', crc, address)

        if self.crc_overlap:
            raise ChecksumOverlapError()
        return crc

    def to_bytes(self) -> bytes:
        r"""Program memory contents.

        Returns:
            bytes: The whole program memory.
        """

        return self.memory.to_bytes(0, self.PROGRAM_MEMORY_SIZE)
