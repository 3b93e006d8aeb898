# ============================================================================
# SOURCEFILE: zip_reader.py
# RELPATH: build_report_inspector/src/build_report_inspector/zip_reader.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Central directory reader for ZIP based packages (APK/AAB/IPA)
# ============================================================================

"""
ZIP Directory Reader Module.

Lists the entries of a ZIP archive by decoding the End-Of-Central-Directory
record and the Central Directory directly from the byte stream. Nothing is
decompressed; only names and sizes are read.
"""

from __future__ import annotations

import io
import os
import struct
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from build_report_inspector.exceptions import ArchiveFormatError, PackageReadError
from build_report_inspector.models import ZipEntry


END_OF_CENTRAL_DIRECTORY_SIGNATURE = b"PK\x05\x06"
CENTRAL_DIRECTORY_SIGNATURE = b"PK\x01\x02"

# Fixed part of the EOCD record plus the largest possible archive comment
END_OF_CENTRAL_DIRECTORY_SIZE = 22
MAX_END_OF_CENTRAL_DIRECTORY_OFFSET = 0xFFFF + END_OF_CENTRAL_DIRECTORY_SIZE

# EOCD field offsets
EOCD_ENTRY_COUNT = 10
EOCD_CENTRAL_DIRECTORY_OFFSET = 16

# Central directory file header field offsets
CD_FLAGS = 8
CD_COMPRESSED_SIZE = 20
CD_UNCOMPRESSED_SIZE = 24
CD_NAME_LENGTH = 28
CD_EXTRA_LENGTH = 30
CD_COMMENT_LENGTH = 32
CD_HEADER_SIZE = 46

UTF8_NAME_FLAG = 0x800

# ZIP64 records; fields holding these markers are stored in 64-bit form
ZIP64_END_OF_CENTRAL_DIRECTORY_SIGNATURE = b"PK\x06\x06"
ZIP64_LOCATOR_SIGNATURE = b"PK\x06\x07"
ZIP64_LOCATOR_SIZE = 20
ZIP64_LOCATOR_RECORD_OFFSET = 8
ZIP64_EOCD_ENTRY_COUNT = 32
ZIP64_EOCD_CENTRAL_DIRECTORY_OFFSET = 48
ZIP64_EXTRA_TAG = 0x0001
UINT16_MARKER = 0xFFFF
UINT32_MARKER = 0xFFFFFFFF


class ZipDirectoryReader:
    """
    Reads the central directory of a ZIP archive.

    Holds one open read handle until ``close()`` is called; use it as a
    context manager so the handle is released on success and on failure.

    Example:
        with ZipDirectoryReader("game.apk") as reader:
            for entry in reader.entries:
                print(entry.full_name, entry.compressed_size)
    """

    def __init__(self, source: Union[str, Path, BinaryIO]):
        """
        Open an archive for reading.

        Args:
            source: Filesystem path or a seekable binary stream

        Raises:
            PackageReadError: If the file cannot be opened
        """
        self._owns_stream = False
        if isinstance(source, (str, Path)):
            self.full_name = str(source)
            try:
                self._stream: BinaryIO = open(source, "rb")
            except OSError as e:
                raise PackageReadError(self.full_name, str(e))
            self._owns_stream = True
        else:
            self.full_name = getattr(source, "name", "<stream>")
            self._stream = source

        self._stream.seek(0, io.SEEK_END)
        self.length = self._stream.tell()
        self._eocd_offset: Optional[int] = None
        self._entries: Optional[List[ZipEntry]] = None

    def __enter__(self) -> "ZipDirectoryReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ZipDirectoryReader({self.full_name!r})"

    def close(self) -> None:
        """Release the underlying file handle if this reader opened it."""
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    @property
    def entries(self) -> List[ZipEntry]:
        """Central directory entries in the order they are stored."""
        if self._entries is None:
            self._entries = self._read_entries()
        return self._entries

    @property
    def end_of_central_directory_offset(self) -> int:
        if self._eocd_offset is None:
            self._eocd_offset = self._find_end_of_central_directory()
        return self._eocd_offset

    def find_entry(self, full_name: str) -> Optional[ZipEntry]:
        """Return the entry with the given full name, or None."""
        for entry in self.entries:
            if entry.full_name == full_name:
                return entry
        return None

    def has_entry(self, full_name: str) -> bool:
        return self.find_entry(full_name) is not None

    def _find_end_of_central_directory(self) -> int:
        """
        Locate the EOCD record by scanning backwards from the end of the file.

        Returns:
            Absolute offset of the EOCD signature

        Raises:
            ArchiveFormatError: If no signature exists within the search window
        """
        window = min(self.length, MAX_END_OF_CENTRAL_DIRECTORY_OFFSET)
        if window < END_OF_CENTRAL_DIRECTORY_SIZE:
            raise ArchiveFormatError(
                self.full_name, f"file too small ({self.length} bytes) to be a ZIP archive"
            )

        start = self.length - window
        tail = self._read_at(start, window)

        # The record closest to the end wins; a match must leave room for the fixed record
        position = tail.rfind(END_OF_CENTRAL_DIRECTORY_SIGNATURE)
        while position != -1:
            if position + END_OF_CENTRAL_DIRECTORY_SIZE <= len(tail):
                return start + position
            position = tail.rfind(END_OF_CENTRAL_DIRECTORY_SIGNATURE, 0, position)

        raise ArchiveFormatError(
            self.full_name, "could not find end-of-central-directory marker"
        )

    def _read_directory_location(self) -> Tuple[int, int]:
        """
        Return (entry count, central directory offset), preferring the ZIP64
        end record when the classic fields are saturated.
        """
        eocd = self.end_of_central_directory_offset
        entry_count = self._read_ushort(eocd + EOCD_ENTRY_COUNT)
        record_start = self._read_uint(eocd + EOCD_CENTRAL_DIRECTORY_OFFSET)
        if entry_count != UINT16_MARKER and record_start != UINT32_MARKER:
            return entry_count, record_start

        locator = eocd - ZIP64_LOCATOR_SIZE
        if locator < 0 or self._read_at(locator, 4) != ZIP64_LOCATOR_SIGNATURE:
            if record_start == UINT32_MARKER:
                raise ArchiveFormatError(
                    self.full_name, "ZIP64 end-of-central-directory locator missing"
                )
            # Exactly 65535 entries in a classic archive
            return entry_count, record_start

        record = self._read_ulong(locator + ZIP64_LOCATOR_RECORD_OFFSET)
        signature = self._read_at(record, 4, what="ZIP64 end-of-central-directory record")
        if signature != ZIP64_END_OF_CENTRAL_DIRECTORY_SIGNATURE:
            raise ArchiveFormatError(
                self.full_name,
                f"ZIP64 end-of-central-directory record at offset {record} has a bad signature"
            )
        return (self._read_ulong(record + ZIP64_EOCD_ENTRY_COUNT),
                self._read_ulong(record + ZIP64_EOCD_CENTRAL_DIRECTORY_OFFSET))

    def _read_zip64_sizes(self, extra: bytes, index: int,
                          compressed_size: int, uncompressed_size: int) -> Tuple[int, int]:
        """Replace saturated 32-bit sizes with the values from the ZIP64 extra field."""
        position = 0
        while position + 4 <= len(extra):
            tag, size = struct.unpack_from("<HH", extra, position)
            position += 4
            if tag != ZIP64_EXTRA_TAG:
                position += size
                continue

            # Values appear in this order, and only for saturated fields
            field = extra[position:position + size]
            values = [uncompressed_size, compressed_size]
            cursor = 0
            for slot, value in enumerate(values):
                if value != UINT32_MARKER:
                    continue
                if cursor + 8 > len(field):
                    raise ArchiveFormatError(
                        self.full_name, f"ZIP64 extra field of entry {index} is too short"
                    )
                values[slot] = struct.unpack_from("<Q", field, cursor)[0]
                cursor += 8
            return values[1], values[0]

        raise ArchiveFormatError(
            self.full_name, f"entry {index} has 32-bit size markers but no ZIP64 extra field"
        )

    def _read_entries(self) -> List[ZipEntry]:
        entry_count, record_start = self._read_directory_location()

        entries: List[ZipEntry] = []
        for index in range(entry_count):
            signature = self._read_at(record_start, 4, what=f"central directory record {index}")
            if signature != CENTRAL_DIRECTORY_SIGNATURE:
                raise ArchiveFormatError(
                    self.full_name,
                    f"central directory record {index} at offset {record_start} "
                    f"has a bad signature"
                )

            flags = self._read_ushort(record_start + CD_FLAGS)
            compressed_size = self._read_uint(record_start + CD_COMPRESSED_SIZE)
            uncompressed_size = self._read_uint(record_start + CD_UNCOMPRESSED_SIZE)
            name_length = self._read_ushort(record_start + CD_NAME_LENGTH)
            extra_length = self._read_ushort(record_start + CD_EXTRA_LENGTH)
            comment_length = self._read_ushort(record_start + CD_COMMENT_LENGTH)
            raw_name = self._read_at(
                record_start + CD_HEADER_SIZE, name_length, what=f"name of entry {index}"
            )

            encoding = "utf-8" if flags & UTF8_NAME_FLAG else "cp437"
            name = raw_name.decode(encoding, errors="replace")

            if UINT32_MARKER in (compressed_size, uncompressed_size):
                extra = self._read_at(
                    record_start + CD_HEADER_SIZE + name_length, extra_length,
                    what=f"extra field of entry {index}"
                )
                compressed_size, uncompressed_size = self._read_zip64_sizes(
                    extra, index, compressed_size, uncompressed_size
                )

            entries.append(ZipEntry(name, compressed_size, uncompressed_size))
            record_start += CD_HEADER_SIZE + name_length + extra_length + comment_length

        return entries

    def _read_at(self, position: int, length: int, what: str = "data") -> bytes:
        """Read exactly ``length`` bytes at ``position`` or raise ArchiveFormatError."""
        if position < 0 or position + length > self.length:
            raise ArchiveFormatError(
                self.full_name,
                f"{what} at offset {position} (+{length}) lies outside the file "
                f"({self.length} bytes)"
            )
        self._stream.seek(position, io.SEEK_SET)
        data = self._stream.read(length)
        if len(data) != length:
            raise ArchiveFormatError(
                self.full_name, f"truncated read of {what} at offset {position}"
            )
        return data

    def _read_ushort(self, position: int) -> int:
        return struct.unpack("<H", self._read_at(position, 2))[0]

    def _read_uint(self, position: int) -> int:
        return struct.unpack("<I", self._read_at(position, 4))[0]

    def _read_ulong(self, position: int) -> int:
        return struct.unpack("<Q", self._read_at(position, 8))[0]


def read_zip_entries(path: Union[str, os.PathLike]) -> List[ZipEntry]:
    """
    List the central directory of the archive at ``path``.

    Raises:
        PackageReadError: If the file cannot be opened
        ArchiveFormatError: If the ZIP structure is missing or truncated
    """
    with ZipDirectoryReader(Path(path)) as reader:
        return list(reader.entries)


# ============================================================================
# LIFECYCLE STATUS: Active
# NOTES: ZIP64 end records and size extra fields are decoded; multi-disk archives are not
# DEPENDENCIES: exceptions.py, models.py
# TESTS: tests/unit/test_zip_reader.py
# ============================================================================
