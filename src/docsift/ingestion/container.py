"""Minimal reader for the ZIP container shared by DOCX and XLSX files.

Only the pieces needed to pull XML parts out of office documents are
implemented: the end-of-central-directory record, the central directory and
local file headers.  Entries are either stored or deflated; anything else is
rejected with :class:`FormatError` instead of yielding garbage bytes.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct
import zlib

from docsift.ingestion.errors import FormatError

ZIP_MAGIC = b"PK\x03\x04"

_EOCD_SIGNATURE = 0x06054B50
_CENTRAL_SIGNATURE = 0x02014B50
_LOCAL_SIGNATURE = 0x04034B50

_EOCD_SIZE = 22
_CENTRAL_HEADER_SIZE = 46
_LOCAL_HEADER_SIZE = 30
# The archive comment is at most 65535 bytes, so the record must start here or later.
_MAX_TRAILER = _EOCD_SIZE + 0xFFFF

METHOD_STORED = 0
METHOD_DEFLATE = 8

_FLAG_ENCRYPTED = 0x0001
_FLAG_UTF8 = 0x0800
_ZIP64_MARKER = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class ContainerEntry:
    """Central directory metadata for one named entry."""

    name: str
    compressed_size: int
    uncompressed_size: int
    compression_method: int
    local_header_offset: int
    flags: int = 0


def _find_end_of_central_directory(raw: bytes) -> int:
    if len(raw) < _EOCD_SIZE:
        raise FormatError("ZIP: buffer too small to hold an end of central directory record")

    lower_bound = max(0, len(raw) - _MAX_TRAILER)
    signature = struct.pack("<I", _EOCD_SIGNATURE)
    index = raw.rfind(signature, lower_bound, len(raw) - _EOCD_SIZE + 4)
    if index == -1:
        raise FormatError("ZIP: end of central directory not found")
    return index


def _decode_name(raw_name: bytes, flags: int) -> str:
    if flags & _FLAG_UTF8:
        return raw_name.decode("utf-8", errors="replace")
    return raw_name.decode("cp437")


def list_entries(raw: bytes) -> list[ContainerEntry]:
    """Parse the central directory and return every entry in archive order."""

    eocd = _find_end_of_central_directory(raw)
    total_entries, _directory_size, directory_offset = struct.unpack_from("<HII", raw, eocd + 10)

    entries: list[ContainerEntry] = []
    cursor = directory_offset

    for _ in range(total_entries):
        if cursor + _CENTRAL_HEADER_SIZE > len(raw):
            raise FormatError("ZIP: central directory truncated")

        (
            signature,
            _version_made,
            _version_needed,
            flags,
            method,
            _mtime,
            _mdate,
            _crc,
            compressed_size,
            uncompressed_size,
            name_length,
            extra_length,
            comment_length,
            _disk,
            _internal_attrs,
            _external_attrs,
            local_offset,
        ) = struct.unpack_from("<IHHHHHHIIIHHHHHII", raw, cursor)

        if signature != _CENTRAL_SIGNATURE:
            raise FormatError("ZIP: invalid central directory header signature")

        name_start = cursor + _CENTRAL_HEADER_SIZE
        name = _decode_name(raw[name_start : name_start + name_length], flags)
        entries.append(
            ContainerEntry(
                name=name,
                compressed_size=compressed_size,
                uncompressed_size=uncompressed_size,
                compression_method=method,
                local_header_offset=local_offset,
                flags=flags,
            )
        )
        cursor = name_start + name_length + extra_length + comment_length

    return entries


def _inflate_raw(payload: bytes, entry_name: str) -> bytes:
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    try:
        inflated = decompressor.decompress(payload) + decompressor.flush()
    except zlib.error as exc:
        raise FormatError(f"ZIP: corrupt deflate data: {exc}", entry_name) from exc
    if not decompressor.eof:
        raise FormatError("ZIP: deflate stream ended early", entry_name)
    return inflated


def read_entry(raw: bytes, entry: ContainerEntry) -> bytes:
    """Return the decompressed payload for *entry*."""

    if entry.flags & _FLAG_ENCRYPTED:
        raise FormatError("ZIP: encrypted entries are not supported", entry.name)
    if entry.compressed_size == _ZIP64_MARKER or entry.local_header_offset == _ZIP64_MARKER:
        raise FormatError("ZIP: ZIP64 entries are not supported", entry.name)

    offset = entry.local_header_offset
    if offset + _LOCAL_HEADER_SIZE > len(raw):
        raise FormatError("ZIP: local file header out of range", entry.name)

    (signature,) = struct.unpack_from("<I", raw, offset)
    if signature != _LOCAL_SIGNATURE:
        raise FormatError("ZIP: invalid local file header", entry.name)

    # Local name/extra lengths may differ from the central directory copy.
    name_length, extra_length = struct.unpack_from("<HH", raw, offset + 26)
    data_start = offset + _LOCAL_HEADER_SIZE + name_length + extra_length
    payload = raw[data_start : data_start + entry.compressed_size]
    if len(payload) != entry.compressed_size:
        raise FormatError("ZIP: entry data truncated", entry.name)

    if entry.compression_method == METHOD_STORED:
        return bytes(payload)
    if entry.compression_method == METHOD_DEFLATE:
        return _inflate_raw(payload, entry.name)
    raise FormatError(
        f"ZIP: unsupported compression method {entry.compression_method}",
        entry.name,
    )


class OfficeContainer:
    """Parsed view over a container buffer with by-name entry lookup."""

    def __init__(self, raw: bytes) -> None:
        self._raw = raw
        self._entries = list_entries(raw)
        self._by_name = {entry.name: entry for entry in self._entries}

    @property
    def entries(self) -> list[ContainerEntry]:
        return list(self._entries)

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def has(self, name: str) -> bool:
        return name in self._by_name

    def read(self, name: str) -> bytes | None:
        """Return the entry payload, or None when the container lacks *name*."""

        entry = self._by_name.get(name)
        if entry is None:
            return None
        return read_entry(self._raw, entry)
