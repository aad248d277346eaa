from .errors import (
    ArchiveClosedError,
    ArchiveError,
    ArchiveIOError,
    ArchiveModeError,
    ChecksumMismatchError,
    CorruptArchiveError,
    EntrySizeError,
    NameTooLongError,
    ShortReadError,
    ShortWriteError,
    UnseekableSourceError,
)
from .header import BLOCK_SIZE, EntryHeader, decode_header, encode_header
from .stream import DEFAULT_CHUNK_SIZE, ArchiveStream
from .transport import ArchiveMode, Compression

__all__ = [
    "BLOCK_SIZE",
    "DEFAULT_CHUNK_SIZE",
    "ArchiveClosedError",
    "ArchiveError",
    "ArchiveIOError",
    "ArchiveMode",
    "ArchiveModeError",
    "ArchiveStream",
    "ChecksumMismatchError",
    "Compression",
    "CorruptArchiveError",
    "EntryHeader",
    "EntrySizeError",
    "NameTooLongError",
    "ShortReadError",
    "ShortWriteError",
    "UnseekableSourceError",
    "decode_header",
    "encode_header",
]
