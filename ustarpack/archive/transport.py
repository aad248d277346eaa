import bz2
import enum
import gzip
import lzma
import os
import re
import sys
from typing import Any, Final, Literal, Protocol

from .errors import ArchiveIOError

RE_TARBALL: Final = re.compile(r"\.(?:tar(?:\.gz|\.bz2|\.xz)?|tgz|tbz2|txz)$")

DEFAULT_COMPRESS_LEVEL: Final = 9


if sys.version_info >= (3, 11):

    class ArchiveMode(enum.StrEnum):
        READ = "r"
        WRITE = "w"

    class Compression(enum.StrEnum):
        AUTO = "auto"
        NONE = "none"
        GZ = "gz"
        BZ2 = "bz2"
        XZ = "xz"

else:

    class ArchiveMode(str, enum.Enum):
        READ = "r"
        WRITE = "w"

    class Compression(str, enum.Enum):
        AUTO = "auto"
        NONE = "none"
        GZ = "gz"
        BZ2 = "bz2"
        XZ = "xz"


class Transport(Protocol):
    """The sequential byte stream an archive is layered on.

    No seeking is required; the archive only ever reads or writes forward.
    """

    def read(self, n: int = -1, /) -> bytes: ...

    def write(self, b: bytes, /) -> int: ...

    def close(self) -> None: ...


def determine_compression(filename: str) -> Compression:
    m = RE_TARBALL.search(filename.lower())
    if m is None:
        # gzip is the native transport of the format
        return Compression.GZ

    match m.group(0):
        case ".tar":
            return Compression.NONE
        case ".tar.bz2" | ".tbz2":
            return Compression.BZ2
        case ".tar.xz" | ".txz":
            return Compression.XZ
        case _:
            return Compression.GZ


def open_transport(
    path: str | os.PathLike[Any],
    mode: ArchiveMode,
    compression: Compression = Compression.AUTO,
    compress_level: int = DEFAULT_COMPRESS_LEVEL,
) -> Transport:
    if compression == Compression.AUTO:
        compression = determine_compression(os.fspath(path))

    is_write = mode == ArchiveMode.WRITE
    fmode: Literal["rb", "wb"] = "wb" if is_write else "rb"

    try:
        match compression:
            case Compression.NONE:
                return open(path, fmode)
            case Compression.GZ:
                if is_write:
                    return gzip.open(path, fmode, compresslevel=compress_level)
                return gzip.open(path, fmode)
            case Compression.BZ2:
                if is_write:
                    return bz2.open(path, fmode, compresslevel=compress_level)
                return bz2.open(path, fmode)
            case Compression.XZ:
                if is_write:
                    return lzma.open(path, fmode, preset=compress_level)
                return lzma.open(path, fmode)
            case _:
                raise ValueError(f"unresolved compression method {compression}")
    except OSError as e:
        raise ArchiveIOError(os.fspath(path), f"unable to open: {e}") from e
