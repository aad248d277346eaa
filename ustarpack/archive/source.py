from typing import Protocol

from .errors import UnseekableSourceError


class SupportsRead(Protocol):
    def read(self, n: int = -1, /) -> bytes: ...


class SupportsWrite(Protocol):
    def write(self, b: bytes, /) -> object: ...


class SeekableSource(Protocol):
    """A byte source whose read position can be saved and restored.

    Entry content has to be measured before the header is written, so the
    writer reads the source to its end once and then rewinds it.
    """

    def read(self, n: int = -1, /) -> bytes: ...

    def tell(self) -> int: ...

    def seek(self, offset: int, whence: int = 0, /) -> int: ...


def measure_remaining(src: SeekableSource, chunk_size: int) -> int:
    """Returns the number of bytes between the current position of ``src``
    and its end, leaving the position unchanged."""

    seekable = getattr(src, "seekable", None)
    if seekable is not None and not seekable():
        raise UnseekableSourceError()

    try:
        start = src.tell()
    except (AttributeError, OSError) as e:
        raise UnseekableSourceError() from e

    total = 0
    while chunk := src.read(chunk_size):
        total += len(chunk)

    src.seek(start)
    return total
