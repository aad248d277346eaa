import contextlib
from contextlib import AbstractContextManager
import os
import time
from types import TracebackType
from typing import Any, Final, Iterator, TYPE_CHECKING

if TYPE_CHECKING:
    from typing_extensions import Self

from ..log import PackLogger
from .errors import (
    ArchiveClosedError,
    ArchiveIOError,
    ArchiveModeError,
    CorruptArchiveError,
    ShortReadError,
    ShortWriteError,
)
from .header import BLOCK_SIZE, EntryHeader, decode_header, encode_header
from .source import SeekableSource, SupportsWrite, measure_remaining
from .transport import (
    DEFAULT_COMPRESS_LEVEL,
    ArchiveMode,
    Compression,
    Transport,
    open_transport,
)

DEFAULT_CHUNK_SIZE: Final = 32768

# two all-zero header blocks terminate the archive
END_OF_ARCHIVE_SENTINEL: Final = b"\0" * (2 * BLOCK_SIZE)


class _DiscardSink:
    def write(self, b: bytes, /) -> int:
        return len(b)


class ArchiveStream(AbstractContextManager["ArchiveStream"]):
    """A single-volume archive laid over a sequential byte transport.

    The stream owns ``transport`` for its whole lifetime and is either
    written to or read from, never both. Entry content is copied through a
    buffer of at most ``chunk_size`` bytes in either direction.

    Closing a stream in write mode appends the end-of-archive sentinel before
    the transport is released. Leaving a ``with`` block by an exception only
    releases the transport, as the archive is unusable at that point anyway.
    """

    def __init__(
        self,
        logger: PackLogger,
        transport: Transport,
        mode: ArchiveMode | str,
        *,
        name: str = "<stream>",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        verify_checksum: bool = False,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk size must be positive, got {chunk_size}")

        self._logger = logger
        self._transport = transport
        self.mode = ArchiveMode(mode)
        self.name = name
        self.chunk_size = chunk_size
        self.verify_checksum = verify_checksum

        self._offset = 0
        self._is_open = True

    @classmethod
    def open(
        cls,
        logger: PackLogger,
        path: str | os.PathLike[Any],
        mode: ArchiveMode | str,
        *,
        compression: Compression | str = Compression.AUTO,
        compress_level: int = DEFAULT_COMPRESS_LEVEL,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        verify_checksum: bool = False,
    ) -> "Self":
        mode = ArchiveMode(mode)
        transport = open_transport(path, mode, Compression(compression), compress_level)
        logger.D(f"opened archive {path} in mode '{mode}'")
        return cls(
            logger,
            transport,
            mode,
            name=os.fspath(path),
            chunk_size=chunk_size,
            verify_checksum=verify_checksum,
        )

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool | None:
        if not self._is_open:
            return None

        if exc_type is None:
            self.close()
        else:
            self._logger.D(f"abandoning archive {self.name} due to {exc_type.__name__}")
            self.abort()
        return None

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def offset(self) -> int:
        """Uncompressed position of the archive cursor, in bytes."""
        return self._offset

    def close(self) -> None:
        if not self._is_open:
            raise ArchiveClosedError(self.name)
        self._is_open = False

        try:
            if self.mode == ArchiveMode.WRITE:
                self._write(END_OF_ARCHIVE_SENTINEL)
        except BaseException:
            # the sentinel failure is what gets reported
            with contextlib.suppress(OSError):
                self._release()
            raise

        self._release()
        self._logger.D(f"closed archive {self.name}, {self._offset} bytes total")

    def abort(self) -> None:
        """Releases the transport without terminating the archive."""

        if not self._is_open:
            raise ArchiveClosedError(self.name)
        self._is_open = False
        self._release()

    def _release(self) -> None:
        try:
            self._transport.close()
        except OSError as e:
            raise ArchiveIOError(self.name, f"unable to close: {e}") from e

    def _ensure_usable(self, op: str, mode: ArchiveMode) -> None:
        if not self._is_open:
            raise ArchiveClosedError(self.name)
        if self.mode != mode:
            raise ArchiveModeError(self.name, op, self.mode)

    def _write(self, b: bytes) -> None:
        try:
            written = self._transport.write(b)
        except OSError as e:
            raise ArchiveIOError(self.name, f"unable to write: {e}") from e
        if written != len(b):
            raise ArchiveIOError(
                self.name,
                f"transport accepted {written} of {len(b)} bytes",
            )
        self._offset += written

    def _read_exact(self, n: int) -> bytes:
        # fewer than n bytes only at end of transport
        parts: list[bytes] = []
        remaining = n
        while remaining > 0:
            try:
                chunk = self._transport.read(remaining)
            except EOFError as e:
                raise CorruptArchiveError(
                    self.name,
                    "compressed stream ended unexpectedly",
                ) from e
            except OSError as e:
                raise ArchiveIOError(self.name, f"unable to read: {e}") from e
            if not chunk:
                break
            parts.append(chunk)
            remaining -= len(chunk)

        data = b"".join(parts)
        self._offset += len(data)
        return data

    def write_entry(
        self,
        name: str,
        source: SeekableSource,
        *,
        mtime: int | None = None,
    ) -> int:
        """Adds one entry holding everything from the current position of
        ``source`` to its end. Returns the content size."""

        self._ensure_usable("write entry to", ArchiveMode.WRITE)
        log = self._logger
        log.D(f"writing {name} to {self.name}")

        size = measure_remaining(source, self.chunk_size)
        header = EntryHeader(
            name=name,
            size=size,
            mtime=int(time.time()) if mtime is None else mtime,
        )
        self._write(encode_header(header))

        total = 0
        while total < size:
            chunk = source.read(min(self.chunk_size, size - total))
            if not chunk:
                break
            self._write(chunk)
            total += len(chunk)
            log.D(f"{total} of {size} bytes written")

        if total != size:
            raise ShortWriteError(self.name, name, size, total)

        if pad := header.padding_size:
            self._write(b"\0" * pad)

        return size

    def write_file(
        self,
        path: str | os.PathLike[Any],
        arcname: str | None = None,
    ) -> int:
        """Adds the regular file at ``path``, keeping its modification time."""

        if arcname is None:
            arcname = os.path.basename(os.fspath(path))

        with open(path, "rb") as fp:
            mtime = int(os.fstat(fp.fileno()).st_mtime)
            return self.write_entry(arcname, fp, mtime=mtime)

    def read_entry_header(self, sink: SupportsWrite) -> EntryHeader | None:
        """Reads the next entry, copying its content into ``sink``.

        Returns ``None`` once the end of the archive is reached; that is the
        normal way for a read loop to terminate.
        """

        self._ensure_usable("read entry from", ArchiveMode.READ)

        block = self._read_exact(BLOCK_SIZE)
        if not block:
            return None
        if len(block) != BLOCK_SIZE:
            raise CorruptArchiveError(
                self.name,
                f"truncated header block of {len(block)} bytes at offset {self._offset - len(block)}",
            )

        header = decode_header(
            block,
            verify_checksum=self.verify_checksum,
            archive=self.name,
        )
        if header is None:
            self._logger.D(f"end of archive {self.name} at offset {self._offset - BLOCK_SIZE}")
            return None

        self._logger.D(f"reading {header.name} ({header.size} bytes) from {self.name}")
        if header.size == 0:
            return header

        remaining = header.size
        while remaining > 0:
            chunk = self._read_exact(min(self.chunk_size, remaining))
            if not chunk:
                raise ShortReadError(
                    self.name,
                    header.name,
                    header.size,
                    header.size - remaining,
                )
            sink.write(chunk)
            remaining -= len(chunk)

        if pad := header.padding_size:
            padding = self._read_exact(pad)
            if len(padding) != pad:
                raise ShortReadError(self.name, header.name, pad, len(padding))

        return header

    def read_entry(self, sink: SupportsWrite) -> str | None:
        header = self.read_entry_header(sink)
        return None if header is None else header.name

    def iter_entries(self) -> Iterator[EntryHeader]:
        """Yields the header of every remaining entry, discarding content."""

        sink = _DiscardSink()
        while (header := self.read_entry_header(sink)) is not None:
            yield header
