import errno
import gzip
import io
import os
import pathlib
import tarfile

import pytest

from ustarpack.archive import (
    ArchiveClosedError,
    ArchiveIOError,
    ArchiveModeError,
    ArchiveStream,
    ChecksumMismatchError,
    CorruptArchiveError,
    NameTooLongError,
    ShortReadError,
    ShortWriteError,
    UnseekableSourceError,
)
from ustarpack.log import PackLogger


class CapturingBytesIO(io.BytesIO):
    """Keeps its contents around after being closed by the archive."""

    final_value: bytes = b""

    def close(self) -> None:
        if not self.closed:
            self.final_value = self.getvalue()
        super().close()


class RecordingSource(io.BytesIO):
    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.max_read = 0

    def read(self, n: int | None = -1, /) -> bytes:
        if n is not None and n > self.max_read:
            self.max_read = n
        return super().read(n)


class RecordingSink:
    def __init__(self) -> None:
        self.buf = bytearray()
        self.max_write = 0

    def write(self, b: bytes, /) -> int:
        self.max_write = max(self.max_write, len(b))
        self.buf += b
        return len(b)


class ShrinkingSource(io.BytesIO):
    """Loses half of its content whenever it is rewound."""

    def seek(self, pos: int, whence: int = 0, /) -> int:
        r = super().seek(pos, whence)
        self.truncate(len(self.getvalue()) // 2)
        return r


class UnseekableSource:
    def read(self, n: int = -1, /) -> bytes:
        return b""

    def tell(self) -> int:
        return 0

    def seek(self, offset: int, whence: int = 0, /) -> int:
        return 0

    def seekable(self) -> bool:
        return False


class HalfWritingTransport(CapturingBytesIO):
    def write(self, b: bytes, /) -> int:  # type: ignore[override]
        return super().write(b[: len(b) // 2])


def _make_raw_archive(
    logger: PackLogger,
    entries: list[tuple[str, bytes]],
) -> bytes:
    t = CapturingBytesIO()
    with ArchiveStream(logger, t, "w") as ar:
        for name, content in entries:
            ar.write_entry(name, io.BytesIO(content), mtime=1700000000)
    return t.final_value


def _read_all(
    logger: PackLogger,
    data: bytes,
    **kwargs: bool,
) -> list[tuple[str, bytes]]:
    result: list[tuple[str, bytes]] = []
    with ArchiveStream(logger, io.BytesIO(data), "r", **kwargs) as ar:
        while True:
            buf = io.BytesIO()
            name = ar.read_entry(buf)
            if name is None:
                break
            result.append((name, buf.getvalue()))
    return result


def test_write_then_read_gzip_file(
    pack_logger: PackLogger,
    tmp_path: pathlib.Path,
) -> None:
    path = tmp_path / "out.tar.gz"
    with ArchiveStream.open(pack_logger, path, "w") as ar:
        ar.write_entry("a.txt", io.BytesIO(b"hello"))
        ar.write_entry("b.bin", io.BytesIO(bytes(1000)))

    # the transport really is gzip
    assert path.read_bytes()[:2] == b"\x1f\x8b"

    with ArchiveStream.open(pack_logger, path, "r") as ar:
        buf = io.BytesIO()
        assert ar.read_entry(buf) == "a.txt"
        assert buf.getvalue() == b"hello"

        buf = io.BytesIO()
        assert ar.read_entry(buf) == "b.bin"
        assert buf.getvalue() == bytes(1000)

        buf = io.BytesIO()
        assert ar.read_entry(buf) is None
        assert buf.getvalue() == b""

        # stays at the end
        assert ar.read_entry(buf) is None


def test_archive_layout(pack_logger: PackLogger) -> None:
    data = _make_raw_archive(
        pack_logger,
        [("a.txt", b"hello"), ("b.bin", bytes(1000))],
    )

    # header + 1 block, header + 2 blocks, sentinel
    assert len(data) == 512 + 512 + 512 + 1024 + 1024
    assert data[512 : 512 + 5] == b"hello"
    assert data[512 + 5 : 1024] == bytes(512 - 5)
    assert data[1024 : 1024 + 5] == b"b.bin"
    assert data[-1024:] == bytes(1024)


def test_padding_invariant(pack_logger: PackLogger) -> None:
    sizes = [0, 1, 511, 512, 513, 1024, 4000]
    t = CapturingBytesIO()
    offsets: list[int] = []
    with ArchiveStream(pack_logger, t, "w") as ar:
        for i, size in enumerate(sizes):
            offsets.append(ar.offset)
            ar.write_entry(f"f{i}", io.BytesIO(os.urandom(size)))
        offsets.append(ar.offset)

    for i, size in enumerate(sizes):
        span = offsets[i + 1] - offsets[i] - 512
        assert span % 512 == 0
        assert span >= size
        assert span - size < 512

    assert len(t.final_value) == offsets[-1] + 1024


def test_zero_and_exact_block_entries(pack_logger: PackLogger) -> None:
    t = CapturingBytesIO()
    with ArchiveStream(pack_logger, t, "w") as ar:
        ar.write_entry("empty", io.BytesIO(b""))
        assert ar.offset == 512
        ar.write_entry("exact", io.BytesIO(b"x" * 1024))
        assert ar.offset == 512 + 512 + 1024

    assert _read_all(pack_logger, t.final_value) == [
        ("empty", b""),
        ("exact", b"x" * 1024),
    ]


def test_close_appends_exactly_one_sentinel(pack_logger: PackLogger) -> None:
    t = CapturingBytesIO()
    ar = ArchiveStream(pack_logger, t, "w")
    ar.close()

    assert t.closed
    assert t.final_value == bytes(1024)
    assert _read_all(pack_logger, t.final_value) == []


def test_large_entry_streams_in_bounded_chunks(pack_logger: PackLogger) -> None:
    content = os.urandom(10 * 1000 + 7)
    src = RecordingSource(content)

    t = CapturingBytesIO()
    with ArchiveStream(pack_logger, t, "w", chunk_size=1000) as ar:
        assert ar.write_entry("big", src) == len(content)
    assert src.max_read <= 1000

    sink = RecordingSink()
    with ArchiveStream(pack_logger, io.BytesIO(t.final_value), "r", chunk_size=1000) as ar:
        assert ar.read_entry(sink) == "big"
        assert ar.read_entry(sink) is None

    assert bytes(sink.buf) == content
    assert sink.max_write <= 1000


def test_write_entry_from_current_position(pack_logger: PackLogger) -> None:
    src = io.BytesIO(b"skipped|kept")
    src.seek(8)

    t = CapturingBytesIO()
    with ArchiveStream(pack_logger, t, "w") as ar:
        assert ar.write_entry("k", src) == 4

    assert _read_all(pack_logger, t.final_value) == [("k", b"kept")]


def test_write_file(
    pack_logger: PackLogger,
    tmp_path: pathlib.Path,
) -> None:
    p = tmp_path / "data.txt"
    p.write_bytes(b"file content")
    os.utime(p, (1600000000, 1600000000))

    t = CapturingBytesIO()
    with ArchiveStream(pack_logger, t, "w") as ar:
        ar.write_file(p)
        ar.write_file(p, "renamed/data.txt")

    with ArchiveStream(pack_logger, io.BytesIO(t.final_value), "r") as ar:
        headers = list(ar.iter_entries())

    assert [h.name for h in headers] == ["data.txt", "renamed/data.txt"]
    assert all(h.size == 12 for h in headers)
    assert all(h.mtime == 1600000000 for h in headers)


def test_name_too_long_writes_nothing(pack_logger: PackLogger) -> None:
    t = CapturingBytesIO()
    ar = ArchiveStream(pack_logger, t, "w")
    with pytest.raises(NameTooLongError):
        ar.write_entry("x" * 101, io.BytesIO(b"data"))
    assert ar.offset == 0
    ar.abort()


def test_short_write_from_source(pack_logger: PackLogger) -> None:
    t = CapturingBytesIO()
    ar = ArchiveStream(pack_logger, t, "w")
    with pytest.raises(ShortWriteError) as exc_info:
        ar.write_entry("shrunk", ShrinkingSource(b"z" * 100))
    assert exc_info.value.expected == 100
    assert exc_info.value.actual == 50
    ar.abort()


def test_short_write_to_transport(pack_logger: PackLogger) -> None:
    ar = ArchiveStream(pack_logger, HalfWritingTransport(), "w")
    with pytest.raises(ArchiveIOError, match="transport accepted 256 of 512 bytes"):
        ar.write_entry("a", io.BytesIO(b"a"))
    ar.abort()


def test_unseekable_source(pack_logger: PackLogger) -> None:
    ar = ArchiveStream(pack_logger, CapturingBytesIO(), "w")
    with pytest.raises(UnseekableSourceError):
        ar.write_entry("live", UnseekableSource())
    ar.abort()


def test_mode_and_lifecycle_errors(pack_logger: PackLogger) -> None:
    w = ArchiveStream(pack_logger, CapturingBytesIO(), "w")
    with pytest.raises(ArchiveModeError):
        w.read_entry(io.BytesIO())
    w.close()
    assert not w.is_open
    with pytest.raises(ArchiveClosedError):
        w.close()
    with pytest.raises(ArchiveClosedError):
        w.write_entry("a", io.BytesIO(b"a"))

    r = ArchiveStream(pack_logger, io.BytesIO(bytes(1024)), "r")
    with pytest.raises(ArchiveModeError):
        r.write_entry("a", io.BytesIO(b"a"))
    r.close()
    with pytest.raises(ArchiveClosedError):
        r.abort()

    with pytest.raises(ValueError):
        ArchiveStream(pack_logger, io.BytesIO(), "r", chunk_size=0)


def test_exception_in_context_skips_sentinel(pack_logger: PackLogger) -> None:
    t = CapturingBytesIO()
    with pytest.raises(RuntimeError):
        with ArchiveStream(pack_logger, t, "w") as ar:
            ar.write_entry("a", io.BytesIO(b"a"))
            raise RuntimeError("boom")

    assert t.closed
    assert len(t.final_value) == 1024


def test_read_close_writes_nothing(pack_logger: PackLogger) -> None:
    data = _make_raw_archive(pack_logger, [("a", b"1")])
    t = io.BytesIO(data)
    with ArchiveStream(pack_logger, t, "r") as ar:
        assert ar.read_entry(io.BytesIO()) == "a"
    assert t.closed


@pytest.mark.parametrize("extra", [1, 100, 511])
def test_truncated_header_is_corrupt(pack_logger: PackLogger, extra: int) -> None:
    data = _make_raw_archive(pack_logger, [("a.txt", b"hello"), ("b.txt", b"x")])
    truncated = data[: 1024 + extra]

    with ArchiveStream(pack_logger, io.BytesIO(truncated), "r") as ar:
        assert ar.read_entry(io.BytesIO()) == "a.txt"
        with pytest.raises(CorruptArchiveError, match="truncated header block"):
            ar.read_entry(io.BytesIO())


def test_missing_sentinel_is_end_of_archive(pack_logger: PackLogger) -> None:
    data = _make_raw_archive(pack_logger, [("a.txt", b"hello")])
    assert _read_all(pack_logger, data[:1024]) == [("a.txt", b"hello")]


def test_truncated_content_is_short_read(pack_logger: PackLogger) -> None:
    data = _make_raw_archive(pack_logger, [("a.txt", b"y" * 300)])

    with ArchiveStream(pack_logger, io.BytesIO(data[: 512 + 200]), "r") as ar:
        with pytest.raises(ShortReadError) as exc_info:
            ar.read_entry(io.BytesIO())
    assert exc_info.value.expected == 300
    assert exc_info.value.actual == 200

    # content complete but padding missing
    with ArchiveStream(pack_logger, io.BytesIO(data[: 512 + 300]), "r") as ar:
        with pytest.raises(ShortReadError):
            ar.read_entry(io.BytesIO())


def test_truncated_compressed_stream_is_corrupt(
    pack_logger: PackLogger,
    tmp_path: pathlib.Path,
) -> None:
    path = tmp_path / "t.tar.gz"
    with ArchiveStream.open(pack_logger, path, "w") as ar:
        ar.write_entry("noise", io.BytesIO(os.urandom(20000)))

    full = path.read_bytes()
    path.write_bytes(full[: len(full) // 2])

    with pytest.raises(CorruptArchiveError, match="ended unexpectedly"):
        with ArchiveStream.open(pack_logger, path, "r") as ar:
            ar.read_entry(io.BytesIO())


def test_checksum_verification_is_opt_in(pack_logger: PackLogger) -> None:
    data = bytearray(_make_raw_archive(pack_logger, [("a.txt", b"hello")]))
    # tamper with the mtime field of the only header
    data[140] = ord("1") if data[140] != ord("1") else ord("2")

    assert _read_all(pack_logger, bytes(data)) == [("a.txt", b"hello")]
    with pytest.raises(ChecksumMismatchError):
        _read_all(pack_logger, bytes(data), verify_checksum=True)


@pytest.mark.parametrize(
    "suffix,magic",
    [
        (".tar", None),
        (".tar.gz", b"\x1f\x8b"),
        (".tar.bz2", b"BZh"),
        (".tar.xz", b"\xfd7zXZ"),
    ],
)
def test_compression_from_suffix(
    pack_logger: PackLogger,
    tmp_path: pathlib.Path,
    suffix: str,
    magic: bytes | None,
) -> None:
    path = tmp_path / f"archive{suffix}"
    with ArchiveStream.open(pack_logger, path, "w", compress_level=1) as ar:
        ar.write_entry("f", io.BytesIO(b"payload"))

    raw = path.read_bytes()
    if magic is None:
        assert raw[:1] == b"f"
    else:
        assert raw.startswith(magic)

    with ArchiveStream.open(pack_logger, path, "r") as ar:
        buf = io.BytesIO()
        assert ar.read_entry(buf) == "f"
        assert buf.getvalue() == b"payload"


def test_readable_by_tarfile(
    pack_logger: PackLogger,
    tmp_path: pathlib.Path,
) -> None:
    path = tmp_path / "out.tar.gz"
    with ArchiveStream.open(pack_logger, path, "w") as ar:
        ar.write_entry("a.txt", io.BytesIO(b"hello"), mtime=1700000000)
        ar.write_entry("b.bin", io.BytesIO(bytes(1000)))

    with tarfile.open(path, "r:gz") as tf:
        members = tf.getmembers()
        assert [m.name for m in members] == ["a.txt", "b.bin"]
        assert members[0].size == 5
        assert members[0].mtime == 1700000000
        assert members[0].mode == 0o644
        assert members[0].isreg()
        f = tf.extractfile(members[0])
        assert f is not None
        assert f.read() == b"hello"


def test_reads_tarfile_output(
    pack_logger: PackLogger,
    tmp_path: pathlib.Path,
) -> None:
    path = tmp_path / "from-tarfile.tar.gz"
    with tarfile.open(path, "w:gz", format=tarfile.USTAR_FORMAT) as tf:
        for name, content in (("x/one", b"1" * 700), ("two", b"")):
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tf.addfile(info, io.BytesIO(content))

    with gzip.open(path, "rb") as fp:
        data = fp.read()

    assert _read_all(pack_logger, data, verify_checksum=True) == [
        ("x/one", b"1" * 700),
        ("two", b""),
    ]


class FullDiskTransport(CapturingBytesIO):
    def write(self, b: bytes, /) -> int:  # type: ignore[override]
        raise OSError(errno.ENOSPC, os.strerror(errno.ENOSPC))


class BrokenCloseTransport(FullDiskTransport):
    def close(self) -> None:
        super().close()
        raise OSError(errno.EIO, os.strerror(errno.EIO))


class UnreadableTransport(io.BytesIO):
    def read(self, n: int | None = -1, /) -> bytes:
        raise OSError(errno.EIO, os.strerror(errno.EIO))


def test_transport_write_failure(pack_logger: PackLogger) -> None:
    ar = ArchiveStream(pack_logger, FullDiskTransport(), "w")
    with pytest.raises(ArchiveIOError, match="unable to write") as exc_info:
        ar.write_entry("a", io.BytesIO(b"a"))
    assert isinstance(exc_info.value.__cause__, OSError)
    assert exc_info.value.__cause__.errno == errno.ENOSPC
    assert ar.offset == 0
    ar.abort()


def test_transport_read_failure(pack_logger: PackLogger) -> None:
    ar = ArchiveStream(pack_logger, UnreadableTransport(), "r")
    with pytest.raises(ArchiveIOError, match="unable to read"):
        ar.read_entry(io.BytesIO())
    ar.abort()


def test_not_a_gzip_stream(
    pack_logger: PackLogger,
    tmp_path: pathlib.Path,
) -> None:
    path = tmp_path / "fake.tar.gz"
    path.write_bytes(b"definitely not gzip data" * 50)

    with ArchiveStream.open(pack_logger, path, "r") as ar:
        with pytest.raises(ArchiveIOError):
            ar.read_entry(io.BytesIO())


def test_close_reports_sentinel_failure_over_release_failure(
    pack_logger: PackLogger,
) -> None:
    t = BrokenCloseTransport()
    ar = ArchiveStream(pack_logger, t, "w")
    with pytest.raises(ArchiveIOError, match="unable to write") as exc_info:
        ar.close()
    assert isinstance(exc_info.value.__cause__, OSError)
    assert exc_info.value.__cause__.errno == errno.ENOSPC
    assert t.closed
    assert not ar.is_open


def test_short_io_error_repr() -> None:
    assert repr(ShortWriteError("x.tar", "a", 10, 4)) == (
        "ShortWriteError('x.tar', 'a', 10, 4)"
    )
    assert repr(ShortReadError("x.tar", "b", 512, 0)) == (
        "ShortReadError('x.tar', 'b', 512, 0)"
    )
