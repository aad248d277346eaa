from dataclasses import dataclass
from typing import Final

from .checksum import (
    CHKSUM_FIELD_SIZE,
    CHKSUM_OFFSET,
    HEADER_BLOCK_SIZE,
    header_checksum,
)
from .errors import (
    ChecksumMismatchError,
    CorruptArchiveError,
    EntrySizeError,
    NameTooLongError,
)

BLOCK_SIZE: Final = HEADER_BLOCK_SIZE

NAME_FIELD_SIZE: Final = 100
MAX_ENTRY_SIZE: Final = 8**11 - 1
MAX_MTIME: Final = 8**11 - 1

DEFAULT_MODE: Final = 0o644
REGTYPE: Final = b"\0"
USTAR_MAGIC: Final = b"ustar\0"
USTAR_VERSION: Final = b"  "

# (offset, width) of the fields we care about, per the legacy ustar layout
_NAME: Final = (0, NAME_FIELD_SIZE)
_MODE: Final = (100, 8)
_SIZE: Final = (124, 12)
_MTIME: Final = (136, 12)
_CHKSUM: Final = (CHKSUM_OFFSET, CHKSUM_FIELD_SIZE)
_TYPEFLAG: Final = (156, 1)
_MAGIC: Final = (257, 6)
_VERSION: Final = (263, 2)


@dataclass
class EntryHeader:
    name: str
    size: int
    mtime: int = 0
    mode: int = DEFAULT_MODE
    typeflag: bytes = REGTYPE
    magic: bytes = USTAR_MAGIC
    version: bytes = USTAR_VERSION
    checksum: int | None = None
    """Stored checksum value; only known after encoding or decoding."""

    @property
    def padding_size(self) -> int:
        """Number of zero bytes following the content up to the block boundary."""
        rem = self.size % BLOCK_SIZE
        return 0 if rem == 0 else BLOCK_SIZE - rem


def _field(block: bytes | bytearray, field: tuple[int, int]) -> bytes:
    off, width = field
    return bytes(block[off : off + width])


def _put_octal(buf: bytearray, field: tuple[int, int], value: int) -> None:
    # width - 1 zero-padded octal digits, NUL-terminated
    off, width = field
    digits = f"{value:0{width - 1}o}".encode("ascii")
    if value < 0 or len(digits) > width - 1:
        raise ValueError(f"value {value} does not fit a {width}-byte octal field")
    buf[off : off + width] = digits + b"\0"


def _parse_octal(raw: bytes) -> int:
    digits = raw.split(b"\0", 1)[0].strip(b" ")
    if not digits:
        raise ValueError("empty numeric field")
    return int(digits, 8)


def _parse_octal_lenient(raw: bytes) -> int:
    try:
        return _parse_octal(raw)
    except ValueError:
        return 0


def encode_header(header: EntryHeader) -> bytes:
    """Encodes an entry header into one zero-filled 512-byte block.

    The name must fit the 100-byte name field as UTF-8 without truncation,
    and the size must be representable in 11 octal digits. The checksum is
    computed over the finished block and written back into it; it is also
    recorded on ``header``.
    """

    if not header.name:
        raise ValueError("entry name must not be empty")
    if "\0" in header.name:
        raise ValueError(f"entry name must not contain NUL: {header.name!r}")

    name_bytes = header.name.encode("utf-8")
    if len(name_bytes) > NAME_FIELD_SIZE:
        raise NameTooLongError(header.name, NAME_FIELD_SIZE)

    if not 0 <= header.size <= MAX_ENTRY_SIZE:
        raise EntrySizeError(header.size, MAX_ENTRY_SIZE)
    if not 0 <= header.mtime <= MAX_MTIME:
        raise ValueError(f"modification time out of range: {header.mtime}")
    if len(header.typeflag) != 1:
        raise ValueError(f"typeflag must be a single byte: {header.typeflag!r}")

    buf = bytearray(BLOCK_SIZE)
    buf[: len(name_bytes)] = name_bytes
    _put_octal(buf, _MODE, header.mode)
    _put_octal(buf, _SIZE, header.size)
    _put_octal(buf, _MTIME, header.mtime)
    buf[_TYPEFLAG[0]] = header.typeflag[0]

    off, width = _MAGIC
    buf[off : off + width] = header.magic[:width].ljust(width, b"\0")
    off, width = _VERSION
    buf[off : off + width] = header.version[:width].ljust(width, b"\0")

    chksum = header_checksum(bytes(buf))
    off, width = _CHKSUM
    buf[off : off + width] = f"{chksum:06o}".encode("ascii") + b"\0 "
    header.checksum = chksum

    return bytes(buf)


def decode_header(
    block: bytes,
    *,
    verify_checksum: bool = False,
    archive: str = "<memory>",
) -> EntryHeader | None:
    """Decodes one 512-byte header block.

    Returns ``None`` when the block marks the end of the archive, i.e. it is
    all zeroes or its name field is empty.

    Only the name and size fields are trusted; the stored checksum is not
    compared against the block contents unless ``verify_checksum`` is set.
    """

    if len(block) != BLOCK_SIZE:
        raise ValueError(
            f"header block must be {BLOCK_SIZE} bytes long, got {len(block)}"
        )

    if not any(block) or block[0] == 0:
        return None

    name = _field(block, _NAME).split(b"\0", 1)[0].decode("utf-8", "surrogateescape")

    try:
        size = _parse_octal(_field(block, _SIZE))
    except ValueError as e:
        raise CorruptArchiveError(
            archive,
            f"unparsable size field in header of {name}",
        ) from e

    stored_chksum: int | None
    try:
        stored_chksum = _parse_octal(_field(block, _CHKSUM))
    except ValueError:
        stored_chksum = None

    if verify_checksum:
        actual = header_checksum(block)
        if stored_chksum != actual:
            raise ChecksumMismatchError(
                archive,
                -1 if stored_chksum is None else stored_chksum,
                actual,
            )

    return EntryHeader(
        name=name,
        size=size,
        mtime=_parse_octal_lenient(_field(block, _MTIME)),
        mode=_parse_octal_lenient(_field(block, _MODE)),
        typeflag=_field(block, _TYPEFLAG),
        magic=_field(block, _MAGIC),
        version=_field(block, _VERSION),
        checksum=stored_chksum,
    )
