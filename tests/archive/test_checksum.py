import pytest

from ustarpack.archive.checksum import header_checksum


def test_header_checksum_zero_block() -> None:
    # only the checksum field contributes, as eight spaces
    assert header_checksum(bytes(512)) == 8 * 0x20


def test_header_checksum_sums_unsigned_bytes() -> None:
    block = bytearray(512)
    block[0] = 0xFF
    block[511] = 0x80
    assert header_checksum(bytes(block)) == 0xFF + 0x80 + 8 * 0x20


def test_header_checksum_ignores_checksum_field() -> None:
    block = bytearray(512)
    block[0:5] = b"a.txt"
    a = header_checksum(bytes(block))

    block[148:156] = b"0123456\0"
    assert header_checksum(bytes(block)) == a

    block[148:156] = b"\xff" * 8
    assert header_checksum(bytes(block)) == a


def test_header_checksum_wrong_length() -> None:
    with pytest.raises(ValueError, match="must be 512 bytes long"):
        header_checksum(bytes(511))
    with pytest.raises(ValueError):
        header_checksum(bytes(1024))
