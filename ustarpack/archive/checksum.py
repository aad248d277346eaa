from typing import Final

HEADER_BLOCK_SIZE: Final = 512
CHKSUM_OFFSET: Final = 148
CHKSUM_FIELD_SIZE: Final = 8

# the checksum field contributes eight ASCII spaces whatever it holds
_CHKSUM_FIELD_AS_SPACES: Final = CHKSUM_FIELD_SIZE * 0x20


def header_checksum(block: bytes) -> int:
    """Computes the checksum of a 512-byte header block.

    Every byte is summed as an unsigned value, with the checksum field itself
    counted as if it were filled with ASCII spaces, so that the result does
    not depend on whatever the field currently holds.
    """

    if len(block) != HEADER_BLOCK_SIZE:
        raise ValueError(
            f"header block must be {HEADER_BLOCK_SIZE} bytes long, got {len(block)}"
        )

    chksum_end = CHKSUM_OFFSET + CHKSUM_FIELD_SIZE
    return (
        sum(block[:CHKSUM_OFFSET])
        + _CHKSUM_FIELD_AS_SPACES
        + sum(block[chksum_end:])
    )
