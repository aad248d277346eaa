from typing import Final, Sequence

from .errors import (
    InvalidConfigKeyError,
    InvalidConfigSectionError,
    InvalidConfigValueError,
    InvalidConfigValueTypeError,
)


def parse_config_key(key: str | Sequence[str]) -> list[str]:
    if isinstance(key, str):
        return key.split(".")
    return list(key)


SECTION_ARCHIVE: Final = "archive"
KEY_ARCHIVE_CHUNK_SIZE: Final = "chunk_size"
KEY_ARCHIVE_COMPRESSION: Final = "compression"
KEY_ARCHIVE_COMPRESS_LEVEL: Final = "compress_level"
KEY_ARCHIVE_VERIFY_CHECKSUM: Final = "verify_checksum"

COMPRESSION_CHOICES: Final = ("auto", "none", "gz", "bz2", "xz")


def validate_section(section: str) -> None:
    if section != SECTION_ARCHIVE:
        raise InvalidConfigSectionError(section)


def get_expected_type_for_config_key(key: str | Sequence[str]) -> type:
    parsed_key = parse_config_key(key)
    if len(parsed_key) != 2:
        # for now there's no nested config option
        raise InvalidConfigKeyError(key)

    section, sel = parsed_key
    if section == SECTION_ARCHIVE:
        return _get_expected_type_for_section_archive(sel)
    else:
        raise InvalidConfigKeyError(key)


def _get_expected_type_for_section_archive(sel: str) -> type:
    if sel == KEY_ARCHIVE_CHUNK_SIZE:
        return int
    elif sel == KEY_ARCHIVE_COMPRESSION:
        return str
    elif sel == KEY_ARCHIVE_COMPRESS_LEVEL:
        return int
    elif sel == KEY_ARCHIVE_VERIFY_CHECKSUM:
        return bool
    else:
        raise InvalidConfigKeyError(sel)


def ensure_valid_config_kv(
    key: str | Sequence[str],
    check_val: bool = False,
    val: object | None = None,
) -> None:
    parsed_key = parse_config_key(key)
    # validity of config key is checked by get_expected_type_for_config_key
    expected_type = get_expected_type_for_config_key(parsed_key)
    if not check_val:
        return

    # bool is a subclass of int, but not an acceptable int config value
    if not isinstance(val, expected_type) or (
        expected_type is int and isinstance(val, bool)
    ):
        raise InvalidConfigValueTypeError(key, val, expected_type)

    section, sel = parsed_key
    if section == SECTION_ARCHIVE:
        return _extra_validate_section_archive_kv(key, sel, val)


def _extra_validate_section_archive_kv(
    key: str | Sequence[str],
    sel: str,
    val: object | None,
) -> None:
    # value types are already ensured earlier
    if sel == KEY_ARCHIVE_CHUNK_SIZE:
        assert isinstance(val, int)
        if val <= 0:
            raise InvalidConfigValueError(key, val, int)
    elif sel == KEY_ARCHIVE_COMPRESSION:
        if val not in COMPRESSION_CHOICES:
            raise InvalidConfigValueError(key, val, str)
    elif sel == KEY_ARCHIVE_COMPRESS_LEVEL:
        assert isinstance(val, int)
        if not 1 <= val <= 9:
            raise InvalidConfigValueError(key, val, int)


def encode_value(v: object) -> str:
    """Encodes the given config value into a string representation suitable for
    display or storage into TOML config files."""

    if v is None:
        raise ValueError("None cannot be encoded as a config value")

    if isinstance(v, bool):
        return "true" if v else "false"
    elif isinstance(v, int):
        return str(v)
    elif isinstance(v, str):
        return v
    else:
        raise NotImplementedError(f"invalid type for config value: {type(v)}")
