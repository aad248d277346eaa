import os
import pathlib
import sys
from typing import Any, Final, Sequence, TypedDict, TYPE_CHECKING

if TYPE_CHECKING:
    from typing_extensions import NotRequired, Self

    from ..log import PackLogger
    from ..utils.global_mode import ProvidesGlobalMode

from ..archive.stream import DEFAULT_CHUNK_SIZE
from ..archive.transport import DEFAULT_COMPRESS_LEVEL, Compression
from ..utils import xdg_basedir
from . import errors
from . import schema


if sys.platform == "linux":
    PRESET_GLOBAL_CONFIG_LOCATIONS: Final[list[str]] = [
        "/usr/share/ustarpack/config.toml",
        "/usr/local/share/ustarpack/config.toml",
    ]
else:
    PRESET_GLOBAL_CONFIG_LOCATIONS: Final[list[str]] = []

DEFAULT_APP_NAME: Final = "ustarpack"
CONFIG_FILE_NAME: Final = "config.toml"


class GlobalConfigArchiveType(TypedDict):
    chunk_size: "NotRequired[int]"
    compression: "NotRequired[str]"
    compress_level: "NotRequired[int]"
    verify_checksum: "NotRequired[bool]"


class GlobalConfigRootType(TypedDict):
    archive: "NotRequired[GlobalConfigArchiveType]"


# config key leaf -> GlobalConfig attribute, for the [archive] section
_ARCHIVE_ATTRS: Final = {
    schema.KEY_ARCHIVE_CHUNK_SIZE: "chunk_size",
    schema.KEY_ARCHIVE_COMPRESSION: "compression",
    schema.KEY_ARCHIVE_COMPRESS_LEVEL: "compress_level",
    schema.KEY_ARCHIVE_VERIFY_CHECKSUM: "verify_checksum",
}


class GlobalConfig:
    """Settings of a ustarpack invocation.

    Defaults are overlaid by every config file found, from the preset
    locations of distribution packages up to the user's own XDG config;
    later files win key by key.
    """

    def __init__(self, gm: "ProvidesGlobalMode", logger: "PackLogger") -> None:
        self._gm = gm
        self.logger = logger

        self.chunk_size: int = DEFAULT_CHUNK_SIZE
        self.compression: str = Compression.AUTO.value
        self.compress_level: int = DEFAULT_COMPRESS_LEVEL
        self.verify_checksum = False

    @property
    def argv0(self) -> str:
        return self._gm.argv0

    @property
    def is_debug(self) -> bool:
        return self._gm.is_debug

    @property
    def is_porcelain(self) -> bool:
        return self._gm.is_porcelain

    @staticmethod
    def _attr_for_key(key: str | Sequence[str]) -> str | None:
        match schema.parse_config_key(key):
            case [schema.SECTION_ARCHIVE, leaf]:
                return _ARCHIVE_ATTRS.get(leaf)
            case _:
                return None

    def get_by_key(self, key: str | Sequence[str]) -> object:
        attr_name = self._attr_for_key(key)
        if attr_name is None:
            raise errors.InvalidConfigKeyError(key)
        return getattr(self, attr_name)

    def set_by_key(self, key: str | Sequence[str], value: object) -> None:
        attr_name = self._attr_for_key(key)
        if attr_name is None:
            raise errors.InvalidConfigKeyError(key)
        schema.ensure_valid_config_kv(key, True, value)
        setattr(self, attr_name, value)

    def _apply_config(self, config_data: GlobalConfigRootType) -> None:
        archive_cfg = config_data.get(schema.SECTION_ARCHIVE)
        if not archive_cfg:
            return

        for leaf, val in archive_cfg.items():
            try:
                self.set_by_key((schema.SECTION_ARCHIVE, leaf), val)
            except errors.ConfigError as e:
                self.logger.W(f"{e}; ignoring")

    def config_file_candidates(self) -> list[pathlib.Path]:
        """Returns every config file location consulted, least important first."""

        paths = [pathlib.Path(p) for p in PRESET_GLOBAL_CONFIG_LOCATIONS]
        for d in xdg_basedir.app_config_search_path(DEFAULT_APP_NAME):
            paths.append(d / CONFIG_FILE_NAME)
        return paths

    @property
    def local_user_config_file(self) -> pathlib.Path:
        return xdg_basedir.user_config_home() / DEFAULT_APP_NAME / CONFIG_FILE_NAME

    def _try_apply_config_file(self, path: os.PathLike[Any]) -> None:
        import tomlkit
        from tomlkit.exceptions import ParseError

        try:
            with open(path, "rb") as fp:
                data: Any = tomlkit.load(fp).unwrap()
        except FileNotFoundError:
            return
        except ParseError as e:
            raise errors.MalformedConfigFileError(path) from e

        self.logger.D(f"applying config from {path}: {data}")
        self._apply_config(data)

    @classmethod
    def load_from_config(cls, gm: "ProvidesGlobalMode", logger: "PackLogger") -> "Self":
        obj = cls(gm, logger)
        for path in obj.config_file_candidates():
            obj._try_apply_config_file(path)
        return obj
