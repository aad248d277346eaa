from os import PathLike
from typing import Any, Sequence


def _fmt_key(key: str | Sequence[str] | None) -> str:
    if key is None or isinstance(key, str):
        return str(key)
    return ".".join(key)


class ConfigError(Exception):
    pass


class InvalidConfigSectionError(ConfigError):
    def __init__(self, section: str) -> None:
        super().__init__()
        self.section = section

    def __str__(self) -> str:
        return f"invalid config section: {self.section}"

    def __repr__(self) -> str:
        return f"InvalidConfigSectionError({self.section!r})"


class InvalidConfigKeyError(ConfigError, KeyError):
    def __init__(self, key: str | Sequence[str]) -> None:
        super().__init__()
        self.key = key

    def __str__(self) -> str:
        return f"invalid config key: {_fmt_key(self.key)}"

    def __repr__(self) -> str:
        return f"InvalidConfigKeyError({self.key!r})"


class InvalidConfigValueTypeError(ConfigError, TypeError):
    def __init__(
        self,
        key: str | Sequence[str],
        val: object | None,
        expected: type,
    ) -> None:
        super().__init__()
        self.key = key
        self.val = val
        self.expected = expected

    def __str__(self) -> str:
        return (
            f"config key {_fmt_key(self.key)} expects a value of type "
            f"{self.expected.__name__}, got {type(self.val).__name__}"
        )


class InvalidConfigValueError(ConfigError, ValueError):
    def __init__(
        self,
        key: str | Sequence[str] | None,
        val: object | None,
        typ: type,
    ) -> None:
        super().__init__()
        self.key = key
        self.val = val
        self.typ = typ

    def __str__(self) -> str:
        return f"invalid value for config key {_fmt_key(self.key)}: {self.val!r}"

    def __repr__(self) -> str:
        return f"InvalidConfigValueError({self.key!r}, {self.val!r}, {self.typ!r})"


class MalformedConfigFileError(ConfigError):
    def __init__(self, path: PathLike[Any]) -> None:
        super().__init__()
        self.path = path

    def __str__(self) -> str:
        return f"malformed config file: {self.path}"
