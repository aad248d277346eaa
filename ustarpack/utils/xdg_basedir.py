# Just enough of the XDG Base Directory Specification to locate config files.

import os
import pathlib
from typing import Mapping


def _env(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def user_config_home(env: Mapping[str, str] | None = None) -> pathlib.Path:
    # relative values are invalid and must be ignored
    v = _env(env).get("XDG_CONFIG_HOME", "")
    if v and os.path.isabs(v):
        return pathlib.Path(v)
    return pathlib.Path.home() / ".config"


def system_config_dirs(env: Mapping[str, str] | None = None) -> list[pathlib.Path]:
    """Returns the system-wide config directories, most important first."""

    v = _env(env).get("XDG_CONFIG_DIRS", "")
    dirs = [pathlib.Path(p) for p in v.split(":") if p and os.path.isabs(p)]
    return dirs or [pathlib.Path("/etc/xdg")]


def app_config_search_path(
    app_name: str,
    env: Mapping[str, str] | None = None,
) -> list[pathlib.Path]:
    """Returns the config directories of ``app_name``, least important first,
    so that files found there can be applied in order."""

    dirs = [d / app_name for d in reversed(system_config_dirs(env))]
    dirs.append(user_config_home(env) / app_name)
    return dirs
