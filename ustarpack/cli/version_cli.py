import argparse
import platform
from typing import TYPE_CHECKING

from .cmd import RootCommand

if TYPE_CHECKING:
    from ..config import GlobalConfig


class VersionCommand(
    RootCommand,
    cmd="version",
    help="Print version information",
):
    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_version(cfg, args)


def cli_version(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    from ..archive.stream import DEFAULT_CHUNK_SIZE
    from ..version import COPYRIGHT_NOTICE, USTARPACK_SEMVER

    log = cfg.logger
    log.stdout(f"ustarpack {USTARPACK_SEMVER}")
    log.stdout(
        f"Python {platform.python_version()} ({platform.python_implementation()}), "
        f"default chunk size {DEFAULT_CHUNK_SIZE} bytes"
    )
    log.stdout("")
    log.stdout(COPYRIGHT_NOTICE, end="")
    return 0
