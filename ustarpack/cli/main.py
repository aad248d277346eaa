import sys
from typing import TYPE_CHECKING

from ..config import GlobalConfig
from ..utils.global_mode import GlobalMode

if TYPE_CHECKING:
    from .cmd import CLIEntrypoint


def main(gm: GlobalMode, gc: GlobalConfig, argv: list[str]) -> int:
    from .cmd import RootCommand
    from . import builtin_commands

    del builtin_commands

    p = RootCommand.build_argparse(gc)
    args = p.parse_args(argv[1:])
    # the root command prints help through this
    args._parser = p  # pylint: disable=protected-access

    gm.is_porcelain = args.porcelain

    logger = gc.logger
    logger.D(f"argv[0] = {gm.argv0}, main = {gm.main_file}, python = {sys.executable}")
    logger.D(f"args={args}")

    func: "CLIEntrypoint" = args.func
    return func(gc, args)
