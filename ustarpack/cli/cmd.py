import argparse
from typing import Callable, ClassVar, TYPE_CHECKING

from . import ENTRYPOINT_NAME

if TYPE_CHECKING:
    from ..config import GlobalConfig

    CLIEntrypoint = Callable[["GlobalConfig", argparse.Namespace], int]


class BaseCommand:
    """A node of the command tree.

    Subclassing a command registers the subclass as its subcommand, so the
    whole tree is known once every command module is imported.
    """

    cmd: ClassVar[str | None]
    aliases: ClassVar[list[str]]
    help: ClassVar[str | None]
    has_subcommands: ClassVar[bool]
    has_main: ClassVar[bool]
    children: ClassVar["list[type[BaseCommand]]"]

    def __init_subclass__(
        cls,
        cmd: str | None,
        has_subcommands: bool = False,
        has_main: bool | None = None,
        aliases: list[str] | None = None,
        help: str | None = None,
        **kwargs: object,
    ) -> None:
        super().__init_subclass__(**kwargs)

        cls.cmd = cmd
        cls.aliases = aliases or []
        cls.help = help
        cls.has_subcommands = has_subcommands
        cls.has_main = not has_subcommands if has_main is None else has_main
        cls.children = []

        parent = cls.__bases__[0]
        if issubclass(parent, BaseCommand) and parent is not BaseCommand:
            parent.children.append(cls)

    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        pass

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        raise NotImplementedError

    @classmethod
    def _populate(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        cls.configure_args(gc, p)

        if cls.has_main:
            p.set_defaults(func=cls.main)
        else:

            def _print_help(gc: "GlobalConfig", args: argparse.Namespace) -> int:
                p.print_help()
                return 0

            p.set_defaults(func=_print_help)

        if not cls.has_subcommands:
            return

        sp = p.add_subparsers(title="subcommands")
        for child in cls.children:
            assert child.cmd is not None
            child_p = sp.add_parser(child.cmd, aliases=child.aliases, help=child.help)
            child._populate(gc, child_p)


class RootCommand(
    BaseCommand,
    cmd=None,
    has_subcommands=True,
    has_main=True,
):
    @classmethod
    def build_argparse(cls, gc: "GlobalConfig") -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(
            prog=ENTRYPOINT_NAME,
            description="Streaming ustar archive tool",
        )
        cls._populate(gc, p)
        return p

    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        from .version_cli import cli_version

        p.add_argument(
            "-V",
            "--version",
            action="store_const",
            dest="func",
            const=cli_version,
            help="Print version information",
        )
        p.add_argument(
            "--porcelain",
            action="store_true",
            help="Give the output in a machine-friendly format if applicable",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        args._parser.print_help()  # pylint: disable=protected-access
        return 0
