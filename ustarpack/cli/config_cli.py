import argparse
from typing import TYPE_CHECKING

from .cmd import RootCommand

if TYPE_CHECKING:
    from ..config import GlobalConfig


class ConfigCommand(
    RootCommand,
    cmd="config",
    has_subcommands=True,
    help="Inspect the effective configuration",
):
    pass


class ConfigGetCommand(
    ConfigCommand,
    cmd="get",
    help="Print the effective value of a config key",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        p.add_argument("key", type=str, help="Dotted config key, e.g. archive.chunk_size")

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_config_get(cfg, args.key)


def cli_config_get(cfg: "GlobalConfig", key: str) -> int:
    from ..config.errors import InvalidConfigKeyError
    from ..config.schema import encode_value

    try:
        val = cfg.get_by_key(key)
    except InvalidConfigKeyError:
        cfg.logger.F(f"unknown config key [yellow]{key}[/]")
        return 1

    # same spelling as in config.toml
    cfg.logger.stdout(encode_value(val))
    return 0
