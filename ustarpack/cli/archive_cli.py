import argparse
import contextlib
import datetime
import os
import pathlib
import tempfile
from typing import BinaryIO, TYPE_CHECKING

from ..config.schema import COMPRESSION_CHOICES
from ..utils.porcelain import PorcelainEntity, PorcelainEntityType, PorcelainOutput
from .cmd import RootCommand

if TYPE_CHECKING:
    from ..archive import EntryHeader
    from ..config import GlobalConfig


class PorcelainEntryListOutputV1(PorcelainEntity):
    name: str
    size: int
    mtime: int
    mode: int


class PackCommand(
    RootCommand,
    cmd="pack",
    aliases=["c"],
    help="Create an archive from the given files",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        p.add_argument("archive", type=str, help="Path of the archive to create")
        p.add_argument(
            "file",
            type=str,
            nargs="+",
            help="Regular file(s) to add; each is stored under its base name",
        )
        p.add_argument(
            "--arcname",
            type=str,
            default=None,
            help="Store the only given file under this name instead",
        )
        p.add_argument(
            "--compression",
            type=str,
            choices=COMPRESSION_CHOICES,
            default=None,
            help="Compression of the archive (default: from config, or guessed from the archive suffix)",
        )
        p.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Print the name of every entry added",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_pack(cfg, args)


class UnpackCommand(
    RootCommand,
    cmd="unpack",
    aliases=["x"],
    help="Extract all entries of an archive",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        p.add_argument("archive", type=str, help="Path of the archive to extract")
        p.add_argument(
            "-C",
            "--directory",
            type=str,
            default=".",
            dest="dest",
            help="Extract into this directory (default: current directory)",
        )
        p.add_argument(
            "--compression",
            type=str,
            choices=COMPRESSION_CHOICES,
            default=None,
            help="Compression of the archive (default: from config, or guessed from the archive suffix)",
        )
        p.add_argument(
            "--verify-checksum",
            action="store_true",
            help="Reject entries whose header checksum does not match",
        )
        p.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Print the name of every entry extracted",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_unpack(cfg, args)


class ListCommand(
    RootCommand,
    cmd="list",
    aliases=["t"],
    help="List the entries of an archive",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        p.add_argument("archive", type=str, help="Path of the archive to list")
        p.add_argument(
            "--compression",
            type=str,
            choices=COMPRESSION_CHOICES,
            default=None,
            help="Compression of the archive (default: from config, or guessed from the archive suffix)",
        )
        p.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Also show size, mode and modification time of every entry",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_list(cfg, args)


def cli_pack(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    from ..archive import ArchiveError, ArchiveStream
    from ..log import humanize_size

    logger = cfg.logger
    files: list[str] = args.file
    arcname: str | None = args.arcname

    if arcname is not None and len(files) != 1:
        logger.F("[yellow]--arcname[/] can only be used with exactly one file")
        return 1

    try:
        ar = ArchiveStream.open(
            logger,
            args.archive,
            "w",
            compression=args.compression or cfg.compression,
            compress_level=cfg.compress_level,
            chunk_size=cfg.chunk_size,
        )
    except (ArchiveError, OSError) as e:
        logger.F(f"unable to create archive {args.archive}: {e}")
        return 1

    try:
        with ar:
            for f in files:
                size = ar.write_file(f, arcname)
                if args.verbose:
                    logger.stdout(arcname or os.path.basename(f))
                logger.D(f"added {f} ({humanize_size(size)})")
    except (ArchiveError, OSError) as e:
        logger.F(f"unable to create archive {args.archive}: {e}")
        # a partially written archive is unusable
        with contextlib.suppress(FileNotFoundError):
            os.unlink(args.archive)
        return 1

    return 0


def resolve_extraction_path(dest: pathlib.Path, name: str) -> pathlib.Path | None:
    """Returns where entry ``name`` goes under ``dest``, or ``None`` if the
    name is absolute or would escape ``dest``."""

    p = pathlib.PurePosixPath(name)
    if p.is_absolute() or ".." in p.parts:
        return None
    return dest.joinpath(*p.parts)


def cli_unpack(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    from ..archive import ArchiveError, ArchiveStream

    logger = cfg.logger
    dest = pathlib.Path(args.dest)
    verify: bool = args.verify_checksum or cfg.verify_checksum

    try:
        dest.mkdir(parents=True, exist_ok=True)
        with ArchiveStream.open(
            logger,
            args.archive,
            "r",
            compression=args.compression or cfg.compression,
            chunk_size=cfg.chunk_size,
            verify_checksum=verify,
        ) as ar:
            while True:
                # the entry name is only known after its content is consumed,
                # so content lands in a temporary file first
                tmp = tempfile.NamedTemporaryFile(dir=dest, delete=False)
                try:
                    with tmp:
                        header = ar.read_entry_header(tmp)
                    if header is None:
                        break

                    target = resolve_extraction_path(dest, header.name)
                    if target is None:
                        logger.F(f"refusing to extract unsafe entry name [yellow]{header.name}[/]")
                        return 1

                    target.parent.mkdir(parents=True, exist_ok=True)
                    os.chmod(tmp.name, header.mode & 0o777)
                    os.replace(tmp.name, target)
                    os.utime(target, (header.mtime, header.mtime))
                finally:
                    # already gone once renamed into place
                    with contextlib.suppress(FileNotFoundError):
                        os.unlink(tmp.name)

                if args.verbose:
                    logger.stdout(header.name)
    except (ArchiveError, OSError) as e:
        logger.F(f"unable to extract archive {args.archive}: {e}")
        return 1

    return 0


def cli_list(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    from ..archive import ArchiveError, ArchiveStream

    logger = cfg.logger

    try:
        with ArchiveStream.open(
            logger,
            args.archive,
            "r",
            compression=args.compression or cfg.compression,
            chunk_size=cfg.chunk_size,
            verify_checksum=cfg.verify_checksum,
        ) as ar:
            headers = list(ar.iter_entries())
    except (ArchiveError, OSError) as e:
        logger.F(f"unable to read archive {args.archive}: {e}")
        return 1

    if cfg.is_porcelain:
        return _do_list_porcelain(headers)

    for h in headers:
        if not args.verbose:
            logger.stdout(h.name)
            continue

        mtime = datetime.datetime.fromtimestamp(h.mtime, datetime.timezone.utc)
        logger.stdout(
            f"{h.mode:04o} {h.size:>12} {mtime.strftime('%Y-%m-%d %H:%M')} {h.name}"
        )

    return 0


def _to_porcelain(h: "EntryHeader") -> PorcelainEntryListOutputV1:
    return {
        "ty": PorcelainEntityType.EntryListOutputV1,
        "name": h.name,
        "size": h.size,
        "mtime": h.mtime,
        "mode": h.mode,
    }


def _do_list_porcelain(
    headers: "list[EntryHeader]",
    out: BinaryIO | None = None,
) -> int:
    PorcelainOutput(out).emit_all(_to_porcelain(h) for h in headers)
    return 0

