import abc
import datetime
from functools import cached_property
import io
import sys
import time
from typing import Any, Final, TextIO, TYPE_CHECKING

if TYPE_CHECKING:
    # rich is slow to import, and most invocations log nothing
    from rich.console import Console, RenderableType
    from rich.text import Text

from ..utils.global_mode import ProvidesGlobalMode
from ..utils.porcelain import PorcelainEntity, PorcelainEntityType, PorcelainOutput


class PorcelainLog(PorcelainEntity):
    t: int
    """Timestamp of the message line in microseconds"""

    lvl: str
    """Log level of the message line (one of D, F, I, W)"""

    msg: str
    """Message content"""


# markup prefix of every human-readable message, by level
LEVEL_PREFIXES: Final = {
    "F": "[bold red]fatal error:[/]",
    "I": "[bold green]info:[/]",
    "W": "[bold yellow]warn:[/]",
}


def _debug_time_format(x: datetime.datetime) -> "Text":
    from rich.text import Text

    return Text(f"debug: [{x.isoformat()}]")


def render_plain(message: "RenderableType", sep: str, *objects: Any) -> str:
    """Renders a message with its markup resolved into plain text."""

    from rich.console import Console

    with io.StringIO() as buf:
        Console(file=buf).print(message, *objects, sep=sep, end="")
        return buf.getvalue()


class PackLogger(metaclass=abc.ABCMeta):
    """Level-tagged message sink used throughout ustarpack.

    ``stdout`` carries command output proper; everything else is diagnostics
    and goes elsewhere. Implementations only provide the two primitives.
    """

    @abc.abstractmethod
    def stdout(
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def log(
        self,
        lvl: str,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        raise NotImplementedError

    def D(self, message: "RenderableType", *objects: Any, sep: str = " ") -> None:
        self.log("D", message, *objects, sep=sep)

    def I(  # noqa: E743 # short level names, as in Android logging
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
    ) -> None:
        self.log("I", message, *objects, sep=sep)

    def W(self, message: "RenderableType", *objects: Any, sep: str = " ") -> None:
        self.log("W", message, *objects, sep=sep)

    def F(self, message: "RenderableType", *objects: Any, sep: str = " ") -> None:
        self.log("F", message, *objects, sep=sep)


class PackConsoleLogger(PackLogger):
    def __init__(
        self,
        gm: ProvidesGlobalMode,
        stdout: TextIO = sys.stdout,
        stderr: TextIO = sys.stderr,
    ) -> None:
        self._gm = gm
        self._stdout = stdout
        self._stderr = stderr

    def _make_console(self, file: TextIO, **kwargs: Any) -> "Console":
        from rich.console import Console

        return Console(file=file, soft_wrap=True, **kwargs)

    @cached_property
    def _out(self) -> "Console":
        return self._make_console(self._stdout, highlight=False)

    @cached_property
    def _err(self) -> "Console":
        return self._make_console(self._stderr, highlight=False)

    @cached_property
    def _debug(self) -> "Console":
        return self._make_console(self._stderr, log_time_format=_debug_time_format)

    @cached_property
    def _porcelain_sink(self) -> PorcelainOutput:
        return PorcelainOutput(self._stderr.buffer)

    def stdout(
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        self._out.print(message, *objects, sep=sep, end=end)

    def log(
        self,
        lvl: str,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        if lvl == "D" and not self._gm.is_debug:
            return

        if self._gm.is_porcelain:
            obj: PorcelainLog = {
                "ty": PorcelainEntityType.LogV1,
                "t": int(time.time() * 1000000),
                "lvl": lvl,
                "msg": render_plain(message, sep, *objects),
            }
            self._porcelain_sink.emit(obj)
            return

        if lvl == "D":
            # point the source location at whoever called D()
            self._debug.log(message, *objects, sep=sep, end=end, _stack_offset=3)
            return

        self._err.print(f"{LEVEL_PREFIXES[lvl]} {message}", *objects, sep=sep, end=end)


def humanize_size(n: int) -> str:
    if n < 1024:
        return f"{n} B"

    size = n / 1024
    for unit in ("KiB", "MiB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GiB"
