from dataclasses import dataclass
import os
from typing import Final, Mapping, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from typing_extensions import Self

ENV_DEBUG: Final = "USTARPACK_DEBUG"

TRUTHY_ENV_VAR_VALUES: Final = {"1", "true", "x", "y", "yes"}


def is_env_var_truthy(env: Mapping[str, str], var: str) -> bool:
    if v := env.get(var):
        return v.lower() in TRUTHY_ENV_VAR_VALUES
    return False


class ProvidesGlobalMode(Protocol):
    @property
    def argv0(self) -> str: ...

    @property
    def is_debug(self) -> bool: ...

    @property
    def is_porcelain(self) -> bool: ...


@dataclass
class GlobalMode:
    """Process-wide switches, settled before any command runs."""

    is_debug: bool = False
    is_porcelain: bool = False
    argv0: str = ""
    main_file: str = ""
    self_exe: str = ""

    def record_self_exe(self, argv0: str, main_file: str, self_exe: str) -> None:
        self.argv0 = argv0
        self.main_file = main_file
        self.self_exe = self_exe

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        argv: list[str] | None = None,
    ) -> "Self":
        if env is None:
            env = os.environ
        if argv is None:
            argv = []

        # argparse has not run yet, so only the leading position is honored;
        # this lets early log lines come out in the right format
        porcelain = len(argv) > 1 and argv[1] == "--porcelain"
        return cls(is_debug=is_env_var_truthy(env, ENV_DEBUG), is_porcelain=porcelain)
