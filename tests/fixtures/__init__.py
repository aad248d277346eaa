from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass
import io
import os
import pathlib

import pytest

from ustarpack.cli.main import main as ustarpack_main
from ustarpack.config import GlobalConfig
from ustarpack.log import PackConsoleLogger, PackLogger
from ustarpack.utils.global_mode import GlobalMode


@pytest.fixture
def mock_gm() -> GlobalMode:
    return GlobalMode(argv0="ustarpack")


@pytest.fixture
def pack_logger(mock_gm: GlobalMode) -> PackLogger:
    """Fixture for creating a PackLogger instance."""
    return PackConsoleLogger(mock_gm)


@dataclass
class CLIRunResult:
    exit_code: int
    stdout: str
    stderr: str


class IntegrationTestHarness:
    def __init__(self, env: dict[str, str], config_dir: pathlib.Path) -> None:
        self._env = env
        self.config_dir = config_dir

    def __call__(self, *args: str) -> CLIRunResult:
        return self.run(*args)

    def run(self, *args: str) -> CLIRunResult:
        argv = ["ustarpack", *args]
        stdout_io = io.StringIO()
        stderr_io = io.StringIO()
        with redirect_stdout(stdout_io), redirect_stderr(stderr_io):
            gm = GlobalMode.from_env(self._env, argv)
            gm.record_self_exe(argv[0], __file__, argv[0])
            logger = PackConsoleLogger(gm, stdout=stdout_io, stderr=stderr_io)
            gc = GlobalConfig.load_from_config(gm, logger)
            exit_code = ustarpack_main(gm, gc, argv)
        return CLIRunResult(exit_code, stdout_io.getvalue(), stderr_io.getvalue())

    def write_config(self, config_toml: str) -> pathlib.Path:
        path = self.config_dir / "ustarpack" / "config.toml"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(config_toml, encoding="utf-8")
        return path


@pytest.fixture
def ustarpack_cli_runner(
    tmp_path: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
) -> IntegrationTestHarness:
    base_dir = tmp_path / "integration-env"
    home_dir = base_dir / "home"
    config_dir = base_dir / "config"

    for p in (home_dir, config_dir):
        p.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(base_dir / "etc-xdg"))
    monkeypatch.delenv("USTARPACK_DEBUG", raising=False)

    return IntegrationTestHarness(env=dict(os.environ), config_dir=config_dir)
