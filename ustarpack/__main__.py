#!/usr/bin/env python3

import os
import sys

from ustarpack.utils.global_mode import GlobalMode


def entrypoint() -> None:
    gm = GlobalMode.from_env(os.environ, sys.argv)

    # rich comes in with ustarpack.log; keep it off the path of a bare
    # argv failure
    if not sys.argv:
        from ustarpack.log import PackConsoleLogger

        PackConsoleLogger(gm).F("no argv?")
        sys.exit(1)

    gm.record_self_exe(sys.argv[0], __file__, sys.executable)

    from ustarpack.cli.main import main
    from ustarpack.config import GlobalConfig
    from ustarpack.config.errors import MalformedConfigFileError
    from ustarpack.log import PackConsoleLogger

    logger = PackConsoleLogger(gm)
    try:
        gc = GlobalConfig.load_from_config(gm, logger)
    except MalformedConfigFileError as e:
        logger.F(str(e))
        sys.exit(1)

    sys.exit(main(gm, gc, sys.argv))


if __name__ == "__main__":
    entrypoint()
