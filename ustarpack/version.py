from typing import Final

USTARPACK_SEMVER: Final = "0.3.0"

COPYRIGHT_NOTICE: Final = """\
License: BSD-3-Clause
\
"""
