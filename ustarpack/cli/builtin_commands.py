# Importing these modules registers their commands with the command tree.
from . import archive_cli
from . import config_cli
from . import version_cli

del archive_cli
del config_cli
del version_cli
