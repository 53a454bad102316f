"""API reference documentation for the `cibtxn` package."""

__copyright__ = "Copyright 2023-2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

from .buildoptions import BuildOptions
from .environment import Environment
from .exitstatus import ExitStatus
from . import exceptions
from . import diff
from . import resource
from . import transaction
