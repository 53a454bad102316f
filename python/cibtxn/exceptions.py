"""A module providing exceptions that can be raised by the cibtxn module."""

__all__ = ["CibBackupError", "CibError", "OfflineCommandError", "PcsCommandError",
           "PushError", "ToolError"]
__copyright__ = "Copyright 2025-2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"


class CibError(Exception):
    """Base exception class for all cibtxn errors."""


class CibBackupError(CibError):
    """Exception raised when the live CIB could not be exported to a file."""


class _ResultError(CibError):
    """Base class for errors caused by a command returning an unexpected status."""

    def __init__(self, message, result=None):
        """
        Create a new exception instance.

        Arguments:
        message -- A human readable, single line summary
        result  -- The CommandResult of the failing command, if any
        """
        CibError.__init__(self, message)
        self.result = result

    @property
    def exit_code(self):
        """Return the exit status of the failing command, or None."""
        if self.result is None:
            return None

        return self.result.returncode

    @property
    def output(self):
        """Return the full output of the failing command, or an empty string."""
        if self.result is None:
            return ""

        return self.result.output


class PcsCommandError(_ResultError):
    """Exception raised when a pcs command keeps failing."""


class OfflineCommandError(PcsCommandError):
    """
    Exception raised when a pcs command fails against a freshly exported CIB.

    The CIB was taken moments ago, so this can't be caused by someone else
    changing the cluster.  The command itself is wrong and retrying won't help.
    """


class PushError(PcsCommandError):
    """Exception raised when the cluster rejected every attempt to push a CIB."""


class ToolError(_ResultError):
    """Exception raised when crm_diff or crm_simulate fail outright."""
