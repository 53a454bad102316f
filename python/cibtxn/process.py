""" A module for running the cluster command line tools """

__all__ = ["CommandResult", "CommandRunner", "first_line", "killtree"]
__copyright__ = "Copyright 2009-2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

from contextlib import suppress
import shlex
import subprocess

import psutil

from cibtxn.exitstatus import ExitStatus
from cibtxn.logging import LogFactory


def first_line(text):
    """ Return the first line of text without its line ending, or "" """

    if not text:
        return ""

    return text.splitlines()[0]


def killtree(pid, timeout=3):
    """ Terminate a process and all of its descendants, killing any that
        are still around after timeout seconds
    """

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return

    procs = parent.children(recursive=True)
    procs.append(parent)

    for proc in procs:
        with suppress(psutil.NoSuchProcess):
            proc.terminate()

    _, alive = psutil.wait_procs(procs, timeout=timeout)

    for proc in alive:
        with suppress(psutil.NoSuchProcess):
            proc.kill()


class CommandResult:
    """ The outcome of running one command.  A nonzero exit status is
        information for the caller, not an error.
    """

    def __init__(self, args, returncode, output="", timed_out=False):
        """ Create a new CommandResult instance

            Arguments:

            args       -- The argument list that was run
            returncode -- The command's exit status
            output     -- Text written by the command
            timed_out  -- True if the command was killed for taking too long
        """

        self.args = list(args)
        self.returncode = returncode
        self.output = output
        self.timed_out = timed_out

    def __repr__(self):
        return "CommandResult(%r, %d)" % (self.command_line, self.returncode)

    def __bool__(self):
        return self.success

    @property
    def command_line(self):
        """ The command as it could be typed into a shell """

        return shlex.join(self.args)

    @property
    def success(self):
        """ True if the command exited with status 0 """

        return self.returncode == ExitStatus.OK

    @property
    def first_line(self):
        """ The first line of output, for short error messages """

        return first_line(self.output)


class CommandRunner:
    """ Runs commands on the local machine, blocking until they finish """

    def __init__(self, logger=None):
        if logger is None:
            logger = LogFactory()

        self._logger = logger

    def run(self, args, merge_stderr=False, stdin=None, timeout=None):
        """ Run a command and return a CommandResult

            Arguments:

            args         -- The command and its arguments, as a list
            merge_stderr -- Capture stderr along with stdout instead of
                            letting it through to our own stderr
            stdin        -- Text to feed to the command, if any
            timeout      -- Seconds to let the command run before killing it
                            and everything it started.  None means forever.

            A command that can't be started at all (missing, or not
            executable) gives a result with ExitStatus.NOT_INSTALLED and the
            reason as its output.
        """

        args = list(args)
        stderr = subprocess.STDOUT if merge_stderr else None
        stdin_pipe = subprocess.PIPE if stdin is not None else subprocess.DEVNULL
        timed_out = False

        self._logger.debug("cmd: running: %s" % shlex.join(args))

        try:
            # pylint: disable=consider-using-with
            proc = subprocess.Popen(args, stdin=stdin_pipe, stdout=subprocess.PIPE,
                                    stderr=stderr, close_fds=True)
        except OSError as e:
            self._logger.debug("cmd: could not run %s: %s" % (args[0], e))
            return CommandResult(args, ExitStatus.NOT_INSTALLED, str(e))

        try:
            (out, _) = proc.communicate(input=stdin.encode() if stdin is not None else None,
                                        timeout=timeout)
        except subprocess.TimeoutExpired:
            self._logger.debug("cmd: pid %d still running after %ss, killing it" % (proc.pid, timeout))
            timed_out = True
            killtree(proc.pid)
            (out, _) = proc.communicate()

        output = out.decode("utf-8", errors="replace") if out else ""
        returncode = ExitStatus.TIMEOUT if timed_out else proc.returncode

        self._logger.debug("cmd: pid %d returned %d" % (proc.pid, returncode))
        return CommandResult(args, returncode, output, timed_out=timed_out)

    def probe(self, args, text=None):
        """ Check for a capability of the environment by running a command.

            If text is given, return whether it appears in the output (the exit
            status is ignored, since "--help" style commands are inconsistent
            about it).  Otherwise return whether the command succeeded.

            The answer is never cached here.  Callers that know the answer
            can't change during their lifetime are free to keep it.
        """

        result = self.run(args, merge_stderr=True)

        if text is not None:
            return text in result.output

        return result.success
