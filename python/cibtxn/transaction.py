"""
Optimistic transactions against the cluster CIB.

pcs can't lock the CIB, so every change follows the same recipe: dump the
live CIB to a file (keeping an untouched .orig copy next to it), run pcs -f
on the file, then push the file back.  If somebody else changed the cluster
in the meantime the push is rejected, and we start over from a fresh dump.
"""

__all__ = ["AttemptState", "CibTransaction"]
__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

from contextlib import contextmanager
from enum import Enum, unique
import shlex
import time

from cibtxn import tmpfiles
from cibtxn.commands import Commands, split
from cibtxn.environment import Environment
from cibtxn.exceptions import CibBackupError, OfflineCommandError, PcsCommandError, PushError
from cibtxn.exitstatus import ExitStatus
from cibtxn.logging import LogFactory
from cibtxn.process import CommandResult, CommandRunner


@unique
class AttemptState(Enum):
    """ The steps of one attempt at changing the CIB """

    SNAPSHOT = 0
    VALIDATE = 1
    PUSH     = 2
    SETTLE   = 3
    DONE     = 4
    FAILED   = 5

    def __str__(self):
        return self.name.lower()


class CibTransaction:
    """
    The backup, modify offline, push and clean up cycle, with retries.

    Each attempt works on its own CIB file, so concurrent callers (on this
    node or others) never see each other's half finished work.  The files are
    removed at the end of every attempt, whatever happens.
    """

    def __init__(self, runner=None, env=None, logger=None):
        """
        Create a new CibTransaction instance.

        Arguments:
        runner -- The CommandRunner used for every command
        env    -- An Environment instance
        logger -- A LogFactory instance
        """
        if env is None:
            env = Environment()

        if logger is None:
            logger = LogFactory()

        if runner is None:
            runner = CommandRunner(logger)

        self.commands = Commands(env)
        self.env = env
        self.logger = logger
        self.runner = runner
        self.state = None

    def _set_state(self, state):
        self.state = state
        self.logger.debug("cib: attempt is now in state %s" % state)

    def _default(self, value, key):
        if value is None:
            return self.env[key]

        return value

    def _sleep(self, seconds, why):
        if seconds and seconds > 0:
            self.logger.debug("Sleeping for %s seconds %s" % (seconds, why))
            time.sleep(seconds)

    def _export(self, path):
        """ Write the live CIB to path """

        result = self.runner.run(self.commands.pcs(self.commands.cluster_cib(path)), merge_stderr=True)

        if not result.success:
            raise CibBackupError("backup_cib: Running: %s failed with code: %d -> %s"
                                 % (result.command_line, result.returncode, result.output))

        self.logger.debug("backup_cib: %s returned %s" % (result.command_line, result.output))

    @contextmanager
    def snapshot(self):
        """ Yield a CibSnapshot of the live CIB, deleted when the block exits

            Raises CibBackupError if the CIB can't be exported.
        """

        self._set_state(AttemptState.SNAPSHOT)

        try:
            with tmpfiles.snapshot(self._export, base_dir=self.env["CibDir"]) as cib:
                yield cib
        except Exception:
            self._set_state(AttemptState.FAILED)
            raise

    def offline(self, args, cib):
        """ Run pcs with the given arguments against a CIB file, returning the CommandResult """

        result = self.runner.run(self.commands.pcs(args, cib=cib), merge_stderr=True)
        self.logger.debug("pcs_offline: %s. Output: %s" % (result.command_line, result.output))
        return result

    def supports_diff_against(self):
        """ Return True if this pcs can push only the changes made to a CIB file """

        return self.runner.probe(self.commands.pcs(self.commands.cib_push_help()), "diff-against")

    def push(self, cib):
        """ Push a CibSnapshot to the cluster and return the CommandResult

            If the snapshot is identical to its .orig copy there is nothing to
            push, and a successful result is returned without running anything.
            Where pcs supports it, only the difference from the .orig copy is
            pushed, so that changes made to unrelated parts of the CIB since
            the snapshot was taken don't make the push fail.

            The snapshot is left alone.  Whoever took it deletes it.
        """

        self._set_state(AttemptState.PUSH)

        if cib.unchanged():
            self.logger.debug("push_cib: %s and %s were identical, skipping" % (cib.path, cib.orig_path))
            return CommandResult([], ExitStatus.OK)

        diff_against = cib.orig_path if self.supports_diff_against() else None
        result = self.runner.run(self.commands.pcs(self.commands.cib_push(cib.path, diff_against)),
                                 merge_stderr=True)

        if not result.success:
            self.logger.debug("push_cib failed: Running: %s failed with code: %d -> %s"
                              % (result.command_line, result.returncode, result.output))

        self.logger.debug("push_cib: %s returned %d -> %s" % (result.command_line, result.returncode, result.output))
        return result

    def _settle(self, seconds):
        self._set_state(AttemptState.SETTLE)
        self._sleep(seconds, "after a successful push")

    def commit(self, mutations, tries=None, try_sleep=None, post_success_sleep=None,
               label=None, on_success=None):
        """ Apply pcs commands to a fresh snapshot and push it, retrying if the push fails

            Arguments:

            mutations          -- A list of pcs commands (argument lists or
                                  strings), applied to the snapshot in order
            tries              -- How many snapshots to push before giving up
            try_sleep          -- Seconds to sleep between tries
            post_success_sleep -- Seconds to sleep after a successful push
            label              -- What to call this change in error messages
            on_success         -- Called with the CibSnapshot after a successful
                                  push, before the snapshot is deleted

            Returns the CommandResult of the last mutation (or of the push, if
            there were no mutations).

            A mutation that fails is the caller's fault, because the CIB it ran
            against was only just taken.  That raises OfflineCommandError at once.
            A push rejected by the cluster on the last try raises PushError.
        """

        tries = max(1, int(self._default(tries, "tries")))
        try_sleep = self._default(try_sleep, "try_sleep")
        post_success_sleep = self._default(post_success_sleep, "post_success_sleep")
        mutations = [split(m) for m in mutations]

        if label is None:
            label = shlex.join(mutations[-1]) if mutations else "push"

        for attempt in range(tries):
            if attempt > 0:
                self._sleep(try_sleep, "between tries")

            try_text = "try %d/%d: " % (attempt + 1, tries) if tries > 1 else ""

            with self.snapshot() as cib:
                self._set_state(AttemptState.VALIDATE)
                result = None

                for args in mutations:
                    self.logger.debug("%s%s" % (try_text, shlex.join(self.commands.pcs(args, cib=cib))))
                    result = self.offline(args, cib)

                    if not result.success:
                        self.logger.debug("Error: %s" % result.output)
                        raise OfflineCommandError("pcs -f %s %s failed: %s" % (cib.path, label, result.first_line),
                                                  result)

                pushed = self.push(cib)

                if pushed.success:
                    self._settle(post_success_sleep)

                    if on_success is not None:
                        on_success(cib)

                    self._set_state(AttemptState.DONE)
                    return result if result is not None else pushed

                self.logger.debug("Error: %s" % pushed.output)

        self._set_state(AttemptState.FAILED)
        raise PushError("pcs cluster cib-push for %s failed: %s" % (label, pushed.first_line), pushed)

    def show(self, args):
        """ Run a read-only pcs command against a snapshot, returning the CommandResult

            Nothing is ever pushed, and a failing command is not an error.
        """

        with self.snapshot() as cib:
            self._set_state(AttemptState.VALIDATE)
            result = self.offline(args, cib)

        self._set_state(AttemptState.DONE)
        return result

    def pcs(self, name, args, resource_name=None, tries=None, try_sleep=None,
            verify_on_create=False, post_success_sleep=None):
        """ Run a pcs command the way resource providers expect

            Arguments:

            name               -- What the caller calls this command.  Names
                                  containing "show" are read-only queries and
                                  are never retried or pushed.  Names starting
                                  with "create" honour verify_on_create.
            args               -- The pcs arguments, as a list or a string
            resource_name      -- The resource being created, for verification
            tries              -- How many times to try before giving up
            try_sleep          -- Seconds to sleep between tries
            verify_on_create   -- Create on the live cluster and then check that
                                  the resource exists (see create_with_verify)
            post_success_sleep -- Seconds to sleep after a successful push

            Returns a CommandResult.  For queries, check its success attribute.
        """

        if name.startswith("create") and verify_on_create:
            return self.create_with_verify(name, resource_name, args, tries, try_sleep)

        if "show" in name:
            return self.show(args)

        return self.commit([args], tries, try_sleep, post_success_sleep, label=name)

    def create_with_verify(self, name, resource_name, args, tries=None, try_sleep=None):
        """ Create a resource on the live cluster, then check that it's there

            The creation is retried like any other command.  Once it succeeds,
            we sleep for try_sleep and ask pcs to show the resource.  If that
            fails a warning is logged, but the creation still counts as done.
        """

        if resource_name is None:
            raise ValueError("create_with_verify needs a resource name to verify")

        tries = max(1, int(self._default(tries, "tries")))
        try_sleep = self._default(try_sleep, "try_sleep")

        cmd = self.commands.pcs(args)

        for attempt in range(tries):
            if attempt > 0:
                self._sleep(try_sleep, "between tries")

            try_text = "try %d/%d: " % (attempt + 1, tries) if tries > 1 else ""

            self.logger.debug("%s%s" % (try_text, shlex.join(cmd)))
            result = self.runner.run(cmd, merge_stderr=True)

            if result.success:
                self._sleep(try_sleep, "before verifying")

                check = self.runner.run(self.commands.pcs(self.commands.resource_show(resource_name)),
                                        merge_stderr=True)
                self.logger.debug("Verifying with: %s" % check.command_line)

                if not check.success:
                    self.logger.warning("verification of pcs resource creation failed for %s" % resource_name)

                return result

            self.logger.debug("Error: %s" % result.output)

        raise PcsCommandError("pcs %s failed: %s" % (name, result.first_line), result)

    def push_offline(self, cib, tries=None, try_sleep=None, post_success_sleep=None):
        """ Push an already prepared CibSnapshot, retrying the same file if the push fails

            Unlike commit, this doesn't take a fresh snapshot between tries, so
            it is only useful where pcs supports diff-against.  The snapshot
            still belongs to the caller, except that it is deleted before
            PushError is raised.
        """

        tries = max(1, int(self._default(tries, "tries")))
        try_sleep = self._default(try_sleep, "try_sleep")
        post_success_sleep = self._default(post_success_sleep, "post_success_sleep")

        for attempt in range(tries):
            if attempt > 0:
                self._sleep(try_sleep, "between tries")

            try_text = "try %d/%d" % (attempt + 1, tries) if tries > 1 else ""
            self.logger.debug("push_cib_offline push %s" % try_text)

            result = self.push(cib)

            if result.success:
                self._settle(post_success_sleep)
                self._set_state(AttemptState.DONE)
                return result

            self.logger.debug("Error: %s" % result.output)

        self._set_state(AttemptState.FAILED)
        cib.release()
        raise PushError("push_cib_offline for %s failed: %s" % (cib.path, result.first_line), result)
