"""Argument lists for the cluster command line tools."""

__all__ = ["Commands", "split"]
__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

import shlex

from cibtxn.environment import Environment


def split(command):
    """
    Return a command given by a caller as a new argument list.

    Resource providers hand us creation commands either as lists or as
    strings like "resource create ip-1 IPaddr2 ip=10.0.0.1".  Strings are
    tokenised the way a shell would, so quoted values stay in one piece.
    """
    if isinstance(command, str):
        return shlex.split(command)

    return list(command)


class Commands:
    """
    A factory for the argument lists of every command cibtxn runs.

    Nothing here runs anything.  Keeping the command grammar in one place
    means the rest of the code never pastes strings together, and tests can
    compare against exactly what would be executed.

    The pcs subcommand methods return only the arguments that follow "pcs",
    since the same subcommand may be run against the live cluster or against
    a CIB file.  pcs() turns them into a complete command line.  The other
    tools' methods return complete command lines.
    """

    def __init__(self, env=None):
        """
        Create a new Commands instance.

        Arguments:
        env -- An Environment instance holding the tool paths.  If None,
               the defaults are used.
        """
        if env is None:
            env = Environment()

        self._env = env

    def pcs(self, *args, cib=None):
        """Return a pcs command line, run against the given CIB file if not None."""
        cmd = [self._env["pcs"]]

        if cib is not None:
            cmd.extend(["-f", str(cib)])

        for arg in args:
            cmd.extend(split(arg))

        return cmd

    def cluster_cib(self, path):
        return ["cluster", "cib", str(path)]

    def cib_push(self, path, diff_against=None):
        cmd = ["cluster", "cib-push", str(path)]

        if diff_against is not None:
            cmd.append(f"diff-against={diff_against}")

        return cmd

    def cib_push_help(self):
        return ["cluster", "cib-push", "--help"]

    def resource_delete(self, name):
        return ["resource", "delete", name]

    def resource_show(self, name):
        return ["resource", "show", name]

    def location_rule(self, target, rule, force=False):
        """
        Return the pcs arguments creating a location rule constraint.

        Arguments:
        target -- The id the constraint applies to.  For clones and bundles
                  this is not the primitive's id (see ResourceSpec.location_target).
        rule   -- A LocationRule instance
        force  -- Pass --force, so pcs accepts a rule that already exists
        """
        cmd = ["constraint", "location", target, "rule"]

        if rule.resource_discovery:
            cmd.append(f"resource-discovery={rule.resource_discovery}")

        if rule.score:
            cmd.append(f"score={rule.score}")

        if rule.score_attribute:
            cmd.append(f"score-attribute={rule.score_attribute}")

        for token in rule.expression:
            cmd.extend(split(token))

        if force:
            cmd.append("--force")

        return cmd

    def crm_diff(self, original, new):
        return [self._env["crm_diff"], "--cib", "-o", str(original), "-n", str(new)]

    def crm_diff_strings(self, original, new):
        return [self._env["crm_diff"], "--cib",
                f"--original-string={original}", f"--new-string={new}"]

    def crm_simulate(self, cib, graph):
        """Return a crm_simulate command writing the transition graph for cib to graph."""
        return [self._env["crm_simulate"], "-x", str(cib), "-s", f"-G{graph}"]

    def crm_resource_wait(self):
        return [self._env["crm_resource"], "--wait"]
