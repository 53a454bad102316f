"""
Deciding whether a changed CIB would make the cluster act on a resource.

Two strategies answer the same question.  crm_simulate computes the
transition graph the scheduler would run for the new CIB, so it is always
right, but it's slow.  crm_diff just compares the two documents, which is
cheaper, but some builds of it report attribute reordering inside bundle
storage mappings as a change (rhbz#1561617).  is_crm_diff_buggy() finds out
which kind of crm_diff we have, and DiffEngine uses the answer to pick one.
"""

__all__ = ["ChangeDecision", "DiffEngine", "DirectDiffStrategy", "SimulationStrategy",
           "graph_contains_id", "is_crm_diff_buggy"]
__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GNU Lesser General Public License version 2.1 or later (LGPLv2.1+)"

import os

from lxml import etree

from cibtxn.commands import Commands
from cibtxn.environment import Environment
from cibtxn.exceptions import ToolError
from cibtxn.exitstatus import DiffStatus
from cibtxn.logging import LogFactory
from cibtxn.process import CommandRunner
from cibtxn.tmpfiles import SIMULATE_PREFIX, scratch_file

# Two CIBs that only differ in the order of the storage-mapping attributes.
# A working crm_diff says they're the same.
PROBE_ORIGINAL = """
<cib crm_feature_set="3.0.14" validate-with="pacemaker-2.10" epoch="86" num_updates="125" admin_epoch="0">
  <configuration>
    <resources>
      <bundle id="galera-bundle">
        <docker image="openstack-mariadb:pcmklatest"/>
        <storage>
          <storage-mapping target-dir="/foo" options="rw" id="mysql-foo" source-dir="/foo"/>
          <storage-mapping target-dir="/bar" options="rw" id="mysql-bar" source-dir="/bar"/>
        </storage>
      </bundle>
    </resources>
  </configuration>
</cib>
"""

PROBE_NEW = """
<cib crm_feature_set="3.0.14" validate-with="pacemaker-2.10" epoch="86" num_updates="125" admin_epoch="0">
  <configuration>
    <resources>
      <bundle id="galera-bundle">
        <docker image="openstack-mariadb:pcmklatest"/>
        <storage>
          <storage-mapping id="mysql-foo" options="rw" source-dir="/foo" target-dir="/foo"/>
          <storage-mapping id="mysql-bar" options="rw" source-dir="/bar" target-dir="/bar"/>
        </storage>
      </bundle>
    </resources>
  </configuration>
</cib>
"""

GRAPH_PRIMITIVE_IDS = "/transition_graph//primitive/@id"

# contains() is a substring test, so "res" also matches changes under "res-clone"
# or any other path mentioning it.
DIFF_CHANGES = "/diff/change[@operation and contains(@path, $rid)][change-result]"


def _parse(doc):
    """Return the root element of an XML document given as a string, bytes or file name."""
    if isinstance(doc, bytes):
        return etree.fromstring(doc)

    if isinstance(doc, str) and doc.lstrip().startswith("<"):
        return etree.fromstring(doc.encode())

    return etree.parse(os.fspath(doc)).getroot()


def graph_contains_id(resource_id, graph, is_composite=False):
    """
    Return the ids of the actions in a transition graph that touch resource_id.

    Arguments:
    resource_id  -- The resource we are asking about
    graph        -- A transition graph, as XML text or a file name
    is_composite -- The resource is a bundle (or other composite), so its
                    actions are scheduled on instances named like
                    "galera-bundle-0" and a prefix match is needed.  For
                    anything else only an exact match counts.

    An empty list means the cluster wouldn't touch the resource.
    """
    matches = []

    for action_id in _parse(graph).xpath(GRAPH_PRIMITIVE_IDS):
        action_id = str(action_id)

        if is_composite:
            if action_id.startswith(resource_id):
                matches.append(action_id)
        elif action_id == resource_id:
            matches.append(action_id)

    return matches


def is_crm_diff_buggy(runner=None, commands=None):
    """
    Return True if crm_diff reports the reordered probe documents as different.

    This is a property of the installed crm_diff, so callers should ask once
    and hand the answer to DiffEngine instead of asking for every resource.
    """
    if runner is None:
        runner = CommandRunner()

    if commands is None:
        commands = Commands()

    result = runner.run(commands.crm_diff_strings(PROBE_ORIGINAL, PROBE_NEW))

    if result.returncode == DiffStatus.SAME:
        return False

    if result.returncode == DiffStatus.DIFFERENT:
        return True

    raise ToolError("%s failed with (%d): %s" % (result.command_line, result.returncode, result.output),
                    result)


class ChangeDecision:
    """
    Whether the cluster would act on a resource, and why we think so.

    A ChangeDecision is true or false like the decision it holds, so it can
    be used directly in an if statement.
    """

    def __init__(self, resource_id, changed, strategy, evidence=None):
        """
        Create a new ChangeDecision instance.

        Arguments:
        resource_id -- The resource the decision is about
        changed     -- True if the cluster would act on the resource
        strategy    -- The name of the strategy that decided
        evidence    -- The transition graph action ids or the crm_diff change
                       paths that mention the resource
        """
        self.resource_id = resource_id
        self.changed = changed
        self.strategy = strategy
        self.evidence = list(evidence or [])

    def __bool__(self):
        return self.changed

    def __repr__(self):
        return "ChangeDecision(%r, %r, %r)" % (self.resource_id, self.changed, self.strategy)


class SimulationStrategy:
    """Decide by running crm_simulate on the candidate CIB."""

    name = "simulate"

    def __init__(self, runner, commands, env):
        self._runner = runner
        self._commands = commands
        self._env = env

    def decide(self, resource_id, live_doc, candidate_doc, is_composite=False):
        """
        Simulate candidate_doc and look for resource_id in the transition graph.

        live_doc is not needed: the status section inside candidate_doc already
        tells the scheduler what is running where.
        """
        # pylint: disable=unused-argument
        with scratch_file(SIMULATE_PREFIX, base_dir=self._env["CibDir"]) as graph:
            result = self._runner.run(self._commands.crm_simulate(candidate_doc, graph))

            if not result.success:
                raise ToolError("%s failed with (%d): %s" % (result.command_line, result.returncode, result.output),
                                result)

            matches = graph_contains_id(resource_id, graph, is_composite)

        return ChangeDecision(resource_id, bool(matches), self.name, matches)


class DirectDiffStrategy:
    """Decide by running crm_diff on the live and candidate CIBs."""

    name = "crm_diff"

    def __init__(self, runner, commands):
        self._runner = runner
        self._commands = commands

    def decide(self, resource_id, live_doc, candidate_doc, is_composite=False):
        """
        Diff live_doc against candidate_doc and look for changes to resource_id.

        Only changes with a change-result (modifications) whose path mentions
        the resource count.  Being a substring test, this doesn't need to know
        whether the resource is composite.
        """
        # pylint: disable=unused-argument
        result = self._runner.run(self._commands.crm_diff(live_doc, candidate_doc))

        if result.returncode == DiffStatus.SAME:
            return ChangeDecision(resource_id, False, self.name)

        if result.returncode != DiffStatus.DIFFERENT:
            raise ToolError("%s failed with (%d): %s" % (result.command_line, result.returncode, result.output),
                            result)

        try:
            diff = etree.fromstring(result.output.encode())
        except (etree.XMLSyntaxError, ValueError) as e:
            raise ToolError("%s returned (%d) without a diff (%s): %s"
                            % (result.command_line, result.returncode, e, result.output), result) from e

        changes = diff.xpath(DIFF_CHANGES, rid=resource_id)
        paths = [change.get("path") for change in changes]
        return ChangeDecision(resource_id, bool(paths), self.name, paths)


class DiffEngine:
    """
    Answers "would the cluster act on this resource if we pushed this CIB?"

    The strategy is fixed when the engine is created: crm_simulate if
    crm_diff is known to be buggy, crm_diff otherwise.  crm_simulate is the
    reference answer, so with cross_check enabled both run whenever crm_diff
    is in use, and a disagreement is logged and settled in crm_simulate's
    favour.
    """

    def __init__(self, runner, crm_diff_buggy, env=None, cross_check=None, logger=None):
        """
        Create a new DiffEngine instance.

        Arguments:
        runner         -- The CommandRunner to run crm_diff and crm_simulate with
        crm_diff_buggy -- The result of is_crm_diff_buggy()
        env            -- An Environment instance
        cross_check    -- Override the DiffCrossCheck setting from env
        logger         -- A LogFactory instance
        """
        if env is None:
            env = Environment()

        if cross_check is None:
            cross_check = env["DiffCrossCheck"]

        self._logger = logger or LogFactory()
        self._cross_check = cross_check
        self.crm_diff_buggy = crm_diff_buggy

        commands = Commands(env)
        self._simulation = SimulationStrategy(runner, commands, env)

        if crm_diff_buggy:
            self._strategy = self._simulation
        else:
            self._strategy = DirectDiffStrategy(runner, commands)

    @classmethod
    def detect(cls, runner=None, env=None, cross_check=None, logger=None):
        """Probe crm_diff once and return an engine built on the answer."""
        if runner is None:
            runner = CommandRunner(logger)

        buggy = is_crm_diff_buggy(runner, Commands(env))
        (logger or LogFactory()).debug("crm_diff is %s" % ("buggy, using crm_simulate" if buggy else "usable"))
        return cls(runner, buggy, env=env, cross_check=cross_check, logger=logger)

    @property
    def strategy(self):
        """The name of the strategy in use."""
        return self._strategy.name

    def would_cluster_act(self, resource_id, live_doc, candidate_doc, is_composite=False):
        """
        Return a ChangeDecision for resource_id going from live_doc to candidate_doc.

        Arguments:
        resource_id   -- The resource we are asking about
        live_doc      -- The CIB as it is now (a file name)
        candidate_doc -- The CIB we would push (a file name)
        is_composite  -- The resource is a bundle
        """
        decision = self._strategy.decide(resource_id, live_doc, candidate_doc, is_composite)

        if self._cross_check and self._strategy is not self._simulation:
            reference = self._simulation.decide(resource_id, live_doc, candidate_doc, is_composite)

            if reference.changed != decision.changed:
                self._logger.warning("crm_diff says %s %s changed but crm_simulate disagrees, trusting crm_simulate"
                                     % (resource_id, "has" if decision.changed else "hasn't"))
                return reference

        return decision
