# These warnings are not useful in unit tests.
# pylint: disable=missing-class-docstring,missing-function-docstring,missing-module-docstring

__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GPLv2+"

import os
import tempfile
import unittest
from unittest import mock

from cibtxn.diff import DiffEngine, graph_contains_id, is_crm_diff_buggy
from cibtxn.exceptions import ToolError
from cibtxn.logging import LogFactory
from cibtxn.process import CommandResult, CommandRunner

from fakecluster import FakeCluster, make_env

GRAPH = """<transition_graph cluster-delay="60s" transition_id="3">
  <synapse id="0">
    <action_set>
      <rsc_op id="10" operation="start" operation_key="foo-0_start_0" on_node="node1">
        <primitive id="foo-0" class="ocf" provider="heartbeat" type="podman"/>
      </rsc_op>
    </action_set>
  </synapse>
  <synapse id="1">
    <action_set>
      <rsc_op id="11" operation="start" operation_key="foo-1_start_0" on_node="node2">
        <primitive id="foo-1" class="ocf" provider="heartbeat" type="podman"/>
      </rsc_op>
    </action_set>
  </synapse>
  <synapse id="2">
    <action_set>
      <rsc_op id="12" operation="stop" operation_key="bar_stop_0" on_node="node1">
        <primitive id="bar" class="ocf" provider="heartbeat" type="Dummy"/>
      </rsc_op>
    </action_set>
  </synapse>
</transition_graph>
"""


DIFF_RES_CLONE = """<diff format="2">
  <change operation="modify" path="/cib/configuration/resources/clone[@id='res-clone']/meta_attributes">
    <change-list/>
    <change-result><meta_attributes id="res-clone-meta_attributes"/></change-result>
  </change>
</diff>
"""


def write(path, text):
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


class GraphContainsIdTestCase(unittest.TestCase):
    def test_composite_prefix(self):
        self.assertEqual(graph_contains_id("foo", GRAPH, is_composite=True), ["foo-0", "foo-1"])

    def test_exact_match_only(self):
        self.assertEqual(graph_contains_id("foo", GRAPH, is_composite=False), [])
        self.assertEqual(graph_contains_id("bar", GRAPH), ["bar"])

    def test_empty_graph(self):
        self.assertEqual(graph_contains_id("bar", '<transition_graph transition_id="0"/>'), [])

    def test_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "graph.xml")
            write(path, GRAPH)
            self.assertEqual(graph_contains_id("bar", path), ["bar"])


class ProbeTestCase(unittest.TestCase):
    def test_fixed(self):
        cluster = FakeCluster()
        self.assertFalse(is_crm_diff_buggy(cluster))
        self.assertEqual(len(cluster.calls), 1)

    def test_buggy(self):
        cluster = FakeCluster()
        cluster.crm_diff_buggy = True
        self.assertTrue(is_crm_diff_buggy(cluster))

    def test_tool_error(self):
        runner = mock.Mock(spec=CommandRunner)
        runner.run.return_value = CommandResult(["crm_diff"], 105, "crm_diff: bad input")

        with self.assertRaises(ToolError) as ctx:
            is_crm_diff_buggy(runner)

        self.assertEqual(ctx.exception.exit_code, 105)
        self.assertIn("bad input", str(ctx.exception))


class DiffEngineTestCase(unittest.TestCase):
    def setUp(self):
        self._dir = tempfile.TemporaryDirectory()
        self.env = make_env(self._dir.name)
        self.cluster = FakeCluster(resources={"bar": {"x": "1"}})
        self.live = os.path.join(self._dir.name, "live.xml")
        self.candidate = os.path.join(self._dir.name, "candidate.xml")

        write(self.live, self.cluster.live)
        write(self.candidate, self.cluster.live.replace('value="1"', 'value="2"'))

    def tearDown(self):
        self._dir.cleanup()

    def simulations(self):
        return [c for c in self.cluster.calls if c[0] == "crm_simulate"]

    def diffs(self):
        return [c for c in self.cluster.calls if c[0] == "crm_diff" and "-o" in c]

    def test_direct_diff(self):
        engine = DiffEngine(self.cluster, crm_diff_buggy=False, env=self.env)
        self.assertEqual(engine.strategy, "crm_diff")

        decision = engine.would_cluster_act("bar", self.live, self.candidate)
        self.assertTrue(decision)
        self.assertEqual(decision.strategy, "crm_diff")
        self.assertIn("primitive[@id='bar']", decision.evidence[0])

        self.assertFalse(engine.would_cluster_act("bar", self.live, self.live))
        self.assertFalse(engine.would_cluster_act("baz", self.live, self.candidate))
        self.assertEqual(self.simulations(), [])

    def test_direct_diff_tool_error(self):
        runner = mock.Mock(spec=CommandRunner)
        runner.run.return_value = CommandResult(["crm_diff"], 2, "crm_diff: no such file")
        engine = DiffEngine(runner, crm_diff_buggy=False, env=self.env)

        with self.assertRaises(ToolError):
            engine.would_cluster_act("bar", self.live, self.candidate)

    def test_direct_diff_without_xml(self):
        runner = mock.Mock(spec=CommandRunner)
        engine = DiffEngine(runner, crm_diff_buggy=False, env=self.env)

        for output in ["", "warning: ignoring stale shadow\n<diff format=\"2\"/>\n", "crm_diff: garbage"]:
            runner.run.return_value = CommandResult(["crm_diff"], 1, output)

            with self.assertRaises(ToolError) as ctx:
                engine.would_cluster_act("bar", self.live, self.candidate)

            self.assertEqual(ctx.exception.exit_code, 1)
            self.assertEqual(ctx.exception.output, output)

    def test_direct_diff_matches_substrings(self):
        runner = mock.Mock(spec=CommandRunner)
        runner.run.return_value = CommandResult(["crm_diff"], 1, DIFF_RES_CLONE)
        engine = DiffEngine(runner, crm_diff_buggy=False, env=self.env)

        # A change to res-clone counts as a change to res
        decision = engine.would_cluster_act("res", self.live, self.candidate)
        self.assertTrue(decision)
        self.assertEqual(len(decision.evidence), 1)
        self.assertFalse(engine.would_cluster_act("other", self.live, self.candidate))

    def test_buggy_tool_uses_simulation(self):
        self.cluster.crm_diff_buggy = True
        self.cluster.graph_ids = ["bar"]

        engine = DiffEngine.detect(self.cluster, env=self.env)
        self.assertTrue(engine.crm_diff_buggy)
        self.assertEqual(engine.strategy, "simulate")

        for _ in range(3):
            decision = engine.would_cluster_act("bar", self.live, self.candidate)
            self.assertTrue(decision)
            self.assertEqual(decision.strategy, "simulate")
            self.assertEqual(decision.evidence, ["bar"])

        # One probe, three simulations, never a real diff
        self.assertEqual(len(self.cluster.commands("crm_diff")), 1)
        self.assertEqual(len(self.simulations()), 3)
        self.assertEqual(self.diffs(), [])

        # The transition graphs were cleaned up
        self.assertEqual(sorted(os.listdir(self._dir.name)), ["candidate.xml", "live.xml"])

    def test_simulation_composite(self):
        self.cluster.graph_ids = ["foo-0", "foo-1", "bar"]
        engine = DiffEngine(self.cluster, crm_diff_buggy=True, env=self.env)

        self.assertTrue(engine.would_cluster_act("foo", self.live, self.candidate, is_composite=True))
        self.assertFalse(engine.would_cluster_act("foo", self.live, self.candidate, is_composite=False))

    def test_simulation_tool_error(self):
        self.cluster.simulate_rc = 65
        engine = DiffEngine(self.cluster, crm_diff_buggy=True, env=self.env)

        with self.assertRaises(ToolError) as ctx:
            engine.would_cluster_act("bar", self.live, self.candidate)

        self.assertIn("could not parse input", str(ctx.exception))
        self.assertEqual(sorted(os.listdir(self._dir.name)), ["candidate.xml", "live.xml"])

    def test_cross_check_disagreement(self):
        logger = mock.Mock(spec=LogFactory)
        self.cluster.graph_ids = []
        engine = DiffEngine(self.cluster, crm_diff_buggy=False, env=self.env, cross_check=True,
                            logger=logger)

        decision = engine.would_cluster_act("bar", self.live, self.candidate)

        self.assertFalse(decision)
        self.assertEqual(decision.strategy, "simulate")
        logger.warning.assert_called_once()

    def test_cross_check_agreement(self):
        logger = mock.Mock(spec=LogFactory)
        self.cluster.graph_ids = ["bar"]
        engine = DiffEngine(self.cluster, crm_diff_buggy=False, env=self.env, cross_check=True,
                            logger=logger)

        decision = engine.would_cluster_act("bar", self.live, self.candidate)

        self.assertTrue(decision)
        self.assertEqual(decision.strategy, "crm_diff")
        logger.warning.assert_not_called()
