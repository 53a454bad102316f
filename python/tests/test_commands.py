# These warnings are not useful in unit tests.
# pylint: disable=missing-class-docstring,missing-function-docstring,missing-module-docstring

__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GPLv2+"

import unittest

from cibtxn.commands import Commands, split
from cibtxn.environment import Environment
from cibtxn.resource import LocationRule


class SplitTestCase(unittest.TestCase):
    def test_string(self):
        self.assertEqual(split("resource create vip IPaddr2 ip=10.0.0.1 'op=monitor interval=10s'"),
                         ["resource", "create", "vip", "IPaddr2", "ip=10.0.0.1", "op=monitor interval=10s"])

    def test_list_is_copied(self):
        cmd = ["resource", "delete", "vip"]
        self.assertEqual(split(cmd), cmd)
        self.assertIsNot(split(cmd), cmd)


class CommandsTestCase(unittest.TestCase):
    def setUp(self):
        self.commands = Commands(Environment(environ={}))

    def test_pcs(self):
        self.assertEqual(self.commands.pcs("resource show vip"),
                         ["/usr/sbin/pcs", "resource", "show", "vip"])
        self.assertEqual(self.commands.pcs(["resource", "delete", "vip"], cib="/tmp/cib"),
                         ["/usr/sbin/pcs", "-f", "/tmp/cib", "resource", "delete", "vip"])

    def test_cib_push(self):
        self.assertEqual(self.commands.cib_push("/c"), ["cluster", "cib-push", "/c"])
        self.assertEqual(self.commands.cib_push("/c", diff_against="/c.orig"),
                         ["cluster", "cib-push", "/c", "diff-against=/c.orig"])

    def test_tool_paths_from_env(self):
        commands = Commands(Environment(environ={"PCMK_cibtxn_crm_diff": "/opt/bin/crm_diff"}))
        self.assertEqual(commands.crm_diff("/a.orig", "/a"),
                         ["/opt/bin/crm_diff", "--cib", "-o", "/a.orig", "-n", "/a"])

    def test_crm_simulate(self):
        self.assertEqual(self.commands.crm_simulate("/a", "/g"),
                         ["/usr/sbin/crm_simulate", "-x", "/a", "-s", "-G/g"])

    def test_crm_diff_strings(self):
        cmd = self.commands.crm_diff_strings("<cib a='1'/>", "<cib a='2'/>")
        self.assertEqual(cmd[2:], ["--original-string=<cib a='1'/>", "--new-string=<cib a='2'/>"])

    def test_location_rule(self):
        rule = LocationRule(expression=["galera-role", "eq", "true"], score="INFINITY",
                            resource_discovery="exclusive")
        self.assertEqual(self.commands.location_rule("galera-bundle", rule, force=True),
                         ["constraint", "location", "galera-bundle", "rule",
                          "resource-discovery=exclusive", "score=INFINITY",
                          "galera-role", "eq", "true", "--force"])

    def test_location_rule_score_attribute(self):
        rule = LocationRule(expression=["defined pingd"], score_attribute="pingd")
        self.assertEqual(self.commands.location_rule("web", rule),
                         ["constraint", "location", "web", "rule", "score-attribute=pingd",
                          "defined", "pingd"])
