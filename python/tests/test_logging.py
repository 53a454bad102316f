# These warnings are not useful in unit tests.
# pylint: disable=missing-class-docstring,missing-function-docstring,missing-module-docstring

__copyright__ = "Copyright 2026 the Pacemaker project contributors"
__license__ = "GPLv2+"

import io
import os
import tempfile
import unittest
from unittest import mock

from cibtxn.logging import LogFactory


class LogFactoryTestCase(unittest.TestCase):
    def setUp(self):
        self._dir = tempfile.TemporaryDirectory()
        self.logger = LogFactory()
        self.logger.reset()
        self.addCleanup(self.logger.reset)

    def tearDown(self):
        self._dir.cleanup()

    def read(self, path):
        with open(path, encoding="utf-8") as f:
            return f.read()

    def test_file_destinations(self):
        full = os.path.join(self._dir.name, "full.log")
        quiet = os.path.join(self._dir.name, "quiet.log")

        self.logger.add_file(full, tag="cibtxn")
        self.logger.add_file(quiet, debug=False)

        self.logger.log("pushed  \n")
        self.logger.debug("pcs -f /tmp/cib resource delete R")
        self.logger.warning("cluster did not settle")

        text = self.read(full)
        self.assertIn("cibtxn: pushed\n", text)
        self.assertIn("debug: pcs -f /tmp/cib resource delete R", text)
        self.assertIn("warning: cluster did not settle", text)

        text = self.read(quiet)
        self.assertIn("pushed", text)
        self.assertNotIn("debug:", text)
        self.assertIn("warning: cluster did not settle", text)

    def test_singleton_state(self):
        path = os.path.join(self._dir.name, "shared.log")
        self.logger.add_file(path)

        LogFactory().log("from another instance")
        self.assertIn("from another instance", self.read(path))

    def test_stderr(self):
        with mock.patch("sys.__stderr__", new_callable=io.StringIO) as stderr:
            self.logger.add_stderr()
            self.logger.add_stderr()

            self.logger.log("pushed")
            self.logger.debug("pcs cluster cib-push /tmp/cib")
            self.logger.warning("cluster did not settle")

        lines = stderr.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].endswith("\tpushed"))
        self.assertTrue(lines[1].endswith("\twarning: cluster did not settle"))
