"""
Demo program tests (python -m subcommander).

Conventions
- Test method names follow CamelCase per project convention.
- stdout/stderr are captured with contextlib redirection; the sticky main
  options are reset before every test.
"""

from __future__ import annotations

import contextlib
import datetime
import io
import unittest
from unittest import TestCase

from subcommander import __main__ as demo


class TestDemo(TestCase):
    """Behavioral tests for the demo command tree."""

    def setUp(self):
        demo.MAIN.options = demo.MainOptions()
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()

    def execute(self, *argv):
        with contextlib.redirect_stdout(self.stdout), contextlib.redirect_stderr(self.stderr):
            return demo.main(list(argv))

    def testListUsesLookups(self):
        self.assertEqual(self.execute("-n", "2", "--title", "Top", "list", "--title", "Mine", "item"), 0)
        self.assertEqual(self.stdout.getvalue(), "List of Top:Mine\n  item\n  item\n")

    def testListDefaults(self):
        self.assertEqual(self.execute("list", "item"), 0)
        self.assertEqual(self.stdout.getvalue(), "List of Main:Local\n  item\n")

    def testActionFailure(self):
        self.assertEqual(self.execute("list", "error"), 1)
        self.assertEqual(self.stderr.getvalue(), "Command failed: Main:Local: has an error\n")

    def testUsageFailure(self):
        self.assertEqual(self.execute("deep", "sea", "wave"), 1)
        self.assertTrue(self.stderr.getvalue().startswith("main deep sea: takes no arguments\nUsage: main deep sea\n"))
        self.assertNotIn("Command failed", self.stderr.getvalue())

    def testDeepCommands(self):
        self.assertEqual(self.execute("deep", "--duration", "1m30s", "sea"), 0)
        self.assertEqual(self.execute("deep", "thought", "who", "what"), 0)
        self.assertEqual(self.stdout.getvalue(), "The deep blue sea\nHaving deep thoughts ['who', 'what']\n")

    def testMainWithoutArgumentsShowsHelp(self):
        self.assertEqual(self.execute(), 0)
        output = self.stderr.getvalue()
        self.assertTrue(output.startswith("Usage: main [--title=TITLE] [-n=N] [-v] subcommand [...]\n"))
        self.assertIn("  deep [--duration=D] ...\n    A very deep subject to go into.\n", output)

    def testHelpDescends(self):
        self.assertEqual(self.execute("help", "deep", "thought"), 0)
        self.assertTrue(self.stderr.getvalue().startswith(
            "Usage: main deep thought [-v] [--planet=PLANET] [who] [what] [when]\n"
            "    Travel to PLANET and ponder the question\n"
        ))

    def testParseDuration(self):
        self.assertEqual(demo.parse_duration("1h30m"), datetime.timedelta(hours=1, minutes=30))
        self.assertEqual(demo.parse_duration("250ms"), datetime.timedelta(milliseconds=250))
        with self.assertRaises(ValueError):
            demo.parse_duration("soon")


if __name__ == "__main__":
    unittest.main()
