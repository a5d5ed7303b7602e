"""
Arguments module behavioral tests (option sets, parsing, rendering).

Scope
- Validate Option/Flag construction: names, derived names, metavar, type inference.
- Validate Options stores: defaults, keyword overrides, copies, lookups.
- Validate parse(): value forms, termination, and OptionError messages.
- Validate usage()/help() rendering.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import io
import unittest
from unittest import TestCase

from subcommander import Option, Flag, Options, OptionError, usage_line


class Settings(Options):
    title = Option("--title", metavar="TITLE", default="Main", descr="set the title")
    n = Option("-n", metavar="N", default=1, descr="run N times")
    verbose = Flag("-v", "--verbose", descr="be verbose")


class TestOptionSpecs(TestCase):
    """Behavioral tests for Option and Flag specifications."""

    def testNamesMustBeShellStyle(self):
        with self.assertRaises(ValueError):
            Option("title")
        with self.assertRaises(ValueError):
            Option("--snake_case")
        with self.assertRaises(ValueError):
            Option("-")

    def testDuplicateNamesRejected(self):
        with self.assertRaises(ValueError):
            Option("--name", "--name")

    def testNamesMustBeStrings(self):
        with self.assertRaises(TypeError):
            Flag(3)

    def testNamesDerivedFromAttribute(self):
        class Derived(Options):
            x = Flag()
            long_name = Option()

        self.assertEqual(Derived.x.names, ("-x",))
        self.assertEqual(Derived.long_name.names, ("--long-name",))

    def testMetavarDefaultsToValue(self):
        self.assertEqual(Option("--name").metavar, "VALUE")

    def testTypeInferredFromDefault(self):
        self.assertEqual(Settings.n.convert("3"), 3)
        self.assertEqual(Settings.title.convert("3"), "3")

    def testFlagDefaultsToFalse(self):
        self.assertIs(Settings().verbose, False)

    def testDescriptionCannotBeBlank(self):
        with self.assertRaises(ValueError):
            Option("--name", descr="  ")

    def testRepr(self):
        self.assertEqual(repr(Flag("-v")), "Flag('-v')")
        self.assertEqual(repr(Option("--name", default="x")), "Option('--name', default='x')")


class TestOptionsStore(TestCase):
    """Behavioral tests for Options value stores."""

    def testDefaults(self):
        settings = Settings()
        self.assertEqual((settings.title, settings.n, settings.verbose), ("Main", 1, False))

    def testKeywordOverrides(self):
        self.assertEqual(Settings(title="Other").title, "Other")

    def testUnknownKeywordRejected(self):
        with self.assertRaises(TypeError):
            Settings(color="red")

    def testCopiesAreIndependent(self):
        original = Settings()
        clone = copy.copy(original)
        clone.title = "Changed"
        self.assertEqual(original.title, "Main")
        self.assertEqual(clone.title, "Changed")
        self.assertIsInstance(clone, Settings)

    def testDuplicateSwitchRejected(self):
        with self.assertRaises(ValueError):
            class Clashing(Options):
                one = Option("--name")
                two = Option("-name")

    def testReservedFieldRejected(self):
        with self.assertRaises(ValueError):
            class Reserved(Options):
                parse = Flag("--parse")

    def testInheritedFields(self):
        class More(Settings):
            extra = Flag("--extra")

        self.assertEqual(list(More.fields()), ["title", "n", "verbose", "extra"])
        self.assertEqual(More().title, "Main")

    def testLookupByFieldAndSwitchName(self):
        settings = Settings()
        self.assertEqual(settings.lookup("title"), "Main")
        self.assertEqual(settings.lookup("verbose"), False)
        self.assertEqual(settings.lookup("v"), False)
        self.assertEqual(settings.lookup("--title"), "Main")

    def testLookupMissingReturnsDefault(self):
        self.assertIsNone(Settings().lookup("missing"))
        self.assertEqual(Settings().lookup("missing", "fallback"), "fallback")

    def testRepr(self):
        self.assertEqual(repr(Settings()), "Settings(title='Main', n=1, verbose=False)")


class TestOptionsParse(TestCase):
    """Behavioral tests for Options.parse()."""

    def setUp(self):
        self.settings = Settings()

    def testSpacedAndInlineValues(self):
        rest = self.settings.parse(["--title", "Deep", "-n=3", "file"])
        self.assertEqual(rest, ["file"])
        self.assertEqual((self.settings.title, self.settings.n), ("Deep", 3))

    def testSingleAndDoubleDashAreEquivalent(self):
        self.settings.parse(["-title=Deep", "--n", "2"])
        self.assertEqual((self.settings.title, self.settings.n), ("Deep", 2))

    def testFlags(self):
        self.assertEqual(self.settings.parse(["-v", "x"]), ["x"])
        self.assertIs(self.settings.verbose, True)
        self.settings.parse(["--verbose=false"])
        self.assertIs(self.settings.verbose, False)

    def testStopsAtFirstPositional(self):
        self.assertEqual(self.settings.parse(["a", "-v"]), ["a", "-v"])
        self.assertIs(self.settings.verbose, False)

    def testDoubleDashTerminates(self):
        self.assertEqual(self.settings.parse(["-v", "--", "-n", "2"]), ["-n", "2"])
        self.assertEqual(self.settings.n, 1)

    def testLoneDashIsPositional(self):
        self.assertEqual(self.settings.parse(["-", "x"]), ["-", "x"])

    def testUndefinedFlag(self):
        with self.assertRaises(OptionError) as context:
            self.settings.parse(["--color=red"])
        self.assertEqual(str(context.exception), "flag provided but not defined: --color")

    def testMissingValue(self):
        with self.assertRaises(OptionError) as context:
            self.settings.parse(["--title"])
        self.assertEqual(str(context.exception), "flag needs an argument: --title")

    def testInvalidValue(self):
        with self.assertRaises(OptionError) as context:
            self.settings.parse(["-n", "many"])
        self.assertEqual(str(context.exception), 'invalid value "many" for flag -n')

    def testInvalidBoolean(self):
        with self.assertRaises(OptionError) as context:
            self.settings.parse(["-v=maybe"])
        self.assertEqual(str(context.exception), 'invalid boolean value "maybe" for flag -v')

    def testBadSyntax(self):
        with self.assertRaises(OptionError):
            self.settings.parse(["---title"])
        with self.assertRaises(OptionError):
            self.settings.parse(["-=x"])

    def testHelpRequestWritesHelp(self):
        output = io.StringIO()
        with self.assertRaises(OptionError) as context:
            self.settings.parse(["--help"], output)
        self.assertEqual(str(context.exception), "help requested")
        self.assertIn("--title=TITLE", output.getvalue())

    def testFailedParseKeepsEarlierValues(self):
        with self.assertRaises(OptionError):
            self.settings.parse(["-n", "5", "--bogus"])
        self.assertEqual(self.settings.n, 5)


class TestOptionsRendering(TestCase):
    """Behavioral tests for usage()/help() and usage_line()."""

    def testUsage(self):
        self.assertEqual(Settings().usage(), "[--title=TITLE] [-n=N] [-v|--verbose]")

    def testHiddenFieldsOmitted(self):
        class Secret(Options):
            shown = Flag("--shown")
            secret = Flag("--secret", hidden=True)

        self.assertEqual(Secret().usage(), "[--shown]")
        self.assertEqual(Secret().help(), ["--shown"])

    def testHelpShowsCurrentValues(self):
        settings = Settings()
        settings.verbose = True
        self.assertEqual(settings.help(), [
            "--title=TITLE    set the title [Main]",
            "-n=N             run N times [1]",
            "-v, --verbose    be verbose [true]",
        ])

    def testHelpOmitsUnsetValues(self):
        settings = Settings(title="", n=0)
        self.assertEqual(settings.help()[0], "--title=TITLE    set the title")
        self.assertEqual(settings.help()[2], "-v, --verbose    be verbose")

    def testUsageLine(self):
        self.assertEqual(usage_line("main", "arg0 ...", Settings()), "main [--title=TITLE] [-n=N] [-v|--verbose] arg0 ...")
        self.assertEqual(usage_line("main", "", None), "main")


if __name__ == "__main__":
    unittest.main()
