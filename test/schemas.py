# python
"""
Parser (field registry + scanner) behavioral tests.

Scope
- Declaration rules: duplicate flags/identifiers, bool placement, string list placement,
  required-after-optional ordering, router conflicts.
- Scanning: positional ordering around flags, flag values, greedy lists, choices,
  conversion failures, missing values, extra positionals, help short-circuit.
- Outcomes: status, values, failure payloads (codes, positions, schema), repeated flags.

Conventions
- Test method names follow CamelCase per project convention.
- Token streams are always given as lists unless the test is about string input.
"""

import io
import unittest
import warnings
from unittest import TestCase

from rich.console import Console

from argweave import (
    Parser, Status, Int, Double, String, Bool, OptionalInt, OptionalString, StringList,
    FaultCode, DuplicateFlagError, DuplicateIdentifierError, InvalidFieldError, PositionalOrderError,
    RouterConflictError, ReservedFlagError, UnknownFlagError, MissingFlagValueError, InvalidValueError,
    InvalidChoiceError, MissingValueError, ExtraPositionalError, RepeatedFlagWarning,
)


class TestDeclaration(TestCase):
    def testAddReturnsBinding(self):
        parser = Parser("prog")
        binding = parser.add("-c|--count", Int(default=1))
        self.assertEqual(binding.dest, "count")
        self.assertEqual(binding.aliases, ["-c", "--count"])
        self.assertEqual(binding.index, 0)
        self.assertTrue(binding.has_default)

    def testFlagIndexCoversEveryAlias(self):
        parser = Parser("prog")
        binding = parser.add("-c|--count", Int(default=1))
        self.assertIs(parser.flags["-c"], binding)
        self.assertIs(parser.flags["--count"], binding)

    def testDuplicateFlagFailsFast(self):
        parser = Parser("prog")
        parser.add("--foo", String(default=""))
        with self.assertRaises(DuplicateFlagError):
            parser.add("--foo", String(default=""))

    def testDuplicateAliasAcrossIdentifiers(self):
        parser = Parser("prog")
        parser.add("-f|--foo", Bool())
        with self.assertRaises(DuplicateFlagError):
            parser.add("-f|--force", Bool())

    def testDuplicatePositionalRejected(self):
        parser = Parser("prog")
        parser.add("a", Int())
        with self.assertRaises(DuplicateIdentifierError):
            parser.add("a", Int())

    def testDestinationCollisionRejected(self):
        parser = Parser("prog")
        parser.add("name", String())
        with self.assertRaises(DuplicateIdentifierError):
            parser.add("--name", String(default="x"))

    def testReservedHelpRejected(self):
        with self.assertRaises(ReservedFlagError):
            Parser("prog").add("-h|--host", String(default="localhost"))

    def testBoolMustBeFlag(self):
        with self.assertRaises(InvalidFieldError):
            Parser("prog").add("verbose", Bool())

    def testStringListMustBePositional(self):
        with self.assertRaises(InvalidFieldError):
            Parser("prog").add("--files", StringList())

    def testNothingMayFollowStringList(self):
        parser = Parser("prog")
        parser.add("files", StringList())
        with self.assertRaises(PositionalOrderError):
            parser.add("extra", OptionalString())

    def testRequiredCannotFollowOptional(self):
        parser = Parser("prog")
        parser.add("a", Int(default=0))
        with self.assertRaises(PositionalOrderError):
            parser.add("b", Int())

    def testFlagsMayFollowStringList(self):
        parser = Parser("prog")
        parser.add("files", StringList())
        parser.add("--force", Bool())
        self.assertEqual(len(parser.bindings), 2)

    def testFieldMustBeField(self):
        with self.assertRaises(TypeError):
            Parser("prog").add("a", int)

    def testReservedNameRejected(self):
        parser = Parser("prog")
        parser.reserve("command")
        with self.assertRaises(DuplicateIdentifierError):
            parser.add("--command", String(default="x"))

    def testReservingBoundNameRejected(self):
        parser = Parser("prog")
        parser.add("command", String())
        with self.assertRaises(DuplicateIdentifierError):
            parser.reserve("command")

    def testBindingsAreReadOnlyCopies(self):
        parser = Parser("prog")
        parser.add("a", Int())
        parser.bindings.clear()
        self.assertEqual(len(parser.bindings), 1)

    def testProgAndDescr(self):
        parser = Parser("  calc ", "Add numbers")
        self.assertEqual(parser.prog, "calc")
        self.assertEqual(parser.descr, "Add numbers")
        with self.assertRaises(ValueError):
            Parser("")


class TestRouterDeclaration(TestCase):
    def testSecondRouterRejected(self):
        parser = Parser("prog")
        parser.subcommands()
        with self.assertRaises(RouterConflictError):
            parser.subcommands()

    def testRouterRejectsOptionalPositionals(self):
        parser = Parser("prog")
        parser.add("a", OptionalInt())
        with self.assertRaises(RouterConflictError):
            parser.subcommands()

    def testRouterRejectsStringList(self):
        parser = Parser("prog")
        parser.add("files", StringList())
        with self.assertRaises(RouterConflictError):
            parser.subcommands()

    def testOptionalPositionalAfterRouterRejected(self):
        parser = Parser("prog")
        parser.subcommands()
        with self.assertRaises(RouterConflictError):
            parser.add("a", Int(default=1))

    def testRequiredPositionalWithRouterAllowed(self):
        parser = Parser("prog")
        parser.add("a", Int())
        router = parser.subcommands()
        parser.add("b", Int())
        self.assertIs(parser.router, router)


class TestScanning(TestCase):
    def testPositionalsFillInOrderAroundFlags(self):
        parser = Parser("prog")
        parser.add("a", Int())
        parser.add("b", Int())
        parser.add("--x", String())
        outcome = parser.parse(["1", "--x", "v", "2"])
        self.assertIs(outcome.status, Status.SUCCESS)
        self.assertEqual(outcome.values, {"a": 1, "b": 2, "x": "v"})

    def testValuesFollowDeclarationOrder(self):
        parser = Parser("prog")
        parser.add("--x", String(default="d"))
        parser.add("a", Int())
        outcome = parser.parse(["3"])
        self.assertEqual(list(outcome.values), ["x", "a"])

    def testFlagValueMayStartWithDash(self):
        parser = Parser("prog")
        parser.add("--offset", Int(default=0))
        self.assertEqual(parser.parse(["--offset", "-5"]).values["offset"], -5)

    def testPresenceFlag(self):
        parser = Parser("prog")
        parser.add("-v|--verbose", Bool())
        self.assertIs(parser.parse(["-v"]).values["verbose"], True)
        self.assertIs(parser.parse([]).values["verbose"], False)

    def testExplicitBoolValue(self):
        parser = Parser("prog")
        parser.add("--color", Bool(require_value=True))
        self.assertIs(parser.parse(["--color", "false"]).values["color"], False)
        self.assertIsInstance(parser.parse(["--color", "no"]).failure, InvalidValueError)
        self.assertIsInstance(parser.parse([]).failure, MissingValueError)

    def testGreedyListTakesEverything(self):
        parser = Parser("prog")
        parser.add("words", StringList())
        self.assertEqual(parser.parse(["w1", "w2", "w3"]).values["words"], ["w1", "w2", "w3"])

    def testGreedyListStopsBeforeFlag(self):
        parser = Parser("prog")
        parser.add("words", StringList())
        parser.add("--flag", String(default=""))
        outcome = parser.parse(["w1", "--flag", "v"])
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.values, {"words": ["w1"], "flag": "v"})

    def testWordAfterFinishedListIsExtra(self):
        parser = Parser("prog")
        parser.add("words", StringList())
        parser.add("--flag", String(default=""))
        outcome = parser.parse(["w1", "--flag", "v", "w2"])
        self.assertIsInstance(outcome.failure, ExtraPositionalError)

    def testEmptyListDefaultsToEmpty(self):
        parser = Parser("prog")
        parser.add("words", StringList())
        self.assertEqual(parser.parse([]).values["words"], [])

    def testListChoicesCheckedPerElement(self):
        parser = Parser("prog")
        parser.add("colors", StringList(choices=("red", "blue")))
        self.assertTrue(parser.parse(["red", "blue"]).ok)
        failure = parser.parse(["red", "pink"]).failure
        self.assertIsInstance(failure, InvalidChoiceError)
        self.assertEqual(failure.options["index"], 2)

    def testChoiceRejection(self):
        parser = Parser("prog")
        parser.add("--color", String(choices=("red", "green", "blue")))
        outcome = parser.parse(["--color", "purple"])
        self.assertIs(outcome.status, Status.FAILURE)
        self.assertIsInstance(outcome.failure, InvalidChoiceError)
        self.assertIn("'purple'", outcome.failure.message)
        self.assertIn("'red', 'green', 'blue'", outcome.failure.message)
        self.assertEqual(outcome.failure.options["code"], FaultCode.INVALID_CHOICE)

    def testChoiceAcceptance(self):
        parser = Parser("prog")
        parser.add("--color", String(choices=("red", "green", "blue")))
        self.assertEqual(parser.parse(["--color", "red"]).values["color"], "red")

    def testInvalidChoiceIsInvalidValue(self):
        self.assertTrue(issubclass(InvalidChoiceError, InvalidValueError))

    def testDefaultMaterialized(self):
        parser = Parser("prog")
        parser.add("--n", Int(default=5))
        self.assertEqual(parser.parse([]).values, {"n": 5})

    def testOptionalValuesMaterializeToNone(self):
        parser = Parser("prog")
        parser.add("--n", OptionalInt())
        parser.add("name", OptionalString())
        self.assertEqual(parser.parse([]).values, {"n": None, "name": None})

    def testOptionalPositionalTakesValue(self):
        parser = Parser("prog")
        parser.add("a", Int())
        parser.add("b", Int(default=7))
        self.assertEqual(parser.parse(["1"]).values, {"a": 1, "b": 7})
        self.assertEqual(parser.parse(["1", "2"]).values, {"a": 1, "b": 2})

    def testMissingRequiredPositional(self):
        parser = Parser("prog")
        parser.add("a", Int())
        outcome = parser.parse([])
        self.assertIsInstance(outcome.failure, MissingValueError)
        self.assertEqual(outcome.failure.message, "missing value for 'a'")

    def testMissingRequiredFlag(self):
        parser = Parser("prog")
        parser.add("--x", Double())
        self.assertEqual(parser.parse([]).failure.message, "missing value for '--x'")

    def testFirstMissingInDeclarationOrder(self):
        parser = Parser("prog")
        parser.add("--y", Int())
        parser.add("x", Int())
        self.assertEqual(parser.parse([]).failure.options["input"], "--y")

    def testUnknownFlag(self):
        parser = Parser("prog")
        parser.add("--verbose", Bool())
        failure = parser.parse(["--verbos"]).failure
        self.assertIsInstance(failure, UnknownFlagError)
        self.assertEqual(failure.options["suggestions"][0], "--verbose")
        self.assertIn("first position", failure.message)

    def testLoneDashIsUnknownFlag(self):
        parser = Parser("prog")
        parser.add("a", String())
        self.assertIsInstance(parser.parse(["-"]).failure, UnknownFlagError)

    def testMissingFlagValue(self):
        parser = Parser("prog")
        parser.add("--x", String(default=""))
        failure = parser.parse(["--x"]).failure
        self.assertIsInstance(failure, MissingFlagValueError)
        self.assertIn("expected value after flag '--x'", failure.message)

    def testInvalidIntValue(self):
        parser = Parser("prog")
        parser.add("a", Int())
        failure = parser.parse(["abc"]).failure
        self.assertIsInstance(failure, InvalidValueError)
        self.assertNotIsInstance(failure, InvalidChoiceError)
        self.assertIn("invalid int value 'abc'", failure.message)
        self.assertIsInstance(failure.__cause__, ValueError)

    def testExtraPositional(self):
        parser = Parser("prog")
        parser.add("a", Int())
        failure = parser.parse(["1", "2"]).failure
        self.assertIsInstance(failure, ExtraPositionalError)
        self.assertEqual(failure.options["index"], 2)
        self.assertIn("second position", failure.message)

    def testFirstFailureWins(self):
        parser = Parser("prog")
        parser.add("a", Int())
        outcome = parser.parse(["abc", "--nope", "extra"])
        self.assertIsInstance(outcome.failure, InvalidValueError)

    def testHelpShortCircuits(self):
        parser = Parser("prog")
        parser.add("a", Int())
        for tokens in (["-h"], ["--help"], ["--help", "abc"], ["1", "--help", "extra"]):
            with self.subTest(tokens=tokens):
                outcome = parser.parse(tokens)
                self.assertIs(outcome.status, Status.HELP)
                self.assertFalse(outcome.ok)
                self.assertIsNone(outcome.failure)
                self.assertIs(outcome.schema, parser)

    def testHelpAfterFailureIsNotReached(self):
        parser = Parser("prog")
        parser.add("a", Int())
        self.assertIs(parser.parse(["abc", "--help"]).status, Status.FAILURE)

    def testHelpTokenConsumedAsValue(self):
        parser = Parser("prog")
        parser.add("--name", String(default=""))
        self.assertEqual(parser.parse(["--name", "--help"]).values["name"], "--help")

    def testRepeatedFlagLastWins(self):
        parser = Parser("prog")
        parser.add("--x", Int(default=0))
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            outcome = parser.parse(["--x", "1", "--x", "2"])
        self.assertEqual(outcome.values["x"], 2)
        self.assertEqual(len(outcome.warnings), 1)
        self.assertIsInstance(outcome.warnings[0], RepeatedFlagWarning)
        self.assertIn("third position", outcome.warnings[0].message)

    def testSingleFlagRecordsNoWarning(self):
        parser = Parser("prog")
        parser.add("--x", Int(default=0))
        self.assertEqual(parser.parse(["--x", "1"]).warnings, [])

    def testWarningsSurviveFailure(self):
        parser = Parser("prog")
        parser.add("--x", Int(default=0))
        outcome = parser.parse(["--x", "1", "--x", "2", "stray"])
        self.assertIsInstance(outcome.failure, ExtraPositionalError)
        self.assertEqual(len(outcome.warnings), 1)

    def testReportWarnsOutsideShell(self):
        parser = Parser("prog")
        parser.add("--x", Int(default=0))
        outcome = parser.parse(["--x", "1", "--x", "2"])
        with self.assertWarns(RepeatedFlagWarning) as context:
            outcome.report(shell=False)
        self.assertEqual(context.filename, __file__)

    def testReportPrintsWarningsInShell(self):
        parser = Parser("prog")
        parser.add("--x", Int(default=0))
        console = Console(file=io.StringIO(), width=200, color_system=None)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            parser.parse(["--x", "1", "--x", "2"]).report(shell=True, console=console)
        self.assertEqual(
            console.file.getvalue(),
            "[ prog — 12115 | Repeated Flag ] flag '--x' at third position was already given, the last value wins\n"
        )

    def testStringInputIsShellSplit(self):
        parser = Parser("prog")
        parser.add("--name", String())
        self.assertEqual(parser.parse("--name 'two words'").values["name"], "two words")

    def testNonStringTokensRejected(self):
        with self.assertRaises(TypeError):
            Parser("prog").parse([1, 2])
        with self.assertRaises(TypeError):
            Parser("prog").parse(5)

    def testReparseStartsFresh(self):
        parser = Parser("prog")
        parser.add("--x", Int(default=0))
        parser.add("a", Int())
        self.assertEqual(parser.parse(["1", "--x", "9"]).values, {"x": 9, "a": 1})
        self.assertEqual(parser.parse(["2"]).values, {"x": 0, "a": 2})

    def testFailureCarriesSchema(self):
        parser = Parser("prog")
        outcome = parser.parse(["stray"])
        self.assertIs(outcome.failure.schema, parser)
        self.assertIs(outcome.schema, parser)
        self.assertEqual(outcome.values, {})

    def testRoundTripOfRequiredOnlySchema(self):
        def build():
            parser = Parser("prog")
            parser.add("a", Int())
            parser.add("--ratio", Double())
            parser.add("--name", String())
            return parser

        first = build().parse(["3", "--ratio", "0.5", "--name", "x"])
        tokens = [str(first.values["a"]), "--ratio", repr(first.values["ratio"]), "--name", first.values["name"]]
        self.assertEqual(build().parse(tokens).values, first.values)


if __name__ == "__main__":
    unittest.main()
