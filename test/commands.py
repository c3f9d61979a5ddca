"""
Commands module behavioral tests (builder, parsing state machine, faults, help).

Scope
- Validate the fluent builder: argument/option, add_*/define_* handles,
  accepts()/required() conveniences and duplicate rejection.
- Validate parsing: positionals, flags, typed values, quoted strings, the
  "--" terminator, overflow, strict mode and required-field finalization.
- Validate dangling option values (strict failure vs. permissive warning).
- Validate fault context, shell-mode rendering, help output and aparse().

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Command, Argument, Option, faults).
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase, IsolatedAsyncioTestCase, mock

from rich.console import Console

from commandant import Command, Argument, Option, ParseResult, ValueType
from commandant.faults import (
    FaultCode,
    UnknownOptionError,
    UnknownArgumentError,
    InvalidOptionValueError,
    IncompleteOptionValueError,
    IncompleteOptionValueWarning,
    MissingRequiredOptionError,
    MissingRequiredArgumentError,
    NoOptionDefinedError,
    NoTargetForRequiredError,
    DuplicateDefinitionError,
)


class TestCommandBuilder(TestCase):
    """Behavioral tests for the Command builder surface."""

    def testCommandDefaults(self):
        cmd = Command("cmd")
        self.assertEqual(cmd.name, "cmd")
        self.assertIsNone(cmd.descr)
        self.assertIsNone(cmd.version)
        self.assertFalse(cmd.is_strict)
        self.assertEqual(cmd.arguments, [])
        self.assertEqual(cmd.options, [])

    def testCommandExplicitValues(self):
        cmd = Command("cmd", "description", "1.0.0")
        self.assertEqual(cmd.descr, "description")
        self.assertEqual(cmd.version, "1.0.0")

    def testCommandSetters(self):
        cmd = Command("cmd").set_name("cmd2").set_descr("description2").set_version("1.0.0")
        self.assertEqual(cmd.name, "cmd2")
        self.assertEqual(cmd.descr, "description2")
        self.assertEqual(cmd.version, "1.0.0")

    def testCommandNameValidation(self):
        with self.assertRaises(ValueError):
            Command("two words")
        with self.assertRaises(TypeError):
            Command(None)

    def testStrictIsOneWay(self):
        cmd = Command("cmd")
        self.assertIs(cmd.strict(), cmd)
        self.assertTrue(cmd.is_strict)
        self.assertTrue(Command("cmd", strict=True).is_strict)

    def testDefinitionsKeepDeclarationOrder(self):
        cmd = Command("cmd").argument("b").argument("a").option("zeta").option("alpha")
        self.assertEqual([argument.name for argument in cmd.arguments], ["b", "a"])
        self.assertEqual([option.name for option in cmd.options], ["zeta", "alpha"])

    def testDefinitionListsAreCopies(self):
        cmd = Command("cmd").argument("arg1")
        cmd.arguments.append(Argument("sneaky"))
        self.assertEqual(len(cmd.arguments), 1)

    def testDefineReturnsHandles(self):
        cmd = Command("cmd")
        argument = cmd.define_argument("arg1")
        option = cmd.define_option("count", "c")
        self.assertIsInstance(argument, Argument)
        self.assertIsInstance(option, Option)
        self.assertIs(cmd.arguments[0], argument)
        self.assertIs(cmd.options[0], option)

    def testHandlesConfigureDefinitionsDirectly(self):
        cmd = Command("cmd")
        cmd.define_option("count", "c").set_accepts("integer").set_required()
        cmd.define_argument("arg1").set_required()

        self.assertEqual(cmd.parse("-c 3 value").options["count"], 3)
        with self.assertRaises(MissingRequiredOptionError):
            cmd.parse("value")

    def testAddPrebuiltDefinitions(self):
        option = Option("opt", "o", accepts="float")
        argument = Argument("arg", required=True)
        cmd = Command("cmd").add_option(option).add_argument(argument)
        self.assertIs(cmd.options[0], option)
        self.assertIs(cmd.arguments[0], argument)
        results = cmd.parse("-o 2.5 value")
        self.assertEqual(results.options["opt"], 2.5)
        self.assertEqual(results.arguments["arg"], "value")

    def testAddRejectsForeignObjects(self):
        with self.assertRaises(TypeError):
            Command("cmd").add_option(Argument("arg"))
        with self.assertRaises(TypeError):
            Command("cmd").add_argument("arg")

    def testAcceptsTargetsLastOption(self):
        cmd = Command("cmd").option("option1").argument("arg1").accepts("integer")
        self.assertIs(cmd.options[0].accepts, ValueType.INTEGER)

    def testAcceptsWithoutOptionRaises(self):
        with self.assertRaises(NoOptionDefinedError):
            Command("cmd").accepts("string")
        with self.assertRaises(NoOptionDefinedError):
            Command("cmd").argument("arg1").accepts("string")

    def testRequiredTargetsLastAdded(self):
        cmd = Command("cmd").option("option1").argument("arg1").required()
        self.assertTrue(cmd.arguments[0].required)
        self.assertFalse(cmd.options[0].required)

        cmd = Command("cmd").argument("arg1").option("option1").required()
        self.assertTrue(cmd.options[0].required)
        self.assertFalse(cmd.arguments[0].required)

    def testRequiredFollowsAddedDefinitions(self):
        cmd = Command("cmd").option("option1").add_argument(Argument("arg1")).required()
        self.assertTrue(cmd.arguments[0].required)

    def testRequiredWithoutDefinitionRaises(self):
        with self.assertRaises(NoTargetForRequiredError):
            Command("cmd").required()

    def testDuplicateArgumentRaises(self):
        with self.assertRaises(DuplicateDefinitionError):
            Command("cmd").argument("arg1").argument("arg1")

    def testDuplicateOptionNameRaises(self):
        with self.assertRaises(DuplicateDefinitionError):
            Command("cmd").option("option1", "o").option("option1", "p")

    def testDuplicateShorthandRaises(self):
        with self.assertRaises(DuplicateDefinitionError):
            Command("cmd").option("option1", "o").option("option2", "o")

    def testShorthandMayEqualAnotherOptionName(self):
        # "-o" and "--o" are different tokens
        cmd = Command("cmd").option("option1", "o").option("o")
        results = cmd.parse("-o --o")
        self.assertTrue(results.options["option1"])
        self.assertTrue(results.options["o"])

    def testRepr(self):
        self.assertTrue(repr(Command("cmd")).startswith("command(name='cmd'"))


class TestCommandParsing(TestCase):
    """Behavioral tests for the parsing state machine."""

    def testOneArgument(self):
        cmd = Command("cmd").argument("arg1", "description", True)
        results = cmd.parse("arg1value")
        self.assertEqual(dict(results.arguments), {"arg1": "arg1value"})

    def testTwoArguments(self):
        cmd = Command("cmd").argument("arg1", "description", True).argument("arg2", "description", True)
        results = cmd.parse("arg1value arg2value")
        self.assertEqual(dict(results.arguments), {"arg1": "arg1value", "arg2": "arg2value"})

    def testFlagByNameAndShorthand(self):
        cmd = Command("cmd").option("option1", "o", "description")
        self.assertEqual(dict(cmd.parse("--option1").options), {"option1": True})
        self.assertEqual(dict(cmd.parse("-o").options), {"option1": True})

    def testTwoFlags(self):
        cmd = Command("cmd").option("option1", "o", "description").option("option2", "p", "description")
        self.assertEqual(dict(cmd.parse("--option1 --option2").options), {"option1": True, "option2": True})
        self.assertEqual(dict(cmd.parse("-o -p").options), {"option1": True, "option2": True})

    def testAbsentOptionalOptionIsFalse(self):
        cmd = Command("cmd").option("option1", "o").option("option2", "p", accepts="string")
        self.assertEqual(dict(cmd.parse("").options), {"option1": False, "option2": False})

    def testAbsentOptionalArgumentHasNoEntry(self):
        cmd = Command("cmd").argument("arg1").argument("arg2")
        self.assertEqual(dict(cmd.parse("only").arguments), {"arg1": "only"})

    def testOptionAndArgument(self):
        cmd = Command("cmd").option("option1", "o", "description").argument("arg1", "description")
        results = cmd.parse("--option1 arg1value")
        self.assertEqual(dict(results.options), {"option1": True})
        self.assertEqual(dict(results.arguments), {"arg1": "arg1value"})

    def testRepeatedSpacesAreIgnored(self):
        cmd = Command("cmd").argument("arg1").argument("arg2")
        results = cmd.parse("  first    second  ")
        self.assertEqual(dict(results.arguments), {"arg1": "first", "arg2": "second"})
        self.assertEqual(results.overflow, ())

    def testAcceptsAndRequiredChain(self):
        cmd = (
            Command("cmd")
            .option("option1", "o", "description").accepts("string").required()
            .argument("arg1", "description").required()
        )
        results = cmd.parse("--option1 value1 arg1value")
        self.assertEqual(results.options["option1"], "value1")
        self.assertEqual(results.arguments["arg1"], "arg1value")

    def testStringOptionValue(self):
        cmd = Command("cmd").option("option1", "o", "description", "string")
        self.assertEqual(dict(cmd.parse("--option1 value").options), {"option1": "value"})

    def testQuotedStringOptionValue(self):
        cmd = Command("cmd").option("option1", "o", "description", "string")
        self.assertEqual(cmd.parse('--option1 "value"').options["option1"], "value")

    def testQuotedStringWithSpaces(self):
        cmd = Command("cmd").option("option1", "o", "description", "string")
        self.assertEqual(cmd.parse('--option1 "value with spaces"').options["option1"], "value with spaces")

    def testQuotedStringKeepsInnerDashes(self):
        cmd = Command("cmd").option("option1", "o", accepts="string").argument("arg1")
        results = cmd.parse('-o "--not an option" arg1value')
        self.assertEqual(results.options["option1"], "--not an option")
        self.assertEqual(results.arguments["arg1"], "arg1value")

    def testQuotedStringCollapsesRepeatedSpaces(self):
        cmd = Command("cmd").option("option1", "o", accepts="string")
        self.assertEqual(cmd.parse('-o "a  b"').options["option1"], "a b")
        self.assertEqual(cmd.parse('-o "a   b   c"').options["option1"], "a b c")

    def testIntegerOptionRejectsNonAsciiDigits(self):
        cmd = Command("cmd").option("count", "c").accepts("integer")
        with self.assertRaises(InvalidOptionValueError):
            cmd.parse("-c ٤٢")

    def testEmptyDescriptionsAreAccepted(self):
        cmd = Command("cmd").argument("arg1", "").option("option1", "o", "")
        results = cmd.parse("value -o")
        self.assertEqual(results.arguments["arg1"], "value")
        self.assertTrue(results.options["option1"])

    def testLoneOpeningQuoteStartsAccumulation(self):
        cmd = Command("cmd").option("option1", "o", accepts="string")
        self.assertEqual(cmd.parse('-o " padded"').options["option1"], " padded")

    def testEmptyQuotedString(self):
        cmd = Command("cmd").option("option1", "o", accepts="string")
        results = cmd.parse('-o ""')
        self.assertEqual(results.options["option1"], "")

    def testStringValueViaCommandAccepts(self):
        cmd = Command("cmd").option("option1", "o", "description").accepts("string")
        self.assertEqual(dict(cmd.parse("--option1 value").options), {"option1": "value"})

    def testIntegerOptionValue(self):
        cmd = Command("cmd").option("count", "c").accepts("integer")
        value = cmd.parse("--count 42").options["count"]
        self.assertEqual(value, 42)
        self.assertIsInstance(value, int)

    def testIntegerOptionRejectsFraction(self):
        cmd = Command("cmd").option("count", "c").accepts("integer")
        with self.assertRaises(InvalidOptionValueError):
            cmd.parse("--count 4.2")

    def testQuotedValueIsNotSpecialForNumbers(self):
        cmd = Command("cmd").option("count", "c").accepts("integer")
        with self.assertRaises(InvalidOptionValueError):
            cmd.parse('--count "4"')

    def testNegativeNumberIsAValue(self):
        cmd = Command("cmd").option("offset", "o").accepts("float")
        self.assertEqual(cmd.parse("-o -1.5").options["offset"], -1.5)

    def testZeroValueCountsAsPresent(self):
        cmd = Command("cmd").option("count", "c").accepts("integer").required()
        self.assertEqual(cmd.parse("-c 0").options["count"], 0)

    def testLastValueWins(self):
        cmd = Command("cmd").option("count", "c").accepts("integer")
        self.assertEqual(cmd.parse("-c 1 --count 2").options["count"], 2)

    def testExtraArgumentsOverflow(self):
        cmd = Command("cmd").argument("arg1", "description", True)
        results = cmd.parse("arg1value arg2value")
        self.assertEqual(dict(results.arguments), {"arg1": "arg1value"})
        self.assertEqual(results.overflow, ("arg2value",))

    def testTerminatorSendsEverythingToOverflow(self):
        cmd = Command("cmd").argument("arg1", "description", True).argument("arg2", "description", False)
        results = cmd.parse("arg1value -- arg2value")
        self.assertEqual(dict(results.arguments), {"arg1": "arg1value"})
        self.assertNotIn("arg2", results.arguments)
        self.assertEqual(results.overflow, ("arg2value",))

    def testTerminatorDisablesOptions(self):
        cmd = Command("cmd").option("option1", "o")
        results = cmd.parse("-- --option1 --")
        self.assertFalse(results.options["option1"])
        self.assertEqual(results.overflow, ("--option1", "--"))

    def testExtraOptionsOverflow(self):
        cmd = Command("cmd").option("option1", "o", "description")
        results = cmd.parse("--option1 --option2")
        self.assertEqual(dict(results.options), {"option1": True})
        self.assertEqual(results.overflow, ("--option2",))

    def testOverflowKeepsInputOrder(self):
        cmd = Command("cmd").argument("arg1")
        results = cmd.parse("a -x b --y -- c")
        self.assertEqual(results.overflow, ("-x", "b", "--y", "c"))

    def testStrictRejectsUnknownOption(self):
        cmd = Command("cmd").strict().option("option1", "o", "description")
        with self.assertRaises(UnknownOptionError):
            cmd.parse("--option1 --option2")

    def testStrictRejectsExtraArgument(self):
        cmd = Command("cmd").strict().argument("arg1", "description", True)
        with self.assertRaises(UnknownArgumentError):
            cmd.parse("arg1value arg2value")

    def testStrictStillAcceptsTerminatedOverflow(self):
        cmd = Command("cmd").strict().argument("arg1")
        results = cmd.parse("arg1value -- extra --unknown")
        self.assertEqual(results.overflow, ("extra", "--unknown"))

    def testMissingRequiredOption(self):
        cmd = Command("cmd").option("option1", "o", "description", "string", True)
        with self.assertRaises(MissingRequiredOptionError):
            cmd.parse("")

    def testMissingRequiredOptionViaRequired(self):
        cmd = Command("cmd").option("option1", "o", "description").required()
        with self.assertRaises(MissingRequiredOptionError):
            cmd.parse("")

    def testMissingRequiredArgument(self):
        cmd = Command("cmd").argument("arg1", "description", True)
        with self.assertRaises(MissingRequiredArgumentError):
            cmd.parse("")

    def testMissingRequiredArgumentViaRequired(self):
        cmd = Command("cmd").argument("arg1", "description").required()
        with self.assertRaises(MissingRequiredArgumentError):
            cmd.parse("")

    def testRequiredArgumentCheckedByName(self):
        cmd = Command("cmd").argument("first").argument("second", required=True)
        with self.assertRaises(MissingRequiredArgumentError):
            cmd.parse("only-one")

    def testParseIsIdempotent(self):
        cmd = (
            Command("cmd")
            .argument("arg1")
            .option("count", "c").accepts("integer")
            .option("verbose", "v")
        )
        first = cmd.parse("value -c 3 extra")
        second = cmd.parse("value -c 3 extra")
        self.assertEqual(first, second)
        self.assertEqual(cmd.parse("-v"), ParseResult({}, {"count": False, "verbose": True}, ()))

    def testResultIsReadOnly(self):
        results = Command("cmd").argument("arg1").parse("value")
        with self.assertRaises(TypeError):
            results.arguments["arg1"] = "other"
        with self.assertRaises(AttributeError):
            results.overflow.append("x")

    def testParseRejectsNonString(self):
        with self.assertRaises(TypeError):
            Command("cmd").parse(["a", "b"])


class TestDanglingOptionValue(TestCase):
    """Behavioral tests for input ending while an option waits for its value."""

    def testStrictDanglingValueRaises(self):
        cmd = Command("cmd").strict().option("count", "c").accepts("integer")
        with self.assertRaises(IncompleteOptionValueError):
            cmd.parse("-c")

    def testStrictUnclosedQuoteRaises(self):
        cmd = Command("cmd").strict().option("title", "t").accepts("string")
        with self.assertRaises(IncompleteOptionValueError):
            cmd.parse('-t "never closed')

    def testPermissiveDanglingValueWarns(self):
        cmd = Command("cmd").option("count", "c").accepts("integer")
        with self.assertWarns(IncompleteOptionValueWarning):
            results = cmd.parse("-c")
        self.assertFalse(results.options["count"])

    def testPermissiveUnclosedQuoteDropsPartialValue(self):
        cmd = Command("cmd").option("title", "t").accepts("string")
        with self.assertWarns(IncompleteOptionValueWarning):
            results = cmd.parse('-t "never closed')
        self.assertFalse(results.options["title"])
        self.assertEqual(results.overflow, ())

    def testDanglingRequiredOptionIsMissing(self):
        cmd = Command("cmd").option("count", "c").accepts("integer").required()
        with self.assertWarns(IncompleteOptionValueWarning):
            with self.assertRaises(MissingRequiredOptionError):
                cmd.parse("-c")


class TestCommandFaults(TestCase):
    """Behavioral tests for fault context and shell-mode rendering."""

    def testUnknownOptionContext(self):
        cmd = Command("cmd").strict().argument("arg1").option("option1", "o")
        with self.assertRaises(UnknownOptionError) as context:
            cmd.parse("value --option2")

        fault = context.exception
        self.assertEqual(str(fault), "unknown option '--option2' at second position")
        self.assertIs(fault.options["code"], FaultCode.UNKNOWN_OPTION)
        self.assertEqual(fault.options["index"], 2)
        self.assertIs(fault.options["command"], cmd)
        self.assertIn("--option1", fault.options["suggestions"])
        self.assertEqual(fault.options["hint"], "did you mean '--option1'?")

    def testInvalidValueContext(self):
        cmd = Command("cmd").option("ratio", "r").accepts("float")
        with self.assertRaises(InvalidOptionValueError) as context:
            cmd.parse("-r half")
        self.assertEqual(context.exception.options["input"], "half")
        self.assertEqual(context.exception.options["hint"], "option '--ratio' expects a float value")

    def testFaultRendersWithRich(self):
        cmd = Command("cmd").strict()
        with self.assertRaises(UnknownArgumentError) as context:
            cmd.parse("stray")

        console = Console(file=io.StringIO(), width=120)
        console.print(context.exception)
        output = console.file.getvalue()
        self.assertIn("[ cmd — 11121 | Unexpected Argument ]", output)
        self.assertIn("unexpected argument 'stray' at first position", output)

    def testShellModePrintsAndExits(self):
        cmd = Command("cmd", shell=True).strict()
        console = Console(file=io.StringIO(), width=120)
        with mock.patch("commandant.faults.console", console):
            with self.assertRaises(SystemExit) as context:
                cmd.parse("--nope")
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown option '--nope'", console.file.getvalue())

    def testShellModePrintsWarnings(self):
        cmd = Command("cmd", shell=True).option("count", "c").accepts("integer")
        console = Console(file=io.StringIO(), width=120)
        with mock.patch("commandant.faults.console", console):
            results = cmd.parse("-c")
        self.assertFalse(results.options["count"])
        self.assertIn("option 'count' at first position is missing its value", console.file.getvalue())


class TestCommandHelp(TestCase):
    """Behavioral tests for the help renderer."""

    def render(self, cmd):
        console = Console(file=io.StringIO(), width=100)
        cmd.print_help(console)
        return console.file.getvalue()

    def testUsageLine(self):
        cmd = (
            Command("cmd", "does things")
            .argument("arg1", "first value", True)
            .argument("arg2", "second value")
            .option("option1", "o", "some text", "string")
        )
        output = self.render(cmd)
        self.assertIn("usage: cmd <arg1> [arg2] [OPTIONS]", output)
        self.assertIn("does things", output)
        self.assertIn("arguments:", output)
        self.assertIn("options:", output)
        self.assertIn("-o, --option1 <string>", output)
        self.assertIn("second value", output)

    def testUsageWithoutOptions(self):
        output = self.render(Command("cmd").argument("arg1"))
        self.assertIn("usage: cmd [arg1]", output)
        self.assertNotIn("[OPTIONS]", output)
        self.assertNotIn("options:", output)

    def testFancyPanel(self):
        output = self.render(Command("cmd", version="1.0.0", fancy=True).option("verbose", "v"))
        self.assertIn("[ CMD HELP ]", output)
        self.assertIn("1.0.0", output)
        self.assertIn("-v, --verbose", output)


class TestCommandAsync(IsolatedAsyncioTestCase):
    """Behavioral tests for the asynchronous adapter."""

    async def testAparseMatchesParse(self):
        cmd = Command("cmd").argument("arg1").option("option1", "o")
        self.assertEqual(await cmd.aparse("value -o"), cmd.parse("value -o"))

    async def testAparseRaisesSameFault(self):
        cmd = Command("cmd").argument("arg1").required()
        with self.assertRaises(MissingRequiredArgumentError):
            await cmd.aparse("")


if __name__ == "__main__":
    unittest.main()
