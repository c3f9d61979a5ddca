"""
Commandant command layer: declare a command schema and parse input against it.

What this module provides
- Command: an ordered collection of Argument and Option definitions with
  • a fluent builder (argument/option/add_*/define_*/accepts/required/strict),
  • the parsing state machine (parse/aparse),
  • a rich help renderer (render_help/print_help).
- ParseResult: immutable outcome of one parse (arguments, options, overflow).
- ParseMode: the parser states.

Quick start
    from commandant import Command

    copy = (
        Command("copy", "copy a file", "1.0.0")
        .argument("source", "file to copy").required()
        .argument("target", "destination")
        .option("times", "n", "how many copies").accepts("integer")
        .option("verbose", "v", "talk more")
    )

    result = copy.parse('notes.txt backup.txt -n 3 -v')
    result.arguments  # {'source': 'notes.txt', 'target': 'backup.txt'}
    result.options    # {'times': 3, 'verbose': True}

Parsing rules (one linear pass, no backtracking)
- the input is split on single spaces; empty tokens are ignored.
- "--" ends option processing: every later token goes to overflow.
- "-"-prefixed tokens are looked up among the options (first match in
  declaration order); value-bearing options take the next token as value.
- string values may be wrapped in double quotes to span several tokens.
- other tokens fill the declared arguments in order.
- unknown tokens go to overflow, or fail the parse in strict mode.
- after the scan, absent options become False and missing required
  definitions fail the parse.

Design notes
- Per-parse state lives in a throwaway _Parser, never on the Command, so one
  command serves any number of sequential parses and parsing twice yields
  equal results. Mutating a command while it is parsing is on the caller.
- Faults go through Command.trigger(), which stamps the command's rendering
  flags (shell/fancy/colorful) on them before they are raised or printed.
"""
import difflib
import functools
import operator
import re
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Argument, Option, ValueType
from .faults import *
from .utils import *


class CommandType(type):
    """
    Metaclass that gives Command read-only introspection.

    - __typename__ derived from the class name.
    - properties mirroring "_<name>" for every name in __introspectable__.
    - __repr__/__rich_repr__ restricted to __displayable__ when present.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class ParseMode(IntEnum):
    """
    States of the parsing state machine.

    - NORMAL: classify tokens as terminator, option or positional.
    - NON_OPTIONS: after "--"; everything is overflow (never left).
    - OPTION_VALUE: the next token is the pending option's value.
    - OPTION_VALUE_STRING: inside a double-quoted string value.
    """
    NORMAL = 0
    NON_OPTIONS = 1
    OPTION_VALUE = 2
    OPTION_VALUE_STRING = 3


class ParseResult:
    """
    Outcome of a successful parse.

    - arguments: read-only mapping of argument name → token.
    - options: read-only mapping of option name → True/False or coerced value.
    - overflow: tuple of tokens no definition claimed, in input order.

    Results compare equal when all three parts are equal.
    """
    __slots__ = ("_arguments", "_options", "_overflow")

    def __init__(self, arguments=(), options=(), overflow=()):
        self._arguments = MappingProxyType(dict(arguments))
        self._options = MappingProxyType(dict(options))
        self._overflow = tuple(overflow)

    @property
    def arguments(self):
        return self._arguments

    @property
    def options(self):
        return self._options

    @property
    def overflow(self):
        return self._overflow

    def __eq__(self, other):
        if not isinstance(other, ParseResult):
            return NotImplemented
        return (
            self._arguments == other._arguments and
            self._options == other._options and
            self._overflow == other._overflow
        )

    __hash__ = None

    def __rich_repr__(self):
        yield "arguments", dict(self._arguments)
        yield "options", dict(self._options)
        yield "overflow", list(self._overflow)

    def __repr__(self):
        return "parse-result(%s)" % ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, ...)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


_ARTICLES = {
    ValueType.STRING: "a string",
    ValueType.INTEGER: "an integer",
    ValueType.FLOAT: "a float",
}


class _Parser:
    """
    One-shot state machine over a single input string.

    Reads the command's definitions, writes only to its own fields; the
    instance is discarded once run() returns or a fault escapes.
    """

    def __init__(self, command):
        self.command = command
        self.mode = ParseMode.NORMAL
        self.pending = None  # option waiting for its value
        self.start = 0  # position of the pending option token
        self.buffer = []  # pieces of a quoted string value
        self.index = 0  # 1-based position of the current token
        self.cardinal = 0  # next free positional slot
        self.positionals = {}
        self.switches = {}
        self.overflow = []

    def run(self, input):
        for token in input.split(" "):
            if not token:
                continue
            self.index += 1

            match self.mode:
                case ParseMode.NON_OPTIONS:
                    self.overflow.append(token)
                case ParseMode.OPTION_VALUE:
                    self._parse_value(token)
                case ParseMode.OPTION_VALUE_STRING:
                    self._parse_string(token)
                case ParseMode.NORMAL:
                    self._parse_normal(token)

        self._finalize()
        return ParseResult(self.positionals, self.switches, self.overflow)

    def _assign(self, value):
        self.switches[self.pending.name] = value
        self.pending = None
        self.mode = ParseMode.NORMAL

    def _parse_value(self, token):
        """
        consume the value token of the pending option.
        """
        option = self.pending

        if option.accepts is ValueType.STRING and token.startswith('"'):
            if len(token) > 1 and token.endswith('"'):
                self._assign(token[1:-1])
            else:
                self.buffer = [token[1:]]
                self.mode = ParseMode.OPTION_VALUE_STRING
        elif option.valid_value(token):
            self._assign(option.parse_value(token))
        else:
            self.command.trigger(InvalidOptionValueError(
                "invalid value %r for option %r at %s position" % (token, option.name, _ordinal(self.index)),
                title="invalid option value",
                code=FaultCode.INVALID_OPTION_VALUE,
                input=token,
                index=self.index,
                argument=option,
                hint="option %r expects %s value" % ("--" + option.name, _ARTICLES[option.accepts]),
                docs=getdoc(FaultCode.INVALID_OPTION_VALUE),
            ))

    def _parse_string(self, token):
        """
        accumulate a quoted string value until a token closes the quote.
        """
        if token.endswith('"'):
            self.buffer.append(token[:-1])
            self._assign(" ".join(self.buffer))
        else:
            self.buffer.append(token)

    def _parse_normal(self, token):
        if token == "--":
            self.mode = ParseMode.NON_OPTIONS
        elif token.startswith("-"):
            self._parse_switch(token)
        elif self.cardinal < len(self.command._arguments):
            self.positionals[self.command._arguments[self.cardinal].name] = token
            self.cardinal += 1
        elif self.command.is_strict:
            count = len(self.command._arguments)
            self.command.trigger(UnknownArgumentError(
                "unexpected argument %r at %s position" % (token, _ordinal(self.index)),
                title="unexpected argument",
                code=FaultCode.UNKNOWN_ARGUMENT,
                input=token,
                index=self.index,
                hint="%r takes %d %s; remove the extra value or pass it after '--'" % (
                    self.command.name, count, "argument" if count == 1 else pluralize("argument")
                ),
                docs=getdoc(FaultCode.UNKNOWN_ARGUMENT),
            ))
        else:
            self.overflow.append(token)

    def _parse_switch(self, token):
        """
        resolve an option token; first match in declaration order wins.
        """
        for option in self.command._options:
            if option.match(token):
                break
        else:
            if not self.command.is_strict:
                return self.overflow.append(token)

            names = [name for option in self.command._options for name in option.names]
            suggestions = difflib.get_close_matches(token, names, 5)
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "remove it or pass it after '--' to keep it as overflow"
            return self.command.trigger(UnknownOptionError(
                "unknown option %r at %s position" % (token, _ordinal(self.index)),
                title="unknown option",
                code=FaultCode.UNKNOWN_OPTION,
                input=token,
                index=self.index,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_OPTION),
            ))

        if option.accepts is None:
            self.switches[option.name] = True
        else:
            self.pending = option
            self.start = self.index
            self.mode = ParseMode.OPTION_VALUE

    def _dangle(self):
        """
        input ended while an option still waited for (the rest of) its value.
        """
        option = self.pending
        quoted = self.mode is ParseMode.OPTION_VALUE_STRING
        message = "option %r at %s position is missing its value" % (option.name, _ordinal(self.start))
        if quoted:
            hint = "close the quoted value of %r with '\"'" % ("--" + option.name)
        else:
            hint = "add %s value after %r" % (_ARTICLES[option.accepts], "--" + option.name)

        if self.command.is_strict:
            return self.command.trigger(IncompleteOptionValueError(
                message,
                title="incomplete option value",
                code=FaultCode.INCOMPLETE_OPTION_VALUE,
                input=option.name,
                index=self.start,
                argument=option,
                hint=hint,
                docs=getdoc(FaultCode.INCOMPLETE_OPTION_VALUE),
            ))

        # the partial value is dropped; finalization then sees the option as absent
        self.command.trigger(IncompleteOptionValueWarning(
            message,
            title="dangling option value",
            code=FaultCode.DANGLING_OPTION_VALUE,
            input=option.name,
            index=self.start,
            argument=option,
            hint=hint,
            docs=getdoc(FaultCode.DANGLING_OPTION_VALUE),
        ))
        self.buffer = []
        self.pending = None
        self.mode = ParseMode.NORMAL

    def _finalize(self):
        """
        settle absent options and check required definitions by name.
        """
        if self.mode in (ParseMode.OPTION_VALUE, ParseMode.OPTION_VALUE_STRING):
            self._dangle()

        for option in self.command._options:
            if option.name in self.switches:
                continue
            if option.required:
                if option.accepts is None:
                    hint = "add %r" % option.names[-1]
                else:
                    hint = "add %r followed by %s value" % (option.names[-1], _ARTICLES[option.accepts])
                self.command.trigger(MissingRequiredOptionError(
                    "missing required option %r" % option.name,
                    title="missing required option",
                    code=FaultCode.MISSING_REQUIRED_OPTION,
                    input=option.name,
                    argument=option,
                    hint=hint,
                    docs=getdoc(FaultCode.MISSING_REQUIRED_OPTION),
                ))
            self.switches[option.name] = False

        for position, argument in enumerate(self.command._arguments, 1):
            if argument.name in self.positionals or not argument.required:
                continue
            self.command.trigger(MissingRequiredArgumentError(
                "missing required argument %r" % argument.name,
                title="missing required argument",
                code=FaultCode.MISSING_REQUIRED_ARGUMENT,
                input=argument.name,
                argument=argument,
                hint="%r is the %s argument of %r" % (argument.name, _ordinal(position), self.command.name),
                docs=getdoc(FaultCode.MISSING_REQUIRED_ARGUMENT),
            ))


class Command(metaclass=CommandType):
    """
    Command schema: declared arguments and options plus the parser.

    Lifecycle
    - Build once (single owner, single writer) through the fluent builder.
    - Parse as often as needed; parsing never changes the command.

    Builder conventions
    - argument()/option()/add_argument()/add_option() return the command and
      move the "last added" pointer used by accepts()/required().
    - define_argument()/define_option() return the new definition instead, so
      it can be configured directly without relying on that pointer.
    - Duplicate names (and option aliases) are rejected at declaration time.

    Rendering flags
    - shell: print faults on stderr and exit(1) instead of raising them.
    - fancy: draw help and faults inside rich panels.
    - colorful: apply the palette (overridable through __main__.__styles__).
    """

    __introspectable__ = (
        "name",
        "descr",
        "version",
        "arguments",
        "options",
        "shell",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "name",
        "descr",
        "version",
        "is_strict",
        "arguments",
        "options",
    )

    def __init__(self, name, descr=Unset, version=Unset, *, strict=False, shell=False, fancy=False, colorful=False):
        self._arguments = []
        self._options = []
        self._last = Unset
        self._strict = bool(strict)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self.set_name(name)
        self.set_descr(descr)
        self.set_version(version)

    @property
    def is_strict(self):
        """
        Whether unknown tokens fail the parse instead of becoming overflow.
        """
        return self._strict

    def set_name(self, name, /):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} 'name' must be a string")
        elif not name or re.search(r"\s", name):
            raise ValueError(f"{type(self).__typename__} 'name' must be a non-empty string without whitespace")
        self._name = name
        return self

    def set_descr(self, descr, /):
        if not isinstance(descr, str | Text | Unset | None):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        self._descr = coalesce(descr)
        return self

    def set_version(self, version, /):
        if not isinstance(version, str | Unset | None):
            raise TypeError(f"{type(self).__typename__} 'version' must be a string")
        self._version = coalesce(version)
        return self

    def strict(self):
        """
        Turn strict mode on: unknown options and extra positionals fail the
        parse. There is no way back.
        """
        self._strict = True
        return self

    def add_argument(self, argument, /):
        """
        Append a caller-built Argument; the command takes ownership of it.
        """
        if not isinstance(argument, Argument):
            raise TypeError("add_argument() argument must be an argument definition")
        for declared in self._arguments:
            if declared.name == argument.name:
                raise DuplicateDefinitionError(f"argument {argument.name!r} is already declared on {self._name!r}")
        self._arguments.append(argument)
        self._last = argument
        return self

    def add_option(self, option, /):
        """
        Append a caller-built Option; the command takes ownership of it.
        """
        if not isinstance(option, Option):
            raise TypeError("add_option() argument must be an option definition")
        for declared in self._options:
            if clashes := set(declared.names) & set(option.names):
                raise DuplicateDefinitionError(
                    f"option {option.name!r} clashes with {declared.name!r} on %s" % ", ".join(map(repr, sorted(clashes)))
                )
        self._options.append(option)
        self._last = option
        return self

    def define_argument(self, name, descr=Unset, required=False):
        """
        Declare an argument and return its definition (the handle).
        """
        self.add_argument(argument := Argument(name, descr, required))
        return argument

    def define_option(self, name, shorthand=Unset, descr=Unset, accepts=Unset, required=False):
        """
        Declare an option and return its definition (the handle).
        """
        self.add_option(option := Option(name, shorthand, descr, accepts, required))
        return option

    def argument(self, name, descr=Unset, required=False):
        self.define_argument(name, descr, required)
        return self

    def option(self, name, shorthand=Unset, descr=Unset, accepts=Unset, required=False):
        self.define_option(name, shorthand, descr, accepts, required)
        return self

    def accepts(self, type, /):
        """
        Set the value type of the most recently added option.
        """
        try:
            option = self._options[-1]
        except IndexError:
            raise NoOptionDefinedError(f"{self._name!r} has no option to set an accepted value type on") from None
        option.set_accepts(type)
        return self

    def required(self):
        """
        Mark the most recently added argument or option as required.
        """
        if self._last is Unset:
            raise NoTargetForRequiredError(f"{self._name!r} has no argument or option to mark as required")
        self._last.set_required(True)
        return self

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this command's rendering flags attached.
        """
        trigger(fault, **options, command=self, shell=self._shell, fancy=self._fancy, colorful=self._colorful)

    def parse(self, input, /):
        """
        Parse a raw command-line string into a ParseResult.

        Raises the first fault met (UnknownOptionError, UnknownArgumentError,
        InvalidOptionValueError, IncompleteOptionValueError,
        MissingRequiredOptionError, MissingRequiredArgumentError); nothing
        partial is returned.
        """
        if not isinstance(input, str):
            raise TypeError("parse() argument must be a string")
        return _Parser(self).run(input)

    async def aparse(self, input, /):
        """
        Asynchronous form of parse(); completes without suspending.
        """
        return self.parse(input)

    def render_help(self):
        """
        Build the help screen as a rich renderable.

        Palette keys
        - usage-label, program-name, metavar, option-name, flag-name, value-type
        - description-section, group-label, argument-description
        - panel-title, panel-subtitle
        """
        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "metavar": "bold #FFD600",
            "option-name": "bold #00E6FF",
            "flag-name": "bold #22C55E",
            "value-type": "#FFD600",
            "description-section": "italic #A3A3A3",
            "group-label": "bold #FFFFFF",
            "argument-description": "#9CA3AF",
            "panel-title": "bold #FF4D94",
            "panel-subtitle": "#9CA3AF",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self._colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not self._colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        usage = Text()
        usage.append("usage", styler("usage-label")).append(": ")
        usage.append(text(self._name, styler("program-name")))
        for argument in self._arguments:
            usage.append(" ").append(text(("<%s>" if argument.required else "[%s]") % argument.name, styler("metavar")))
        if self._options:
            usage.append(" ").append(text("[OPTIONS]", styler("option-name")))

        renders = [usage]

        if self._descr:
            renders.append(Text("\n").append(text(self._descr, styler("description-section"))))

        groups = defaultdict(list)
        for definition in self._arguments + self._options:
            groups[definition.group].append(definition)

        for group, definitions in groups.items():
            table = Table.grid(padding=(0, 2))
            table.add_column(no_wrap=True)
            table.add_column()
            for definition in definitions:
                if isinstance(definition, Argument):
                    label = text(definition.name, styler("metavar"))
                else:
                    style = styler("flag-name" if definition.accepts is None else "option-name")
                    label = Text(", ").join(text(name, style) for name in definition.names)
                    if definition.accepts is not None:
                        label.append(" ").append(text("<%s>" % definition.accepts, styler("value-type")))
                table.add_row(Text("  ").append(label), text(definition.descr, styler("argument-description")))
            renders.append(Text("\n").append(text(group, styler("group-label"))).append(":"))
            renders.append(table)

        renderable = Group(*renders)

        if self._fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{self._name} HELP".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
                subtitle=text(self._version, styler("panel-subtitle")) if self._version else None,
            )

        return renderable

    def print_help(self, console=Unset, /):
        """
        Print the help screen (stdout console unless one is given).
        """
        coalesce(console, Console()).print(self.render_help())


__all__ = (
    "Command",
    "ParseMode",
    "ParseResult",
)

# The metaclass is an implementation detail; keep it out of star-imports and docs.
del CommandType
