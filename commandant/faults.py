"""
Commandant faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing parse
  issue. Codes are grouped by domain so logs and searches stay predictable.
- CommandException / CommandWarning: parse-time faults carrying a message plus
  read-only options; they render themselves with rich (lower-cased, one hint).
- DefinitionError family: builder-time mistakes (bad value type, convenience
  calls with nothing to act on, duplicate declarations). These are plain
  exceptions, raised immediately, never rendered.
- trigger(): single entry point to surface a fault (raise/warn, or print in
  shell mode).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages (“unknown option '--x' at third position”).
- Short titles, one-sentence bodies, a single actionable hint.

Host configuration (all optional, read from __main__)
- __styles__: palette overrides for the rich renderers.
- __codes__: FaultCode → label remapping used by FaultCode.normalize().
- __docs__: FaultCode → documentation string returned by getdoc().
- __prog__: program name shown in fault headers.
"""
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used by the parser and the registry.

    grouping
    - routing (1110x): UNKNOWN_COMMAND
    - options (1111x): UNKNOWN_OPTION, INVALID_OPTION_VALUE, INCOMPLETE_OPTION_VALUE
    - arguments (1112x): UNKNOWN_ARGUMENT
    - finalization (1112x): MISSING_REQUIRED_OPTION, MISSING_REQUIRED_ARGUMENT
    - warnings (12xxx): DANGLING_OPTION_VALUE
    """
    # --- routing errors ---
    UNKNOWN_COMMAND             = 11101

    # --- option errors ---
    UNKNOWN_OPTION              = 11112
    INVALID_OPTION_VALUE        = 11117
    INCOMPLETE_OPTION_VALUE     = 11118

    # --- positional errors ---
    UNKNOWN_ARGUMENT            = 11121

    # --- finalization errors ---
    MISSING_REQUIRED_OPTION     = 11125
    MISSING_REQUIRED_ARGUMENT   = 11126

    # --- warnings ---
    DANGLING_OPTION_VALUE       = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        a __codes__ mapping in __main__ may relabel codes; otherwise the
        numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, kind):
    """
    shared rich layout for exceptions and warnings: header, message, hint.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    command = options.get("command")
    prog = text(getattr(main, "__prog__", getattr(command, "name", "commandant")), styler("prog-name"))

    code = options.get("code")
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(code.normalize() if code is not None else kind, styler("code")),
        " | ",
        text(str(options.get("title", kind)).title(), styler(kind + "-title")),
        " ]"
    )
    message = text(fault.message, styler(kind + "-message"))
    hint = Text.assemble(text(" → ", styler("hint-arrow")), text(options.get("hint"), styler("hint")))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")

    return Group(header, message, hint)


class CommandException(Exception):
    """
    base class of every parse fault.

    message is the one-line, lower-cased description; options carries the
    context (code, title, hint, input, index, command, rendering flags) as a
    read-only mapping.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # pinky title
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error")

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownCommandError(CommandException): ...
class UnknownOptionError(CommandException): ...
class UnknownArgumentError(CommandException): ...
class InvalidOptionValueError(CommandException): ...
class IncompleteOptionValueError(CommandException): ...
class MissingRequiredOptionError(CommandException): ...
class MissingRequiredArgumentError(CommandException): ...


class CommandWarning(ABC, Warning):
    """
    base class of non-fatal parse faults; emitted through the warnings module
    (or printed in shell mode) and never interrupts the parse.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning")

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class IncompleteOptionValueWarning(CommandWarning): ...


class DefinitionError(Exception):
    """
    base class of schema-building mistakes (raised at declaration time).
    """


class InvalidOptionTypeError(DefinitionError, ValueError): ...
class NoOptionDefinedError(DefinitionError, LookupError): ...
class NoTargetForRequiredError(DefinitionError, LookupError): ...
class DuplicateDefinitionError(DefinitionError, ValueError): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into a copy of the fault via __replace__ first.
    - outside shell mode exceptions are raised and warnings are warned; in
      shell mode both are printed through the stderr console and exceptions
      then exit with status 1.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code from __main__.__docs__.

    returns None when the host provides nothing for the code.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "UnknownCommandError",
    "UnknownOptionError",
    "UnknownArgumentError",
    "InvalidOptionValueError",
    "IncompleteOptionValueError",
    "MissingRequiredOptionError",
    "MissingRequiredArgumentError",
    "CommandWarning",
    "IncompleteOptionValueWarning",
    "DefinitionError",
    "InvalidOptionTypeError",
    "NoOptionDefinedError",
    "NoTargetForRequiredError",
    "DuplicateDefinitionError",
    "trigger",
    "getdoc",
)
