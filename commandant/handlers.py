"""
Commandant command registry: route a full input line to the right command.

    from commandant import Command, CommandHandler

    handler = CommandHandler().add_commands(
        Command("greet").argument("who").required(),
        Command("quit"),
    )

    outcome = handler.parse("greet world")
    outcome.command.name         # 'greet'
    outcome.results.arguments    # {'who': 'world'}
    handler.parse("dance")       # None (unknown command)

The first space-delimited token names the command; the rest of the line is
handed to that command's parser unchanged (re-joined with single spaces).
In strict mode an unknown command raises UnknownCommandError instead of
returning None.
"""
import difflib

from .commands import Command
from .faults import *
from .utils import *


class CommandParseResult:
    """
    Pair of the command that was selected and the ParseResult it produced.
    """
    __slots__ = ("command", "results")

    def __init__(self, command, results):
        self.command = command
        self.results = results

    def __rich_repr__(self):
        yield "command", self.command.name
        yield "results", self.results

    def __repr__(self):
        return "command-parse-result(command=%r, results=%r)" % (self.command.name, self.results)


class CommandHandler:
    """
    Registry of commands keyed by name, plus the dispatching parser.
    """

    commands = mirror("commands")

    def __init__(self, *, strict=False, shell=False, fancy=False, colorful=False):
        self._commands = {}
        self._strict = bool(strict)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

    def add_command(self, command, /):
        """
        Register a command under its name.

        Registering the same command twice is a no-op; a different command
        with a taken name raises DuplicateDefinitionError.
        """
        if not isinstance(command, Command):
            raise TypeError("add_command() argument must be a command")
        if self._commands.setdefault(command.name, command) is not command:
            raise DuplicateDefinitionError(f"command name {command.name!r} is already in use")
        return self

    def add_commands(self, *commands):
        for command in commands:
            self.add_command(command)
        return self

    def parse(self, input, /):
        """
        Select a command by the first token and parse the rest with it.

        Returns a CommandParseResult, or None for an unknown command outside
        strict mode. Faults raised by the selected command propagate as-is.
        """
        if not isinstance(input, str):
            raise TypeError("parse() argument must be a string")

        name, *rest = input.split(" ")
        try:
            command = self._commands[name]
        except KeyError:
            if not self._strict:
                return None
            suggestions = difflib.get_close_matches(name, self._commands.keys(), 5)
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "available commands: %s" % (", ".join(map(repr, self._commands)) or "none")
            return trigger(
                UnknownCommandError(
                    "unknown command %r at first position" % name,
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    input=name,
                    index=1,
                    suggestions=suggestions,
                    hint=hint,
                    docs=getdoc(FaultCode.UNKNOWN_COMMAND),
                ),
                shell=self._shell,
                fancy=self._fancy,
                colorful=self._colorful,
            )

        return CommandParseResult(command, command.parse(" ".join(rest)))

    async def aparse(self, input, /):
        """
        Asynchronous form of parse(); completes without suspending.
        """
        return self.parse(input)


__all__ = (
    "CommandHandler",
    "CommandParseResult",
)
