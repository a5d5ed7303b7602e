"""
Subcommander faults (errors and error policies) and output sinks.

Scope
- console: the process-wide rich Console (stderr) used when no sink is configured.
- as_console(): normalize a configured sink (Console or text stream) into a Console.
- CommandException: base type for everything raised by the dispatcher.
- UsageError and its subclasses: malformed invocations (bad switches, wrong
  argument counts, unknown or missing sub commands). They carry the invocation
  frame that detected them and render as "<path>: <cause>".
- HelpError: a help request naming a command path that does not exist.
- exit_on_error / continue_on_error: built-in policies for Command(on_error=...).

Policy contract
- A policy is called as policy(invocation, args, extra, error) and returns the
  error to propagate, a replacement error, or None to report success.
- Usage errors are printed where they are detected; policies do not print them
  a second time (see UsageError.reported).
"""
import sys

from rich.console import Console

console = Console(stderr=True)


def as_console(sink, /):
    """
    Return 'sink' as a rich Console.

    Consoles are returned unchanged. Text streams are wrapped in a Console that
    writes plain text unless the stream is an interactive terminal.
    """
    if isinstance(sink, Console):
        return sink
    if not callable(getattr(sink, "write", None)):
        raise TypeError("console must be a rich Console or a writable text stream")
    isatty = getattr(sink, "isatty", None)
    return Console(
        file=sink,
        force_terminal=bool(isatty and isatty()),
        soft_wrap=True,
        markup=False,
        highlight=False,
        emoji=False,
    )


class CommandException(Exception):
    """Base class for every failure raised by subcommander."""


class OptionError(CommandException):
    """Raised by an option set when tokens cannot be parsed."""


class UsageError(CommandException):
    """
    A malformed invocation, detected while resolving 'invocation'.

    Attributes
    - invocation: the frame that detected the problem.
    - command: the command of that frame.
    - path: space-joined command names from the root to the failing command.
    - cause: underlying message or exception (None for plain "incorrect usage").
    - reported: True once the error has been printed.
    """

    def __init__(self, invocation, cause=None, /):
        super().__init__(invocation, cause)
        self.invocation = invocation
        self.cause = cause
        self.reported = False

    @property
    def command(self):
        return self.invocation.command

    @property
    def path(self):
        return self.invocation.path

    def __str__(self):
        if self.cause is None:
            return "%s: incorrect usage" % self.path
        return "%s: %s" % (self.path, self.cause)


class InvalidOptionError(UsageError):
    """Switch parsing failed; 'captured' holds whatever the parser wrote meanwhile."""

    def __init__(self, invocation, error, captured="", /):
        super().__init__(invocation, error)
        self.captured = captured


class UnexpectedArgumentsError(UsageError):
    def __init__(self, invocation, /):
        super().__init__(invocation, "takes no arguments")


class MissingArgumentsError(UsageError):
    def __init__(self, invocation, count, /):
        super().__init__(invocation, "requires at least %d arguments" % count)
        self.count = count


class ExcessArgumentsError(UsageError):
    def __init__(self, invocation, count, /):
        super().__init__(invocation, "takes no more than %d arguments" % count)
        self.count = count


class UnknownCommandError(UsageError):
    def __init__(self, invocation, token, /):
        super().__init__(invocation, "%s: unknown command" % token)
        self.token = token


class MissingCommandError(UsageError):
    def __init__(self, invocation, names, /):
        super().__init__(invocation, "sub command required {%s}" % ", ".join(names))
        self.names = tuple(names)


class HelpError(CommandException):
    """Raised by the help command for a path that cannot be resolved."""


def _report(invocation, error):
    if not getattr(error, "reported", False):
        invocation.print("%s\n" % error)


def exit_on_error(invocation, args, extra, error, /):
    """
    Print the error through the invocation's console and exit with status 1.
    """
    _report(invocation, error)
    sys.exit(1)


def continue_on_error(invocation, args, extra, error, /):
    """
    Print the error through the invocation's console and report success.
    """
    _report(invocation, error)
    return None


__all__ = (
    # Exceptions
    "CommandException",
    "OptionError",
    "UsageError",
    "InvalidOptionError",
    "UnexpectedArgumentsError",
    "MissingArgumentsError",
    "ExcessArgumentsError",
    "UnknownCommandError",
    "MissingCommandError",
    "HelpError",

    # Policies
    "exit_on_error",
    "continue_on_error",
)
