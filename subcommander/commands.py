"""
Subcommander command layer: build, compose, and run command trees.

What this module provides
- Command: a named node with help text, argument-count constraints, an
  optional option set, an optional action, and child commands.
- Invocation: one frame of a resolution pass. Frames are created top-down as
  the dispatcher descends and link each visited command to its caller, so a
  command can be shared by several parents (or several runs) without holding
  a parent reference of its own.
- render_help / HELP: the help renderer and the ready-made "help" command.
- Factories and helpers:
  • command(...): create a Command from a function (or a decorator doing so).
  • invoke(cmd, prompt): run a command with sys.argv, a shell-like string, or tokens.

Resolution, per frame
1. Parse switches with the command's option set (output captured in a buffer).
2. Validate the positional count: NoArgs, then min_args, then max_args.
3. Dispatch to a child when the command has children and tokens remain;
   otherwise run the action; otherwise do nothing.
4. On failure, usage errors detected by this frame are printed followed by
   help, then the nearest on_error policy settles the error (once per error).

Quick start
    from subcommander import Command, HELP, NoArgs, Options, Option, exit_on_error

    class Settings(Options):
        name = Option("--name", metavar="NAME", descr="who to greet")

    def greet(context, invocation, args, *extra):
        invocation.print("hello %s\\n" % invocation.lookup("", "name", "world"))

    tool = Command("tool", options=Settings(), on_error=exit_on_error, subcommands=[
        Command("greet", help="say hello", max_args=NoArgs, action=greet),
        HELP,
    ])
    tool.run(None, ["--name", "you", "greet"])
"""
import contextlib
import copy
import inspect
import io
import logging
import os.path
import shlex
import sys
import textwrap
from collections import defaultdict
from collections.abc import Iterable

from rich.text import Text

from .arguments import Options, usage_line
from .faults import *
from .faults import as_console, console as default_console
from .utils import *

NoArgs = -1
"""max_args value forbidding any positional argument."""

logger = logging.getLogger(__name__)


class Invocation:
    """
    One command visited during one resolution pass.

    Frames form a chain from the command the caller ran down to the command
    currently executing. Output routing, error policy, and option lookup all
    walk this chain upward.

    Attributes
    - command: the Command this frame executes.
    - parent: the calling frame, or None for the command the caller ran.
    - options: the option values parsed for this frame (None when the command
      has no option set).

    Actions receive their frame as the second argument and typically use
    print(), lookup(), and console.
    """

    __slots__ = ("command", "parent", "options", "_redirect", "_default", "_settled")

    def __init__(self, command, parent=None, /, *, console=Unset):
        if not isinstance(command, Command):
            raise TypeError("Invocation() first argument must be a command")
        if parent is not None and not isinstance(parent, Invocation):
            raise TypeError("Invocation() second argument must be an invocation")
        self.command = command
        self.parent = parent
        self.options = None
        self._redirect = None
        if parent is None:
            self._default = coalesce(console)
            self._settled = []
        else:
            self._default = parent._default if console is Unset else console
            self._settled = parent._settled

    @property
    def chain(self):
        """Frames from the outermost caller down to this one."""
        frames = []
        frame = self
        while frame is not None:
            frames.append(frame)
            frame = frame.parent
        return frames[::-1]

    @property
    def root(self):
        frame = self
        while frame.parent is not None:
            frame = frame.parent
        return frame

    @property
    def path(self):
        """Space-joined command names from the root to this frame."""
        return " ".join(frame.command.name for frame in self.chain)

    @property
    def console(self):
        """
        The Console this frame writes to.

        Resolution order: an active redirect, the nearest command (this one
        first) with a console configured, the sink passed to run(), and
        finally the process-wide stderr console.
        """
        frame = self
        while frame is not None:
            if frame._redirect is not None:
                return frame._redirect
            if frame.command.console is not None:
                return as_console(frame.command.console)
            frame = frame.parent
        if (sink := self.root._default) is not None:
            return as_console(sink)
        return default_console

    @property
    def policy(self):
        """The nearest on_error policy up the chain, or None."""
        frame = self
        while frame is not None:
            if frame.command.on_error is not None:
                return frame.command.on_error
            frame = frame.parent
        return None

    def print(self, text, /):
        """Write 'text' (str or rich Text) as-is, without a trailing newline."""
        self.console.print(text, end="", markup=False, highlight=False, emoji=False, soft_wrap=True)

    @contextlib.contextmanager
    def redirect(self, sink, /):
        """Route this frame's output to 'sink' for the duration of the block."""
        previous = self._redirect
        self._redirect = as_console(sink)
        try:
            yield self._redirect
        finally:
            self._redirect = previous

    def lookup(self, owner, name, default=None, /):
        """
        Return the value of the option 'name' as seen from this frame.

        When 'owner' is empty every frame is searched, nearest first; otherwise
        only frames running a command called 'owner'. The search goes on up
        the chain until a frame declares the option, and 'default' is returned
        when none does.

            foo --name VALUE1 bar --name VALUE2

            bar_invocation.lookup("", "name")    -> "VALUE2"
            bar_invocation.lookup("foo", "name") -> "VALUE1"
        """
        frame = self
        while frame is not None:
            if not owner or owner == frame.command.name:
                if frame.options is not None and (value := frame.options.lookup(name, Unset)) is not Unset:
                    return value
            frame = frame.parent
        return default

    def run_subcommands(self, context, args, /, *extra):
        """
        Run this frame's command again within the same chain, always
        dispatching 'args' to a child and ignoring the command's action.
        """
        frame = copy.copy(self)
        frame.options = None
        frame._redirect = None
        self.command._execute(context, frame, args, extra, subcommands=True)

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.path)


class Command:
    """
    A node of the command tree.

    Parameters
    - name: str. The command name (defaults to the program name for a root).
      Children must have non-empty, unique names.
    - help: str. One-line summary shown in the parent's sub command listing.
    - description: str. Long form shown by help (surrounding blank lines ignored).
    - parameters: str. Positional hint for usage lines; generated from
      min_args/max_args when empty ("arg0 arg1 ...").
    - min_args / max_args: int. Bounds on positional tokens left after the
      switches. max_args 0 means unbounded; NoArgs forbids positionals.
    - defaults: Options. Prototype copied before every parse (values reset each run).
    - options: Options. Parsed in place (values persist between runs).
    - action: Callable(context, invocation, args, *extra). Executed for this command.
    - subcommands: Iterable[Command]. Children.
    - console: rich Console or text stream for this command and its descendants.
    - on_error: Callable(invocation, args, extra, error). Error policy for this
      command and its descendants.

    Notes
    - defaults and options are mutually exclusive. After a run with defaults,
      options holds the values that run parsed.
    - Dispatch priority: a child when children exist and tokens remain,
      otherwise the action, otherwise nothing.
    """

    def __init__(
            self,
            name=Unset,
            /,
            *,
            help="",
            description="",
            parameters="",
            min_args=0,
            max_args=0,
            defaults=None,
            options=None,
            action=None,
            subcommands=(),
            console=None,
            on_error=None,
    ):
        name = coalesce(name, os.path.basename(sys.argv[0]))
        if not isinstance(name, str):
            raise TypeError("Command 'name' must be a string")
        for field, value in (("help", help), ("description", description), ("parameters", parameters)):
            if not isinstance(value, str):
                raise TypeError(f"Command '{field}' must be a string")
        for field, value in (("min_args", min_args), ("max_args", max_args)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"Command '{field}' must be an integer")
        if min_args < 0:
            raise ValueError("Command 'min_args' cannot be negative")
        if max_args < NoArgs:
            raise ValueError("Command 'max_args' must be NoArgs, zero, or positive")
        if defaults is not None and options is not None:
            raise TypeError("Command cannot have both 'defaults' and 'options'")
        for field, value in (("defaults", defaults), ("options", options)):
            if value is not None and not isinstance(value, Options):
                raise TypeError(f"Command '{field}' must be an Options instance")
        for field, value in (("action", action), ("on_error", on_error)):
            if value is not None and not callable(value):
                raise TypeError(f"Command '{field}' must be callable")

        self.name = name
        self.help = help
        self.description = description
        self.parameters = parameters
        self.min_args = min_args
        self.max_args = max_args
        self.defaults = defaults
        self.options = options
        self.action = action
        self.console = console
        self.on_error = on_error
        self.subcommands = []
        for child in subcommands:
            self.attach(child)

    def attach(self, child, /):
        """Add 'child' to this command's sub commands and return it."""
        if not isinstance(child, Command):
            raise TypeError("sub commands must be commands")
        if not child.name:
            raise ValueError("sub commands must have a name")
        if self.find(child.name) is not None:
            raise ValueError(f"{self.name} already has a sub command named {child.name!r}")
        self.subcommands.append(child)
        return child

    def find(self, name, /):
        for child in self.subcommands:
            if child.name == name:
                return child
        return None

    @property
    def subcommand_names(self):
        return sorted(child.name for child in self.subcommands)

    @property
    def parameters_hint(self):
        """The positional part of the usage line."""
        if self.parameters:
            return self.parameters
        if self.max_args == NoArgs:
            return ""
        parts = ["arg%d" % index for index in range(self.min_args)]
        if self.max_args == 0 or self.max_args < self.min_args:
            parts.append("...")
        return " ".join(parts)

    def _flags(self):
        return self.options if self.options is not None else self.defaults

    def usage_line(self, name=None, parameters=None):
        return usage_line(
            self.name if name is None else name,
            self.parameters_hint if parameters is None else parameters,
            self._flags(),
        )

    def lookup(self, owner, name, default=None, /):
        """
        Return this command's last parsed value for the option 'name'.

        Outside of a run there is no caller chain; use Invocation.lookup from an
        action to search enclosing commands too.
        """
        if (not owner or owner == self.name) and (flags := self._flags()) is not None:
            return flags.lookup(name, default)
        return default

    def print_usage(self, file=None, /):
        """
        Write a short usage summary to 'file' (defaults to stderr), listing
        the known sub commands with their one-line help.
        """
        console = as_console(file) if file is not None else default_console
        flags = self._flags()
        lines = ["Usage: %s" % self.usage_line(parameters="subcommand ..." if self.subcommands else None)]
        if flags is not None:
            lines.extend("    " + line for line in flags.help())
        if self.subcommands:
            lines.extend(("Known sub commands:", ""))
            width = max(len(child.name) for child in self.subcommands)
            for child in self.subcommands:
                lines.append(("   %s  %s" % (child.name.ljust(width), child.help)).rstrip())
        console.print("\n".join(lines) + "\n", end="", markup=False, highlight=False, emoji=False, soft_wrap=True)

    def command(self, source=Unset, /, **kwargs):
        """
        Create a sub command of this command from a function.

        Same modes as the module-level command(): direct call or decorator.
        """
        return command(source, parent=self, **kwargs)

    def run(self, context, args, /, *extra, console=Unset):
        """
        Resolve and run 'args' (program name excluded) against this command.

        Parameters
        - context: passed unchanged to every action (e.g. a cancellation token).
        - args: Iterable[str]. Tokens to resolve.
        - *extra: passed unchanged to every action after the positionals.
        - console: default sink for commands without one (rich Console or text stream).

        Raises
        - UsageError: malformed invocation, when no policy settles it.
        - Any exception raised by an action, when no policy settles it.
        """
        self._execute(context, Invocation(self, console=console), args, extra)

    def run_subcommands(self, context, args, /, *extra, console=Unset):
        """
        Like run(), but always dispatch to a child, ignoring this command's action.
        """
        self._execute(context, Invocation(self, console=console), args, extra, subcommands=True)

    def _execute(self, context, invocation, args, extra, *, subcommands=False):
        if isinstance(args, str):
            raise TypeError("args must be an iterable of strings, not a string")
        args = list(args)
        logger.debug("resolving %s with %r", invocation.path, args)
        try:
            remaining = self._parse(invocation, args)
            if subcommands or self.subcommands and remaining:
                self._dispatch(context, invocation, remaining, extra)
            elif self.action is not None:
                logger.debug("running action of %s", invocation.path)
                self.action(context, invocation, remaining, *extra)
        except Exception as error:
            if isinstance(error, UsageError) and error.invocation is invocation and not error.reported:
                invocation.print("%s\n" % error)
                error.reported = True
                _print_help(invocation, self, invocation.path)

            if (policy := invocation.policy) is None or any(error is settled for settled in invocation._settled):
                raise
            invocation._settled.append(error)
            logger.debug("settling %r raised under %s", error, invocation.path)
            if (outcome := policy(invocation, args, extra, error)) is None:
                return
            if outcome is error:
                raise
            invocation._settled.append(outcome)
            raise outcome from error

    def _parse(self, invocation, args):
        if self.defaults is not None:
            invocation.options = self.options = copy.copy(self.defaults)
        elif self.options is not None:
            invocation.options = self.options

        if invocation.options is not None:
            with invocation.redirect(io.StringIO()) as buffer:
                try:
                    args = invocation.options.parse(args, buffer.file)
                except OptionError as error:
                    raise InvalidOptionError(invocation, error, buffer.file.getvalue()) from error

        if self.max_args == NoArgs and args:
            raise UnexpectedArgumentsError(invocation)
        if len(args) < self.min_args:
            raise MissingArgumentsError(invocation, self.min_args)
        if self.max_args > 0 and len(args) > self.max_args:
            raise ExcessArgumentsError(invocation, self.max_args)
        return args

    def _dispatch(self, context, invocation, args, extra):
        if not args:
            raise MissingCommandError(invocation, self.subcommand_names)
        token, *args = args
        if (child := self.find(token)) is None:
            raise UnknownCommandError(invocation, token)
        logger.debug("dispatching %s to %s", invocation.path, child.name)
        child._execute(context, Invocation(child, invocation), args, extra)

    def __rich_repr__(self):
        yield self.name
        yield "help", self.help, ""
        yield "parameters", self.parameters, ""
        yield "min_args", self.min_args, 0
        yield "max_args", self.max_args, 0
        yield "subcommands", self.subcommand_names, []

    def __repr__(self):
        fields = []
        for item in self.__rich_repr__():
            if not isinstance(item, tuple):
                fields.append(repr(item))
                continue
            key, value, default = item
            if value != default:
                fields.append("%s=%r" % (key, value))
        return "%s(%s)" % (type(self).__name__, ", ".join(fields))


def _print_help(invocation, command, path):
    """
    Render the help of 'command' (shown as 'path') through 'invocation'.

    Palette keys
    - usage-label, program-name, usage-section, description-section
    - option-help, children-title, children, children-description

    Customization
    - Define a mapping named __styles__ in __main__ to override any palette entry.
    """
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray
        "option-help": "#D1D5DB",
        "children-title": "bold #FFFFFF",
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",
    } | getattr(__import__("__main__"), "__styles__", {}))

    flags = command._flags()
    lines = flags.help() if flags is not None else []
    parameters = "subcommand [...]" if command.subcommands else None

    text = Text()
    text.append("Usage: ", styles["usage-label"])
    text.append(path, styles["program-name"])
    if tail := command.usage_line("", parameters):
        text.append(" " + tail, styles["usage-section"])
    text.append("\n")
    if description := command.description.strip():
        text.append(textwrap.indent(description, "    ") + "\n", styles["description-section"])
        if lines:
            text.append("\n")
    for line in lines:
        text.append("    " + line + "\n", styles["option-help"])

    if command.subcommands:
        text.append("\nAvailable sub commands:", styles["children-title"])
        for child in sorted(command.subcommands, key=lambda child: child.name):
            parameters = child.parameters_hint
            if not parameters and child.subcommands:
                parameters = "subcommand [...]"
            text.append("\n  " + child.usage_line(parameters=parameters) + "\n", styles["children"])
            if summary := child.description.strip() or child.help:
                text.append(textwrap.indent(summary, "    ") + "\n", styles["children-description"])

    invocation.print(text)


def render_help(context, invocation, args=(), /, *extra):
    """
    Action printing help for a command.

    Starts from the invocation's command, or from its caller when that command
    has no sub commands (the usual "help" leaf), then descends 'args' as sub
    command names.

    Raises
    - HelpError: when a name is requested below a command without sub
      commands, or does not name a sub command.
    """
    frame = invocation
    if not frame.command.subcommands and frame.parent is not None:
        frame = frame.parent
    command, path = frame.command, frame.path
    for name in args:
        if not command.subcommands:
            raise HelpError("%s has no subcommands" % path)
        if (child := command.find(name)) is None:
            raise HelpError("%s has no subcommand %s" % (path, name))
        command, path = child, path + " " + name
    _print_help(invocation, command, path)


HELP = Command("help", help="display help", action=render_help)
"""Ready-made help command; attach it as a child of any command with sub commands."""


def command(source=Unset, /, *, parent=None, **kwargs):
    """
    Create a Command running a function, or return a decorator to build it later.

    Invocation modes
    - Direct:    cmd = command(func, name="x", ...)
    - Decorator: @command(max_args=NoArgs) def func(context, invocation, args): ...

    Defaults
    - name: the function name (underscores become hyphens, edge ones dropped).
    - help: the first line of the docstring.
    - description: the rest of the docstring.

    Parameters
    - parent: Command. When given, the new command is attached to it.
    - **kwargs: forwarded to Command.
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        options = dict(kwargs)
        name = options.pop("name", source.__name__.strip("_").replace("_", "-"))
        summary, _, description = (inspect.getdoc(source) or "").partition("\n")
        options.setdefault("help", summary.strip())
        options.setdefault("description", description.strip())
        instance = Command(name, action=source, **options)
        if parent is not None:
            parent.attach(instance)
        return instance

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /, *extra, context=None, console=Unset):
    """
    Convenience runner for commands or callables.

    Parameters
    - object: a Command, or a plain callable wrapped with command().
    - prompt:
      • Unset: read sys.argv[1:].
      • str: split with shlex.split.
      • Iterable[str]: use items as tokens (each must be str).
    - *extra, context, console: forwarded to Command.run.

    Raises
    - TypeError: when 'object' is not runnable or prompt has an invalid type.
    """
    if not isinstance(object, Command):
        if not callable(object):
            raise TypeError("invoke() first argument must be a command or a callable")
        object = command(object)

    if prompt is Unset:
        tokens = sys.argv[1:]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("invoke() prompt must be a string or an iterable of strings")
    else:
        raise TypeError("invoke() prompt must be a string or an iterable of strings")

    object.run(context, tokens, *extra, console=console)


__all__ = (
    # Constants
    "NoArgs",
    "HELP",

    # Types
    "Command",
    "Invocation",

    # Functions
    "command",
    "invoke",
    "render_help",
)
