"""
Demo command tree, run with ``python -m subcommander``.

    main [--title=TITLE] [-n=N] [-v] subcommand [...]
      list [--title=TITLE] arg0        lookups across the chain
      deep [--duration=D] subcommand   a branch without an action
        sea                             takes no arguments
        thought [-v] [--planet=PLANET] [who] [what] [when]
      help [cmd [cmd [...]]]

Set SUBCOMMANDER_DEBUG=1 to log how each command line is resolved.
"""
import datetime
import logging
import os
import re
import sys

from rich.console import Console

from .arguments import Flag, Option, Options
from .commands import Command, NoArgs, render_help
from .faults import UsageError

stdout = Console(highlight=False, soft_wrap=True)
stderr = Console(stderr=True, highlight=False, soft_wrap=True)


def parse_duration(value, /):
    """
    Parse "1h30m", "90s" or "250ms" style durations into a timedelta.
    """
    units = {"h": "hours", "m": "minutes", "s": "seconds", "ms": "milliseconds"}
    if not (parts := re.findall(r"(\d+(?:\.\d+)?)(ms|h|m|s)", value)) or \
            "".join(number + unit for number, unit in parts) != value:
        raise ValueError("invalid duration: %r" % value)
    return sum((datetime.timedelta(**{units[unit]: float(number)}) for number, unit in parts), datetime.timedelta())


class MainOptions(Options):
    title = Option("--title", metavar="TITLE", default="Main", descr="set the title")
    n = Option("-n", metavar="N", default=1, descr="run N times")
    verbose = Flag("-v", descr="be verbose")


class ListOptions(Options):
    title = Option("--title", metavar="TITLE", default="Local", descr="set the title of the list")


class DeepOptions(Options):
    duration = Option("--duration", metavar="D", type=parse_duration, default=datetime.timedelta(),
                      descr="ponder for a duration of D")


class ThoughtOptions(Options):
    verbose = Flag("-v", descr="be verbose")
    planet = Option("--planet", metavar="PLANET", descr="go to PLANET")


def show_list(context, invocation, args, *extra):
    mine = invocation.lookup("", "title")
    main = invocation.lookup("main", "title")
    if args[0] == "error":
        raise RuntimeError("%s:%s: has an error" % (main, mine))
    stdout.print("List of %s:%s" % (main, mine), markup=False)
    for _ in range(invocation.lookup("main", "n", 1)):
        stdout.print("  %s" % args[0], markup=False)


def sea(context, invocation, args, *extra):
    stdout.print("The deep blue sea", markup=False)


def thought(context, invocation, args, *extra):
    stdout.print("Having deep thoughts %r" % (args,), markup=False)


MAIN = Command(
    "main",
    options=MainOptions(),
    # Show help when no sub command is given.
    action=render_help,
    subcommands=[
        Command(
            "list",
            help="show a list",
            min_args=1,
            max_args=1,
            defaults=ListOptions(),
            action=show_list,
        ),
        Command(
            "deep",
            help="multi-level command",
            description="""
A very deep subject to go into.
""",
            defaults=DeepOptions(),
            subcommands=[
                Command("sea", max_args=NoArgs, action=sea),
                Command(
                    "thought",
                    description="""
Travel to PLANET and ponder the question
of life, the universe, and everything.
Provide the answer to the question to the mice.
What the actual question is is unknown.
""",
                    parameters="[who] [what] [when]",
                    defaults=ThoughtOptions(),
                    action=thought,
                ),
            ],
        ),
        Command(
            "help",
            help="give usage help",
            parameters="[cmd [cmd [...]]]",
            description="""
If there are no arguments, describe the usage of the command.
Otherwise describe the usage of the specified sub command.
Multiple arguments will descend the command tree.
""",
            action=render_help,
        ),
    ],
)


def main(argv=None, /):
    logging.basicConfig(
        level=logging.DEBUG if os.environ.get("SUBCOMMANDER_DEBUG") else logging.WARNING,
        format="%(levelname)s %(message)s",
    )
    try:
        MAIN.run(None, sys.argv[1:] if argv is None else argv)
    except UsageError:
        # Already printed along with the help of the failing command.
        return 1
    except Exception as error:
        stderr.print("Command failed: %s" % error, markup=False)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
