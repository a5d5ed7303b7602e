"""
Subcommander delimiter splitter.

split_command() partitions one flat token stream into several command
invocations separated by a delimiter. With ';' as the delimiter:

    STRICT      cmd1 ; cmd2   (always works)
    TRAILING    cmd1; cmd2
    PRECEEDING  cmd1 ;cmd2
    ANY         cmd1;cmd2

Policies are bit flags; TRAILING and PRECEEDING combine, ANY supersedes both.
"""
from enum import IntFlag


class EdgePolicy(IntFlag):
    """
    How a delimiter attached to a token is recognized.

    - STRICT: only a token equal to the delimiter splits.
    - TRAILING: "cmd1;" splits after the token.
    - PRECEEDING: ";cmd2" splits before the token.
    - ANY: the delimiter splits wherever it occurs inside a token.
    """
    STRICT     = 0
    TRAILING   = 2
    PRECEEDING = 4
    ANY        = 8


StrictDelim = EdgePolicy.STRICT
TrailingDelim = EdgePolicy.TRAILING
PreceedingDelim = EdgePolicy.PRECEEDING
AnyDelim = EdgePolicy.ANY


def _mark(args, delim, options, /):
    # A marker is the delimiter itself; pieces emptied by stripping are dropped.
    for arg in args:
        if arg == delim or not arg:
            yield arg
            continue
        if options & EdgePolicy.ANY:
            for part in arg.split(delim):
                if part:
                    yield part
                yield delim
            continue
        if options & EdgePolicy.PRECEEDING and arg.startswith(delim):
            yield delim
            arg = arg[len(delim):]
        if options & EdgePolicy.TRAILING and arg.endswith(delim):
            if arg := arg[:-len(delim)]:
                yield arg
            yield delim
            continue
        yield arg


def split_command(args, delim, options=EdgePolicy.STRICT, /):
    """
    Split 'args' into groups of tokens at every delimiter.

    Parameters
    - args: Iterable[str]. Tokens to split (the program name excluded).
    - delim: str. Non-empty delimiter, e.g. ";".
    - options: EdgePolicy | int. Edge handling policy (defaults to STRICT).

    Returns
    - list[list[str]]: token groups in their original order. Adjacent, leading,
      and trailing delimiters never produce empty groups.

    Example
    - split_command(["a", ";", "b", "c"], ";") -> [["a"], ["b", "c"]]
    """
    if not isinstance(delim, str):
        raise TypeError("split_command() delimiter must be a string")
    elif not delim:
        raise ValueError("split_command() delimiter cannot be empty")

    options = EdgePolicy(options)
    args = list(args)
    if options:
        args = list(_mark(args, delim, options))

    groups = []
    group = []
    for arg in args:
        if arg == delim:
            if group:
                groups.append(group)
            group = []
            continue
        group.append(arg)
    if group:
        groups.append(group)
    return groups


__all__ = (
    "EdgePolicy",
    "StrictDelim",
    "TrailingDelim",
    "PreceedingDelim",
    "AnyDelim",
    "split_command",
)
