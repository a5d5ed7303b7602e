"""
Subcommander arguments: declarative option sets consumed by the command layer.

Overview
- Option[_T]: named, value-bearing switch (e.g. --title=TITLE). Converted with 'type'.
- Flag: named, presence-only boolean switch (e.g. -v). Accepts an inline =true/=false.
- Options: base class collecting Option/Flag class attributes into an option set.

Capability surface used by commands
- copy.copy(options)              -> independent value store (ephemeral defaults)
- options.parse(tokens, output)   -> remaining positional tokens, raises OptionError
- options.lookup(name, default)   -> value by attribute name or dash-less switch name
- options.usage()                 -> "[--title=TITLE] [-v]"
- options.help()                  -> aligned help lines, current values in brackets

Parsing rules
- Parsing stops at the first token that is not a switch, at a lone "-", or after "--".
- "-name" and "--name" are equivalent spellings; values may be inline (--n=3) or
  spaced (--n 3). Flags never consume the following token.
- An undeclared -h/-help/--help writes the help lines to 'output' and fails with
  "help requested".

Quick example
    class Settings(Options):
        title = Option("--title", metavar="TITLE", default="Main", descr="set the title")
        verbose = Flag("-v", descr="be verbose")

    settings = Settings()
    settings.parse(["--title", "Deep", "-v", "rest"])  # -> ["rest"]
"""
import builtins
import copy
import re
from typing import Generic, TypeVar

from .faults import OptionError
from .utils import Unset, coalesce

_TRUE = frozenset(("1", "t", "T", "TRUE", "true", "True"))
_FALSE = frozenset(("0", "f", "F", "FALSE", "false", "False"))


def _parse_bool(value, /):
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError("invalid syntax: %r" % value)


def _sanitize_names(typename, names, /):
    r"""
    Internal: validate switch names and return them as a tuple (order preserved).

    Name format regex: r"--?[^\W\d_](-?[^\W_]+)*"
    - Optional single or double hyphen prefix.
    - Segments separated by single hyphens (e.g., "-long-name", "--long-name").
    - Disallows underscores and leading digits to keep CLI style conventional.
    """
    seen = []
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{typename} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{typename} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{typename} names must be valid shell-style option names (unicodes are allowed)")
        elif name in seen:
            raise ValueError(f"{typename} names cannot contain duplicates")
        seen.append(name)
    return tuple(seen)


def _sanitize_descr(typename, descr, /):
    if not isinstance(descr, str | Unset):
        raise TypeError(f"{typename} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{typename} 'descr' cannot be empty")
    return coalesce(descr, "")


_T = TypeVar("_T")


class Option(Generic[_T]):
    """
    Named, value-bearing option specification.

    Option[_T] is a data descriptor: declared on an Options subclass, it reads
    and writes the owning instance's value store.

    Parameters
    - names: zero or more str. Accepted forms include "-x", "-long", "--long-name".
      When omitted, the name is derived from the attribute ("-x" for one letter,
      "--long-name" otherwise).
    - metavar: Unset | str. Display name for the value in help (defaults to "VALUE").
    - type: Unset | Callable. Converter applied to the raw token. Defaults to the type
      of 'default' when one is given, otherwise str.
    - default: Any. Initial value for every fresh Options instance.
    - descr: Unset | str. Short description for help.
    - hidden: bool. Suppress from usage and help output.
    """

    __typename__ = "option"

    def __init__(self, *names, metavar=Unset, type=Unset, default=None, descr=Unset, hidden=False):
        typename = self.__typename__
        if not isinstance(metavar, str | Unset):
            raise TypeError(f"{typename} 'metavar' must be a string")
        elif isinstance(metavar, str) and not (metavar := metavar.strip()):
            raise ValueError(f"{typename} 'metavar' cannot be empty")

        type = coalesce(type, builtins.type(default) if default is not None else str)
        if not callable(type):
            raise TypeError(f"{typename} 'type' must be callable")

        self.names = _sanitize_names(typename, names)
        self.metavar = coalesce(metavar, "VALUE")
        self.type = _parse_bool if type is bool else type
        self.default = default
        self.descr = _sanitize_descr(typename, descr)
        self.hidden = bool(hidden)
        self.field = None

    def __set_name__(self, owner, name):
        self.field = name
        if not self.names:
            derived = "-" + name if len(name) == 1 else "--" + name.replace("_", "-")
            self.names = _sanitize_names(self.__typename__, (derived,))

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance._values[self.field]

    def __set__(self, instance, value):
        instance._values[self.field] = value

    @property
    def keys(self):
        """Switch names with their leading dashes removed."""
        return tuple(name.lstrip("-") for name in self.names)

    def label(self):
        return ", ".join(self.names) + "=" + self.metavar

    def usage(self):
        return "[%s=%s]" % ("|".join(self.names), self.metavar)

    def convert(self, value, /):
        return self.type(value)

    def __rich_repr__(self):
        yield from self.names
        yield "metavar", self.metavar, "VALUE"
        yield "default", self.default, None
        yield "descr", self.descr, ""
        yield "hidden", self.hidden, False

    def __repr__(self):
        return _represent(self)


class Flag(Option[bool]):
    """
    Named, presence-only boolean switch.

    A flag is set to True when present; "--flag=false" (or any other Go-style
    boolean spelling) sets it explicitly.
    """

    __typename__ = "flag"

    def __init__(self, *names, descr=Unset, hidden=False):
        super().__init__(*names, type=bool, default=False, descr=descr, hidden=hidden)

    def label(self):
        return ", ".join(self.names)

    def usage(self):
        return "[%s]" % "|".join(self.names)

    def __rich_repr__(self):
        yield from self.names
        yield "descr", self.descr, ""
        yield "hidden", self.hidden, False


def _represent(object, /):
    fields = []
    for item in object.__rich_repr__():
        if not isinstance(item, tuple):
            fields.append(repr(item))
            continue
        key, value, *default = item
        if default and value == default[0]:
            continue
        fields.append("%s=%r" % (key, value))
    return "%s(%s)" % (type(object).__name__, ", ".join(fields))


class Options:
    """
    Base class for option sets.

    Subclasses declare Option/Flag attributes; every instance owns its own
    value store, initialized from the declared defaults and then from keyword
    arguments.

        class ListOptions(Options):
            title = Option("--title", metavar="TITLE", default="Local")

        ListOptions(title="Remote").title  # -> "Remote"
    """

    __fields__ = {}
    __switches__ = {}

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        fields = {}
        for base in reversed(cls.__mro__[1:]):
            fields.update(getattr(base, "__fields__", {}))
        fields.update((name, value) for name, value in vars(cls).items() if isinstance(value, Option))

        for name in fields:
            if name.startswith("_") or name in vars(Options):
                raise ValueError(f"{cls.__name__} cannot declare a field named {name!r}")

        switches = {}
        for spec in fields.values():
            for key in spec.keys:
                if key in switches:
                    raise ValueError(f"{cls.__name__} declares the switch {key!r} more than once")
                switches[key] = spec

        cls.__fields__ = fields
        cls.__switches__ = switches

    def __init__(self, **values):
        self._values = {name: spec.default for name, spec in self.__fields__.items()}
        for name, value in values.items():
            if name not in self.__fields__:
                raise TypeError(f"{type(self).__name__}() got an unexpected keyword argument {name!r}")
            self._values[name] = value

    def __copy__(self):
        clone = object.__new__(type(self))
        clone._values = copy.copy(self._values)
        return clone

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._values == other._values

    __hash__ = None

    @classmethod
    def fields(cls):
        """Declared specs, in declaration order, keyed by attribute name."""
        return dict(cls.__fields__)

    def lookup(self, name, default=None, /):
        """
        Return the value of the field called 'name' (attribute name or switch
        name without dashes), or 'default' when no such field is declared.
        """
        if name in self.__fields__:
            return self._values[name]
        if (spec := self.__switches__.get(name.lstrip("-"))) is not None:
            return self._values[spec.field]
        return default

    def parse(self, tokens, output=None, /):
        """
        Parse leading switches from 'tokens' into this instance.

        Returns
        - list[str]: the tokens left after the last switch.

        Raises
        - OptionError: undeclared switch, missing or malformed value, or an
          explicit help request.
        """
        remaining = list(tokens)
        while remaining:
            token = remaining[0]
            if len(token) < 2 or token[0] != "-":
                break
            del remaining[0]
            if token == "--":
                break

            name = token[2:] if token.startswith("--") else token[1:]
            if not name or name[0] in "-=":
                raise OptionError("bad flag syntax: %s" % token)
            name, inline, value = name.partition("=")
            typed = token.partition("=")[0]

            if (spec := self.__switches__.get(name)) is None:
                if name in ("h", "help"):
                    if output is not None:
                        output.write("".join(line + "\n" for line in self.help()))
                    raise OptionError("help requested")
                raise OptionError("flag provided but not defined: %s" % typed)

            if isinstance(spec, Flag):
                if not inline:
                    self._values[spec.field] = True
                    continue
                try:
                    self._values[spec.field] = _parse_bool(value)
                except ValueError:
                    raise OptionError('invalid boolean value "%s" for flag %s' % (value, typed)) from None
                continue

            if not inline:
                if not remaining:
                    raise OptionError("flag needs an argument: %s" % typed)
                value = remaining.pop(0)
            try:
                self._values[spec.field] = spec.convert(value)
            except (TypeError, ValueError):
                raise OptionError('invalid value "%s" for flag %s' % (value, typed)) from None
        return remaining

    def usage(self):
        return " ".join(spec.usage() for spec in self.__fields__.values() if not spec.hidden)

    def help(self):
        """
        Render one line per visible field: its label, then its description
        followed by the current value in brackets when it is set.
        """
        specs = [spec for spec in self.__fields__.values() if not spec.hidden]
        if not specs:
            return []
        width = max(len(spec.label()) for spec in specs)
        lines = []
        for spec in specs:
            text = spec.descr
            if value := self._values[spec.field]:
                if isinstance(value, bool):
                    value = "true"
                text = ("%s [%s]" % (text, value)).strip()
            lines.append(("%s    %s" % (spec.label().ljust(width), text)).rstrip())
        return lines

    def __rich_repr__(self):
        for name, value in self._values.items():
            yield name, value

    def __repr__(self):
        return _represent(self)


def usage_line(name, parameters, options, /):
    """
    Assemble "name [switches] parameters", skipping empty parts.
    """
    return " ".join(part for part in (name, options.usage() if options is not None else "", parameters) if part)


__all__ = (
    # Types
    "Option",
    "Flag",
    "Options",

    # Functions
    "usage_line",
)
