"""
Subcommand routing.

A Router maps subcommand names to routes. Each route carries a factory that
builds a fresh child parser and an optional assign callback that receives the
child's outcome once the whole parse has succeeded.

When the scanner runs out of positional slots and meets a bare word, it asks
the router to dispatch: the factory is called, the child is attached below its
parent (so usage and messages read "prog add ..."), and the remaining tokens
are parsed by the child. Failures and help requests from the child propagate
unchanged; on success the parent finishes its own checks and then commits,
which is when assign runs.
"""
from types import MappingProxyType

from rich.text import Text

from .faults import InvalidIdentifierError, DuplicateSubcommandError
from .identifiers import validate_label
from .utils import *


class Route:
    __slots__ = ("_name", "_factory", "_assign", "_descr")

    name = mirror("name")
    factory = mirror("factory")
    assign = mirror("assign")
    descr = mirror("descr")

    def __init__(self, name, factory, assign, descr, /):
        self._name = name
        self._factory = factory
        self._assign = assign
        self._descr = descr

    def __repr__(self):
        return f"route({self._name!r}, descr={self._descr!r})"


class Router:
    """
    Subcommand table of a parser (see Parser.subcommands()).

    - required: whether a parse must name a subcommand.
    - routes: read-only name → Route mapping, in declaration order.
    """
    __slots__ = ("_required", "_routes")

    required = mirror("required")

    def __init__(self, required=True, /):
        if not isinstance(required, bool):
            raise TypeError("router 'required' must be a boolean")
        self._required = required
        self._routes = {}

    @property
    def routes(self):
        return MappingProxyType(self._routes)

    def add(self, name, factory, /, assign=Unset, descr=Unset):
        """
        Register a subcommand.

        - name: subcommand word, same grammar as positional labels.
        - factory: zero-argument callable returning a fresh Parser.
        - assign: callable receiving the child's successful Outcome.
        - descr: short description shown in usage.
        """
        if not isinstance(name, str):
            raise TypeError("subcommand name must be a string")
        if not validate_label(name):
            raise InvalidIdentifierError(f"invalid subcommand name {name!r}")
        if name in self._routes:
            raise DuplicateSubcommandError(f"duplicate subcommand {name!r}")
        if not callable(factory):
            raise TypeError(f"subcommand {name!r} 'factory' must be callable")
        if not (assign is Unset or callable(assign)):
            raise TypeError(f"subcommand {name!r} 'assign' must be callable")

        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"subcommand {name!r} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"subcommand {name!r} 'descr' cannot be empty")

        route = self._routes[name] = Route(name, factory, coalesce(assign), coalesce(descr))
        return route

    def dispatch(self, name, tokens, /, *, parent, index=1):
        """
        Build the child parser for `name`, attach it below `parent` and parse
        `tokens` with it. Returns the child's Outcome; nothing is assigned.
        """
        child = self._routes[name].factory()
        if not isinstance(child, type(parent)):
            raise TypeError(f"subcommand {name!r} factory must return a parser")
        child._attach(parent, name)
        return child.parse(tokens, index=index)

    def commit(self, name, outcome, /):
        """Hand a successful child outcome to the route's assign callback."""
        if not outcome.ok:
            raise ValueError("commit() outcome must be successful")
        if (assign := self._routes[name].assign) is not None:
            assign(outcome)

    def __repr__(self):
        return f"router(required={self._required!r}, routes={list(self._routes)!r})"


__all__ = (
    "Route",
    "Router",
)
