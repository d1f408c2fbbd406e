"""
Argweave schemas: the field registry and the token scanner.

Overview
- Parser collects bindings through add(identifier, field), keeps an alias index
  for flags and an ordered list of positional slots, and owns at most one
  subcommand Router (see routing.py).
- Parser.parse(tokens) runs one forward pass over the tokens and returns an
  Outcome: SUCCESS with the bound values, FAILURE with the first ParseFailure,
  or HELP when "-h"/"--help" was met.

Scanning rules (per token, in order)
1. "-h" / "--help" stops everything with a HELP outcome.
2. A token starting with '-' is a flag, looked up by exact alias.
3. Anything else fills the next positional slot; when the slots are exhausted
   it names a subcommand (if a router exists) or is an extra positional.
4. Flags take 0 or 1 value token (the next one, verbatim); a string list takes
   the current token and every following one up to the next '-' token.
5. Conversion and choice checks happen as values are consumed. The first
   failure wins; nothing is aggregated.
6. A flag given again keeps the last value; a RepeatedFlagWarning is recorded
   on the outcome (see Outcome.report).
After the stream is exhausted, bindings are checked in declaration order for
missing values, then the router for a missing subcommand, and finally every
unobserved binding is materialized from its fallback.

Every parse builds its own scanner state, so a Parser can be parsed more than
once and nothing is shared between two parses.
"""
import collections
import copy
import difflib
import enum
import os
import shlex
import sys
from collections.abc import Iterable
from types import MappingProxyType

from rich.text import Text

from .faults import *
from .fields import Field, Shape
from .identifiers import RESERVED, Kind, classify
from .routing import Router
from .utils import *


class Binding:
    """
    One declared (identifier, field) pair and its declaration index.

    Bindings are immutable; whatever a parse observes lives in the scanner.
    """
    __slots__ = ("_identifier", "_field", "_index")

    identifier = mirror("identifier")
    field = mirror("field")
    index = mirror("index")

    def __init__(self, identifier, field, index, /):
        self._identifier = identifier
        self._field = field
        self._index = index

    @property
    def kind(self):
        return self._identifier.kind

    @property
    def aliases(self):
        return self._identifier.aliases

    @property
    def dest(self):
        return self._identifier.dest

    @property
    def has_default(self):
        return self._field.has_default

    def __repr__(self):
        return f"binding({self._identifier.raw!r}, {self._field!r})"


class Status(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    HELP = "help"


class Outcome:
    """
    Result of Parser.parse().

    - status: Status.SUCCESS, Status.FAILURE or Status.HELP.
    - values: dest → bound value in declaration order (empty unless successful).
    - failure: the first ParseFailure met (None unless failed).
    - subcommand / child: chosen subcommand name and its own outcome.
    - warnings: ParseWarning instances met on the way, children's included.
      Nothing is emitted while scanning; report() surfaces them.
    - schema: the parser that produced this outcome; for failures and help
      requests, the innermost parser involved (its usage is the relevant one).
    """
    __slots__ = ("_status", "_schema", "_values", "_failure", "_request", "_subcommand", "_child", "_warnings")

    status = mirror("status")
    schema = mirror("schema")
    values = mirror("values")
    failure = mirror("failure")
    subcommand = mirror("subcommand")
    child = mirror("child")
    warnings = mirror("warnings")

    def __init__(self, status, /, *, schema, values=Unset, failure=None, request=None, subcommand=None, child=None, warnings=()):
        self._status = status
        self._schema = schema
        self._values = MappingProxyType(dict(coalesce(values, {})))
        self._failure = failure
        self._request = request
        self._subcommand = subcommand
        self._child = child
        self._warnings = tuple(warnings)

    @property
    def ok(self):
        return self._status is Status.SUCCESS

    def __bool__(self):
        return self.ok

    def report(self, *, shell=True, colorful=False, console=Unset, stacklevel=1):
        """
        Surface the warnings, then a failure or a help request.

        In shell mode warnings and the diagnostic line and usage (or just the
        usage, for help) are printed; otherwise warnings go through the
        warnings module (stacklevel counted from the caller of report()) and
        the fault or HelpRequested is raised.
        """
        options = {"shell": shell, "colorful": colorful}
        if console is not Unset:
            options["console"] = console

        for warning in self._warnings:
            trigger(warning, **options, stacklevel=stacklevel + 3)

        match self._status:
            case Status.FAILURE:
                trigger(self._failure, **options)
            case Status.HELP:
                trigger(self._request, **options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        fields = {
            "schema": self._schema,
            "values": self._values,
            "failure": self._failure,
            "request": self._request,
            "subcommand": self._subcommand,
            "child": self._child,
            "warnings": self._warnings,
        }
        return type(self)(overrides.pop("status", self._status), **fields | overrides)

    def __repr__(self):
        match self._status:
            case Status.SUCCESS:
                detail = ", ".join(f"{name}={value!r}" for name, value in self._values.items())
                if self._subcommand is not None:
                    detail += (", " if detail else "") + f"subcommand={self._subcommand!r}"
            case Status.FAILURE:
                detail = repr(self._failure.message)
            case _:
                detail = repr(self._schema.prog)
        return f"outcome.{self._status.value}({detail})"


def _sanitize_tokens(tokens, /):
    if tokens is Unset:
        return sys.argv[1:]
    if isinstance(tokens, str):
        return shlex.split(tokens)
    if not isinstance(tokens, Iterable):
        raise TypeError("parse() argument must be a string or an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() argument must be a string or an iterable of strings")
    return tokens


class Parser:
    """
    Field registry and entry point of the scanner.

    Declaration is fail-fast: every rule below raises a UsageError subclass from
    add()/subcommands() the moment it is broken.
    - Bool fields must be flags; string lists must be positionals.
    - Required positionals come before optional ones; a string list is the
      last positional.
    - Flags and destination names are unique; "-h"/"--help" are reserved.
    - A router cannot coexist with optional or list positionals, and there is
      at most one router.
    """

    name = mirror("name")
    descr = mirror("descr")
    bindings = mirror("bindings")
    positionals = mirror("positionals")
    flags = mirror("flags")
    router = mirror("router")
    parent = mirror("parent")

    def __init__(self, prog=Unset, descr=Unset):
        if not isinstance(prog, str | Unset):
            raise TypeError("parser 'prog' must be a string")
        elif isinstance(prog, str) and not (prog := prog.strip()):
            raise ValueError("parser 'prog' cannot be empty")

        if not isinstance(descr, str | Text | Unset):
            raise TypeError("parser 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError("parser 'descr' cannot be empty")

        self._name = coalesce(prog, os.path.basename(sys.argv[0]) or "prog")
        self._descr = coalesce(descr)
        self._bindings = []
        self._positionals = []
        self._flags = {}
        self._router = None
        self._parent = None
        self._reserved = set()

    @property
    def path(self):
        """Parsers from the root down to this one."""
        path = [self]
        while (parent := path[0]._parent) is not None:
            path.insert(0, parent)
        return path

    @property
    def prog(self):
        """Program name followed by the subcommand names leading here."""
        return " ".join(step._name for step in self.path)

    def add(self, identifier, field, /):
        """
        Declare a binding and return it.

        identifier is a positional label ("src") or "|"-joined flag aliases
        ("-v|--verbose"); field is one of the shapes from argweave.fields.
        """
        identifier = classify(identifier)
        if not isinstance(field, Field):
            raise TypeError(f"parser field for {identifier.raw!r} must be a field")

        if identifier.kind is Kind.POSITIONAL:
            if field.shape is Shape.BOOL:
                raise InvalidFieldError(f"bool field {identifier.raw!r} must be a flag")
            if self._positionals and self._positionals[-1].field.nargs is Ellipsis:
                raise PositionalOrderError(
                    f"positional {identifier.raw!r} cannot follow the string list {self._positionals[-1].identifier.raw!r}"
                )
            if not field.has_default and any(binding.has_default for binding in self._positionals):
                raise PositionalOrderError(f"required positional {identifier.raw!r} cannot follow an optional one")
            if field.has_default and self._router is not None:
                raise RouterConflictError(f"optional positional {identifier.raw!r} cannot be combined with subcommands")
        else:
            if field.nargs is Ellipsis:
                raise InvalidFieldError(f"string list {identifier.raw!r} must be a positional")
            for alias in identifier.aliases:
                if alias in self._flags:
                    raise DuplicateFlagError(f"duplicate flag {alias!r}")

        if any(binding.dest == identifier.dest for binding in self._bindings):
            raise DuplicateIdentifierError(f"duplicate identifier {identifier.raw!r}")
        if identifier.dest in self._reserved:
            raise DuplicateIdentifierError(f"identifier {identifier.raw!r} uses the reserved name {identifier.dest!r}")

        binding = Binding(identifier, field, len(self._bindings))
        self._bindings.append(binding)
        if identifier.kind is Kind.POSITIONAL:
            self._positionals.append(binding)
        else:
            self._flags.update(dict.fromkeys(identifier.aliases, binding))
        return binding

    def reserve(self, name, /):
        """
        Keep a destination name away from bindings.

        Used by front-ends that store other things under attribute names (the
        routing attribute of Args, its methods). Raises DuplicateIdentifierError
        when a binding already uses the name, and for every later add() that
        would.
        """
        if not isinstance(name, str):
            raise TypeError("reserve() argument must be a string")
        if any(binding.dest == name for binding in self._bindings):
            raise DuplicateIdentifierError(f"name {name!r} is already used by a binding")
        self._reserved.add(name)

    def subcommands(self, required=True, /):
        """
        Register this parser's subcommand router and return it.

        With required=True a parse that ends without a subcommand fails.
        """
        if not isinstance(required, bool):
            raise TypeError("subcommands() 'required' must be a boolean")
        if self._router is not None:
            raise RouterConflictError("parser already has a subcommand router")
        if any(binding.has_default for binding in self._positionals):
            raise RouterConflictError("subcommands cannot be combined with optional or list positionals")
        self._router = Router(required)
        return self._router

    def parse(self, tokens=Unset, /, *, index=1):
        """
        Scan tokens against this schema and return an Outcome.

        tokens may be Unset (sys.argv[1:]), a shell-like string, or an iterable
        of strings. index is the 1-based position of the first token, used in
        messages when parsing the suffix handed over by a parent parser.
        """
        scanner = _Scanner(self, _sanitize_tokens(tokens), index)
        try:
            return scanner.run()
        except HelpRequested as request:
            return Outcome(Status.HELP, schema=request.schema, request=request, warnings=scanner.warnings)
        except ParseFailure as failure:
            return Outcome(Status.FAILURE, schema=failure.schema, failure=failure, warnings=scanner.warnings)

    def _attach(self, parent, name, /):
        self._parent = parent
        self._name = name

    def __rich_repr__(self):
        yield "name", self._name
        yield "descr", self._descr
        yield "bindings", self._bindings
        yield "router", self._router

    def __repr__(self):
        return f"parser({self.prog!r}, bindings={self._bindings!r})"


class _Scanner:
    """
    Per-parse state: remaining tokens, position, pending positional slots,
    observed flags and the values collected so far.
    """

    def __init__(self, parser, tokens, index, /):
        self._parser = parser
        self._tokens = collections.deque(tokens)
        self._index = index
        self._positionals = collections.deque(parser._positionals)
        self._observed = [binding.has_default for binding in parser._bindings]
        self._values = [Unset] * len(parser._bindings)
        self._seen = set()
        self._warnings = []

    @property
    def warnings(self):
        return tuple(self._warnings)

    def _next(self):
        token = self._tokens.popleft()
        index, self._index = self._index, self._index + 1
        return token, index

    def _hint(self, subject):
        return "run '%s --help' to see %s" % (self._parser.prog, subject)

    def run(self):
        while self._tokens:
            token, index = self._next()

            if token in RESERVED:
                raise HelpRequested(schema=self._parser, input=token, index=index)

            if token.startswith("-"):
                self._flag(token, index)
            elif self._positionals:
                self._positional(self._positionals.popleft(), token, index)
            elif (router := self._parser._router) is not None:
                return self._route(router, token, index)
            else:
                raise ExtraPositionalError(
                    "extra positional argument %r at %s position" % (token, ordinal(index)),
                    title="extra positional argument",
                    code=FaultCode.EXTRA_POSITIONAL,
                    hint=self._hint("the expected arguments"),
                    input=token,
                    index=index,
                    schema=self._parser,
                    docs=getdoc(FaultCode.EXTRA_POSITIONAL)
                )

        self._finalize(routed=False)
        return self._outcome()

    def _flag(self, token, index, /):
        try:
            binding = self._parser._flags[token]
        except KeyError:
            suggestions = difflib.get_close_matches(token, [*self._parser._flags, *RESERVED], 3)
            try:
                hint = "did you mean %r? you can also %s" % (suggestions[0], self._hint("all flags"))
            except IndexError:
                hint = self._hint("all flags")
            raise UnknownFlagError(
                "unknown flag %r at %s position" % (token, ordinal(index)),
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                hint=hint,
                input=token,
                index=index,
                suggestions=suggestions,
                schema=self._parser,
                docs=getdoc(FaultCode.UNKNOWN_FLAG)
            ) from None

        if binding.index in self._seen:
            self._warnings.append(RepeatedFlagWarning(
                "flag %r at %s position was already given, the last value wins" % (token, ordinal(index)),
                title="repeated flag",
                code=FaultCode.REPEATED_FLAG,
                input=token,
                index=index,
                schema=self._parser,
                docs=getdoc(FaultCode.REPEATED_FLAG)
            ))

        if binding.field.nargs == 0:
            value = True
        elif not self._tokens:
            raise MissingFlagValueError(
                "expected value after flag %r at %s position" % (token, ordinal(index)),
                title="missing flag value",
                code=FaultCode.MISSING_FLAG_VALUE,
                hint="provide a value (e.g., %s <value>)" % token,
                input=token,
                index=index,
                schema=self._parser,
                docs=getdoc(FaultCode.MISSING_FLAG_VALUE)
            )
        else:
            value = self._convert(binding, token, *self._next())

        self._seen.add(binding.index)
        self._store(binding, value)

    def _positional(self, binding, token, index, /):
        input = binding.identifier.raw
        if binding.field.nargs is Ellipsis:
            value = [self._convert(binding, input, token, index)]
            while self._tokens and not self._tokens[0].startswith("-"):
                value.append(self._convert(binding, input, *self._next()))
        else:
            value = self._convert(binding, input, token, index)
        self._store(binding, value)

    def _convert(self, binding, input, token, index, /):
        field = binding.field
        noun = field.shape.value.removeprefix("optional-").removesuffix("-list")
        try:
            value = field.convert(token)
        except ValueError as exception:
            raise InvalidValueError(
                "invalid %s value %r for %r at %s position" % (noun, token, input, ordinal(index)),
                title="invalid value",
                code=FaultCode.INVALID_VALUE,
                hint=str(exception),
                input=input,
                value=token,
                index=index,
                schema=self._parser,
                docs=getdoc(FaultCode.INVALID_VALUE)
            ) from exception

        if not field.accepts(value):
            choices = ", ".join(map(repr, field.choices))
            raise InvalidChoiceError(
                "invalid choice %r for %r at %s position, choose from %s" % (token, input, ordinal(index), choices),
                title="invalid choice",
                code=FaultCode.INVALID_CHOICE,
                hint="use one of: %s" % choices,
                input=input,
                value=token,
                index=index,
                choices=field.choices,
                schema=self._parser,
                docs=getdoc(FaultCode.INVALID_CHOICE)
            )
        return value

    def _store(self, binding, value, /):
        self._observed[binding.index] = True
        self._values[binding.index] = value

    def _route(self, router, token, index, /):
        if token not in router.routes:
            suggestions = difflib.get_close_matches(token, router.routes.keys(), 3)
            try:
                hint = "did you mean %r? you can also %s" % (suggestions[0], self._hint("all subcommands"))
            except IndexError:
                hint = self._hint("all subcommands")
            raise UnknownSubcommandError(
                "unknown subcommand %r at %s position" % (token, ordinal(index)),
                title="unknown subcommand",
                code=FaultCode.UNKNOWN_SUBCOMMAND,
                hint=hint,
                input=token,
                index=index,
                suggestions=suggestions,
                schema=self._parser,
                docs=getdoc(FaultCode.UNKNOWN_SUBCOMMAND)
            )

        rest = list(self._tokens)
        self._tokens.clear()

        child = router.dispatch(token, rest, parent=self._parser, index=self._index)
        self._warnings.extend(child.warnings)
        if not child.ok:
            return copy.replace(child, warnings=self._warnings)

        self._finalize(routed=True)
        router.commit(token, child)
        return self._outcome(subcommand=token, child=child)

    def _finalize(self, /, *, routed):
        for binding in self._parser._bindings:
            if not self._observed[binding.index]:
                raise MissingValueError(
                    "missing value for %r" % binding.identifier.raw,
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    hint="provide %r, or %s" % (binding.identifier.raw, self._hint("the expected arguments")),
                    input=binding.identifier.raw,
                    index=self._index,
                    schema=self._parser,
                    docs=getdoc(FaultCode.MISSING_VALUE)
                )

        router = self._parser._router
        if not routed and router is not None and router.required:
            names = ", ".join(map(repr, router.routes))
            raise MissingSubcommandError(
                "missing subcommand, expected one of %s" % names,
                title="missing subcommand",
                code=FaultCode.MISSING_SUBCOMMAND,
                hint=self._hint("all subcommands"),
                index=self._index,
                schema=self._parser,
                docs=getdoc(FaultCode.MISSING_SUBCOMMAND)
            )

    def _outcome(self, /, *, subcommand=None, child=None):
        values = {}
        for binding in self._parser._bindings:
            value = self._values[binding.index]
            values[binding.dest] = binding.field.fallback() if value is Unset else value
        return Outcome(
            Status.SUCCESS,
            schema=self._parser,
            values=values,
            subcommand=subcommand,
            child=child,
            warnings=self._warnings
        )


__all__ = (
    "Binding",
    "Status",
    "Outcome",
    "Parser",
)
