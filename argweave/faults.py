"""
Argweave faults (usage errors, parse failures, warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every fault the package can surface.
- UsageError and subclasses: mistakes in how a schema is declared. They are raised
  at build time, immediately, and are never caught by the package.
- ParseFailure and subclasses: problems with the token stream. The scanner raises
  them internally; Parser.parse() turns the first one into a failure outcome.
- HelpRequested: the "-h/--help" short-circuit, a non-error terminal state.
- ParseWarning and subclasses: recoverable oddities (e.g. a flag given twice).
- trigger(): single entry point that surfaces a fault, respecting shell/colorful.
- getdoc(): optional documentation lookup provided by the host application.

Rendering
- A parse failure renders as exactly one line:
    [ prog — 11124 | Invalid Choice ] invalid choice 'purple' for 'color' ...
  In shell mode, the usage summary of the schema involved follows it.
- Styles can be overridden from the host through __styles__ in __main__; program
  name through __prog__; codes through __codes__.
"""
import copy
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - routing (1110x): UNKNOWN_SUBCOMMAND, MISSING_SUBCOMMAND
    - flags (1111x): UNKNOWN_FLAG, MISSING_FLAG_VALUE
    - positionals and values (1112x/1113x): EXTRA_POSITIONAL, INVALID_CHOICE,
      MISSING_VALUE, INVALID_VALUE
    - warnings (121xx): REPEATED_FLAG
    - usage errors (211xx): raised while a schema is being declared
    """
    # --- routing failures (11xxx) ---
    UNKNOWN_SUBCOMMAND          = 11102
    MISSING_SUBCOMMAND          = 11103

    # --- flag failures (11xxx) ---
    UNKNOWN_FLAG                = 11112
    MISSING_FLAG_VALUE          = 11117

    # --- positional/value failures (11xxx) ---
    EXTRA_POSITIONAL            = 11121
    INVALID_CHOICE              = 11124
    MISSING_VALUE               = 11125
    INVALID_VALUE               = 11131

    # --- warnings (12xxx) ---
    REPEATED_FLAG               = 12115

    # --- usage errors (21xxx) ---
    INVALID_IDENTIFIER          = 21101
    RESERVED_FLAG               = 21102
    DUPLICATE_IDENTIFIER        = 21103
    DUPLICATE_FLAG              = 21104
    DUPLICATE_SUBCOMMAND        = 21105
    INVALID_FIELD               = 21111
    INVALID_DEFAULT             = 21112
    POSITIONAL_ORDER            = 21121
    ROUTER_CONFLICT             = 21131

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host may expose a __codes__ mapping in __main__ to relabel codes;
        otherwise the numeric value is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class UsageError(ValueError):
    """
    A schema was declared incorrectly (bad identifier, duplicate flag, misplaced
    list, conflicting router, ...). Always a programming error, never user input.
    """
    code = Unset

    def __init__(self, message, /):
        super().__init__(message)
        self.message = message


class InvalidIdentifierError(UsageError):
    code = FaultCode.INVALID_IDENTIFIER


class ReservedFlagError(UsageError):
    code = FaultCode.RESERVED_FLAG


class DuplicateIdentifierError(UsageError):
    code = FaultCode.DUPLICATE_IDENTIFIER


class DuplicateFlagError(DuplicateIdentifierError):
    code = FaultCode.DUPLICATE_FLAG


class DuplicateSubcommandError(DuplicateIdentifierError):
    code = FaultCode.DUPLICATE_SUBCOMMAND


class InvalidFieldError(UsageError):
    code = FaultCode.INVALID_FIELD


class InvalidDefaultError(UsageError):
    code = FaultCode.INVALID_DEFAULT


class PositionalOrderError(UsageError):
    code = FaultCode.POSITIONAL_ORDER


class RouterConflictError(UsageError):
    code = FaultCode.ROUTER_CONFLICT


def _styles(main, palette, /):
    return defaultdict(str, palette | getattr(main, "__styles__", {}))


def _prog(main, options, /):
    try:
        return getattr(main, "__prog__", options["schema"].prog)
    except KeyError:
        return getattr(main, "__prog__", "")


class ParseFailure(Exception):
    """
    A token stream that does not satisfy its schema.

    Carries a lowercase, position-first message plus read-only options. Common
    options: code, title, hint, input, index, schema (the parser involved),
    docs, shell, colorful, console.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def schema(self):
        return self.options.get("schema")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = _styles(main, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
        })

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        return Text.assemble(
            "[ ",
            text(_prog(main, self.options), "prog-name"),
            " — ",
            text(self.options["code"].normalize(), "code"),
            " | ",
            text(self.options["title"].title(), "error-title"),
            " ] ",
            text(coalesce(self.message, ""), "error-message"),
        )

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        output = self.options.get("console", console)
        output.print(self)
        if (schema := self.schema) is not None:
            from .usage import render
            output.print(render(schema, colorful=self.options.get("colorful", False)))

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownFlagError(ParseFailure): ...
class MissingFlagValueError(ParseFailure): ...
class InvalidValueError(ParseFailure): ...
class InvalidChoiceError(InvalidValueError): ...
class MissingValueError(ParseFailure): ...
class ExtraPositionalError(ParseFailure): ...
class MissingSubcommandError(ParseFailure): ...
class UnknownSubcommandError(ParseFailure): ...


class HelpRequested(Exception):
    """
    "-h" or "--help" was met while scanning. Not a failure: the caller is
    expected to show the usage of `schema` and stop.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, "help requested"))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def schema(self):
        return self.options.get("schema")

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        from .usage import render
        output = self.options.get("console", Console())
        output.print(render(self.schema, colorful=self.options.get("colorful", False)))

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParseWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        styles = _styles(main, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
        })

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        return Text.assemble(
            "[ ",
            text(_prog(main, self.options), "prog-name"),
            " — ",
            text(self.options["code"].normalize(), "code"),
            " | ",
            text(self.options["title"].title(), "warning-title"),
            " ] ",
            text(coalesce(self.message, ""), "warning-message"),
        )

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=self.options.get("stacklevel", 2))
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class RepeatedFlagWarning(ParseWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes above).
    - options are merged through copy.replace() before triggering.
    - shell mode renders through rich; otherwise failures and help requests are
      raised and warnings go through the warnings module.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code, taken from __main__.__docs__.
    returns None when the host provides nothing for it.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "UsageError",
    "InvalidIdentifierError",
    "ReservedFlagError",
    "DuplicateIdentifierError",
    "DuplicateFlagError",
    "DuplicateSubcommandError",
    "InvalidFieldError",
    "InvalidDefaultError",
    "PositionalOrderError",
    "RouterConflictError",
    "ParseFailure",
    "UnknownFlagError",
    "MissingFlagValueError",
    "InvalidValueError",
    "InvalidChoiceError",
    "MissingValueError",
    "ExtraPositionalError",
    "MissingSubcommandError",
    "UnknownSubcommandError",
    "HelpRequested",
    "ParseWarning",
    "RepeatedFlagWarning",
    "trigger",
    "getdoc",
)
