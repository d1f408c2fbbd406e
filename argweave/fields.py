r"""
Argweave fields: the typed destinations a schema binds identifiers to.

Overview
- One class per value shape, all sharing the same small protocol so the
  scanner never has to know which one it is holding:
  • nargs: 0 (presence only), 1 (exactly one value token) or Ellipsis (greedy run)
  • convert(token): text → typed value, ValueError when the text is unacceptable
  • accepts(value): choice-set membership (always true without choices)
  • has_default / fallback(): whether and what to bind when nothing was observed

Shapes
  • Int, OptionalInt          base-10 signed 32-bit integers
  • Double, OptionalDouble    floating literals (1, -2.5, .5, 1e-3, inf, nan)
  • String, OptionalString    verbatim text, optionally restricted by choices
  • Bool                      presence flag, or explicit "true"/"false" with require_value
  • StringList                greedy run of words, optionally restricted by choices

Metadata (sanitized on construction)
- default: typed default, checked against the shape and the choices.
  Optional shapes, StringList and presence-only Bool refuse it (they default
  to None, [] and False respectively).
- choices: only for string shapes; duplicates rejected unless given as a Set
  (which is sorted for stable display).
- descr / metavar: trimmed non-empty strings, used by the usage renderer.
  metavar and choices are mutually exclusive.

Quick example:
    >>> from argweave.fields import Int, String
    >>> Int(default=5).fallback()
    5
    >>> String(choices=("red", "green")).accepts("blue")
    False
"""
import enum
import functools
from abc import ABCMeta, abstractmethod
import operator
import re
from collections.abc import Iterable, Set

from rich.text import Text

from .faults import InvalidFieldError, InvalidDefaultError
from .utils import *

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DOUBLE = re.compile(r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)", re.IGNORECASE)


class Shape(enum.Enum):
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    BOOL = "bool"
    OPTIONAL_INT = "optional-int"
    OPTIONAL_DOUBLE = "optional-double"
    OPTIONAL_STRING = "optional-string"
    STRING_LIST = "string-list"


class FieldType(ABCMeta):
    """
    Metaclass giving every field class a __typename__, read-only properties for
    the names in __introspectable__, and stable __repr__/__rich_repr__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    # descr: Unset | str | Text, non-empty once trimmed, stored as None when absent
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)


def _sanitize_choices(cls, metadata, /):
    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")

    if isinstance(choices, Set):
        sanitized = sorted(choices, key=str)
    else:
        sanitized = []
        for choice in choices:
            if choice in sanitized:
                raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)

    if not all(isinstance(choice, str) for choice in sanitized):
        raise TypeError(f"{cls.__typename__} 'choices' must be an iterable of strings")
    if sanitized and not cls.textual:
        raise InvalidFieldError(f"{cls.__typename__} fields cannot restrict values with 'choices'")
    if sanitized and metadata["metavar"] is not None:
        raise TypeError(f"{cls.__typename__} cannot have both 'metavar' and 'choices'")

    metadata["choices"] = tuple(sanitized)


def _sanitize_default(self, metadata, /):
    cls = type(self)
    if (default := metadata["default"]) is Unset:
        return
    if not self.defaultable:
        raise TypeError(f"{cls.__typename__} does not accept a 'default'")

    default = self.check(default)
    if metadata["choices"] and default not in metadata["choices"]:
        raise InvalidDefaultError(f"invalid default {default!r}, not one of the given choices")
    metadata["default"] = default


class Field[_T](metaclass=FieldType):
    """
    Abstract base of every value shape; concrete shapes implement check()
    and convert().

    Properties
    - default, choices, descr, metavar are read-only mirrors of the sanitized
      metadata.
    - has_default tells the scanner whether an unobserved binding is fine.
    """

    __introspectable__ = (
        "default",
        "choices",
        "descr",
        "metavar",
    )
    __displayable__ = (
        "shape",
        "default",
        "choices",
        "descr",
        "metavar",
    )

    shape = Unset
    nargs = 1
    optional = False
    textual = False
    defaultable = True

    def __init__(self, default=Unset, descr=Unset, *, choices=(), metavar=Unset):
        metadata = {
            "default": default,
            "choices": choices,
            "descr": descr,
            "metavar": metavar,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_choices(type(self), metadata)
        _sanitize_default(self, metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def has_default(self):
        return self.optional or self._default is not Unset

    @abstractmethod
    def check(self, default, /):
        """Validate a declared default for this shape; returns it normalized."""

    @abstractmethod
    def convert(self, token, /):
        """Turn one token into a value of this shape; ValueError when it cannot."""

    def accepts(self, value, /):
        return not self._choices or value in self._choices

    def empty(self):
        """Value an optional shape binds when nothing was observed."""
        return None

    def fallback(self):
        if self._default is not Unset:
            return self._default
        if self.optional:
            return self.empty()
        return Unset


class Int(Field[int]):
    """Base-10 signed integer within the 32-bit range."""
    shape = Shape.INT
    minimum = -2 ** 31
    maximum = 2 ** 31 - 1

    def check(self, default, /):
        if not isinstance(default, int) or isinstance(default, bool):
            raise TypeError(f"{type(self).__typename__} 'default' must be an integer")
        if not self.minimum <= default <= self.maximum:
            raise InvalidDefaultError(f"invalid default {default!r}, out of range")
        return default

    def convert(self, token, /):
        if not _INTEGER.fullmatch(token):
            raise ValueError(f"{token!r} is not an integer")
        if not self.minimum <= (value := int(token)) <= self.maximum:
            raise ValueError(f"{token!r} is out of range")
        return value


class Double(Field[float]):
    """Floating-point number."""
    shape = Shape.DOUBLE

    def check(self, default, /):
        if not isinstance(default, int | float) or isinstance(default, bool):
            raise TypeError(f"{type(self).__typename__} 'default' must be a number")
        return float(default)

    def convert(self, token, /):
        if not _DOUBLE.fullmatch(token):
            raise ValueError(f"{token!r} is not a number")
        return float(token)


class String(Field[str]):
    shape = Shape.STRING
    textual = True

    def check(self, default, /):
        if not isinstance(default, str):
            raise TypeError(f"{type(self).__typename__} 'default' must be a string")
        return default

    def convert(self, token, /):
        return token


class Bool(Field[bool]):
    """
    Flag-only boolean.

    By default the flag is presence-only: seeing it binds True, not seeing it
    binds False. With require_value=True it takes an explicit "true"/"false"
    token instead and is required unless it has a default.
    """
    __introspectable__ = (
        "default",
        "choices",
        "descr",
        "metavar",
        "require_value",
    )
    __displayable__ = (
        "shape",
        "require_value",
        "default",
        "descr",
    )

    shape = Shape.BOOL

    def __init__(self, default=Unset, descr=Unset, *, require_value=False, metavar=Unset):
        if not isinstance(require_value, bool):
            raise TypeError(f"{type(self).__typename__} 'require_value' must be a boolean")
        self._require_value = require_value
        super().__init__(default, descr, metavar=metavar)

    @property
    def nargs(self):
        return 1 if self._require_value else 0

    @property
    def optional(self):
        return not self._require_value

    @property
    def defaultable(self):
        return self._require_value

    def check(self, default, /):
        if not isinstance(default, bool):
            raise TypeError(f"{type(self).__typename__} 'default' must be a boolean")
        return default

    def convert(self, token, /):
        match token:
            case "true":
                return True
            case "false":
                return False
        raise ValueError(f"{token!r} is not 'true' or 'false'")

    def empty(self):
        return False


class _Optional:
    # optional shapes have no declared default, so descr comes first
    optional = True
    defaultable = False

    def __init__(self, descr=Unset, *, choices=(), metavar=Unset):
        super().__init__(Unset, descr, choices=choices, metavar=metavar)


class OptionalInt(_Optional, Int):
    shape = Shape.OPTIONAL_INT


class OptionalDouble(_Optional, Double):
    shape = Shape.OPTIONAL_DOUBLE


class OptionalString(_Optional, String):
    shape = Shape.OPTIONAL_STRING


class StringList(_Optional, String):
    """
    Greedy list of words: the current token plus every following token up to
    the next one starting with '-'. Positional only, and always the last one.
    """
    shape = Shape.STRING_LIST
    nargs = Ellipsis

    def empty(self):
        return []


del FieldType

__all__ = (
    "Shape",
    "Field",
    "Int",
    "Double",
    "String",
    "Bool",
    "OptionalInt",
    "OptionalDouble",
    "OptionalString",
    "StringList",
)
