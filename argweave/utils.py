"""
Argweave utilities (small helpers shared by every layer)

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "not provided", kept apart from None because None is
    a legitimate bound value (optional fields materialize to None).
- coalesce(value, default=None)
  • Replace Unset with a concrete default, preserving None/0/""/[].
- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated accessors.
- mirror("attr")
  • Read-only property over self._attr that hands out container copies.
- ordinal(number)
  • Position words used by parse-failure messages ("third", "12th", ...).

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> ordinal(3)
    'third'
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for a value that was not provided.

    A field without a declared default keeps Unset, an optional field without a
    value binds None; the two must never be confused, hence a dedicated type.

    - bool(Unset) is False.
    - repr(Unset) is "Unset".
    - UnsetType() always returns the same instance and cannot be subclassed.
    - Participates in PEP 604 unions, so isinstance(x, str | Unset) works.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `object`, or `default` when `object` is the Unset sentinel.

    Falsey values (None, 0, "", []) are returned unchanged; only Unset is replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Give a callable a stable __name__/__qualname__.

    - rename(callable, name) renames in place and returns the callable.
    - rename(name) returns a decorator doing the same.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    # fresh containers all the way down; mappings keep their keys
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property over the backing attribute "_{name}".

    Containers are copied on every access (sequences become lists, mappings
    dicts, sets sets), so callers can never mutate a schema through its
    public surface.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def ordinal(number, /):
    """
    Human-friendly ordinal for a 1-based token position.

    1..10 are spelled out ("first" … "tenth"); anything else gets a numeric
    suffix with the usual teen exception (11th, 12th, 13th, 111th, …).
    """
    if not isinstance(number, int) or isinstance(number, bool):
        raise TypeError("ordinal() argument must be an integer")

    words = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")
    if 1 <= number <= len(words):
        return words[number - 1]

    if 10 < number % 100 < 20:
        return f"{number}th"
    return f"{number}%s" % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


Unset = UnsetType()
"""
The only instance of UnsetType, used as the "not provided" default across the API.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "ordinal",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
