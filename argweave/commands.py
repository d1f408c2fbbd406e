"""
Argweave commands: declarative argument classes on top of Parser.

An Args subclass describes a command: its docstring is the description, and
build() declares the fields. parse() builds a fresh Parser for an instance,
scans the tokens and, on success, stores every value on the instance under its
binding's dest name.

    >>> class Calc(Args):
    ...     '''Add two numbers'''
    ...     def build(self, parser, /):
    ...         parser.add("a", Int())
    ...         parser.add("b", Int(default=2))
    ...
    >>> calc = Calc()
    >>> parse(calc, ["1"])
    True
    >>> calc.a, calc.b
    (1, 2)

Subcommands are a closed set of Args subclasses registered with route(); the
chosen one is instantiated, populated and stored on the routing attribute.
"""
import inspect
import re
import typing
import weakref
from abc import ABC, abstractmethod
from collections.abc import Mapping

from .schemas import Parser
from .utils import *


class Args(ABC):
    """
    Base class of declarative argument sets.

    Subclasses implement build(parser) and may call route() from it to
    register subcommands. Attributes are created by parse()/populate().
    """

    @abstractmethod
    def build(self, parser, /):
        """Declare this command's fields on `parser`."""

    def route(self, parser, attribute, variants, /, *, required=Unset):
        """
        Register subcommands on `parser`, storing the chosen one on `attribute`.

        variants maps each subcommand name to an Args subclass. When required is
        Unset, it is taken from the annotation of `attribute`: a union with None
        makes the subcommand optional. The attribute starts out as None.
        """
        if not isinstance(attribute, str) or not attribute.isidentifier():
            raise TypeError("route() 'attribute' must be an identifier string")
        if not isinstance(variants, Mapping) or not variants:
            raise TypeError("route() 'variants' must be a non-empty mapping")
        for name, variant in variants.items():
            if not (isinstance(variant, type) and issubclass(variant, Args)):
                raise TypeError(f"route() variant {name!r} must be an args subclass")

        parser.reserve(attribute)
        if required is Unset:
            required = not _nullable(type(self), attribute)

        router = parser.subcommands(required)
        setattr(self, attribute, None)
        for name, variant in variants.items():
            factory, assign = _variant(self, attribute, variant)
            router.add(name, factory, assign, _summary(variant))
        return router

    def __repr__(self):
        return f"{type(self).__name__}({", ".join(f"{name}={value!r}" for name, value in vars(self).items())})"


def _nullable(cls, attribute, /):
    try:
        hint = typing.get_type_hints(cls)[attribute]
    except KeyError:
        return False
    except NameError:
        # unresolvable forward references (classes local to a function)
        hint = inspect.get_annotations(cls).get(attribute)
        if not isinstance(hint, str):
            return False
        return "None" in re.split(r"\s*\|\s*", hint.strip()) or hint.strip().startswith("Optional[")
    return hint is type(None) or type(None) in typing.get_args(hint)


def _summary(variant, /):
    if not (doc := variant.__doc__):
        return Unset
    return inspect.cleandoc(doc).splitlines()[0]


def _variant(target, attribute, variant, /):
    # child parser -> the instance it was built for; nested routes populate that
    # instance before assign runs, and children of failed parses fall away
    built = weakref.WeakKeyDictionary()

    def factory():
        instance = variant()
        built[parser := schema(instance)] = instance
        return parser

    def assign(outcome):
        instance = built.pop(outcome.schema)
        populate(instance, outcome)
        setattr(target, attribute, instance)

    return rename(factory, f"{variant.__name__}.factory"), rename(assign, f"{variant.__name__}.assign")


def schema(target, /, *, prog=Unset, descr=Unset):
    """Build a fresh Parser for an Args instance."""
    if not isinstance(target, Args):
        raise TypeError("schema() argument must be an args instance")
    if descr is Unset and (doc := type(target).__doc__):
        descr = inspect.cleandoc(doc)
    parser = Parser(prog, descr)
    for name in dir(type(target)):
        if not name.startswith("_") and callable(getattr(type(target), name)):
            parser.reserve(name)
    target.build(parser)
    return parser


def populate(target, outcome, /):
    """Copy the values of a successful outcome onto `target`."""
    if not outcome.ok:
        raise ValueError("populate() outcome must be successful")
    for name, value in outcome.values.items():
        setattr(target, name, value)
    return target


def parse(target, argv=Unset, /, descr=Unset, *, prog=Unset, shell=True, colorful=False, console=Unset):
    """
    Parse argv into `target` and report whether it succeeded.

    In shell mode a failure prints one diagnostic line and the usage to stderr,
    and a help request prints the usage to stdout; both return False and the
    caller decides how to exit. Outside shell mode they are raised instead.
    Warnings (a repeated flag) are printed in shell mode and go through the
    warnings module otherwise, whatever the outcome.
    """
    outcome = schema(target, prog=prog, descr=descr).parse(argv)
    outcome.report(shell=shell, colorful=colorful, console=console, stacklevel=2)
    if outcome.ok:
        populate(target, outcome)
    return outcome.ok


__all__ = (
    "Args",
    "schema",
    "populate",
    "parse",
)
