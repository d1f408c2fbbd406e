"""
Identifier grammar.

An identifier is the string a binding is declared under:
- positional: a bare label, "src", "out-dir", "file_2"
- flag: one or more aliases joined by "|", "-v", "--verbose", "-v|--verbose"

Labels match [A-Za-z][A-Za-z0-9_-]*. Short aliases are a dash and one ASCII
letter; long aliases are two dashes and a label. "-h" and "--help" are reserved
for help. Violations raise usage errors at declaration time.
"""
import enum
import re

from .faults import InvalidIdentifierError, ReservedFlagError, DuplicateFlagError
from .utils import mirror

RESERVED = ("-h", "--help")

_LABEL = re.compile(r"[A-Za-z][A-Za-z0-9_-]*")
_SHORT = re.compile(r"-[A-Za-z]")


class Kind(enum.Enum):
    POSITIONAL = "positional"
    FLAG = "flag"


def validate_label(label, /):
    """True when `label` is a valid positional label (and subcommand name)."""
    return isinstance(label, str) and _LABEL.fullmatch(label) is not None


class Identifier:
    """
    A classified identifier: its raw text, kind, aliases and destination name.

    `dest` is the name values are reported under: the positional label, else the
    first long alias, else the short letter; dashes become underscores.
    """
    __slots__ = ("_raw", "_kind", "_aliases", "_dest")

    raw = mirror("raw")
    kind = mirror("kind")
    aliases = mirror("aliases")
    dest = mirror("dest")

    def __init__(self, raw, kind, aliases, /):
        self._raw = raw
        self._kind = kind
        self._aliases = tuple(aliases)

        if kind is Kind.POSITIONAL:
            label = raw
        else:
            label = next((alias[2:] for alias in self._aliases if alias.startswith("--")), self._aliases[0][1:])
        self._dest = label.replace("-", "_")

    def __eq__(self, other):
        if not isinstance(other, Identifier):
            return NotImplemented
        return (self._raw, self._kind) == (other._raw, other._kind)

    def __hash__(self):
        return hash((self._raw, self._kind))

    def __repr__(self):
        return f"identifier({self._raw!r}, kind={self._kind.value!r})"


def classify(identifier, /):
    """
    Classify a declaration string as a positional or a flag.

    Raises
    - TypeError: identifier is not a string.
    - InvalidIdentifierError: empty, or any label/alias breaks the grammar.
    - ReservedFlagError: one of the aliases is "-h" or "--help".
    - DuplicateFlagError: the same alias is listed twice ("-v|-v").
    """
    if not isinstance(identifier, str):
        raise TypeError("identifier must be a string")
    if not identifier:
        raise InvalidIdentifierError("identifier cannot be empty")

    if not identifier.startswith("-"):
        if not validate_label(identifier):
            raise InvalidIdentifierError(f"invalid identifier {identifier!r}")
        return Identifier(identifier, Kind.POSITIONAL, (identifier,))

    aliases = []
    for alias in identifier.split("|"):
        if alias in RESERVED:
            raise ReservedFlagError(
                "cannot use flags '-h' and '--help', reserved for printing help message"
            )
        if alias.startswith("--"):
            valid = validate_label(alias[2:])
        else:
            valid = _SHORT.fullmatch(alias) is not None
        if not valid:
            raise InvalidIdentifierError(f"invalid identifier {alias!r} in {identifier!r}")
        if alias in aliases:
            raise DuplicateFlagError(f"duplicate flag {alias!r} in {identifier!r}")
        aliases.append(alias)

    return Identifier(identifier, Kind.FLAG, aliases)


__all__ = (
    "RESERVED",
    "Kind",
    "Identifier",
    "validate_label",
    "classify",
)
