"""
Usage rendering.

render(parser) turns the metadata a parser holds into a rich renderable:

    usage: calc add [-h|--help] [--round <round>] <a> <b>
    Add two numbers

    positionals:
      a              first number
      b              second number

    flags:
      --round        round the result (default: 2)

Colour is opt-in (colorful=True); the palette can be overridden from the host
with __styles__ in __main__, and the program name with __prog__.
"""
from collections import defaultdict

from rich.console import Group
from rich.table import Table
from rich.text import Text

from .fields import Shape
from .identifiers import RESERVED, Kind
from .utils import Unset

_PALETTE = {
    "usage": "bold #E6E6F0",
    "prog-name": "bold #00E5FF",
    "descr": "#C8C8D0",
    "group": "bold #FF4DA6",
    "flag": "#9CE19C",
    "positional": "#FFC2E0",
    "metavar": "italic #C8C8D0",
    "default": "dim",
}


def _prog(parser, main, /):
    path = [step.name for step in parser.path]
    path[0] = getattr(main, "__prog__", path[0])
    return " ".join(path)


def metavar(binding, /):
    """Label used for a binding's value in usage lines."""
    field = binding.field
    if field.metavar:
        return field.metavar
    if field.choices:
        return "{%s}" % ",".join(field.choices)
    if field.shape is Shape.BOOL:
        return "{true,false}"
    return "<%s>" % binding.dest


def synopsis(parser, /):
    """Plain-text usage line pieces, without the program name."""
    pieces = ["[%s]" % "|".join(RESERVED)]

    for binding in parser.bindings:
        if binding.kind is not Kind.FLAG:
            continue
        piece = "|".join(binding.aliases)
        if binding.field.nargs:
            piece += " " + metavar(binding)
        pieces.append("[%s]" % piece if binding.has_default else piece)

    for binding in parser.positionals:
        piece = metavar(binding)
        if binding.field.nargs is Ellipsis:
            piece += " ..."
        pieces.append("[%s]" % piece if binding.has_default else piece)

    if (router := parser.router) is not None and router.routes:
        piece = "{%s} ..." % ",".join(router.routes)
        pieces.append(piece if router.required else "[%s]" % piece)

    return pieces


def render(parser, /, *, colorful=False):
    main = __import__("__main__")
    styles = defaultdict(str, _PALETTE | getattr(main, "__styles__", {}))

    def text(fragment, style):
        return Text(str(fragment), styles[style] if colorful else "")

    renders = [Text.assemble(
        text("usage: ", "usage"),
        text(_prog(parser, main), "prog-name"),
        " ",
        " ".join(synopsis(parser)),
    )]

    if parser.descr:
        renders.append(text(parser.descr, "descr"))

    sections = {"positionals": [], "flags": [], "subcommands": []}

    for binding in parser.bindings:
        field = binding.field
        if binding.kind is Kind.FLAG:
            name = text("|".join(binding.aliases), "flag")
            if field.nargs:
                name.append(" " + metavar(binding), styles["metavar"] if colorful else "")
            section = "flags"
        else:
            name = text(binding.identifier.raw, "positional")
            section = "positionals"

        descr = Text(str(field.descr or ""))
        if field.default is not Unset:
            descr.append(("" if not field.descr else " ") + "(default: %r)" % field.default, styles["default"] if colorful else "")
        sections[section].append((name, descr))

    if (router := parser.router) is not None:
        for name, route in router.routes.items():
            sections["subcommands"].append((text(name, "positional"), Text(str(route.descr or ""))))

    for title, rows in sections.items():
        if not rows:
            continue
        table = Table.grid(padding=(0, 2))
        table.add_column(no_wrap=True)
        table.add_column()
        for name, descr in rows:
            table.add_row(Text("  ").append_text(name), descr)
        renders.extend((Text(""), text(title + ":", "group"), table))

    return Group(*renders)


__all__ = (
    "metavar",
    "synopsis",
    "render",
)
