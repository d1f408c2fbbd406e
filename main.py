import sys

from rich.pretty import pprint

from argweave import *


class AddCommand(Args):
    """Add two numbers"""

    def build(self, parser, /):
        parser.add("a", Int(descr="First argument"))
        parser.add("b", Int(descr="Second argument"))


class NegateCommand(Args):
    """Negate a number"""

    def build(self, parser, /):
        parser.add("value", Int(descr="Argument"))


class CliArgs(Args):
    """Tiny calculator"""
    command: AddCommand | NegateCommand

    def build(self, parser, /):
        parser.add("-v|--verbose", Bool(descr="Show the parsed arguments"))
        self.route(parser, "command", {"add": AddCommand, "negate": NegateCommand})


if __name__ == '__main__':
    args = CliArgs()
    if not parse(args):
        sys.exit(1)
    if args.verbose:
        pprint(args)
    match args.command:
        case AddCommand(a=a, b=b):
            print("Result:", a + b)
        case NegateCommand(value=value):
            print("Result:", -value)
