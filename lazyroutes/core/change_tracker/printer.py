"""Renders synthesized expression nodes to TypeScript text."""

from .nodes import (
    ArrowFunction,
    Call,
    Identifier,
    ImportCall,
    Node,
    PropertyAccess,
    PropertyAssignment,
    StringLiteral,
)

_QUOTES = {"single": "'", "double": '"'}

_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


class Printer:
    """Prints nodes on a single line in the usual Angular style.

    ``m => m.Foo`` for one parameter, ``() => ...`` otherwise.
    """

    def __init__(self, quote_style: str = "single"):
        if quote_style not in _QUOTES:
            raise ValueError(f"Unknown quote style: {quote_style}")
        self._quote = _QUOTES[quote_style]

    def print_node(self, node: Node) -> str:
        if isinstance(node, Identifier):
            return node.text
        if isinstance(node, StringLiteral):
            return self._print_string(node.value)
        if isinstance(node, PropertyAccess):
            return f"{self.print_node(node.expression)}.{node.name}"
        if isinstance(node, Call):
            arguments = ", ".join(self.print_node(arg) for arg in node.arguments)
            return f"{self.print_node(node.callee)}({arguments})"
        if isinstance(node, ImportCall):
            return f"import({self.print_node(node.specifier)})"
        if isinstance(node, ArrowFunction):
            if len(node.parameters) == 1:
                parameters = node.parameters[0]
            else:
                parameters = f"({', '.join(node.parameters)})"
            return f"{parameters} => {self.print_node(node.body)}"
        if isinstance(node, PropertyAssignment):
            return f"{node.name}: {self.print_node(node.initializer)}"
        raise TypeError(f"Cannot print node of type {type(node).__name__}")

    def _print_string(self, value: str) -> str:
        escaped = "".join(_ESCAPES.get(ch, ch) for ch in value)
        escaped = escaped.replace(self._quote, "\\" + self._quote)
        return f"{self._quote}{escaped}{self._quote}"
