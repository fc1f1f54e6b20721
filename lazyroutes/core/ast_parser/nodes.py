"""Small helpers for navigating tree-sitter TypeScript nodes."""

from typing import Iterator, List, Optional

import tree_sitter

# Expression wrappers that do not change the value being referenced
_TRANSPARENT_WRAPPERS = frozenset({
    "parenthesized_expression",
    "as_expression",
    "satisfies_expression",
    "non_null_expression",
    "type_assertion",
})


def named_children(node: tree_sitter.Node) -> List[tree_sitter.Node]:
    """Named children without comments (tree-sitter reports comments as extras)."""
    return [child for child in node.named_children if child.type != "comment"]


def child_of_type(node: tree_sitter.Node, type_name: str) -> Optional[tree_sitter.Node]:
    for child in node.children:
        if child.type == type_name:
            return child
    return None


def has_token(node: tree_sitter.Node, token: str) -> bool:
    """Whether ``node`` has a direct (anonymous or named) child of type ``token``."""
    return any(child.type == token for child in node.children)


def call_arguments(call: tree_sitter.Node) -> List[tree_sitter.Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return named_children(arguments)


def unwrap_expression(node: Optional[tree_sitter.Node]) -> Optional[tree_sitter.Node]:
    """Strip parentheses, ``as``/``satisfies``/``<T>`` casts and non-null assertions."""
    while node is not None and node.type in _TRANSPARENT_WRAPPERS:
        # `<T>expr` puts the type arguments before the expression
        inner = [child for child in named_children(node) if child.type != "type_arguments"]
        if not inner:
            return node
        node = inner[0]
    return node


def string_literal_value(node: Optional[tree_sitter.Node], source: bytes) -> Optional[str]:
    """Value of a plain string literal (no escape processing)."""
    if node is None or node.type != "string":
        return None
    raw = source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")
    return raw[1:-1]


def find_ancestor(node: tree_sitter.Node, types) -> Optional[tree_sitter.Node]:
    current = node.parent
    while current is not None:
        if current.type in types:
            return current
        current = current.parent
    return None


def walk(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Pre-order traversal of ``node`` and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))
