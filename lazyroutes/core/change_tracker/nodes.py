"""Synthesized expression nodes.

A closed set of immutable expression variants used to build replacement
code. They are rendered to text by ``Printer``.
"""

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class Identifier:
    text: str


@dataclass(frozen=True)
class StringLiteral:
    value: str


@dataclass(frozen=True)
class PropertyAccess:
    expression: "Expression"
    name: str


@dataclass(frozen=True)
class Call:
    callee: "Expression"
    arguments: Tuple["Expression", ...] = ()


@dataclass(frozen=True)
class ImportCall:
    """Dynamic ``import(specifier)``."""
    specifier: StringLiteral


@dataclass(frozen=True)
class ArrowFunction:
    parameters: Tuple[str, ...]
    body: "Expression"


@dataclass(frozen=True)
class PropertyAssignment:
    """``name: initializer`` inside an object literal."""
    name: str
    initializer: "Expression"


Expression = Union[Identifier, StringLiteral, PropertyAccess, Call, ImportCall, ArrowFunction]
Node = Union[Expression, PropertyAssignment]


def identifier(text: str) -> Identifier:
    return Identifier(text)


def string_literal(value: str) -> StringLiteral:
    return StringLiteral(value)


def property_access(expression: Expression, name: str) -> PropertyAccess:
    return PropertyAccess(expression, name)


def call(callee: Expression, *arguments: Expression) -> Call:
    return Call(callee, tuple(arguments))


def import_call(specifier: str) -> ImportCall:
    return ImportCall(StringLiteral(specifier))


def arrow_function(parameters, body: Expression) -> ArrowFunction:
    return ArrowFunction(tuple(parameters), body)


def property_assignment(name: str, initializer: Expression) -> PropertyAssignment:
    return PropertyAssignment(name, initializer)
