"""Parsed program, type checker and component metadata."""

from .checker import TypeChecker
from .metadata import ComponentMetadata, ComponentMetadataReader
from .program import Program
from .symbols import Declaration, Symbol, SymbolKind

__all__ = [
    "ComponentMetadata",
    "ComponentMetadataReader",
    "Declaration",
    "Program",
    "Symbol",
    "SymbolKind",
    "TypeChecker",
]
