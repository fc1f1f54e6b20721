"""TypeScript parsers using tree-sitter.

``.ts`` files use the TypeScript grammar, ``.tsx`` files the TSX grammar.
"""

import tree_sitter
import tree_sitter_typescript

from .base import BaseLanguageParser

_TS_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_typescript())
_TSX_LANGUAGE = tree_sitter.Language(tree_sitter_typescript.language_tsx())


class TypeScriptParser(BaseLanguageParser):
    """tree-sitter based TypeScript parser."""

    def get_language(self) -> str:
        return "typescript"

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _TS_LANGUAGE


class TsxParser(TypeScriptParser):
    """TypeScript parser for files containing JSX."""

    def get_language(self) -> str:
        return "tsx"

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _TSX_LANGUAGE
