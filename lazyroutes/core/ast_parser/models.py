"""AST Parser data models.

Defines the parsed-file container shared by the program, the type checker
and the change tracker. These are pure data containers with no parsing logic.
"""

from dataclasses import dataclass, field
from typing import List

import tree_sitter


@dataclass
class ParseError:
    """An error encountered during parsing."""

    file_path: str
    line: int
    message: str
    severity: str = "warning"  # "warning" | "error"


@dataclass(eq=False)
class SourceFile:
    """One parsed TypeScript file.

    The tree and the original bytes are never mutated. All offsets handed
    out by tree-sitter (and used by the change tracker) are byte offsets
    into ``source``.
    """

    file_name: str  # Normalized POSIX path, e.g. "/repo/src/app/app.routes.ts"
    text: str
    source: bytes
    tree: tree_sitter.Tree
    language: str  # "typescript" | "tsx"
    errors: List[ParseError] = field(default_factory=list)

    @property
    def root(self) -> tree_sitter.Node:
        return self.tree.root_node

    @property
    def is_declaration_file(self) -> bool:
        return self.file_name.endswith(".d.ts")

    def node_text(self, node: tree_sitter.Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")
