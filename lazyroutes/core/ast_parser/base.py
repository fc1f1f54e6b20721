"""Base interface for tree-sitter parsers.

Shared parsing logic lives here; the grammar is supplied by subclasses.
"""

import logging
from abc import ABC, abstractmethod

import tree_sitter

from .models import ParseError, SourceFile
from .utils import normalize_path

logger = logging.getLogger(__name__)


class BaseLanguageParser(ABC):
    """Abstract base for tree-sitter parsers producing ``SourceFile`` objects.

    Subclasses implement:
    - get_language(): returns language name string
    - get_tree_sitter_language(): returns tree-sitter Language object
    """

    @abstractmethod
    def get_language(self) -> str:
        """Return the language identifier (e.g., 'typescript', 'tsx')."""
        ...

    @abstractmethod
    def get_tree_sitter_language(self) -> tree_sitter.Language:
        """Return the tree-sitter Language object for this language."""
        ...

    def parse_file(self, file_path: str) -> SourceFile:
        """Read and parse a source file.

        Args:
            file_path: Path to the source file

        Returns:
            SourceFile keyed by the normalized absolute path

        Raises:
            OSError: If the file cannot be read
        """
        with open(file_path, "r", encoding="utf-8", newline="") as f:
            source_text = f.read()
        return self.parse_source(source_text, normalize_path(file_path))

    def parse_source(self, source_text: str, file_name: str) -> SourceFile:
        """Parse source code string into a SourceFile.

        Args:
            source_text: Source code as string
            file_name: File name recorded on the result (normalized POSIX path)

        Returns:
            SourceFile with tree and any parse errors
        """
        source_bytes = source_text.encode("utf-8")

        parser = tree_sitter.Parser(self.get_tree_sitter_language())
        tree = parser.parse(source_bytes)

        errors = []
        if tree.root_node.has_error:
            line = self._first_error_line(tree.root_node)
            logger.warning(f"Tree-sitter reported parse errors in {file_name} (line {line})")
            errors.append(
                ParseError(
                    file_path=file_name,
                    line=line,
                    message="Tree-sitter reported parse errors in file",
                    severity="warning",
                )
            )

        return SourceFile(
            file_name=file_name,
            text=source_text,
            source=source_bytes,
            tree=tree,
            language=self.get_language(),
            errors=errors,
        )

    @staticmethod
    def _first_error_line(root: tree_sitter.Node) -> int:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.is_error or node.is_missing:
                return node.start_point.row + 1
            if node.has_error:
                stack.extend(reversed(node.children))
        return 0
