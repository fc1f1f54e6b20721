"""Standalone component predicate."""

import logging
from typing import Dict, Optional, Tuple

import tree_sitter

from ..ast_parser.models import SourceFile
from ..program import ComponentMetadataReader, Declaration, TypeChecker

logger = logging.getLogger(__name__)


def resolve_class(
    source_file: SourceFile, reference: tree_sitter.Node, checker: TypeChecker
) -> Optional[Declaration]:
    """Class declaration a reference points to, or None if it cannot be migrated."""
    return checker.find_class_declaration(source_file, reference)


class StandalonePredicate:
    """Decides whether a class is a standalone component.

    Classes without extractable component metadata are not standalone.
    Answers are cached per declaration for the lifetime of the instance.
    """

    def __init__(self, metadata_reader: ComponentMetadataReader):
        self._metadata_reader = metadata_reader
        self._cache: Dict[Tuple[str, int, int], bool] = {}

    def is_standalone(self, declaration: Declaration) -> bool:
        key = declaration.key
        if key not in self._cache:
            metadata = self._metadata_reader.get_component_metadata(declaration)
            self._cache[key] = metadata is not None and metadata.is_standalone
            logger.debug(
                f"{declaration.name} in {declaration.source_file.file_name}: "
                f"standalone={self._cache[key]}"
            )
        return self._cache[key]
