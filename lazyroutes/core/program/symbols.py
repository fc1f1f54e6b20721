"""Symbol and declaration records produced by the type checker."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import tree_sitter

from ..ast_parser.models import SourceFile

CLASS_NODE_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})


class SymbolKind(Enum):
    """What a name is bound to."""
    CLASS = "class"
    FUNCTION = "function"
    VARIABLE = "variable"
    PARAMETER = "parameter"
    PROPERTY = "property"
    TYPE = "type"          # interface, type alias, enum
    IMPORT = "import"      # alias for an imported binding
    NAMESPACE = "namespace"
    EXTERNAL = "external"  # export of a module outside the program


@dataclass(eq=False)
class Declaration:
    """A declaring node together with the file that contains it."""

    source_file: SourceFile
    node: tree_sitter.Node

    @property
    def key(self) -> Tuple[str, int, int]:
        """Stable identity: (file name, start byte, end byte)."""
        return (self.source_file.file_name, self.node.start_byte, self.node.end_byte)

    @property
    def name(self) -> Optional[str]:
        name_node = self.node.child_by_field_name("name")
        if name_node is None:
            return None
        return self.source_file.node_text(name_node)

    @property
    def is_class(self) -> bool:
        return self.node.type in CLASS_NODE_TYPES


@dataclass
class Symbol:
    """A named entity.

    For ``IMPORT`` symbols, ``module`` is the import specifier and
    ``import_name`` the exported name requested from it (``"default"`` for
    default imports, ``"*"`` for namespace imports). For ``EXTERNAL`` and
    ``NAMESPACE`` symbols, ``module`` is the specifier that was not (or need
    not be) followed further.
    """

    name: str
    kind: SymbolKind
    declarations: List[Declaration] = field(default_factory=list)
    module: Optional[str] = None
    import_name: Optional[str] = None

    @property
    def value_declaration(self) -> Optional[Declaration]:
        return self.declarations[0] if self.declarations else None
