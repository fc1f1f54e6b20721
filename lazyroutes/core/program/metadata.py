"""Angular component metadata extraction.

Reads the ``@Component({...})`` decorator of a class declaration. Only
literal values are understood; anything computed makes the metadata
unextractable.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import tree_sitter

from ..ast_parser.nodes import call_arguments, named_children, string_literal_value, unwrap_expression
from .checker import TypeChecker
from .symbols import Declaration, SymbolKind

logger = logging.getLogger(__name__)

COMPONENT_DECORATOR = "Component"


@dataclass
class ComponentMetadata:
    """What the migration needs to know about a component class."""

    name: str
    selector: Optional[str]
    is_standalone: bool


class ComponentMetadataReader:
    """Looks up component metadata for class declarations."""

    def __init__(self, checker: TypeChecker, standalone_default: bool = True):
        self._checker = checker
        self._standalone_default = standalone_default

    def get_component_metadata(self, declaration: Declaration) -> Optional[ComponentMetadata]:
        """Metadata of the class's ``@Component`` decorator.

        Returns:
            ComponentMetadata, or None if the class has no component
            decorator or its options are not a literal object with a
            literal ``standalone`` flag
        """
        source_file = declaration.source_file
        for decorator in self._decorators(declaration):
            expression = named_children(decorator)
            if not expression or expression[0].type != "call_expression":
                continue
            call = expression[0]
            if not self._is_component_decorator(declaration, call.child_by_field_name("function")):
                continue

            arguments = call_arguments(call)
            options = unwrap_expression(arguments[0]) if arguments else None
            if options is None or options.type != "object":
                logger.debug(f"Non-literal @Component options on {declaration.name} in {source_file.file_name}")
                return None

            standalone = self._standalone_default
            selector = None
            for prop in named_children(options):
                if prop.type != "pair":
                    continue
                key = prop.child_by_field_name("key")
                value = unwrap_expression(prop.child_by_field_name("value"))
                if key is None or value is None:
                    continue
                key_name = source_file.node_text(key).strip("'\"")
                if key_name == "standalone":
                    if value.type == "true":
                        standalone = True
                    elif value.type == "false":
                        standalone = False
                    else:
                        logger.debug(f"Non-literal standalone flag on {declaration.name}")
                        return None
                elif key_name == "selector":
                    selector = string_literal_value(value, source_file.source)

            return ComponentMetadata(
                name=declaration.name or "default",
                selector=selector,
                is_standalone=standalone,
            )
        return None

    @staticmethod
    def _decorators(declaration: Declaration) -> List[tree_sitter.Node]:
        """Decorators on the class, including ones written before ``export``."""
        decorators = [c for c in declaration.node.children if c.type == "decorator"]
        parent = declaration.node.parent
        if parent is not None and parent.type == "export_statement":
            decorators.extend(c for c in parent.children if c.type == "decorator")
        return decorators

    def _is_component_decorator(self, declaration: Declaration, callee: Optional[tree_sitter.Node]) -> bool:
        source_file = declaration.source_file
        if callee is None:
            return False
        if callee.type == "identifier":
            symbol = self._checker.get_resolved_symbol(source_file, callee)
            return symbol is not None and symbol.name == COMPONENT_DECORATOR
        if callee.type == "member_expression":
            # import * as core from '@angular/core'; @core.Component(...)
            prop = callee.child_by_field_name("property")
            receiver = callee.child_by_field_name("object")
            if prop is None or receiver is None or source_file.node_text(prop) != COMPONENT_DECORATOR:
                return False
            symbol = self._checker.get_resolved_symbol(source_file, receiver)
            return symbol is not None and symbol.kind == SymbolKind.NAMESPACE
        return False
