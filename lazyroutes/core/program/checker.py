"""Type checker over a ``Program``.

Resolves identifiers through lexical scopes, follows imports across files
(named, default, namespace, re-exports and ``export *``), and derives the
declared type of simple expressions: class references, annotated variables,
parameters and class fields, ``inject(X)`` and ``new X()`` initializers.

This is deliberately not a full TypeScript checker. Anything it cannot
resolve comes back as ``None`` and callers treat that as "do not migrate".
"""

import logging
from typing import Iterator, List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.models import SourceFile
from ..ast_parser.nodes import (
    call_arguments,
    child_of_type,
    find_ancestor,
    has_token,
    named_children,
    string_literal_value,
    unwrap_expression,
    walk,
)
from .symbols import CLASS_NODE_TYPES, Declaration, Symbol, SymbolKind

logger = logging.getLogger(__name__)

_BLOCK_SCOPES = frozenset({"program", "statement_block", "class_static_block"})

_FUNCTION_SCOPES = frozenset({
    "function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "generator_function_declaration",
    "arrow_function",
    "method_definition",
})

_FUNCTION_DECLARATIONS = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
})

_TYPE_DECLARATIONS = frozenset({
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
})

_REFERENCE_TYPES = frozenset({"identifier", "type_identifier", "shorthand_property_identifier"})

# Kinds whose declared type is the entity itself (a class reference is `typeof C`)
_SELF_TYPED = frozenset({
    SymbolKind.CLASS,
    SymbolKind.FUNCTION,
    SymbolKind.TYPE,
    SymbolKind.NAMESPACE,
    SymbolKind.EXTERNAL,
})


class TypeChecker:
    """Symbol and type queries for nodes of one program."""

    def __init__(self, program):
        self._program = program

    # ── Symbols ──────────────────────────────────────────────────────────

    def get_symbol_at_location(
        self, source_file: SourceFile, node: tree_sitter.Node
    ) -> Optional[Symbol]:
        """Symbol bound to an identifier, without following imports."""
        if node.type not in _REFERENCE_TYPES:
            return None
        return self._resolve_name(source_file, source_file.node_text(node), node)

    def get_aliased_symbol(self, symbol: Optional[Symbol]) -> Optional[Symbol]:
        """Follow an import binding to the symbol it finally refers to."""
        return self._resolve_alias(symbol, set())

    def get_resolved_symbol(
        self, source_file: SourceFile, node: tree_sitter.Node
    ) -> Optional[Symbol]:
        """``get_symbol_at_location`` followed by ``get_aliased_symbol``."""
        return self.get_aliased_symbol(self.get_symbol_at_location(source_file, node))

    # ── Types ────────────────────────────────────────────────────────────

    def get_type_symbol_at_location(
        self, source_file: SourceFile, node: tree_sitter.Node
    ) -> Optional[Symbol]:
        """Symbol of the declared type of an expression, if it can be derived."""
        return self._type_of_expression(source_file, node, set())

    def find_class_declaration(
        self, source_file: SourceFile, reference: tree_sitter.Node
    ) -> Optional[Declaration]:
        """Class declaration that ``reference`` refers to.

        Follows the reference's declared type to its symbol and returns the
        first class among that symbol's declarations.
        """
        symbol = self.get_type_symbol_at_location(source_file, reference)
        if symbol is None:
            return None
        for declaration in symbol.declarations:
            if declaration.is_class:
                return declaration
        return None

    def get_export_name(self, declaration: Declaration) -> Optional[str]:
        """Name under which a top-level declaration is exported from its file.

        Returns ``"default"`` for default exports and ``None`` when the
        declaration is not exported.
        """
        source_file = declaration.source_file
        node = declaration.node
        parent = node.parent
        if parent is not None and parent.type == "export_statement":
            return "default" if has_token(parent, "default") else declaration.name

        local = declaration.name
        if local is None or parent is None or parent.type != "program":
            return None

        for statement in named_children(source_file.root):
            if statement.type != "export_statement":
                continue
            value = statement.child_by_field_name("value")
            if value is not None:
                if value.type == "identifier" and source_file.node_text(value) == local:
                    return "default"
                continue
            if statement.child_by_field_name("source") is not None:
                continue
            for local_name, exported_name, _ in self._export_specifiers(source_file, statement):
                if local_name == local:
                    return exported_name
        return None

    def find_references(
        self, source_file: SourceFile, symbol: Symbol
    ) -> List[tree_sitter.Node]:
        """Identifiers in ``source_file`` bound to ``symbol``'s declaration.

        Import specifiers themselves are not references.
        """
        target = symbol.value_declaration
        if target is None:
            return []
        references = []
        for node in walk(source_file.root):
            if node.type not in _REFERENCE_TYPES or source_file.node_text(node) != symbol.name:
                continue
            if find_ancestor(node, ("import_statement",)) is not None:
                continue
            bound = self.get_symbol_at_location(source_file, node)
            if bound is not None and bound.value_declaration is not None \
                    and bound.value_declaration.key == target.key:
                references.append(node)
        return references

    # ── Name resolution ──────────────────────────────────────────────────

    def _resolve_name(
        self, source_file: SourceFile, name: str, origin: tree_sitter.Node
    ) -> Optional[Symbol]:
        scope = origin.parent
        while scope is not None:
            symbol = self._lookup_in_scope(source_file, scope, name)
            if symbol is not None:
                return symbol
            scope = scope.parent
        return None

    def _lookup_in_scope(
        self, source_file: SourceFile, scope: tree_sitter.Node, name: str
    ) -> Optional[Symbol]:
        if scope.type in _BLOCK_SCOPES:
            for statement in named_children(scope):
                symbol = self._declared_symbol(source_file, statement, name)
                if symbol is not None:
                    return symbol
            return None

        if scope.type in _FUNCTION_SCOPES:
            single = scope.child_by_field_name("parameter")
            if single is not None and source_file.node_text(single) == name:
                return Symbol(name, SymbolKind.PARAMETER, [Declaration(source_file, single)])
            parameters = scope.child_by_field_name("parameters")
            if parameters is not None:
                for parameter in named_children(parameters):
                    pattern = parameter.child_by_field_name("pattern") or parameter
                    if any(source_file.node_text(n) == name for n in _binding_identifiers(pattern)):
                        return Symbol(name, SymbolKind.PARAMETER, [Declaration(source_file, parameter)])
            if scope.type in ("function_expression", "function", "generator_function"):
                own_name = scope.child_by_field_name("name")
                if own_name is not None and source_file.node_text(own_name) == name:
                    return Symbol(name, SymbolKind.FUNCTION, [Declaration(source_file, scope)])
            return None

        if scope.type == "catch_clause":
            parameter = scope.child_by_field_name("parameter")
            if parameter is not None and any(
                source_file.node_text(n) == name for n in _binding_identifiers(parameter)
            ):
                return Symbol(name, SymbolKind.VARIABLE, [Declaration(source_file, parameter)])
            return None

        if scope.type in ("for_statement", "for_in_statement"):
            for field_name in ("initializer", "left"):
                declaration = scope.child_by_field_name(field_name)
                if declaration is None:
                    continue
                if declaration.type in ("identifier", "object_pattern", "array_pattern"):
                    if any(source_file.node_text(n) == name for n in _binding_identifiers(declaration)):
                        return Symbol(name, SymbolKind.VARIABLE, [Declaration(source_file, declaration)])
                else:
                    symbol = self._declared_symbol(source_file, declaration, name)
                    if symbol is not None:
                        return symbol
        return None

    def _declared_symbol(
        self, source_file: SourceFile, statement: tree_sitter.Node, name: str
    ) -> Optional[Symbol]:
        """Symbol for ``name`` if ``statement`` declares it."""
        kind = statement.type

        if kind == "import_statement":
            return self._import_binding(source_file, statement, name)

        if kind == "export_statement":
            declaration = statement.child_by_field_name("declaration")
            if declaration is None:
                return None
            return self._declared_symbol(source_file, declaration, name)

        if kind == "ambient_declaration":
            for child in named_children(statement):
                symbol = self._declared_symbol(source_file, child, name)
                if symbol is not None:
                    return symbol
            return None

        if kind in CLASS_NODE_TYPES or kind in _FUNCTION_DECLARATIONS or kind in _TYPE_DECLARATIONS:
            name_node = statement.child_by_field_name("name")
            if name_node is None or source_file.node_text(name_node) != name:
                return None
            if kind in CLASS_NODE_TYPES:
                symbol_kind = SymbolKind.CLASS
            elif kind in _FUNCTION_DECLARATIONS:
                symbol_kind = SymbolKind.FUNCTION
            else:
                symbol_kind = SymbolKind.TYPE
            return Symbol(name, symbol_kind, [Declaration(source_file, statement)])

        if kind in ("lexical_declaration", "variable_declaration"):
            for declarator in named_children(statement):
                if declarator.type != "variable_declarator":
                    continue
                pattern = declarator.child_by_field_name("name")
                if pattern is None:
                    continue
                if any(source_file.node_text(n) == name for n in _binding_identifiers(pattern)):
                    return Symbol(name, SymbolKind.VARIABLE, [Declaration(source_file, declarator)])
        return None

    def _import_binding(
        self, source_file: SourceFile, statement: tree_sitter.Node, name: str
    ) -> Optional[Symbol]:
        module = string_literal_value(statement.child_by_field_name("source"), source_file.source)
        clause = child_of_type(statement, "import_clause")
        if module is None or clause is None:
            return None

        for child in named_children(clause):
            if child.type == "identifier":
                if source_file.node_text(child) == name:
                    return Symbol(name, SymbolKind.IMPORT, [Declaration(source_file, child)],
                                  module=module, import_name="default")
            elif child.type == "namespace_import":
                local = child_of_type(child, "identifier")
                if local is not None and source_file.node_text(local) == name:
                    return Symbol(name, SymbolKind.IMPORT, [Declaration(source_file, child)],
                                  module=module, import_name="*")
            elif child.type == "named_imports":
                for specifier in named_children(child):
                    if specifier.type != "import_specifier":
                        continue
                    imported = specifier.child_by_field_name("name")
                    alias = specifier.child_by_field_name("alias")
                    local = alias if alias is not None else imported
                    if local is None or source_file.node_text(local) != name:
                        continue
                    imported_name = source_file.node_text(imported).strip("'\"")
                    return Symbol(name, SymbolKind.IMPORT, [Declaration(source_file, specifier)],
                                  module=module, import_name=imported_name)
        return None

    # ── Import / export following ────────────────────────────────────────

    def _resolve_alias(self, symbol: Optional[Symbol], seen: Set[Tuple[str, str]]) -> Optional[Symbol]:
        if symbol is None or symbol.kind != SymbolKind.IMPORT:
            return symbol

        importing_file = symbol.value_declaration.source_file
        target = self._program.resolve_module(symbol.module, importing_file.file_name)

        if symbol.import_name == "*":
            declarations = [Declaration(target, target.root)] if target is not None else []
            return Symbol(symbol.name, SymbolKind.NAMESPACE, declarations, module=symbol.module)

        if target is None:
            name = symbol.name if symbol.import_name == "default" else symbol.import_name
            return Symbol(name, SymbolKind.EXTERNAL, module=symbol.module, import_name=symbol.import_name)

        resolved = self._resolve_export(target, symbol.import_name, seen)
        if resolved is None:
            logger.debug(
                f"Could not resolve export {symbol.import_name!r} of {target.file_name} "
                f"(imported in {importing_file.file_name})"
            )
        return resolved

    def _resolve_export(
        self, source_file: SourceFile, export_name: str, seen: Set[Tuple[str, str]]
    ) -> Optional[Symbol]:
        key = (source_file.file_name, export_name)
        if key in seen:
            return None
        seen.add(key)

        star_modules: List[str] = []
        for statement in named_children(source_file.root):
            if statement.type != "export_statement":
                continue
            is_default = has_token(statement, "default")
            module = string_literal_value(statement.child_by_field_name("source"), source_file.source)

            declaration = statement.child_by_field_name("declaration")
            if declaration is not None:
                if is_default:
                    if export_name == "default":
                        return _symbol_for_default_declaration(source_file, declaration)
                    continue
                symbol = self._declared_symbol(source_file, declaration, export_name)
                if symbol is not None:
                    return symbol
                continue

            value = statement.child_by_field_name("value")
            if value is not None:
                if export_name != "default":
                    continue
                if value.type == "identifier":
                    local = self._lookup_in_scope(source_file, source_file.root, source_file.node_text(value))
                    return self._resolve_alias(local, seen)
                return _symbol_for_default_declaration(source_file, value)

            clause = child_of_type(statement, "export_clause")
            if clause is not None:
                for local_name, exported_name, _ in self._export_specifiers(source_file, statement):
                    if exported_name != export_name:
                        continue
                    if module is None:
                        local = self._lookup_in_scope(source_file, source_file.root, local_name)
                        return self._resolve_alias(local, seen)
                    target = self._program.resolve_module(module, source_file.file_name)
                    if target is None:
                        return Symbol(local_name, SymbolKind.EXTERNAL, module=module, import_name=local_name)
                    return self._resolve_export(target, local_name, seen)
                continue

            if module is not None:
                namespace = child_of_type(statement, "namespace_export")
                if namespace is None:
                    star_modules.append(module)
                    continue
                names = [n for n in named_children(namespace) if n.type in ("identifier", "string")]
                if names and source_file.node_text(names[0]).strip("'\"") == export_name:
                    target = self._program.resolve_module(module, source_file.file_name)
                    declarations = [Declaration(target, target.root)] if target is not None else []
                    return Symbol(export_name, SymbolKind.NAMESPACE, declarations, module=module)

        # `export *` never re-exports a default
        if export_name != "default":
            for module in star_modules:
                target = self._program.resolve_module(module, source_file.file_name)
                if target is None:
                    continue
                symbol = self._resolve_export(target, export_name, seen)
                if symbol is not None:
                    return symbol
        return None

    @staticmethod
    def _export_specifiers(
        source_file: SourceFile, statement: tree_sitter.Node
    ) -> Iterator[Tuple[str, str, tree_sitter.Node]]:
        """(local name, exported name, specifier) for each entry of an export clause."""
        clause = child_of_type(statement, "export_clause")
        if clause is None:
            return
        for specifier in named_children(clause):
            if specifier.type != "export_specifier":
                continue
            name_node = specifier.child_by_field_name("name")
            alias_node = specifier.child_by_field_name("alias")
            if name_node is None:
                continue
            local_name = source_file.node_text(name_node).strip("'\"")
            exported = source_file.node_text(alias_node).strip("'\"") if alias_node is not None else local_name
            yield local_name, exported, specifier

    # ── Declared types ───────────────────────────────────────────────────

    def _type_of_expression(
        self, source_file: SourceFile, node: tree_sitter.Node, seen: Set[Tuple[str, int, int]]
    ) -> Optional[Symbol]:
        asserted = _asserted_type(node)
        if asserted is not None:
            return self._resolve_type_annotation(source_file, asserted)

        node = unwrap_expression(node)
        if node is None:
            return None

        if node.type == "identifier":
            symbol = self.get_resolved_symbol(source_file, node)
            return self._type_of_symbol(symbol, seen)

        if node.type == "member_expression":
            receiver = unwrap_expression(node.child_by_field_name("object"))
            prop = node.child_by_field_name("property")
            if receiver is None or prop is None or receiver.type != "this":
                return None
            member = self._find_class_member(source_file, node, source_file.node_text(prop))
            if member is None:
                return None
            return self._type_of_declaration(member, seen)

        if node.type == "new_expression":
            constructor = node.child_by_field_name("constructor")
            if constructor is not None and constructor.type == "identifier":
                return self.get_resolved_symbol(source_file, constructor)
            return None

        if node.type == "call_expression":
            function = node.child_by_field_name("function")
            if function is None or function.type != "identifier":
                return None
            callee = self.get_resolved_symbol(source_file, function)
            if callee is None or callee.name != "inject":
                return None
            arguments = call_arguments(node)
            if arguments and arguments[0].type == "identifier":
                return self.get_resolved_symbol(source_file, arguments[0])
        return None

    def _type_of_symbol(self, symbol: Optional[Symbol], seen) -> Optional[Symbol]:
        if symbol is None:
            return None
        if symbol.kind in _SELF_TYPED:
            return symbol
        declaration = symbol.value_declaration
        if declaration is None:
            return None
        return self._type_of_declaration(declaration, seen)

    def _type_of_declaration(self, declaration: Declaration, seen) -> Optional[Symbol]:
        if declaration.key in seen:
            return None
        seen.add(declaration.key)

        source_file = declaration.source_file
        node = declaration.node
        annotation = node.child_by_field_name("type")
        if annotation is not None:
            return self._resolve_type_annotation(source_file, annotation)

        value = node.child_by_field_name("value")
        if value is not None:
            return self._type_of_expression(source_file, value, seen)
        return None

    def _resolve_type_annotation(
        self, source_file: SourceFile, annotation: tree_sitter.Node
    ) -> Optional[Symbol]:
        type_node = annotation
        if type_node.type == "type_annotation":
            children = named_children(type_node)
            if not children:
                return None
            type_node = children[0]
        if type_node.type == "generic_type":
            type_node = type_node.child_by_field_name("name")
        if type_node is None or type_node.type != "type_identifier":
            return None
        return self.get_resolved_symbol(source_file, type_node)

    @staticmethod
    def _find_class_member(
        source_file: SourceFile, node: tree_sitter.Node, name: str
    ) -> Optional[Declaration]:
        """Field or constructor parameter property ``name`` of the enclosing class."""
        class_node = find_ancestor(node, CLASS_NODE_TYPES)
        if class_node is None:
            return None
        body = class_node.child_by_field_name("body")
        if body is None:
            return None

        for member in named_children(body):
            if member.type == "public_field_definition":
                name_node = member.child_by_field_name("name")
                if name_node is not None and source_file.node_text(name_node) == name:
                    return Declaration(source_file, member)
            elif member.type == "method_definition":
                method_name = member.child_by_field_name("name")
                if method_name is None or source_file.node_text(method_name) != "constructor":
                    continue
                parameters = member.child_by_field_name("parameters")
                if parameters is None:
                    continue
                for parameter in named_children(parameters):
                    is_property = child_of_type(parameter, "accessibility_modifier") is not None \
                        or has_token(parameter, "readonly")
                    pattern = parameter.child_by_field_name("pattern")
                    if is_property and pattern is not None and source_file.node_text(pattern) == name:
                        return Declaration(source_file, parameter)
        return None


def _binding_identifiers(pattern: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Identifiers bound by a (possibly destructuring) binding pattern."""
    if pattern.type in ("identifier", "shorthand_property_identifier_pattern"):
        yield pattern
        return
    if pattern.type == "pair_pattern":
        value = pattern.child_by_field_name("value")
        if value is not None:
            yield from _binding_identifiers(value)
        return
    if pattern.type in ("assignment_pattern", "object_assignment_pattern"):
        left = pattern.child_by_field_name("left")
        if left is not None:
            yield from _binding_identifiers(left)
        return
    if pattern.type in ("object_pattern", "array_pattern", "rest_pattern"):
        for child in named_children(pattern):
            yield from _binding_identifiers(child)


def _asserted_type(node: Optional[tree_sitter.Node]) -> Optional[tree_sitter.Node]:
    """Type node of an ``x as T`` or ``<T>x`` cast, looking through parentheses."""
    while node is not None and node.type in ("parenthesized_expression", "non_null_expression"):
        inner = named_children(node)
        node = inner[0] if inner else None
    if node is None:
        return None
    if node.type == "as_expression":
        children = named_children(node)
        return children[-1] if len(children) > 1 else None
    if node.type == "type_assertion":
        type_arguments = child_of_type(node, "type_arguments")
        children = named_children(type_arguments) if type_arguments is not None else []
        return children[0] if children else None
    return None


def _symbol_for_default_declaration(source_file: SourceFile, node: tree_sitter.Node) -> Optional[Symbol]:
    name_node = node.child_by_field_name("name")
    name = source_file.node_text(name_node) if name_node is not None else "default"
    if node.type in CLASS_NODE_TYPES:
        return Symbol(name, SymbolKind.CLASS, [Declaration(source_file, node)])
    if node.type in _FUNCTION_DECLARATIONS or node.type in _FUNCTION_SCOPES:
        return Symbol(name, SymbolKind.FUNCTION, [Declaration(source_file, node)])
    return None
