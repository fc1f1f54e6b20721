"""Rewrites eager standalone routes into lazy-loaded ones.

    import { TestComponent } from './test/test.component';
    const routes = [{ path: 'test', component: TestComponent }];

becomes

    const routes = [{
      path: 'test',
      loadComponent: () => import('./test/test.component').then(m => m.TestComponent)
    }];

Children arrays are not visited. The import of a migrated component is
removed only once nothing else in the routes file refers to it.
"""

import logging
import posixpath
import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import tree_sitter

from ..ast_parser.models import SourceFile
from ..ast_parser.nodes import child_of_type, find_ancestor, named_children
from ..change_tracker import nodes
from ..program import Declaration, Symbol, SymbolKind
from .context import MigrationContext
from .standalone import resolve_class

logger = logging.getLogger(__name__)

_TS_EXTENSIONS = (".d.ts", ".tsx", ".ts", ".mts", ".cts")
_RUNTIME_EXTENSIONS = {".mts": ".mjs", ".cts": ".cjs"}
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")


@dataclass
class MigratedRoute:
    """A route whose ``component`` property was scheduled for replacement."""

    source_file: SourceFile
    property_node: tree_sitter.Node  # the `component: X` pair
    reference: tree_sitter.Node      # the `X` identifier
    declaration: Declaration         # class X
    local_symbol: Optional[Symbol]   # binding of X in the routes file


def find_literal_property(
    source_file: SourceFile, literal: tree_sitter.Node, name: str
) -> Optional[tree_sitter.Node]:
    """``key: value`` pair of an object literal whose key is the identifier ``name``.

    String and computed keys, shorthand properties and spreads never match.
    """
    for prop in named_children(literal):
        if prop.type != "pair":
            continue
        key = prop.child_by_field_name("key")
        if key is not None and key.type == "property_identifier" and source_file.node_text(key) == name:
            return prop
    return None


def module_specifier(from_file: str, to_file: str) -> str:
    """Relative import specifier from one source file to another.

    ``.mts``/``.cts`` modules keep their runtime extension (``.mjs``/``.cjs``),
    which ESM resolution requires.
    """
    target = to_file
    for ext in _TS_EXTENSIONS:
        if target.endswith(ext):
            target = target[: -len(ext)] + _RUNTIME_EXTENSIONS.get(ext, "")
            break
    specifier = posixpath.relpath(target, posixpath.dirname(from_file))
    if not (specifier.startswith("./") or specifier.startswith("../")):
        specifier = "./" + specifier
    return specifier


def build_load_component(specifier: str, export_name: str) -> nodes.PropertyAssignment:
    """``loadComponent: () => import('<specifier>').then(m => m.<export_name>)``"""
    module = nodes.import_call(specifier)
    then = nodes.property_access(module, "then")
    pick = nodes.arrow_function(["m"], nodes.property_access(nodes.identifier("m"), export_name))
    return nodes.property_assignment(
        "loadComponent",
        nodes.arrow_function([], nodes.call(then, pick)),
    )


def migrate_routes_array(
    routes_array: tree_sitter.Node,
    source_file: SourceFile,
    context: MigrationContext,
) -> List[MigratedRoute]:
    """Schedule the lazy-loading replacement for every eligible route.

    Returns:
        The routes that were scheduled, for import cleanup
    """
    checker = context.checker
    migrated: List[MigratedRoute] = []

    for route in named_children(routes_array):
        if route.type != "object":
            continue
        prop = find_literal_property(source_file, route, "component")
        if prop is None:
            continue

        line = prop.start_point.row + 1
        reference = prop.child_by_field_name("value")
        if reference is None or reference.type != "identifier":
            _skip(context, "not-identifier", source_file, line)
            continue

        declaration = resolve_class(source_file, reference, checker)
        if declaration is None:
            _skip(context, "unresolved", source_file, line)
            continue
        if declaration.source_file.file_name == source_file.file_name:
            _skip(context, "same-file", source_file, line)
            continue
        if declaration.source_file.is_declaration_file:
            _skip(context, "declaration-file", source_file, line)
            continue
        if not context.predicate.is_standalone(declaration):
            _skip(context, "not-standalone", source_file, line)
            continue

        export_name = checker.get_export_name(declaration)
        if export_name is None or not _IDENTIFIER_RE.match(export_name):
            _skip(context, "not-exported", source_file, line)
            continue

        specifier = context.tracker.remap_import(
            module_specifier(source_file.file_name, declaration.source_file.file_name),
            source_file.file_name,
        )
        context.tracker.replace_node(source_file, prop, build_load_component(specifier, export_name))
        context.stats.routes_migrated += 1
        logger.debug(f"Migrated {export_name} at {source_file.file_name}:{line} to {specifier}")

        migrated.append(MigratedRoute(
            source_file=source_file,
            property_node=prop,
            reference=reference,
            declaration=declaration,
            local_symbol=checker.get_symbol_at_location(source_file, reference),
        ))

    return migrated


def remove_orphaned_imports(
    source_file: SourceFile,
    migrated: List[MigratedRoute],
    context: MigrationContext,
) -> None:
    """Remove imports of migrated components that are no longer referenced.

    Must run after every routes array of ``source_file`` has been migrated.
    """
    replaced: List[Tuple[int, int]] = [
        (route.property_node.start_byte, route.property_node.end_byte) for route in migrated
    ]

    # import statement (by start byte) -> (statement, orphaned binding nodes)
    orphans: Dict[int, Tuple[tree_sitter.Node, List[tree_sitter.Node]]] = OrderedDict()
    seen = set()
    for route in migrated:
        symbol = route.local_symbol
        if symbol is None or symbol.kind != SymbolKind.IMPORT or symbol.value_declaration is None:
            continue
        binding = symbol.value_declaration
        if binding.key in seen:
            continue
        seen.add(binding.key)

        remaining = [
            ref for ref in context.checker.find_references(source_file, symbol)
            if not any(start <= ref.start_byte and ref.end_byte <= end for start, end in replaced)
        ]
        if remaining:
            logger.debug(f"Keeping import of {symbol.name} in {source_file.file_name}: still referenced")
            continue

        statement = find_ancestor(binding.node, ("import_statement",))
        if statement is None:
            continue
        orphans.setdefault(statement.start_byte, (statement, []))[1].append(binding.node)

    for statement, bindings in orphans.values():
        _remove_import_bindings(source_file, statement, bindings, context)
        context.stats.imports_removed += len(bindings)


def _remove_import_bindings(
    source_file: SourceFile,
    statement: tree_sitter.Node,
    bindings: List[tree_sitter.Node],
    context: MigrationContext,
) -> None:
    tracker = context.tracker
    removed = {(b.start_byte, b.end_byte) for b in bindings}
    clause = child_of_type(statement, "import_clause")
    default_binding = child_of_type(clause, "identifier") if clause is not None else None
    namespace = child_of_type(clause, "namespace_import") if clause is not None else None
    named = child_of_type(clause, "named_imports") if clause is not None else None
    specifiers = [s for s in named_children(named) if s.type == "import_specifier"] if named is not None else []

    def is_removed(node):
        return node is not None and (node.start_byte, node.end_byte) in removed

    kept_specifiers = [s for s in specifiers if not is_removed(s)]
    keeps_default = default_binding is not None and not is_removed(default_binding)
    keeps_namespace = namespace is not None and not is_removed(namespace)

    if not kept_specifiers and not keeps_default and not keeps_namespace:
        start, end = _statement_line_range(source_file, statement)
        tracker.remove_range(source_file, start, end)
        return

    if is_removed(default_binding):
        # `Foo, { Bar }` -> `{ Bar }`
        following = named if named is not None else namespace
        tracker.remove_range(source_file, default_binding.start_byte, following.start_byte)

    if named is None or len(kept_specifiers) == len(specifiers):
        return

    if not kept_specifiers:
        # `Foo, { Bar }` -> `Foo`
        tracker.remove_range(source_file, default_binding.end_byte, named.end_byte)
        return

    last_kept = specifiers.index(kept_specifiers[-1])
    for index, specifier in enumerate(specifiers):
        if not is_removed(specifier):
            continue
        if index < last_kept:
            tracker.remove_range(source_file, specifier.start_byte, specifiers[index + 1].start_byte)
        else:
            tracker.remove_range(source_file, specifiers[index - 1].end_byte, specifier.end_byte)


def _statement_line_range(source_file: SourceFile, statement: tree_sitter.Node) -> Tuple[int, int]:
    """Statement range extended over trailing blanks and its line break."""
    source = source_file.source
    end = statement.end_byte
    while end < len(source) and source[end:end + 1] in (b" ", b"\t"):
        end += 1
    if source[end:end + 2] == b"\r\n":
        end += 2
    elif source[end:end + 1] == b"\n":
        end += 1
    return statement.start_byte, end


def _skip(context: MigrationContext, reason: str, source_file: SourceFile, line: int) -> None:
    context.stats.skip(reason)
    logger.debug(f"Skipping route at {source_file.file_name}:{line} ({reason})")
