"""Finds route arrays passed to the Angular router APIs.

Recognized call shapes:

- ``RouterModule.forRoot([...])`` / ``RouterModule.forChild([...])``
- ``router.resetConfig([...])`` where the receiver is of type ``Router``
- ``provideRouter([...])``

Callees are identified by resolved symbol, so aliased imports work. Only an
inline array literal in first position is a candidate; identifiers, spreads
and calls are not followed.
"""

import logging
from enum import Enum
from typing import List

import tree_sitter

from ..ast_parser.models import SourceFile
from ..ast_parser.nodes import call_arguments, unwrap_expression, walk
from ..program import TypeChecker

logger = logging.getLogger(__name__)


class RouteCallKind(Enum):
    """Closed set of route registration call shapes."""
    NONE = "none"
    ROUTER_MODULE_FOR_ROOT = "RouterModule.forRoot"
    ROUTER_MODULE_FOR_CHILD = "RouterModule.forChild"
    ROUTER_RESET_CONFIG = "Router.resetConfig"
    PROVIDE_ROUTER = "provideRouter"


_ROUTER_MODULE_METHODS = {
    "forRoot": RouteCallKind.ROUTER_MODULE_FOR_ROOT,
    "forChild": RouteCallKind.ROUTER_MODULE_FOR_CHILD,
}


def classify_route_call(
    source_file: SourceFile, call: tree_sitter.Node, checker: TypeChecker
) -> RouteCallKind:
    """Classify a call expression as one of the route registration shapes."""
    callee = unwrap_expression(call.child_by_field_name("function"))
    if callee is None:
        return RouteCallKind.NONE

    if callee.type == "member_expression":
        receiver = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if receiver is None or prop is None:
            return RouteCallKind.NONE
        method = source_file.node_text(prop)

        if method in _ROUTER_MODULE_METHODS:
            receiver = unwrap_expression(receiver)
            symbol = checker.get_resolved_symbol(source_file, receiver)
            if symbol is not None and symbol.name == "RouterModule":
                return _ROUTER_MODULE_METHODS[method]
        elif method == "resetConfig":
            type_symbol = checker.get_type_symbol_at_location(source_file, receiver)
            if type_symbol is not None and type_symbol.name == "Router":
                return RouteCallKind.ROUTER_RESET_CONFIG
        return RouteCallKind.NONE

    if callee.type == "identifier":
        symbol = checker.get_resolved_symbol(source_file, callee)
        if symbol is not None and symbol.name == "provideRouter":
            return RouteCallKind.PROVIDE_ROUTER
    return RouteCallKind.NONE


def find_routes_arrays_to_migrate(
    source_file: SourceFile, checker: TypeChecker
) -> List[tree_sitter.Node]:
    """Array literals passed as routes to a recognized router call."""
    routes_arrays: List[tree_sitter.Node] = []

    for node in walk(source_file.root):
        if node.type != "call_expression":
            continue
        kind = classify_route_call(source_file, node, checker)
        if kind == RouteCallKind.NONE:
            continue

        arguments = call_arguments(node)
        routes = unwrap_expression(arguments[0]) if arguments else None
        if routes is not None and routes.type == "array":
            logger.debug(
                f"Found {kind.value} routes at {source_file.file_name}:{routes.start_point.row + 1}"
            )
            routes_arrays.append(routes)

    return routes_arrays
