"""Standalone routes migration: eager `component` routes to `loadComponent`."""

from .locator import RouteCallKind, classify_route_call, find_routes_arrays_to_migrate
from .orchestrator import to_lazy_standalone_routes
from .rewriter import find_literal_property, migrate_routes_array, remove_orphaned_imports
from .runner import MigrationReport, run_migration
from .standalone import StandalonePredicate, resolve_class

__all__ = [
    "MigrationReport",
    "RouteCallKind",
    "StandalonePredicate",
    "classify_route_call",
    "find_literal_property",
    "find_routes_arrays_to_migrate",
    "migrate_routes_array",
    "remove_orphaned_imports",
    "resolve_class",
    "run_migration",
    "to_lazy_standalone_routes",
]
