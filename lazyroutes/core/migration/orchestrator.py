"""Drives the locator and rewriter over a set of source files."""

import logging
from typing import Iterable, Optional

from ..ast_parser.models import SourceFile
from ..change_tracker import ChangesByFile, ChangeTracker, ImportRemapper, Printer
from ..config import MigrationConfig
from ..program import ComponentMetadataReader, Program
from .context import MigrationContext, MigrationStats
from .locator import find_routes_arrays_to_migrate
from .rewriter import migrate_routes_array, remove_orphaned_imports
from .standalone import StandalonePredicate

logger = logging.getLogger(__name__)


def to_lazy_standalone_routes(
    source_files: Iterable[SourceFile],
    program: Program,
    printer: Printer,
    import_remapper: Optional[ImportRemapper] = None,
    config: Optional[MigrationConfig] = None,
    stats: Optional[MigrationStats] = None,
) -> ChangesByFile:
    """Convert routes that use standalone components to lazy loading.

    Args:
        source_files: Files that should be migrated
        program: Program the files belong to
        printer: Renders synthesized nodes
        import_remapper: Optional hook applied to generated module specifiers
        config: Overrides ``program.config``
        stats: Collects counters when given

    Returns:
        Edits per file name; empty when nothing could be migrated
    """
    config = config or program.config
    checker = program.get_type_checker()
    context = MigrationContext(
        checker=checker,
        predicate=StandalonePredicate(
            ComponentMetadataReader(checker, standalone_default=config.standalone_default)
        ),
        tracker=ChangeTracker(printer, import_remapper),
        stats=stats if stats is not None else MigrationStats(),
    )

    for source_file in source_files:
        migrated = []
        for routes_array in find_routes_arrays_to_migrate(source_file, checker):
            migrated.extend(migrate_routes_array(routes_array, source_file, context))

        if migrated:
            remove_orphaned_imports(source_file, migrated, context)
            logger.info(f"{source_file.file_name}: {len(migrated)} route(s) converted to lazy loading")

    return context.tracker.record_changes()
