"""Standalone routes migration runner.

Orchestrates: project root → parse program → select files under the
migration path → rewrite routes → apply edits to disk (or diff them).
"""

import difflib
import logging
import os
import posixpath
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..ast_parser import normalize_path
from ..ast_parser.models import SourceFile
from ..change_tracker import ImportRemapper, Printer, apply_changes
from ..config import MigrationConfig, load_config
from ..errors import MigrationError
from ..program import Program
from .context import MigrationStats
from .orchestrator import to_lazy_standalone_routes

logger = logging.getLogger(__name__)

_TEST_SUFFIXES = (".spec.ts", ".test.ts", ".spec.tsx", ".test.tsx")


@dataclass
class MigrationReport:
    """Summary of a migration run."""

    files_scanned: int = 0
    files_changed: int = 0
    routes_migrated: int = 0
    imports_removed: int = 0
    routes_skipped: Dict[str, int] = field(default_factory=dict)
    changed_files: List[str] = field(default_factory=list)
    diffs: Dict[str, str] = field(default_factory=dict)  # dry run only
    dry_run: bool = False
    elapsed_seconds: float = 0.0


def can_migrate_file(project_root: str, source_file: SourceFile, program: Program, include_tests: bool) -> bool:
    """Whether a program file is a migration target.

    Declaration files, third-party code, files outside the project,
    excluded files and (unless requested) test files are not.
    """
    file_name = source_file.file_name
    if source_file.is_declaration_file or "/node_modules/" in file_name:
        return False
    if posixpath.relpath(file_name, project_root).startswith(".."):
        return False
    if not include_tests and file_name.endswith(_TEST_SUFFIXES):
        return False
    return not program.is_excluded(file_name)


def run_migration(
    project_root: str,
    path: str = ".",
    config: Optional[MigrationConfig] = None,
    dry_run: bool = False,
    import_remapper: Optional[ImportRemapper] = None,
) -> MigrationReport:
    """Run the standalone routes migration over a project.

    Args:
        project_root: Root of the Angular workspace; the whole tree is
            analyzed so that imports resolve
        path: Directory (relative to the root) whose files are migrated
        config: Migration configuration; loaded from ``lazyroutes.yaml``
            in the project root when None
        dry_run: Compute unified diffs instead of writing files
        import_remapper: Optional hook for generated module specifiers

    Returns:
        MigrationReport with counts and changed files

    Raises:
        MigrationError: If the path is outside the project or not a
            directory, or nothing can be migrated
    """
    start = time.time()

    if path.replace("\\", "/").startswith(".."):
        raise MigrationError("Cannot run standalone routes migration outside of the current project.")

    if config is None:
        config = load_config(project_root=project_root)

    root = normalize_path(project_root)
    path_to_migrate = normalize_path(os.path.join(project_root, path))

    if os.path.exists(path_to_migrate) and not os.path.isdir(path_to_migrate):
        raise MigrationError(
            f"Migration path {path_to_migrate} has to be a directory. "
            "Cannot run the standalone routes migration."
        )

    program = Program.from_directory(root, config)
    if not program.get_source_files():
        raise MigrationError(
            f"Could not find any TypeScript files in {root}. Cannot run the standalone routes migration."
        )

    prefix = path_to_migrate.rstrip("/") + "/"
    source_files = [
        source_file
        for source_file in program.get_source_files()
        if source_file.file_name.startswith(prefix)
        and can_migrate_file(root, source_file, program, config.include_tests)
    ]
    if not source_files:
        raise MigrationError(
            f"Could not find any files to migrate under the path {path_to_migrate}. "
            "Cannot run the standalone routes migration."
        )

    stats = MigrationStats()
    pending_changes = to_lazy_standalone_routes(
        source_files,
        program,
        Printer(config.quote_style),
        import_remapper=import_remapper,
        config=config,
        stats=stats,
    )

    report = MigrationReport(
        files_scanned=len(source_files),
        routes_migrated=stats.routes_migrated,
        imports_removed=stats.imports_removed,
        routes_skipped=dict(stats.routes_skipped),
        dry_run=dry_run,
    )

    for file_name, changes in pending_changes.items():
        source_file = program.get_source_file(file_name)
        updated = apply_changes(source_file.text, changes)
        rel_path = posixpath.relpath(file_name, root)

        if dry_run:
            report.diffs[rel_path] = "".join(difflib.unified_diff(
                source_file.text.splitlines(keepends=True),
                updated.splitlines(keepends=True),
                fromfile=f"a/{rel_path}",
                tofile=f"b/{rel_path}",
            ))
        else:
            with open(file_name, "w", encoding="utf-8", newline="") as f:
                f.write(updated)
            logger.info(f"Updated {rel_path} ({len(changes)} edit(s))")

        report.changed_files.append(rel_path)

    report.files_changed = len(report.changed_files)
    report.elapsed_seconds = time.time() - start
    _log_report(report)
    return report


def _log_report(report: MigrationReport) -> None:
    skipped = sum(report.routes_skipped.values())
    logger.info(
        f"Migration {'dry run ' if report.dry_run else ''}finished: "
        f"{report.files_scanned} files scanned, {report.files_changed} changed, "
        f"{report.routes_migrated} routes migrated, {skipped} skipped "
        f"({report.elapsed_seconds:.2f}s)"
    )
    for reason, count in sorted(report.routes_skipped.items()):
        logger.debug(f"  skipped ({reason}): {count}")
