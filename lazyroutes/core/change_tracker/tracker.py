"""Change tracker.

Collects logical edits against the original text of source files and turns
them into non-overlapping byte-range edits per file.

Resolution rules at ``record_changes`` time, per file:

- the last operation scheduled for an exact range wins;
- identical inserts (same offset, same text) are only emitted once;
- a removal absorbs every operation it fully contains, including inserts
  strictly inside it;
- inserts on the boundary of another edit are kept;
- any other overlap raises ``ChangeConflictError``.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple, Union

import tree_sitter

from ..ast_parser.models import SourceFile
from ..errors import ChangeConflictError
from .models import ChangeKind, ChangesByFile, ImportRemapper, PendingChange, TextChange
from .nodes import Node
from .printer import Printer

logger = logging.getLogger(__name__)


class ChangeTracker:
    """Accumulates edits for one migration pass.

    One instance must not be shared between passes over overlapping files.
    """

    def __init__(self, printer: Printer, import_remapper: Optional[ImportRemapper] = None):
        self._printer = printer
        self._import_remapper = import_remapper
        self._sequence = 0
        # file name -> (start, end) -> change, for replacements and removals
        self._ranges: Dict[str, Dict[Tuple[int, int], PendingChange]] = defaultdict(dict)
        # file name -> inserts in scheduling order
        self._inserts: Dict[str, List[PendingChange]] = defaultdict(list)

    # ── Scheduling ───────────────────────────────────────────────────────

    def replace_node(
        self,
        source_file: SourceFile,
        old_node: tree_sitter.Node,
        new_node: Union[Node, str],
    ) -> None:
        """Replace ``old_node`` with a synthesized node (or literal text)."""
        text = new_node if isinstance(new_node, str) else self._printer.print_node(new_node)
        self.replace_text(source_file, old_node.start_byte, old_node.end_byte, text)

    def replace_text(self, source_file: SourceFile, start: int, end: int, text: str) -> None:
        """Replace the byte range ``[start, end)`` with ``text``."""
        if start == end:
            self.insert_text(source_file, start, text)
            return
        self._schedule_range(ChangeKind.REPLACE, source_file, start, end, text)

    def remove_node(self, source_file: SourceFile, node: tree_sitter.Node) -> None:
        self.remove_range(source_file, node.start_byte, node.end_byte)

    def remove_range(self, source_file: SourceFile, start: int, end: int) -> None:
        """Remove the byte range ``[start, end)``."""
        if start == end:
            return
        self._schedule_range(ChangeKind.REMOVE, source_file, start, end, "")

    def insert_text(self, source_file: SourceFile, position: int, text: str) -> None:
        """Insert ``text`` at a byte offset of the original text."""
        self._check_bounds(source_file, position, position)
        inserts = self._inserts[source_file.file_name]
        if any(c.start == position and c.text == text for c in inserts):
            return
        inserts.append(self._pending(ChangeKind.INSERT, source_file, position, position, text))

    def remap_import(self, specifier: str, file_name: str) -> str:
        """Apply the configured import remapper to a generated module specifier."""
        if self._import_remapper is None:
            return specifier
        return self._import_remapper(specifier, file_name)

    # ── Recording ────────────────────────────────────────────────────────

    def record_changes(self) -> ChangesByFile:
        """Resolve and return all pending edits, then clear them.

        Returns:
            Mapping of file name to edits sorted by start offset

        Raises:
            ChangeConflictError: If two edits overlap without one being a
                removal that contains the other
        """
        changes: ChangesByFile = {}
        file_names = sorted(set(self._ranges) | set(self._inserts))
        for file_name in file_names:
            file_changes = self._resolve_file(
                file_name,
                list(self._ranges.get(file_name, {}).values()),
                self._inserts.get(file_name, []),
            )
            if file_changes:
                changes[file_name] = file_changes

        self._ranges.clear()
        self._inserts.clear()
        return changes

    def _resolve_file(
        self,
        file_name: str,
        range_changes: List[PendingChange],
        inserts: List[PendingChange],
    ) -> List[TextChange]:
        # Outer ranges sort before the ranges they contain
        ordered = sorted(range_changes, key=lambda c: (c.start, -c.end, c.order))
        kept: List[PendingChange] = []
        for change in ordered:
            if kept and change.start < kept[-1].end:
                outer = kept[-1]
                if outer.kind == ChangeKind.REMOVE and change.end <= outer.end:
                    logger.debug(
                        f"{file_name}: {change.kind.value} [{change.start}, {change.end}) "
                        f"absorbed by removal [{outer.start}, {outer.end})"
                    )
                    continue
                raise ChangeConflictError(
                    f"{file_name}: {change.kind.value} [{change.start}, {change.end}) overlaps "
                    f"{outer.kind.value} [{outer.start}, {outer.end})"
                )
            kept.append(change)

        kept_inserts: List[PendingChange] = []
        for insert in inserts:
            container = next((c for c in kept if c.start < insert.start < c.end), None)
            if container is None:
                kept_inserts.append(insert)
            elif container.kind == ChangeKind.REMOVE:
                logger.debug(f"{file_name}: insert at {insert.start} absorbed by removal")
            else:
                raise ChangeConflictError(
                    f"{file_name}: insert at {insert.start} falls inside "
                    f"{container.kind.value} [{container.start}, {container.end})"
                )

        # Inserts come before a replacement or removal starting at the same offset
        ordered_all = sorted(
            kept + kept_inserts,
            key=lambda c: (c.start, 0 if c.kind == ChangeKind.INSERT else 1, c.order),
        )
        return [
            TextChange(start=c.start, text=c.text, remove_length=None)
            if c.kind == ChangeKind.INSERT
            else TextChange(start=c.start, text=c.text, remove_length=c.end - c.start)
            for c in ordered_all
        ]

    # ── Internals ────────────────────────────────────────────────────────

    def _schedule_range(
        self, kind: ChangeKind, source_file: SourceFile, start: int, end: int, text: str
    ) -> None:
        self._check_bounds(source_file, start, end)
        change = self._pending(kind, source_file, start, end, text)
        self._ranges[source_file.file_name][(start, end)] = change

    def _pending(
        self, kind: ChangeKind, source_file: SourceFile, start: int, end: int, text: str
    ) -> PendingChange:
        self._sequence += 1
        return PendingChange(
            kind=kind,
            file_name=source_file.file_name,
            start=start,
            end=end,
            text=text,
            order=self._sequence,
        )

    @staticmethod
    def _check_bounds(source_file: SourceFile, start: int, end: int) -> None:
        if not 0 <= start <= end <= len(source_file.source):
            raise ValueError(
                f"Range [{start}, {end}) is outside {source_file.file_name} "
                f"({len(source_file.source)} bytes)"
            )


def apply_changes(text: str, changes: List[TextChange]) -> str:
    """Apply one file's recorded changes in a single pass.

    Offsets refer to the UTF-8 bytes of the original ``text``.

    Raises:
        ChangeConflictError: If the changes are not sorted and disjoint
    """
    source = text.encode("utf-8")
    parts: List[bytes] = []
    cursor = 0
    for change in changes:
        if change.start < cursor:
            raise ChangeConflictError(
                f"Change at {change.start} overlaps a previous change ending at {cursor}"
            )
        parts.append(source[cursor:change.start])
        parts.append(change.text.encode("utf-8"))
        cursor = change.end
    parts.append(source[cursor:])
    return b"".join(parts).decode("utf-8")
