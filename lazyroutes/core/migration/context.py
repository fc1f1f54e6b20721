"""Per-run migration state threaded through the pipeline stages."""

from collections import Counter
from dataclasses import dataclass, field

from ..change_tracker import ChangeTracker
from ..program import TypeChecker
from .standalone import StandalonePredicate


@dataclass
class MigrationStats:
    """Counters collected while rewriting routes."""

    routes_migrated: int = 0
    routes_skipped: Counter = field(default_factory=Counter)  # reason -> count
    imports_removed: int = 0

    def skip(self, reason: str) -> None:
        self.routes_skipped[reason] += 1


@dataclass
class MigrationContext:
    """Everything one migration pass shares. Scoped to exactly one pass."""

    checker: TypeChecker
    predicate: StandalonePredicate
    tracker: ChangeTracker
    stats: MigrationStats = field(default_factory=MigrationStats)
