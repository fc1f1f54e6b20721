"""Change tracker data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional


class ChangeKind(Enum):
    """Logical edit kinds accepted by the tracker."""
    REPLACE = "replace"
    REMOVE = "remove"
    INSERT = "insert"


@dataclass
class PendingChange:
    """A scheduled edit against the original text of one file.

    ``start``/``end`` are byte offsets; inserts have ``start == end``.
    ``order`` is the global scheduling sequence number.
    """

    kind: ChangeKind
    file_name: str
    start: int
    end: int
    text: str
    order: int


@dataclass(frozen=True)
class TextChange:
    """One byte-range edit to apply against a file's original text.

    ``remove_length`` is None for pure insertions.
    """

    start: int
    text: str
    remove_length: Optional[int] = None

    @property
    def end(self) -> int:
        return self.start + (self.remove_length or 0)


ChangesByFile = Dict[str, List[TextChange]]

# (module specifier, importing file name) -> module specifier to emit
ImportRemapper = Callable[[str, str], str]
