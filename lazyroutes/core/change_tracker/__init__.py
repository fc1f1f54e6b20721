"""Accumulate-then-apply text edit scheduling."""

from .models import ChangeKind, ChangesByFile, ImportRemapper, TextChange
from .printer import Printer
from .tracker import ChangeTracker, apply_changes

__all__ = [
    "ChangeKind",
    "ChangeTracker",
    "ChangesByFile",
    "ImportRemapper",
    "Printer",
    "TextChange",
    "apply_changes",
]
