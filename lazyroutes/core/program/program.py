"""Program: the fixed set of parsed source files plus module resolution."""

import fnmatch
import logging
import os
import posixpath
from typing import Dict, Iterable, List, Optional

from ..ast_parser import normalize_path, parse_file, should_skip_directory
from ..ast_parser.models import SourceFile
from ..ast_parser.utils import is_supported_file
from ..config import MigrationConfig
from .checker import TypeChecker

logger = logging.getLogger(__name__)

# Probed in order when a specifier has no (or a runtime) extension
_RESOLUTION_SUFFIXES = (
    "",
    ".ts",
    ".tsx",
    ".d.ts",
    "/index.ts",
    "/index.tsx",
    "/index.d.ts",
)

# Runtime extension in a specifier -> source extension probed first.
# `.js` stays last: it is a suffix of the other two.
_RUNTIME_EXTENSIONS = {
    ".mjs": ".mts",
    ".cjs": ".cts",
    ".js": "",
}


class Program:
    """An immutable collection of parsed TypeScript files.

    Files are keyed by normalized POSIX path. ``root`` is the project root
    against which ``path_aliases`` targets are resolved.
    """

    def __init__(
        self,
        source_files: Iterable[SourceFile],
        root: str,
        config: Optional[MigrationConfig] = None,
    ):
        self.root = normalize_path(root)
        self.config = config or MigrationConfig()
        self._files: Dict[str, SourceFile] = {sf.file_name: sf for sf in source_files}
        self._checker = None

    @classmethod
    def from_directory(cls, root: str, config: Optional[MigrationConfig] = None) -> "Program":
        """Parse every TypeScript file under ``root``.

        Args:
            root: Project root directory
            config: Migration configuration (for path aliases)

        Returns:
            Program over all parsed files
        """
        source_files: List[SourceFile] = []
        for dirpath, dirnames, filenames in os.walk(root):
            at_root = dirpath == root
            dirnames[:] = sorted(d for d in dirnames if not should_skip_directory(d, at_root))
            for filename in sorted(filenames):
                if not is_supported_file(filename):
                    continue
                path = os.path.join(dirpath, filename)
                try:
                    source_files.append(parse_file(path))
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Skipping unreadable file {path}: {e}")

        logger.info(f"Parsed {len(source_files)} TypeScript files under {root}")
        return cls(source_files, root, config)

    def get_source_files(self) -> List[SourceFile]:
        return list(self._files.values())

    def get_source_file(self, file_name: str) -> Optional[SourceFile]:
        return self._files.get(file_name)

    def get_type_checker(self) -> TypeChecker:
        """Return the (lazily created) type checker bound to this program."""
        if self._checker is None:
            self._checker = TypeChecker(self)
        return self._checker

    def is_excluded(self, file_name: str) -> bool:
        """Whether a file matches one of the configured ``exclude`` globs."""
        rel = posixpath.relpath(file_name, self.root)
        return any(fnmatch.fnmatch(rel, pattern) for pattern in self.config.exclude)

    def resolve_module(self, specifier: str, from_file: str) -> Optional[SourceFile]:
        """Resolve an import specifier to a source file of this program.

        Relative specifiers are resolved against the importing file;
        other specifiers go through ``path_aliases``. Anything else is an
        external module and yields ``None``.
        """
        if specifier.startswith("./") or specifier.startswith("../") or specifier in (".", ".."):
            base = posixpath.normpath(posixpath.join(posixpath.dirname(from_file), specifier))
            return self._probe(base)

        for pattern, targets in self.config.path_aliases.items():
            substitution = _match_alias(pattern, specifier)
            if substitution is None:
                continue
            for target in targets:
                candidate = target.replace("*", substitution, 1)
                base = posixpath.normpath(posixpath.join(self.root, candidate))
                resolved = self._probe(base)
                if resolved is not None:
                    return resolved
        return None

    def _probe(self, base: str) -> Optional[SourceFile]:
        bases = [base]
        for runtime_ext, source_ext in _RUNTIME_EXTENSIONS.items():
            if base.endswith(runtime_ext):
                stem = base[: -len(runtime_ext)]
                bases[:0] = [stem + source_ext, stem] if source_ext else [stem]
                break
        for candidate_base in bases:
            for suffix in _RESOLUTION_SUFFIXES:
                source_file = self._files.get(candidate_base + suffix)
                if source_file is not None:
                    return source_file
        return None


def _match_alias(pattern: str, specifier: str) -> Optional[str]:
    """Match a tsconfig-style ``paths`` pattern; return the ``*`` substitution."""
    if "*" not in pattern:
        return "" if pattern == specifier else None
    prefix, _, suffix = pattern.partition("*")
    if specifier.startswith(prefix) and specifier.endswith(suffix) and len(specifier) >= len(prefix) + len(suffix):
        return specifier[len(prefix):len(specifier) - len(suffix)]
    return None
