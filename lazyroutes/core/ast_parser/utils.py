"""AST Parser utilities.

Language detection, parser registry, and path helpers.
"""

import os
import posixpath
from typing import Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseLanguageParser

# Extension → language mapping
SUPPORTED_EXTENSIONS: Dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

# Directories to skip during file walking
SKIP_DIRECTORIES = frozenset({
    "node_modules",
    ".git",
    ".angular",
    ".nx",
    "dist",
    "out-tsc",
    "bazel-out",
})

# Build and tool output that only lives at the workspace root
ROOT_SKIP_DIRECTORIES = frozenset({
    "coverage",
    "tmp",
})

# Parser registry, filled on first use
_parser_registry: Dict[str, "BaseLanguageParser"] = {}


def normalize_path(path: str) -> str:
    """Return an absolute, normalized path with POSIX separators.

    Source files are keyed by this form on every platform so that prefix
    checks such as ``file_name.startswith(path_to_migrate)`` work on Windows.
    """
    return posixpath.normpath(os.path.abspath(path).replace("\\", "/"))


def detect_language(file_path: str) -> Optional[str]:
    """Detect the TypeScript dialect from the file extension.

    Args:
        file_path: Path to the source file

    Returns:
        Language identifier string or None if unsupported
    """
    _, ext = os.path.splitext(file_path)
    return SUPPORTED_EXTENSIONS.get(ext.lower())


def get_parser(language: str) -> "BaseLanguageParser":
    """Get a parser instance for the given language.

    Args:
        language: Language identifier ("typescript" or "tsx")

    Returns:
        Parser instance

    Raises:
        ValueError: If language is not supported
    """
    if language not in _parser_registry:
        if language == "typescript":
            from .typescript_parser import TypeScriptParser
            _parser_registry["typescript"] = TypeScriptParser()
        elif language == "tsx":
            from .typescript_parser import TsxParser
            _parser_registry["tsx"] = TsxParser()
        else:
            raise ValueError(
                f"Unsupported language: {language}. "
                f"Supported: {sorted(set(SUPPORTED_EXTENSIONS.values()))}"
            )

    return _parser_registry[language]


def should_skip_directory(dir_name: str, at_root: bool = False) -> bool:
    """Check if a directory should be skipped during file walking.

    Args:
        dir_name: Directory name (not full path)
        at_root: Whether the directory sits directly under the project root

    Returns:
        True if directory should be skipped
    """
    if at_root and dir_name in ROOT_SKIP_DIRECTORIES:
        return True
    return dir_name in SKIP_DIRECTORIES or dir_name.startswith(".")


def is_supported_file(file_path: str) -> bool:
    """Check if a file has a supported TypeScript extension."""
    return detect_language(file_path) is not None
