"""tree-sitter based TypeScript parsing.

Public API:
    parse_file(path) → SourceFile
    parse_source(source, file_name, language) → SourceFile
    detect_language(file_path) → str | None
"""

from .models import ParseError, SourceFile
from .utils import (
    detect_language,
    get_parser,
    is_supported_file,
    normalize_path,
    should_skip_directory,
)

__all__ = [
    "parse_file",
    "parse_source",
    "detect_language",
    "is_supported_file",
    "normalize_path",
    "should_skip_directory",
    "ParseError",
    "SourceFile",
]


def parse_file(file_path: str) -> SourceFile:
    """Parse a TypeScript file from disk.

    Args:
        file_path: Path to the source file

    Returns:
        SourceFile keyed by its normalized absolute path

    Raises:
        ValueError: If the extension is not a TypeScript one
    """
    language = detect_language(file_path)
    if language is None:
        raise ValueError(f"Not a TypeScript file: {file_path}")
    return get_parser(language).parse_file(file_path)


def parse_source(source_text: str, file_name: str, language: str | None = None) -> SourceFile:
    """Parse TypeScript source text.

    Args:
        source_text: Source code as string
        file_name: File name recorded on the SourceFile
        language: "typescript" or "tsx". If None, detected from file_name.

    Returns:
        SourceFile
    """
    if language is None:
        language = detect_language(file_name) or "typescript"
    return get_parser(language).parse_source(source_text, file_name)
