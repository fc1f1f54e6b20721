"""Migration configuration.

Settings come from ``lazyroutes.yaml`` at the project root (or a file passed
on the command line). Every key is optional::

    quote_style: single          # single | double
    standalone_default: true     # components without an explicit flag
    include_tests: false         # also migrate *.spec.ts files
    path_aliases:                # tsconfig "paths"-style module aliases
      "@app/*": ["src/app/*"]
    exclude:
      - "**/legacy/**"
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .errors import MigrationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "lazyroutes.yaml"

_QUOTE_STYLES = ("single", "double")


@dataclass
class MigrationConfig:
    """Options that shape analysis and the generated code."""

    quote_style: str = "single"
    # Angular 19+ treats components without `standalone:` as standalone.
    standalone_default: bool = True
    include_tests: bool = False
    path_aliases: Dict[str, List[str]] = field(default_factory=dict)
    exclude: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.quote_style not in _QUOTE_STYLES:
            raise MigrationError(
                f"Invalid quote_style {self.quote_style!r}; expected one of {list(_QUOTE_STYLES)}"
            )
        if not isinstance(self.standalone_default, bool):
            raise MigrationError("standalone_default must be a boolean")
        if not isinstance(self.include_tests, bool):
            raise MigrationError("include_tests must be a boolean")
        if not isinstance(self.path_aliases, dict):
            raise MigrationError("path_aliases must be a mapping of pattern to target list")
        aliases = {}
        for pattern, targets in self.path_aliases.items():
            if isinstance(targets, str):
                targets = [targets]
            if not isinstance(targets, list) or not all(isinstance(t, str) for t in targets):
                raise MigrationError(f"path_aliases[{pattern!r}] must be a list of strings")
            aliases[str(pattern)] = targets
        self.path_aliases = aliases
        if not isinstance(self.exclude, list) or not all(isinstance(e, str) for e in self.exclude):
            raise MigrationError("exclude must be a list of glob patterns")


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> MigrationConfig:
    """Load configuration from YAML.

    Args:
        config_path: Explicit config file. Must exist when given.
        project_root: Directory searched for ``lazyroutes.yaml`` when no
            explicit path is given.

    Returns:
        MigrationConfig (defaults when no file is found)

    Raises:
        MigrationError: If the file is unreadable, not a mapping, or holds
            invalid values
    """
    if config_path is None:
        if project_root is None:
            return MigrationConfig()
        config_path = Path(project_root) / CONFIG_FILE_NAME
        if not config_path.exists():
            logger.debug(f"{CONFIG_FILE_NAME} not found at {config_path}, using defaults")
            return MigrationConfig()
    elif not config_path.exists():
        raise MigrationError(f"Config file {config_path} does not exist.")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise MigrationError(f"Could not read config file {config_path}: {e}") from e

    if raw is None:
        return MigrationConfig()
    if not isinstance(raw, dict):
        raise MigrationError(f"Config file {config_path} must contain a mapping")

    known = {f.name for f in fields(MigrationConfig)}
    for key in raw:
        if key not in known:
            logger.warning(f"Ignoring unknown config key {key!r} in {config_path}")

    config = MigrationConfig(**{k: v for k, v in raw.items() if k in known})
    logger.debug(f"Loaded config from {config_path}: {config}")
    return config
