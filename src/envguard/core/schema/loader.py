"""
Loading of schema documents from disk or from an inline mapping.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from envguard.core.errors import SchemaLoadError

from .fields import EnvSchema

logger = logging.getLogger(__name__)

# Looked up in order when no explicit schema path is given
DEFAULT_SCHEMA_FILES = (".envschema.json", "envschema.json", ".envschema.yaml")


def read_schema_file(path: Path | str) -> EnvSchema:
    """
    Read a JSON or YAML schema document.

    Raises:
        SchemaLoadError: If the file is unreadable, malformed or invalid
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaLoadError(f"Failed to load schema from {path}: {e}") from e

    return EnvSchema.from_mapping(data, source=str(path))


def load_schema(
    schema_path: Path | str | None = None,
    inline: Mapping[str, Any] | None = None,
    search_dir: Path | str | None = None,
) -> EnvSchema:
    """
    Load a schema from an inline mapping, an explicit file or a default location.

    An inline mapping takes precedence over ``schema_path``. Without either,
    the default schema files are looked up in ``search_dir`` (default: CWD).

    Returns:
        The loaded schema; an empty schema if none was found

    Raises:
        SchemaLoadError: If a schema exists but cannot be read or is invalid
    """
    if inline is not None:
        return EnvSchema.from_mapping(inline)

    if schema_path is not None:
        return read_schema_file(schema_path)

    root = Path(search_dir) if search_dir is not None else Path.cwd()
    for name in DEFAULT_SCHEMA_FILES:
        candidate = root / name
        if candidate.exists():
            logger.debug(f"Using schema {candidate}")
            return read_schema_file(candidate)

    logger.debug(f"No schema file found in {root}")
    return EnvSchema()
