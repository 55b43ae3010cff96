"""
Parser for dotenv-style files.

Reads ``KEY=value`` lines into EnvEntry records. Malformed lines never abort
the parse: they are skipped and reported as ParseDiagnostic records.
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from envguard.core.models import EnvEntry, EnvFile, ParseDiagnostic

logger = logging.getLogger(__name__)

_EXPORT_PREFIX = "export "
_QUOTES = ("'", '"')


def _strip_quotes(value: str) -> str:
    """Remove one matching pair of surrounding quotes, without unescaping."""
    trimmed = value.strip()
    if len(trimmed) >= 2 and trimmed[0] in _QUOTES and trimmed[-1] == trimmed[0]:
        return trimmed[1:-1]
    return trimmed


def parse_env_text(text: str, path: str = "<string>") -> EnvFile:
    """
    Parse the text of an env file.

    Blank lines and ``#`` comments are skipped. Each remaining line is split
    on its first ``=``. A repeated key is reported as a diagnostic and the
    later value replaces the earlier one.

    Args:
        text: File content
        path: Path recorded on the returned EnvFile

    Returns:
        EnvFile with parsed entries and diagnostics
    """
    result = EnvFile(path=path)

    for index, line in enumerate(text.split("\n")):
        line_number = index + 1
        stripped = line.strip()

        if not stripped or stripped.startswith("#"):
            continue

        equal_index = line.find("=")
        if equal_index == -1:
            result.diagnostics.append(
                ParseDiagnostic(
                    line_number, f"Invalid format: missing '=' on line {line_number}"
                )
            )
            continue

        key = line[:equal_index].strip()
        if key.startswith(_EXPORT_PREFIX) and key[len(_EXPORT_PREFIX):].strip():
            key = key[len(_EXPORT_PREFIX):].strip()

        if not key:
            result.diagnostics.append(
                ParseDiagnostic(line_number, f"Invalid format: empty key on line {line_number}")
            )
            continue

        if key in result.keys:
            result.diagnostics.append(
                ParseDiagnostic(
                    line_number, f"Duplicate key '{key}' found on line {line_number}"
                )
            )

        value = _strip_quotes(line[equal_index + 1:])
        result.keys[key] = EnvEntry(
            key=key,
            value=value,
            is_empty=value == "",
            source_line=line_number,
        )

    return result


def parse_env_file(file_path: Path | str) -> EnvFile:
    """
    Parse an env file from disk.

    A missing or unreadable file is not an error: the result has no entries
    and a single diagnostic on line 0.
    """
    path = Path(file_path)
    if not path.exists():
        return EnvFile(
            path=str(file_path),
            diagnostics=[ParseDiagnostic(0, f"File not found: {file_path}")],
        )

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read env file {path}: {e}")
        return EnvFile(
            path=str(file_path),
            diagnostics=[ParseDiagnostic(0, f"Failed to read file: {e}")],
        )

    return parse_env_text(content, str(file_path))


def parse_env_files(file_paths: Iterable[Path | str]) -> list[EnvFile]:
    """Parse several env files, keeping each file's diagnostics separate."""
    return [parse_env_file(path) for path in file_paths]


def merge_env_files(env_files: Iterable[EnvFile]) -> dict[str, EnvEntry]:
    """Merge already parsed env files; the entry from the later file wins."""
    combined: dict[str, EnvEntry] = {}
    for env_file in env_files:
        combined.update(env_file.keys)
    return combined


def parse_multiple_env_files(file_paths: Iterable[Path | str]) -> dict[str, EnvEntry]:
    """
    Parse env files in order and merge their entries.

    For a key defined in several files the entry from the later file wins.
    Diagnostics are not merged; use ``parse_env_files`` to inspect them.
    """
    return merge_env_files(parse_env_files(file_paths))


def _needs_quotes(value: str) -> bool:
    if value != value.strip():
        return True
    return len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]


def serialize_env_entries(entries: Mapping[str, EnvEntry] | Iterable[EnvEntry]) -> str:
    """
    Render entries as ``KEY=value`` lines that parse back to the same values.

    Values are wrapped in double quotes only when re-parsing the bare value
    would change it.
    """
    items = entries.values() if isinstance(entries, Mapping) else entries
    lines = []
    for entry in items:
        value = f'"{entry.value}"' if _needs_quotes(entry.value) else entry.value
        lines.append(f"{entry.key}={value}")
    return "\n".join(lines) + "\n" if lines else ""
