"""
UsageScanner implementation: textual detection of environment key references.
"""

import glob
import hashlib
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

from envguard.core.models import DYNAMIC_KEY_PREFIX, CodeKey, Usage, UsageKind

from .dialects import AccessDialect, DialectRegistry, get_default_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanWarning:
    """A file that could not be scanned."""

    file: str
    message: str


@dataclass
class ScanResult:
    """
    Outcome of scanning several files.

    Attributes:
        keys: Merged code keys in first-seen order
        files: Files that were scanned, in scan order
        warnings: Files that were skipped and why
    """

    keys: list[CodeKey] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)

    @property
    def key_names(self) -> set[str]:
        return {key.name for key in self.keys}

    def get(self, name: str) -> CodeKey | None:
        return next((key for key in self.keys if key.name == name), None)


def dynamic_key_name(file_path: str, line: int, column: int) -> str:
    """Synthetic name for a dynamic access, unique per file, line and column."""
    digest = hashlib.sha1(file_path.encode("utf-8")).hexdigest()[:8]
    return f"{DYNAMIC_KEY_PREFIX}{line}_{column}_{digest}"


def _add_usage(keys: dict[str, CodeKey], name: str, usage: Usage) -> None:
    key = keys.get(name)
    if key is None:
        key = keys[name] = CodeKey(name=name)
    key.add_usage(usage)


def _scan_line(
    keys: dict[str, CodeKey],
    line: str,
    line_number: int,
    file_path: str,
    dialect: AccessDialect,
) -> None:
    # Dynamic forms first; literal-only expressions are left to the static rules
    for rule in dialect.dynamic_rules:
        for match in rule.opener.finditer(line):
            end = line.find(rule.closer, match.start())
            if end == -1:
                continue
            expression = line[match.start():end + 1]
            if rule.literal_shape.match(expression):
                continue
            column = match.start() + 1
            _add_usage(
                keys,
                dynamic_key_name(file_path, line_number, column),
                Usage(
                    file=file_path,
                    line=line_number,
                    column=column,
                    kind=UsageKind.DYNAMIC,
                    raw_text=expression,
                ),
            )

    for rule in dialect.rules:
        for match in rule.pattern.finditer(line):
            is_optional = bool(
                rule.optional_tail and rule.optional_tail.match(line, match.end())
            )
            _add_usage(
                keys,
                match.group("key"),
                Usage(
                    file=file_path,
                    line=line_number,
                    column=match.start() + 1,
                    kind=rule.kind,
                    raw_text=match.group(0),
                    is_optional=is_optional,
                ),
            )


def scan_source(
    text: str,
    file_path: str,
    dialect: AccessDialect | None = None,
) -> list[CodeKey]:
    """
    Detect environment key references in source text.

    Args:
        text: Source code
        file_path: Path recorded on each usage; also selects the dialect
        dialect: Explicit dialect, overriding extension-based selection

    Returns:
        One CodeKey per distinct key name, in first-seen order. Usages are in
        line order; within a line dynamic accesses precede static ones.
    """
    dialect = dialect or get_default_registry().for_path(file_path)
    keys: dict[str, CodeKey] = {}
    for index, line in enumerate(text.split("\n")):
        _scan_line(keys, line, index + 1, file_path, dialect)
    return list(keys.values())


def merge_code_keys(per_file: Iterable[Iterable[CodeKey]]) -> list[CodeKey]:
    """
    Fold per-file key lists into one list keyed by name.

    Usage lists are concatenated in input order and the optional flag is
    OR-ed across all usages. Input keys are not modified.
    """
    merged: dict[str, CodeKey] = {}
    for keys in per_file:
        for key in keys:
            target = merged.get(key.name)
            if target is None:
                target = merged[key.name] = CodeKey(name=key.name)
            target.usages.extend(key.usages)
            target.is_optional = target.is_optional or key.is_optional
    return list(merged.values())


def expand_braces(pattern: str) -> list[str]:
    """
    Expand the first ``{a,b}`` group of a glob pattern, recursively.

    >>> expand_braces("src/**/*.{js,ts}")
    ['src/**/*.js', 'src/**/*.ts']
    """
    start = pattern.find("{")
    if start == -1:
        return [pattern]
    depth = 0
    for end in range(start, len(pattern)):
        if pattern[end] == "{":
            depth += 1
        elif pattern[end] == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]

    options = []
    depth = 0
    current = ""
    for char in pattern[start + 1:end]:
        if char == "," and depth == 0:
            options.append(current)
            current = ""
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current += char
    options.append(current)

    prefix, suffix = pattern[:start], pattern[end + 1:]
    expanded: list[str] = []
    for option in options:
        expanded.extend(expand_braces(prefix + option + suffix))
    return expanded


class UsageScanner:
    """
    Scans source files for environment key references.

    Provides:
    - Glob pattern resolution with brace expansion and ``**`` recursion
    - Gitignore-style exclusion of paths via pathspec
    - Per-file scanning merged into one key list
    - Graceful handling of unreadable files
    """

    DEFAULT_IGNORE_PATTERNS: list[str] = [
        "node_modules",
        ".git",
        "dist",
        "build",
        "__pycache__",
        ".venv",
    ]

    def __init__(
        self,
        root_path: Path | str | None = None,
        ignore_patterns: list[str] | None = None,
        registry: DialectRegistry | None = None,
    ):
        """
        Initialize the UsageScanner.

        Args:
            root_path: Directory that relative patterns resolve against.
                      Defaults to the current working directory.
            ignore_patterns: Gitignore-style patterns excluded from scanning.
                            If None, defaults to common dependency/build dirs.
            registry: DialectRegistry used to pick rules per file extension.
        """
        self._root_path = Path(root_path) if root_path is not None else Path.cwd()
        self._ignore_patterns = (
            ignore_patterns if ignore_patterns is not None
            else list(self.DEFAULT_IGNORE_PATTERNS)
        )
        self._pathspec = pathspec.GitIgnoreSpec.from_lines(self._ignore_patterns)
        self._registry = registry or get_default_registry()

    def _should_ignore(self, path: Path) -> bool:
        try:
            rel_path = path.resolve().relative_to(self._root_path.resolve())
        except ValueError:
            rel_path = path
        return self._pathspec.match_file(rel_path.as_posix())

    def resolve_patterns(self, patterns: Iterable[str]) -> list[Path]:
        """
        Resolve glob patterns to a sorted, de-duplicated list of files.

        Relative patterns are resolved against the root path. Plain file paths
        are accepted as patterns matching themselves.
        """
        files: set[Path] = set()
        for pattern in patterns:
            for expanded in expand_braces(pattern):
                full_pattern = (
                    expanded if os.path.isabs(expanded)
                    else str(self._root_path / expanded)
                )
                for match in glob.glob(full_pattern, recursive=True):
                    path = Path(match)
                    if not path.is_file():
                        continue
                    if self._should_ignore(path):
                        logger.debug(f"Ignoring {path}")
                        continue
                    files.add(path)
        return sorted(files)

    def scan_text(self, text: str, file_path: str) -> list[CodeKey]:
        """Scan source text; the dialect is chosen from ``file_path``."""
        return scan_source(text, file_path, self._registry.for_path(file_path))

    def scan_file(self, file_path: Path | str) -> tuple[list[CodeKey], ScanWarning | None]:
        """
        Scan one file.

        Returns:
            Tuple of (keys, warning). An unreadable file yields no keys and a
            warning instead of raising.
        """
        path = Path(file_path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read file {path}: {e}")
            return [], ScanWarning(str(path), f"Failed to read file: {e}")
        return self.scan_text(content, str(path)), None

    def scan_many(self, file_paths: Iterable[Path | str]) -> ScanResult:
        """
        Scan files in order and merge keys by name across files.

        Unreadable files are skipped and reported in ``ScanResult.warnings``.
        """
        result = ScanResult()
        per_file: list[list[CodeKey]] = []
        for file_path in file_paths:
            keys, warning = self.scan_file(file_path)
            if warning is not None:
                result.warnings.append(warning)
                continue
            result.files.append(str(file_path))
            per_file.append(keys)
        result.keys = merge_code_keys(per_file)
        logger.debug(
            f"Scanned {len(result.files)} files, found {len(result.keys)} keys, "
            f"{len(result.warnings)} skipped"
        )
        return result

    def scan_patterns(self, patterns: Iterable[str]) -> ScanResult:
        """Resolve glob patterns and scan every matching file."""
        return self.scan_many(self.resolve_patterns(patterns))
