"""
Data models shared by the scanner, parser, reconciler and schema validator.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

# Prefix carried by every synthetic key created for a dynamically built access.
DYNAMIC_KEY_PREFIX = "DYNAMIC_KEY_"


class UsageKind(str, Enum):
    """How a key was referenced in source code."""

    DIRECT = "direct"
    BRACKET = "bracket"
    CALL = "call"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class Usage:
    """
    One textual occurrence of an environment access.

    Attributes:
        file: Path of the scanned file
        line: 1-based line number
        column: 1-based column of the match start
        kind: Access form that produced the match
        raw_text: Matched source fragment
        is_optional: True if this site supplies a fallback value
    """

    file: str
    line: int
    column: int
    kind: UsageKind
    raw_text: str
    is_optional: bool = False


@dataclass
class CodeKey:
    """
    A configuration key referenced in source, with every site it appears at.

    A key is optional if ANY of its usages supplies a fallback.
    """

    name: str
    usages: list[Usage] = field(default_factory=list)
    is_optional: bool = False

    @property
    def is_dynamic(self) -> bool:
        return self.name.startswith(DYNAMIC_KEY_PREFIX)

    def add_usage(self, usage: Usage) -> None:
        self.usages.append(usage)
        self.is_optional = self.is_optional or usage.is_optional


@dataclass(frozen=True)
class EnvEntry:
    """A key/value pair read from an env file."""

    key: str
    value: str
    is_empty: bool
    source_line: int


@dataclass(frozen=True)
class ParseDiagnostic:
    """A non-fatal problem found while parsing an env file."""

    line: int
    message: str


@dataclass
class EnvFile:
    """Parsed content of a single env file."""

    path: str
    keys: dict[str, EnvEntry] = field(default_factory=dict)
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)

    def as_values(self) -> dict[str, str]:
        """Return a plain key -> value mapping."""
        return {key: entry.value for key, entry in self.keys.items()}


@dataclass
class ValidationSummary:
    keys_in_code: int = 0
    keys_in_env: int = 0
    total_issues: int = 0


@dataclass
class ValidationResult:
    """
    Structural comparison of code keys against env entries.

    Every list is sorted ascending. ``duplicates`` is part of the shape but is
    never filled by reconciliation; duplicate keys are reported by the parser.
    """

    missing: list[str] = field(default_factory=list)
    unused: list[str] = field(default_factory=list)
    empty: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    uncertain: list[str] = field(default_factory=list)
    summary: ValidationSummary = field(default_factory=ValidationSummary)

    @property
    def has_issues(self) -> bool:
        return self.summary.total_issues > 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SchemaIssue:
    """
    A single schema validation finding.

    ``value`` is already masked when the field is sensitive.
    """

    key: str
    value: str
    expected_type: str
    actual_type: str
    issue: str
    description: str | None = None
    is_sensitive: bool = False


@dataclass
class SchemaValidationResult(ValidationResult):
    """Validation result extended with per-field schema findings."""

    invalid_type: list[SchemaIssue] = field(default_factory=list)
    invalid_format: list[SchemaIssue] = field(default_factory=list)
    invalid_enum: list[SchemaIssue] = field(default_factory=list)
    sensitive_defaults: list[SchemaIssue] = field(default_factory=list)
    schema_errors: list[SchemaIssue] = field(default_factory=list)
