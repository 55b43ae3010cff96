"""
Core Layer - Env-file parsing, usage scanning, reconciliation and schema validation.
"""

from envguard.core.config import (
    EnvGuardConfig,
    LoggingConfig,
    load_config,
    merge_config,
    validate_config,
)
from envguard.core.env_cleaner import CleanResult, clean_env_files
from envguard.core.env_diff import EnvDiffResult, ValueDifference, diff_env_files, diff_env_maps
from envguard.core.env_parser import (
    merge_env_files,
    parse_env_file,
    parse_env_files,
    parse_env_text,
    parse_multiple_env_files,
    serialize_env_entries,
)
from envguard.core.errors import (
    ConfigError,
    ConversionError,
    EnvGuardError,
    MissingRequiredError,
    SchemaLoadError,
)
from envguard.core.models import (
    DYNAMIC_KEY_PREFIX,
    CodeKey,
    EnvEntry,
    EnvFile,
    ParseDiagnostic,
    SchemaIssue,
    SchemaValidationResult,
    Usage,
    UsageKind,
    ValidationResult,
    ValidationSummary,
)
from envguard.core.reconciler import (
    get_missing_key_details,
    get_unused_key_details,
    reconcile,
)
from envguard.core.reporter import (
    ReportOptions,
    format_detailed_report,
    format_report,
    format_schema_report,
    generate_env_example_from_keys,
)
from envguard.core.schema import (
    EnvSchema,
    SchemaField,
    SchemaValidator,
    load_schema,
    validate_env,
)
from envguard.core.usage_scanner import (
    DialectRegistry,
    ScanResult,
    ScanWarning,
    UsageScanner,
    merge_code_keys,
    scan_source,
)

__all__ = [
    # Config
    "EnvGuardConfig",
    "LoggingConfig",
    "load_config",
    "merge_config",
    "validate_config",
    # Errors
    "EnvGuardError",
    "ConfigError",
    "SchemaLoadError",
    "MissingRequiredError",
    "ConversionError",
    # Models
    "CodeKey",
    "Usage",
    "UsageKind",
    "EnvEntry",
    "EnvFile",
    "ParseDiagnostic",
    "ValidationResult",
    "ValidationSummary",
    "SchemaIssue",
    "SchemaValidationResult",
    "DYNAMIC_KEY_PREFIX",
    # Env-file parser
    "parse_env_text",
    "parse_env_file",
    "parse_env_files",
    "merge_env_files",
    "parse_multiple_env_files",
    "serialize_env_entries",
    # Usage scanner
    "UsageScanner",
    "ScanResult",
    "ScanWarning",
    "DialectRegistry",
    "scan_source",
    "merge_code_keys",
    # Reconciliation
    "reconcile",
    "get_missing_key_details",
    "get_unused_key_details",
    # Schema
    "EnvSchema",
    "SchemaField",
    "SchemaValidator",
    "load_schema",
    "validate_env",
    # Reporting
    "ReportOptions",
    "format_report",
    "format_detailed_report",
    "format_schema_report",
    "generate_env_example_from_keys",
    # Env file tools
    "EnvDiffResult",
    "ValueDifference",
    "diff_env_files",
    "diff_env_maps",
    "CleanResult",
    "clean_env_files",
]
