"""
envguard - audit environment variable usage against .env files and schemas.
"""

from envguard.core import (
    CodeKey,
    EnvEntry,
    EnvGuardConfig,
    EnvSchema,
    SchemaValidator,
    UsageScanner,
    ValidationResult,
    load_config,
    load_schema,
    parse_env_file,
    parse_multiple_env_files,
    reconcile,
)
from envguard.services import EnvAuditService, check_environment

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "CodeKey",
    "EnvEntry",
    "EnvGuardConfig",
    "EnvSchema",
    "SchemaValidator",
    "UsageScanner",
    "ValidationResult",
    "load_config",
    "load_schema",
    "parse_env_file",
    "parse_multiple_env_files",
    "reconcile",
    "EnvAuditService",
    "check_environment",
]
