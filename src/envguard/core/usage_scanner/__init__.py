"""
UsageScanner module for envguard.

Provides textual detection of environment variable references in source
files, with per-language access dialects and glob-based file resolution.
"""

from .dialects import (
    JAVASCRIPT_DIALECT,
    KEY_PATTERN,
    PYTHON_DIALECT,
    AccessDialect,
    AccessRule,
    DialectRegistry,
    DynamicRule,
    get_default_registry,
)
from .scanner import (
    ScanResult,
    ScanWarning,
    UsageScanner,
    dynamic_key_name,
    expand_braces,
    merge_code_keys,
    scan_source,
)

__all__ = [
    # Main classes
    "UsageScanner",
    "ScanResult",
    "ScanWarning",
    # Functions
    "scan_source",
    "merge_code_keys",
    "expand_braces",
    "dynamic_key_name",
    # Dialects
    "AccessDialect",
    "AccessRule",
    "DynamicRule",
    "DialectRegistry",
    "get_default_registry",
    "JAVASCRIPT_DIALECT",
    "PYTHON_DIALECT",
    "KEY_PATTERN",
]
