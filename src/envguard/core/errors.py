"""
Exception hierarchy for envguard.

Only failures that make a single call meaningless are raised. Everything that
can be reported (malformed env lines, missing keys, invalid values found by
``SchemaValidator.validate``) is returned as data instead.
"""


class EnvGuardError(Exception):
    """Base class for all envguard errors."""


class ConfigError(EnvGuardError):
    """Raised when an explicitly requested configuration file cannot be used."""


class SchemaLoadError(EnvGuardError):
    """Raised when a schema document is unreadable or structurally invalid."""


class MissingRequiredError(EnvGuardError):
    """Raised by ``get_validated_env`` when a required key has no value."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Missing required environment variable: {key}")


class ConversionError(EnvGuardError):
    """Raised by ``get_validated_env`` when a value cannot be converted."""

    def __init__(self, key: str, expected_type: str):
        self.key = key
        self.expected_type = expected_type
        super().__init__(f"Invalid {expected_type} value for environment variable: {key}")
