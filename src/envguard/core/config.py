"""
Configuration module for envguard.

Supports loading from YAML/JSON files, ``pyproject.toml`` and ``package.json``
with environment variable overrides. Default values are loaded from
defaults.yaml for maintainability.
"""

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from envguard.core.errors import ConfigError

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None

# Files looked up in the working directory when no explicit config is given
DEFAULT_CONFIG_FILES = (".envguard.yaml", ".envguard.yml", ".envguardrc.json")

REPORT_FORMATS = ("table", "json", "minimal")

# Config documents written for the JavaScript ecosystem use camelCase keys
_KEY_ALIASES = {
    "envFiles": "env_files",
    "allowOptional": "allow_optional",
    "ignoreKeys": "ignore_keys",
    "ignorePatterns": "ignore_patterns",
    "reportFormat": "report_format",
    "exitOnError": "exit_on_error",
    "includeOptional": "include_optional",
}

# List fields that accumulate across merged sources instead of being replaced
_APPEND_FIELDS = frozenset({"allow_optional", "ignore_keys"})

_LIST_FIELDS = frozenset(
    {"paths", "env_files", "allow_optional", "ignore_keys", "ignore_patterns"}
)
_BOOL_FIELDS = frozenset({"exit_on_error", "include_optional"})


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(key: str, fallback: Any = None, section: str | None = None) -> Any:
    """Get a default value from the defaults config, copying mutable values."""
    defaults = _load_defaults()
    if section is not None:
        defaults = defaults.get(section, {}) or {}
    value = defaults.get(key, fallback)
    return list(value) if isinstance(value, list) else value


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("level", "WARNING", "logging"))
    format: str = field(
        default_factory=lambda: _get_default(
            "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s", "logging"
        )
    )


@dataclass
class EnvGuardConfig:
    """
    Policy for a single envguard invocation.

    Attributes:
        paths: Glob patterns of source files to scan
        env_files: Env files to read; later files override earlier ones
        allow_optional: Keys exempt from "missing" when used with a fallback
        ignore_keys: Keys excluded from the "unused" and "empty" checks
        ignore_patterns: Gitignore-style patterns excluded from scanning
        report_format: One of table, json, minimal
        exit_on_error: Exit non-zero from ``check`` when issues are found
        include_optional: Include optional keys in a generated .env.example
    """

    paths: list[str] = field(
        default_factory=lambda: _get_default(
            "paths", ["src/**/*.{js,ts,mjs,cjs}", "lib/**/*.{js,ts,mjs,cjs}"]
        )
    )
    env_files: list[str] = field(default_factory=lambda: _get_default("env_files", [".env"]))
    allow_optional: list[str] = field(
        default_factory=lambda: _get_default("allow_optional", [])
    )
    ignore_keys: list[str] = field(
        default_factory=lambda: _get_default("ignore_keys", ["NODE_ENV"])
    )
    ignore_patterns: list[str] = field(
        default_factory=lambda: _get_default(
            "ignore_patterns",
            ["node_modules", ".git", "dist", "build", "__pycache__", ".venv"],
        )
    )
    report_format: str = field(default_factory=lambda: _get_default("report_format", "table"))
    exit_on_error: bool = field(default_factory=lambda: _get_default("exit_on_error", True))
    include_optional: bool = field(
        default_factory=lambda: _get_default("include_optional", False)
    )
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "EnvGuardConfig":
        """
        Load configuration from a YAML or JSON file on top of the defaults.

        Raises:
            ConfigError: If the file is missing, malformed or of an unsupported format
        """
        return merge_config(cls(), read_config_file(path))

    def apply_env_overrides(self) -> "EnvGuardConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: ENVGUARD_<FIELD>
        Examples:
            - ENVGUARD_ENV_FILES=.env,.env.local
            - ENVGUARD_IGNORE_KEYS=NODE_ENV,CI
            - ENVGUARD_REPORT_FORMAT=json
            - ENVGUARD_LOGGING_LEVEL=DEBUG

        List values are comma-separated and replace the configured list.

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            "ENVGUARD_PATHS": (None, "paths", _parse_list),
            "ENVGUARD_ENV_FILES": (None, "env_files", _parse_list),
            "ENVGUARD_ALLOW_OPTIONAL": (None, "allow_optional", _parse_list),
            "ENVGUARD_IGNORE_KEYS": (None, "ignore_keys", _parse_list),
            "ENVGUARD_IGNORE_PATTERNS": (None, "ignore_patterns", _parse_list),
            "ENVGUARD_REPORT_FORMAT": (None, "report_format", str),
            "ENVGUARD_EXIT_ON_ERROR": (None, "exit_on_error", _parse_bool),
            "ENVGUARD_INCLUDE_OPTIONAL": (None, "include_optional", _parse_bool),
            "ENVGUARD_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                target = getattr(self, section) if section else self
                setattr(target, key, converter(value))

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ConfigError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ConfigError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string into a list of non-empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _check_values(data: dict[str, Any], source: str) -> None:
    """
    Check that each value has the shape its field expects.

    Raises:
        ConfigError: If a list field is not a list of strings, a flag is not a
                     boolean, or ``logging`` is not a mapping of known keys
    """
    logging_fields = set(LoggingConfig.__dataclass_fields__)
    for name, value in data.items():
        if value is None:
            continue
        if name in _LIST_FIELDS:
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ConfigError(
                    f"Invalid value for '{name}' in {source}: expected a list of strings"
                )
        elif name in _BOOL_FIELDS:
            if not isinstance(value, bool):
                raise ConfigError(
                    f"Invalid value for '{name}' in {source}: expected a boolean"
                )
        elif name == "report_format":
            if not isinstance(value, str):
                raise ConfigError(
                    f"Invalid value for '{name}' in {source}: expected a string"
                )
        elif name == "logging" and not isinstance(value, LoggingConfig):
            if not isinstance(value, dict):
                raise ConfigError(
                    f"Invalid value for 'logging' in {source}: expected a mapping"
                )
            unknown = sorted(set(value) - logging_fields)
            if unknown:
                raise ConfigError(
                    f"Unknown logging keys in {source}: {', '.join(map(str, unknown))}"
                )


def _normalize_keys(data: dict[str, Any], source: str) -> dict[str, Any]:
    """Map camelCase keys to field names and drop unknown keys."""
    known = set(EnvGuardConfig.__dataclass_fields__)
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        name = _KEY_ALIASES.get(key, key)
        if name not in known:
            logger.warning(f"Ignoring unknown config key '{key}' in {source}")
            continue
        normalized[name] = value
    _check_values(normalized, source)
    return normalized


def read_config_file(path: Path | str) -> dict[str, Any]:
    """
    Read a YAML or JSON config document into a normalized mapping.

    Raises:
        ConfigError: If the file is missing, malformed or of an unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json" or path.name.endswith("rc"):
            data = json.loads(content) if content.strip() else {}
        else:
            raise ConfigError(f"Unsupported config file format: {path.suffix}")
    except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config format in {path}: expected a mapping")

    return _normalize_keys(data, str(path))


def merge_config(base: EnvGuardConfig, override: dict[str, Any]) -> EnvGuardConfig:
    """
    Merge a partial config mapping onto a config, returning a new instance.

    ``allow_optional`` and ``ignore_keys`` accumulate (base entries first,
    duplicates dropped). Every other provided field replaces the base value;
    a nested ``logging`` mapping is merged field by field.

    Raises:
        ConfigError: If a value does not have the shape its field expects
    """
    _check_values(override, "config override")

    changes: dict[str, Any] = {}
    for name, value in override.items():
        if value is None:
            continue
        if name in _APPEND_FIELDS:
            combined = getattr(base, name) + list(value)
            changes[name] = list(dict.fromkeys(combined))
        elif name == "logging":
            if isinstance(value, LoggingConfig):
                changes[name] = value
            else:
                changes[name] = replace(base.logging, **dict(value))
        elif isinstance(value, list):
            changes[name] = list(value)
        else:
            changes[name] = value

    merged = replace(base, **changes)
    # replace() shares list objects with base; keep the result independent
    for name in ("paths", "env_files", "allow_optional", "ignore_keys", "ignore_patterns"):
        if name not in changes:
            setattr(merged, name, list(getattr(base, name)))
    if "logging" not in changes:
        merged.logging = replace(base.logging)
    return merged


def _read_section(section: Any, path: Path) -> dict[str, Any] | None:
    if not isinstance(section, dict):
        return None
    try:
        return _normalize_keys(section, str(path))
    except ConfigError as e:
        logger.warning(f"Skipping envguard section: {e}")
        return None


def _read_pyproject_section(path: Path) -> dict[str, Any] | None:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Failed to parse {path}: {e}")
        return None
    section = data.get("tool", {}).get("envguard")
    return _read_section(section, path)


def _read_package_json_section(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to parse {path}: {e}")
        return None
    section = data.get("envguard") if isinstance(data, dict) else None
    return _read_section(section, path)


def load_config(
    config_path: Optional[Path | str] = None,
    search_dir: Optional[Path | str] = None,
    apply_env: bool = True,
) -> EnvGuardConfig:
    """
    Load configuration from every available source.

    Sources are merged in order: defaults, the explicit config file (or the
    first auto-discovered one), ``[tool.envguard]`` in pyproject.toml, the
    ``envguard`` key of package.json, then environment overrides.

    Args:
        config_path: Optional explicit config file. Failure to read it is fatal.
        search_dir: Directory searched for config files. Defaults to the CWD.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        EnvGuardConfig instance

    Raises:
        ConfigError: If ``config_path`` is given and cannot be loaded
    """
    root = Path(search_dir) if search_dir is not None else Path.cwd()
    config = EnvGuardConfig()

    if config_path:
        config = merge_config(config, read_config_file(config_path))
    else:
        for name in DEFAULT_CONFIG_FILES:
            candidate = root / name
            if not candidate.exists():
                continue
            try:
                config = merge_config(config, read_config_file(candidate))
                logger.debug(f"Loaded config from {candidate}")
            except ConfigError as e:
                logger.warning(f"Skipping config file: {e}")
            break

    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        section = _read_pyproject_section(pyproject)
        if section:
            config = merge_config(config, section)

    package_json = root / "package.json"
    if package_json.exists():
        section = _read_package_json_section(package_json)
        if section:
            config = merge_config(config, section)

    if apply_env:
        config.apply_env_overrides()

    return config


def validate_config(config: EnvGuardConfig) -> list[str]:
    """Return human-readable problems with a config; empty when usable."""
    errors: list[str] = []

    if not config.paths:
        errors.append("Config must specify at least one path to scan")

    if not config.env_files:
        errors.append("Config must specify at least one env file")

    if config.report_format not in REPORT_FORMATS:
        errors.append(f"report_format must be one of: {', '.join(REPORT_FORMATS)}")

    return errors
