"""
Schema validation of resolved environment values.
"""

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import AnyUrl, TypeAdapter, ValidationError

from envguard.core.errors import ConversionError, MissingRequiredError
from envguard.core.models import SchemaIssue, SchemaValidationResult

from .fields import EnvSchema, SchemaField

logger = logging.getLogger(__name__)

MASK = "*" * 8

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_URL_ADAPTER = TypeAdapter(AnyUrl)

# Returned by convert_value when the text does not fit the field type
INVALID = object()


def _convert_number(value: str) -> Any:
    text = value.strip()
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    if _NUMBER_RE.fullmatch(text):
        return float(text)
    return INVALID


def _convert_boolean(value: str) -> Any:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return INVALID


def _convert_url(value: str) -> Any:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        return INVALID
    return value


def _convert_email(value: str) -> Any:
    return value if _EMAIL_RE.match(value) else INVALID


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are accepted by the json module but are not JSON
    raise ValueError(f"invalid JSON constant: {name}")


def _convert_json(value: str) -> Any:
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except ValueError:
        return INVALID


_CONVERTERS = {
    "string": lambda value: value,
    "number": _convert_number,
    "boolean": _convert_boolean,
    "url": _convert_url,
    "email": _convert_email,
    "json": _convert_json,
}


def convert_value(value: str, field: SchemaField) -> Any:
    """
    Convert raw env text according to the field type.

    Returns:
        The typed value, or ``INVALID`` if the text does not fit the type
    """
    if field.type == "enum":
        return value if value in field.allowed_values else INVALID
    return _CONVERTERS[field.type](value)


def mask_value(value: str | None, field: SchemaField) -> str:
    """Hide sensitive values behind a fixed-length mask."""
    if not value:
        return ""
    return MASK if field.is_sensitive else value


def _format_default(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class SchemaValidator:
    """
    Validates resolved environment values against an EnvSchema.

    ``validate`` collects every finding. ``get_validated_env`` is
    all-or-nothing and raises on the first unusable key.
    """

    def __init__(self, schema: EnvSchema | Mapping[str, Any]):
        """
        Args:
            schema: EnvSchema, or a raw mapping in the schema document format
        """
        self.schema = schema if isinstance(schema, EnvSchema) else EnvSchema.from_mapping(schema)

    def _issue(self, key: str, value: str, field: SchemaField, issue: str) -> SchemaIssue:
        return SchemaIssue(
            key=key,
            value=mask_value(value, field),
            expected_type=field.type,
            actual_type="string",
            issue=issue,
            description=field.description,
            is_sensitive=field.is_sensitive,
        )

    def _check_enum(self, key: str, value: str, field: SchemaField) -> SchemaIssue | None:
        allowed = field.allowed_values
        if allowed is not None and value not in allowed:
            return self._issue(key, value, field, f"Not in allowed values: {', '.join(allowed)}")
        return None

    def _check_type(self, key: str, value: str, field: SchemaField) -> SchemaIssue | None:
        converted = convert_value(value, field)
        if converted is INVALID:
            return self._issue(key, value, field, f"Invalid {field.type} format")

        if field.type == "string":
            if field.min is not None and len(converted) < field.min:
                return self._issue(key, value, field, f"String too short (min: {field.min})")
            if field.max is not None and len(converted) > field.max:
                return self._issue(key, value, field, f"String too long (max: {field.max})")

        if field.type == "number":
            if field.min is not None and converted < field.min:
                return self._issue(key, value, field, f"Number too small (min: {field.min})")
            if field.max is not None and converted > field.max:
                return self._issue(key, value, field, f"Number too large (max: {field.max})")

        return None

    def _check_format(self, key: str, value: str, field: SchemaField) -> SchemaIssue | None:
        if field.type == "string" and field.pattern and not re.search(field.pattern, value):
            return self._issue(key, value, field, f"Does not match pattern: {field.pattern}")
        return None

    def validate(self, env: Mapping[str, str | None]) -> SchemaValidationResult:
        """
        Validate an environment mapping against the schema.

        Per field, in schema order: a required key without a value is missing;
        an absent optional key is skipped, while an empty one is still checked;
        a sensitive field that declares a default is reported; then the enum,
        type/bounds and pattern checks run, each stopping further checks for
        that key on failure. Keys present in ``env`` but not declared in the
        schema are unused.
        """
        result = SchemaValidationResult()

        for key, field in self.schema.items():
            value = env.get(key)

            if field.required and not value:
                result.missing.append(key)
                continue

            if value is None:
                continue

            if field.is_sensitive and field.has_default:
                result.sensitive_defaults.append(
                    self._issue(key, value, field, "Sensitive field cannot have default value")
                )

            enum_issue = self._check_enum(key, value, field)
            if enum_issue:
                result.invalid_enum.append(enum_issue)
                continue

            if field.type != "enum":
                type_issue = self._check_type(key, value, field)
                if type_issue:
                    result.invalid_type.append(type_issue)
                    continue

            format_issue = self._check_format(key, value, field)
            if format_issue:
                result.invalid_format.append(format_issue)

        result.unused = [
            key for key, value in env.items() if key not in self.schema and value is not None
        ]
        result.missing.sort()
        result.unused.sort()

        result.summary.keys_in_code = len(self.schema)
        result.summary.keys_in_env = len(env)
        result.summary.total_issues = (
            len(result.missing)
            + len(result.unused)
            + len(result.empty)
            + len(result.invalid_type)
            + len(result.invalid_format)
            + len(result.invalid_enum)
            + len(result.sensitive_defaults)
            + len(result.schema_errors)
        )
        logger.debug(
            f"Schema validation: {len(self.schema)} fields, "
            f"{result.summary.total_issues} issues"
        )
        return result

    def get_validated_env(self, env: Mapping[str, str | None]) -> dict[str, Any]:
        """
        Produce typed values for every schema field.

        Unset values fall back to the field default, except for sensitive
        fields which never receive a default.

        Raises:
            MissingRequiredError: If a required key has no value and no usable default
            ConversionError: If a value does not fit its field type
        """
        validated: dict[str, Any] = {}

        for key, field in self.schema.items():
            value = env.get(key)

            if not value:
                if field.has_default and not field.is_sensitive:
                    validated[key] = field.default
                elif field.required:
                    raise MissingRequiredError(key)
                continue

            converted = convert_value(value, field)
            if converted is INVALID:
                raise ConversionError(key, field.type)
            validated[key] = converted

        return validated

    def generate_env_example(self) -> str:
        """Render a commented .env.example document for the schema."""
        lines = [
            "# Generated from schema by envguard",
            "# Copy this file to .env and fill in the values",
            "",
        ]

        for key, field in self.schema.items():
            if field.description:
                lines.append(f"# {field.description}")

            constraints: list[str] = []
            if field.type != "string":
                constraints.append(f"type: {field.type}")
            if field.allowed_values:
                constraints.append(f"choices: {' | '.join(field.allowed_values)}")
            if getattr(field, "min", None) is not None:
                constraints.append(f"min: {field.min}")
            if getattr(field, "max", None) is not None:
                constraints.append(f"max: {field.max}")
            if getattr(field, "pattern", None):
                constraints.append(f"pattern: {field.pattern}")
            if field.is_sensitive:
                constraints.append("sensitive")
            if not field.required:
                constraints.append("optional")

            if constraints:
                lines.append(f"# ({', '.join(constraints)})")

            if field.is_sensitive or not field.has_default:
                lines.append(f"{key}=")
            else:
                lines.append(f"{key}={_format_default(field.default)}")

            lines.append("")

        return "\n".join(lines)


def validate_env(env: Mapping[str, str | None], schema: EnvSchema | Mapping[str, Any]) -> dict[str, Any]:
    """Convenience wrapper around ``SchemaValidator.get_validated_env``."""
    return SchemaValidator(schema).get_validated_env(env)
