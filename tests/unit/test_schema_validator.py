"""
Unit tests for SchemaValidator.

Tests semantic validation of resolved environment values:
- Missing required keys and unused keys
- Enum, type, bound and pattern checks with their short-circuit order
- Sensitive value masking and sensitive defaults
- Typed conversion with get_validated_env
- .env.example generation
"""

import pytest

from envguard.core.errors import ConversionError, MissingRequiredError
from envguard.core.schema import MASK, EnvSchema, SchemaValidator, mask_value, validate_env

TEST_SCHEMA = {
    "NODE_ENV": {
        "type": "enum",
        "description": "Application environment",
        "allowedValues": ["development", "production", "test"],
        "default": "development",
        "required": True,
    },
    "PORT": {
        "type": "number",
        "description": "Server port",
        "min": 1,
        "max": 65535,
        "default": 3000,
        "required": False,
    },
    "DATABASE_URL": {
        "type": "url",
        "description": "Database connection URL",
        "isSensitive": True,
        "required": True,
    },
    "DEBUG": {
        "type": "boolean",
        "description": "Debug mode",
        "default": False,
        "required": False,
    },
    "API_KEY": {
        "type": "string",
        "description": "API key",
        "pattern": "^[a-zA-Z0-9]{32}$",
        "isSensitive": True,
        "required": True,
    },
    "ADMIN_EMAIL": {
        "type": "email",
        "description": "Admin email",
        "required": True,
    },
    "CONFIG_JSON": {
        "type": "json",
        "description": "JSON configuration",
        "required": False,
    },
}

VALID_API_KEY = "abcdefghijklmnopqrstuvwxyz123456"

REQUIRED_ONLY = {
    "NODE_ENV": "development",
    "DATABASE_URL": "https://example.com/db",
    "API_KEY": VALID_API_KEY,
    "ADMIN_EMAIL": "admin@example.com",
}


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator(TEST_SCHEMA)


class TestValidate:
    """Test collecting validation findings."""

    def test_all_valid_values(self, validator):
        env = {
            "NODE_ENV": "production",
            "PORT": "8080",
            "DATABASE_URL": "https://example.com/db",
            "DEBUG": "true",
            "API_KEY": VALID_API_KEY,
            "ADMIN_EMAIL": "admin@example.com",
            "CONFIG_JSON": '{"key": "value"}',
        }

        result = validator.validate(env)

        assert result.missing == []
        assert result.invalid_type == []
        assert result.invalid_format == []
        assert result.invalid_enum == []
        assert result.summary.total_issues == 0
        assert result.summary.keys_in_code == 7
        assert result.summary.keys_in_env == 7

    def test_missing_required_variables(self, validator):
        result = validator.validate({"NODE_ENV": "development"})

        assert result.missing == ["ADMIN_EMAIL", "API_KEY", "DATABASE_URL"]

    def test_empty_required_value_is_missing(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "ADMIN_EMAIL": ""})

        assert result.missing == ["ADMIN_EMAIL"]
        assert result.invalid_type == []

    def test_absent_optional_value_is_skipped(self, validator):
        result = validator.validate(REQUIRED_ONLY)

        assert result.summary.total_issues == 0

    def test_empty_optional_enum_is_checked(self):
        validator = SchemaValidator(
            {"LOG_LEVEL": {"type": "enum", "allowedValues": ["info", "debug"], "required": False}}
        )

        result = validator.validate({"LOG_LEVEL": ""})

        assert [issue.key for issue in result.invalid_enum] == ["LOG_LEVEL"]
        assert result.summary.total_issues == 1

    def test_empty_optional_number_is_checked(self):
        validator = SchemaValidator({"PORT": {"type": "number", "min": 1, "required": False}})

        result = validator.validate({"PORT": ""})

        assert [issue.key for issue in result.invalid_type] == ["PORT"]
        assert result.invalid_type[0].issue == "Invalid number format"

    def test_empty_optional_string_passes(self):
        validator = SchemaValidator({"NOTE": {"type": "string", "required": False}})

        assert validator.validate({"NOTE": ""}).summary.total_issues == 0

    def test_invalid_enum_value(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "NODE_ENV": "invalid"})

        assert len(result.invalid_enum) == 1
        assert result.invalid_enum[0].key == "NODE_ENV"
        assert result.invalid_enum[0].issue == (
            "Not in allowed values: development, production, test"
        )
        assert result.invalid_type == []

    def test_invalid_number(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "PORT": "not-a-number"})

        assert len(result.invalid_type) == 1
        assert result.invalid_type[0].key == "PORT"
        assert result.invalid_type[0].issue == "Invalid number format"
        assert result.invalid_type[0].expected_type == "number"
        assert result.invalid_type[0].actual_type == "string"

    def test_invalid_url(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "DATABASE_URL": "not-a-url"})

        assert [issue.key for issue in result.invalid_type] == ["DATABASE_URL"]
        assert result.invalid_type[0].issue == "Invalid url format"

    def test_invalid_email(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "ADMIN_EMAIL": "not-an-email"})

        assert [issue.key for issue in result.invalid_type] == ["ADMIN_EMAIL"]
        assert result.invalid_type[0].issue == "Invalid email format"

    def test_invalid_pattern(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "API_KEY": "invalid-key"})

        assert len(result.invalid_format) == 1
        assert result.invalid_format[0].key == "API_KEY"
        assert result.invalid_format[0].issue == "Does not match pattern: ^[a-zA-Z0-9]{32}$"

    def test_invalid_json(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "CONFIG_JSON": "invalid-json"})

        assert [issue.key for issue in result.invalid_type] == ["CONFIG_JSON"]
        assert result.invalid_type[0].issue == "Invalid json format"

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity", '{"a": NaN}'])
    def test_non_standard_json_constants_are_invalid(self, validator, value):
        result = validator.validate({**REQUIRED_ONLY, "CONFIG_JSON": value})

        assert [issue.key for issue in result.invalid_type] == ["CONFIG_JSON"]

    def test_invalid_boolean(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "DEBUG": "maybe"})

        assert result.invalid_type[0].issue == "Invalid boolean format"

    @pytest.mark.parametrize("value", ["TRUE", "yes", "On", "0", "no", "off"])
    def test_boolean_spellings(self, validator, value):
        result = validator.validate({**REQUIRED_ONLY, "DEBUG": value})

        assert result.invalid_type == []

    @pytest.mark.parametrize(
        ("value", "issue"),
        [("70000", "Number too large (max: 65535)"), ("0", "Number too small (min: 1)")],
    )
    def test_number_range_violations(self, validator, value, issue):
        result = validator.validate({**REQUIRED_ONLY, "PORT": value})

        assert len(result.invalid_type) == 1
        assert result.invalid_type[0].issue == issue

    def test_string_length_bounds(self):
        validator = SchemaValidator({"TOKEN": {"type": "string", "min": 4, "max": 6}})

        short = validator.validate({"TOKEN": "abc"})
        long = validator.validate({"TOKEN": "abcdefg"})

        assert short.invalid_type[0].issue == "String too short (min: 4)"
        assert long.invalid_type[0].issue == "String too long (max: 6)"

    def test_zero_bound_is_enforced(self):
        validator = SchemaValidator({"OFFSET": {"type": "number", "min": 0}})

        result = validator.validate({"OFFSET": "-1"})

        assert result.invalid_type[0].issue == "Number too small (min: 0)"

    def test_bound_failure_skips_pattern_check(self):
        validator = SchemaValidator(
            {"CODE": {"type": "string", "min": 5, "pattern": "^[0-9]+$"}}
        )

        result = validator.validate({"CODE": "ab"})

        assert len(result.invalid_type) == 1
        assert result.invalid_format == []

    def test_allowed_values_on_non_enum_type(self):
        validator = SchemaValidator(
            {"WORKERS": {"type": "number", "allowedValues": [1, 2, 4]}}
        )

        rejected = validator.validate({"WORKERS": "3"})
        accepted = validator.validate({"WORKERS": "4"})

        assert rejected.invalid_enum[0].issue == "Not in allowed values: 1, 2, 4"
        assert accepted.summary.total_issues == 0

    def test_unused_variables(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "UNUSED_VAR": "some-value"})

        assert result.unused == ["UNUSED_VAR"]
        assert result.summary.total_issues == 1

    def test_masks_sensitive_values(self, validator):
        env = {**REQUIRED_ONLY, "DATABASE_URL": "not-a-url", "API_KEY": "invalid-key"}

        result = validator.validate(env)

        db_error = next(e for e in result.invalid_type if e.key == "DATABASE_URL")
        api_error = next(e for e in result.invalid_format if e.key == "API_KEY")
        assert db_error.value == MASK == "********"
        assert api_error.value == "********"
        assert db_error.is_sensitive is True

    def test_non_sensitive_values_are_not_masked(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "PORT": "abc"})

        assert result.invalid_type[0].value == "abc"

    def test_sensitive_default_is_reported_and_checks_continue(self):
        validator = SchemaValidator(
            {"SECRET": {"type": "number", "isSensitive": True, "default": 1}}
        )

        result = validator.validate({"SECRET": "abc"})

        assert [i.issue for i in result.sensitive_defaults] == [
            "Sensitive field cannot have default value"
        ]
        assert [i.issue for i in result.invalid_type] == ["Invalid number format"]
        assert result.summary.total_issues == 2

    def test_findings_follow_schema_order(self):
        validator = SchemaValidator(
            {"ZED": {"type": "number"}, "ALPHA": {"type": "number"}}
        )

        result = validator.validate({"ZED": "x", "ALPHA": "y"})

        assert [issue.key for issue in result.invalid_type] == ["ZED", "ALPHA"]

    def test_description_is_carried_on_issues(self, validator):
        result = validator.validate({**REQUIRED_ONLY, "PORT": "abc"})

        assert result.invalid_type[0].description == "Server port"


class TestGetValidatedEnv:
    """Test typed conversion."""

    def test_defaults_fill_unset_values(self, validator):
        env = {
            "DATABASE_URL": "https://example.com/db",
            "API_KEY": VALID_API_KEY,
            "ADMIN_EMAIL": "admin@example.com",
        }

        validated = validator.get_validated_env(env)

        assert validated["NODE_ENV"] == "development"
        assert validated["PORT"] == 3000
        assert validated["DATABASE_URL"] == "https://example.com/db"
        assert validated["DEBUG"] is False
        assert "CONFIG_JSON" not in validated

    def test_converts_types(self, validator):
        env = {
            "NODE_ENV": "production",
            "PORT": "8080",
            "DATABASE_URL": "https://example.com/db",
            "DEBUG": "true",
            "API_KEY": VALID_API_KEY,
            "ADMIN_EMAIL": "admin@example.com",
            "CONFIG_JSON": '{"test": true}',
        }

        validated = validator.get_validated_env(env)

        assert validated["PORT"] == 8080
        assert isinstance(validated["PORT"], int)
        assert validated["DEBUG"] is True
        assert validated["CONFIG_JSON"] == {"test": True}

    def test_float_numbers(self):
        validated = validate_env({"RATIO": "0.75"}, {"RATIO": {"type": "number"}})

        assert validated["RATIO"] == 0.75

    def test_missing_required_raises(self, validator):
        with pytest.raises(MissingRequiredError, match="Missing required environment variable"):
            validator.get_validated_env({"NODE_ENV": "development"})

    def test_sensitive_field_never_uses_default(self):
        validator = SchemaValidator(
            {"SECRET": {"type": "string", "isSensitive": True, "default": "changeme"}}
        )

        with pytest.raises(MissingRequiredError) as exc_info:
            validator.get_validated_env({})

        assert exc_info.value.key == "SECRET"

    def test_unconvertible_value_raises(self, validator):
        with pytest.raises(ConversionError) as exc_info:
            validator.get_validated_env({**REQUIRED_ONLY, "PORT": "eighty"})

        assert exc_info.value.key == "PORT"
        assert exc_info.value.expected_type == "number"

    def test_validate_env_convenience(self):
        validated = validate_env({"TEST_VAR": "test-value"}, {"TEST_VAR": {"type": "string"}})

        assert validated == {"TEST_VAR": "test-value"}


class TestGenerateEnvExample:
    """Test .env.example generation."""

    def test_generates_commented_example(self, validator):
        content = validator.generate_env_example()

        assert content.startswith("# Generated from schema by envguard\n")
        assert "NODE_ENV=development" in content
        assert "PORT=3000" in content
        assert "DEBUG=false" in content
        assert "\nDATABASE_URL=\n" in content
        assert "\nAPI_KEY=\n" in content
        assert "# Application environment" in content
        assert "# (type: enum, choices: development | production | test)" in content
        assert "# (type: number, min: 1, max: 65535, optional)" in content
        assert "# (type: url, sensitive)" in content

    def test_field_blocks_in_schema_order(self, validator):
        content = validator.generate_env_example()

        positions = [content.index(f"\n{key}=") for key in TEST_SCHEMA]
        assert positions == sorted(positions)

    def test_sensitive_default_not_written(self):
        validator = SchemaValidator(
            {"SECRET": {"type": "string", "isSensitive": True, "default": "changeme"}}
        )

        content = validator.generate_env_example()

        assert "changeme" not in content
        assert "SECRET=" in content

    def test_json_default_is_compact(self):
        validator = SchemaValidator({"OPTS": {"type": "json", "default": {"a": 1}}})

        assert 'OPTS={"a":1}' in validator.generate_env_example()


class TestMaskValue:
    def test_masks_regardless_of_length(self):
        field = EnvSchema.from_mapping({"S": {"type": "string", "isSensitive": True}})["S"]

        assert mask_value("x", field) == MASK
        assert mask_value("a" * 100, field) == MASK

    def test_empty_value_is_blank(self):
        field = EnvSchema.from_mapping({"S": {"type": "string", "isSensitive": True}})["S"]

        assert mask_value("", field) == ""
