"""
Schema module for envguard.

Provides typed field declarations, loading of schema documents and
validation of resolved environment values against them.
"""

from .fields import (
    FIELD_TYPES,
    BooleanField,
    EmailField,
    EnumField,
    EnvSchema,
    JsonField,
    NumberField,
    SchemaField,
    StringField,
    UrlField,
)
from .loader import DEFAULT_SCHEMA_FILES, load_schema, read_schema_file
from .templates import TEMPLATES
from .validator import (
    INVALID,
    MASK,
    SchemaValidator,
    convert_value,
    mask_value,
    validate_env,
)

__all__ = [
    # Fields
    "SchemaField",
    "StringField",
    "NumberField",
    "BooleanField",
    "UrlField",
    "EmailField",
    "JsonField",
    "EnumField",
    "EnvSchema",
    "FIELD_TYPES",
    # Loading
    "load_schema",
    "read_schema_file",
    "DEFAULT_SCHEMA_FILES",
    "TEMPLATES",
    # Validation
    "SchemaValidator",
    "convert_value",
    "mask_value",
    "validate_env",
    "INVALID",
    "MASK",
]
