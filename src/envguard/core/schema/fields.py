"""
Schema field models.

A SchemaField is a closed variant keyed by ``type``. Each variant only accepts
the attributes that make sense for it (``pattern`` on strings, bounds on
strings and numbers, mandatory ``allowedValues`` on enums), so an invalid
combination fails when the schema is built rather than during validation.
"""

import re
from collections.abc import Iterator, Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from envguard.core.errors import SchemaLoadError

FIELD_TYPES = ("string", "number", "boolean", "url", "email", "enum", "json")


class _FieldBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    required: bool = True
    description: str | None = None
    is_sensitive: bool = Field(default=False, alias="isSensitive")
    allowed_values: list[str] | None = Field(default=None, alias="allowedValues")
    default: Any = None

    @field_validator("allowed_values", mode="before")
    @classmethod
    def _stringify_allowed_values(cls, value: Any) -> Any:
        # Env values are always text, so choices are compared as text
        if isinstance(value, list):
            return [str(item).lower() if isinstance(item, bool) else str(item) for item in value]
        return value

    @property
    def has_default(self) -> bool:
        return self.default is not None


class StringField(_FieldBase):
    type: Literal["string"] = "string"
    pattern: str | None = None
    min: int | None = Field(default=None, ge=0)
    max: int | None = Field(default=None, ge=0)
    default: str | None = None

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid regular expression {value!r}: {e}") from e
        return value


class NumberField(_FieldBase):
    type: Literal["number"] = "number"
    min: int | float | None = None
    max: int | float | None = None
    default: int | float | None = None


class BooleanField(_FieldBase):
    type: Literal["boolean"] = "boolean"
    default: bool | None = None


class UrlField(_FieldBase):
    type: Literal["url"] = "url"
    default: str | None = None


class EmailField(_FieldBase):
    type: Literal["email"] = "email"
    default: str | None = None


class JsonField(_FieldBase):
    type: Literal["json"] = "json"


class EnumField(_FieldBase):
    type: Literal["enum"] = "enum"
    allowed_values: list[str] = Field(alias="allowedValues", min_length=1)
    default: str | None = None


SchemaField = Annotated[
    Union[StringField, NumberField, BooleanField, UrlField, EmailField, JsonField, EnumField],
    Field(discriminator="type"),
]

_FIELDS_ADAPTER: TypeAdapter[dict[str, SchemaField]] = TypeAdapter(dict[str, SchemaField])


class EnvSchema:
    """
    Ordered mapping of key name to SchemaField.

    Iteration follows the order of the source document.
    """

    def __init__(self, fields: Mapping[str, SchemaField] | None = None):
        self._fields: dict[str, SchemaField] = dict(fields or {})

    @classmethod
    def from_mapping(cls, data: Any, source: str = "<inline>") -> "EnvSchema":
        """
        Build a schema from a parsed document.

        Raises:
            SchemaLoadError: If the document is not a mapping of valid fields
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise SchemaLoadError(
                f"Invalid schema in {source}: expected a mapping, got {type(data).__name__}"
            )
        try:
            return cls(_FIELDS_ADAPTER.validate_python(dict(data)))
        except ValidationError as e:
            raise SchemaLoadError(f"Invalid schema in {source}: {e}") from e

    def to_dict(self) -> dict[str, dict[str, Any]]:
        """Serialize to the document format (camelCase, unset attributes omitted)."""
        return {
            key: {
                "type": field.type,
                **field.model_dump(by_alias=True, exclude_none=True, exclude={"type"}),
            }
            for key, field in self._fields.items()
        }

    def items(self):
        return self._fields.items()

    def keys(self):
        return self._fields.keys()

    def get(self, key: str) -> SchemaField | None:
        return self._fields.get(key)

    def __getitem__(self, key: str) -> SchemaField:
        return self._fields[key]

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __bool__(self) -> bool:
        return bool(self._fields)
