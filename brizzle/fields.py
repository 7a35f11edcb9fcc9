"""
Brizzle Fields - Field definition parser and field models

Turns terse command-line definitions such as ``title:string``,
``bio?:text``, ``status:enum:draft,published`` or ``userId:references:user``
into FieldDescriptor values. Grammar::

    name[?][:type[?]][:modifier...]

where a modifier is the literal ``unique``, or the third segment of an
``enum`` (comma-joined values) or ``references`` (target model) field.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, model_validator

from brizzle.errors import ValidationError


# ═══════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════


class AbstractType(str, Enum):
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BIGINT = "bigint"
    BOOLEAN = "boolean"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    DATE = "date"
    JSON = "json"
    UUID = "uuid"
    ENUM = "enum"
    REFERENCE = "reference"


SCALAR_TYPES: tuple[AbstractType, ...] = tuple(
    t for t in AbstractType if t not in (AbstractType.ENUM, AbstractType.REFERENCE)
)

# Accepted spellings of the type segment
TYPE_TOKENS: dict[str, AbstractType] = {t.value: t for t in SCALAR_TYPES}
TYPE_TOKENS.update({
    "int": AbstractType.INTEGER,
    "bool": AbstractType.BOOLEAN,
    "timestamp": AbstractType.DATETIME,
})

ENUM_TOKEN = "enum"
REFERENCES_TOKEN = "references"
UNIQUE_MODIFIER = "unique"

FIELD_NAME_PATTERN = re.compile(r"^[a-z][a-zA-Z0-9]*$")
MODEL_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")

RESERVED_MODEL_NAMES = ("model", "schema", "db", "database", "table")

GRAMMAR_HINT = "name[?][:type[?]][:unique]"


# ═══════════════════════════════════════════════════════════════════════════
# FIELD MODEL
# ═══════════════════════════════════════════════════════════════════════════


class FieldDescriptor(BaseModel):
    """Parsed, dialect-independent field definition"""

    name: str
    type: AbstractType = AbstractType.STRING
    nullable: bool = False
    unique: bool = False
    enum_values: list[str] | None = None
    reference_target: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_special_kinds(self) -> "FieldDescriptor":
        if self.type == AbstractType.ENUM and not self.enum_values:
            raise ValueError("enum fields require at least one value")
        if self.type == AbstractType.REFERENCE and not self.reference_target:
            raise ValueError("reference fields require a target model")
        return self

    @property
    def is_enum(self) -> bool:
        return self.type == AbstractType.ENUM

    @property
    def is_reference(self) -> bool:
        return self.type == AbstractType.REFERENCE


# ═══════════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════════


def validate_model_name(name: str) -> None:
    """Reject empty, non-identifier and reserved model names."""
    if not name:
        raise ValidationError("Model name is required")
    if not MODEL_NAME_PATTERN.match(name):
        raise ValidationError(
            f'Invalid model name "{name}". '
            "Must start with a letter and contain only letters and numbers."
        )
    if name.lower() in RESERVED_MODEL_NAMES:
        raise ValidationError(f'"{name}" is a reserved word and cannot be used as a model name.')


def _strip_nullable(token: str) -> tuple[str, bool]:
    if token.endswith("?"):
        return token[:-1], True
    return token, False


# ═══════════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════════


def parse_field(raw: str) -> FieldDescriptor:
    """
    Parse one field definition.

    Single left-to-right pass over the colon-separated segments. A trailing
    ``?`` on the name or on the type makes the field nullable; both at once
    is accepted.

    Raises:
        ValidationError: on any grammar violation. No partial descriptor is
            ever returned.
    """
    segments = raw.split(":")
    name, name_nullable = _strip_nullable(segments[0])
    type_token, type_nullable = _strip_nullable(segments[1] if len(segments) > 1 else "")
    rest = segments[2:]

    if not name:
        raise ValidationError(
            f'Invalid field definition "{raw}". Field name is required ({GRAMMAR_HINT}).'
        )
    if not FIELD_NAME_PATTERN.match(name):
        raise ValidationError(
            f'Invalid field name "{name}". Must be camelCase (start with lowercase letter).'
        )

    # "email:unique" - the modifier sits where the type would be
    if type_token == UNIQUE_MODIFIER:
        type_token = ""
    if not type_token:
        type_token = AbstractType.STRING.value

    nullable = name_nullable or type_nullable
    unique = UNIQUE_MODIFIER in segments[1:]

    if type_token == ENUM_TOKEN:
        raw_values = rest[0] if rest else ""
        # Positional: "status:enum:unique" has no values, it is not an enum of "unique"
        values = [] if raw_values == UNIQUE_MODIFIER else [
            v.strip() for v in raw_values.split(",") if v.strip()
        ]
        if not values:
            raise ValidationError(
                f'Enum field "{name}" requires values. '
                f"Example: {name}:enum:draft,published,archived"
            )
        _check_modifiers(raw, rest[1:])
        return FieldDescriptor(
            name=name,
            type=AbstractType.ENUM,
            nullable=nullable,
            unique=unique,
            enum_values=values,
        )

    if type_token == REFERENCES_TOKEN:
        target = rest[0] if rest else ""
        if not target or target == UNIQUE_MODIFIER:
            raise ValidationError(
                f'Reference field "{name}" requires a target model. '
                f"Example: {name}:references:user"
            )
        if not MODEL_NAME_PATTERN.match(target):
            raise ValidationError(
                f'Invalid reference target "{target}" for field "{name}". '
                "Must start with a letter and contain only letters and numbers."
            )
        _check_modifiers(raw, rest[1:])
        return FieldDescriptor(
            name=name,
            type=AbstractType.REFERENCE,
            nullable=nullable,
            unique=unique,
            reference_target=target,
        )

    abstract_type = TYPE_TOKENS.get(type_token)
    if abstract_type is None:
        valid = ", ".join(TYPE_TOKENS)
        raise ValidationError(
            f'Invalid field type "{type_token}". '
            f"Valid types: {valid}, {ENUM_TOKEN}, {REFERENCES_TOKEN}"
        )
    _check_modifiers(raw, rest)

    return FieldDescriptor(name=name, type=abstract_type, nullable=nullable, unique=unique)


def _check_modifiers(raw: str, modifiers: list[str]) -> None:
    for modifier in modifiers:
        if modifier != UNIQUE_MODIFIER:
            raise ValidationError(
                f'Unknown modifier "{modifier}" in field definition "{raw}". '
                f"Expected {GRAMMAR_HINT}"
            )


def parse_fields(raw_fields: list[str]) -> list[FieldDescriptor]:
    """Parse a model's field list in order, stopping at the first error."""
    return [parse_field(raw) for raw in raw_fields]


# ═══════════════════════════════════════════════════════════════════════════
# TYPE CONVERSIONS (template filters)
# ═══════════════════════════════════════════════════════════════════════════


_NUMERIC_TYPES = (
    AbstractType.INTEGER,
    AbstractType.BIGINT,
    AbstractType.FLOAT,
    AbstractType.REFERENCE,
)


def field_input_type(field: FieldDescriptor) -> str:
    """HTML form control for a field: an <input> type, "textarea" or "select"."""
    if field.type in (AbstractType.TEXT, AbstractType.JSON):
        return "textarea"
    if field.type == AbstractType.ENUM:
        return "select"
    if field.type == AbstractType.BOOLEAN:
        return "checkbox"
    if field.type == AbstractType.DATETIME:
        return "datetime-local"
    if field.type == AbstractType.DATE:
        return "date"
    if field.type in _NUMERIC_TYPES or field.type == AbstractType.DECIMAL:
        return "number"
    return "text"


def form_data_value(field: FieldDescriptor, pascal_name: str) -> str:
    """TypeScript expression converting a FormData entry to the column value"""
    raw = f'formData.get("{field.name}")'

    if field.type == AbstractType.BOOLEAN:
        return f'{raw} === "on"'
    if field.type in _NUMERIC_TYPES:
        converted = f"Number({raw})"
    elif field.type in (AbstractType.DATETIME, AbstractType.DATE):
        converted = f"new Date({raw} as string)"
    elif field.type == AbstractType.JSON:
        converted = f"JSON.parse({raw} as string)"
    elif field.type == AbstractType.ENUM:
        value = f'{raw} as New{pascal_name}["{field.name}"]'
        return f"({value}) || null" if field.nullable else value
    else:
        # string, text, uuid and decimal (numeric columns read back as strings)
        value = f"{raw} as string"
        return f"({value}) || null" if field.nullable else value

    if field.nullable:
        return f"{raw} ? {converted} : null"
    return converted


def display_value(field: FieldDescriptor, var: str) -> str:
    """TypeScript expression rendering a field of ``var`` as text"""
    value = f"{var}.{field.name}"
    if field.type == AbstractType.BOOLEAN:
        return f'{value} ? "Yes" : "No"'
    if field.type == AbstractType.DATETIME:
        return f'{value} ? new Date({value}).toLocaleString() : ""'
    if field.type == AbstractType.DATE:
        return f'{value} ? new Date({value}).toLocaleDateString() : ""'
    if field.type == AbstractType.JSON:
        return f"JSON.stringify({value})"
    return f'{value} ?? ""'


def default_value(field: FieldDescriptor, var: str) -> str:
    """TypeScript expression pre-filling an edit form control"""
    value = f"{var}.{field.name}"
    if field.type == AbstractType.BOOLEAN:
        return f"{value} ?? false"
    if field.type == AbstractType.DATETIME:
        return f'{value} ? new Date({value}).toISOString().slice(0, 16) : ""'
    if field.type == AbstractType.DATE:
        return f'{value} ? new Date({value}).toISOString().slice(0, 10) : ""'
    if field.type == AbstractType.JSON:
        return f'{value} ? JSON.stringify({value}, null, 2) : ""'
    return f'{value} ?? ""'
