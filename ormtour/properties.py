"""Column declarations for resources.

A property is attached to a pydantic field through ``Annotated``:

    class Zoo(Resource):
        id: Serial = None
        name: String = None
        description: Text = None
        nickname: Annotated[str | None, Property(length=120)] = None

Fields without a Property get a column type derived from their python type.
"""

import types
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Union, get_args, get_origin

from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

DEFAULT_STRING_LENGTH = 50

PYTHON_TYPE_COLUMNS: dict[type, str] = {
    bool: "BOOLEAN",
    int: "INTEGER",
    float: "DOUBLE PRECISION",
    Decimal: "NUMERIC",
    datetime: "TIMESTAMP WITH TIME ZONE",
    date: "DATE",
}


@dataclass(frozen=True)
class Property:
    """Storage options for one field"""

    column_type: str | None = None
    length: int | None = None
    required: bool = False
    key: bool = False


@dataclass(frozen=True)
class Column:
    """A column as it is created in the database"""

    name: str
    sql_type: str
    nullable: bool = True
    default: Any = None
    key: bool = False
    references: str | None = None

    def definition(self) -> str:
        parts = [self.name, self.sql_type]
        if self.key:
            parts.append("PRIMARY KEY")
        elif not self.nullable:
            parts.append("NOT NULL")
        if self.default is not None:
            parts.append(f"DEFAULT {sql_literal(self.default)}")
        if self.references:
            parts.append(f"REFERENCES {self.references}")
        return " ".join(parts)


Serial = Annotated[int | None, Property("SERIAL", key=True)]
String = Annotated[str | None, Property(length=DEFAULT_STRING_LENGTH)]
Text = Annotated[str | None, Property("TEXT")]
DateTime = Annotated[datetime | None, Property("TIMESTAMP WITH TIME ZONE")]
Boolean = Annotated[bool | None, Property("BOOLEAN")]
Integer = Annotated[int | None, Property("INTEGER")]


def unwrap_optional(annotation: Any) -> Any:
    """Return X for X | None, Optional[X] and plain X"""
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def property_of(field_info: FieldInfo) -> Property | None:
    """Return the Property attached to a field, if any"""
    for meta in field_info.metadata:
        if isinstance(meta, Property):
            return meta
    return None


def column_type_for(field_info: FieldInfo, prop: Property | None = None) -> str:
    if prop and prop.column_type:
        return prop.column_type

    python_type = unwrap_optional(field_info.annotation)
    if python_type is str:
        length = prop.length if prop and prop.length else DEFAULT_STRING_LENGTH
        return f"VARCHAR({length})"
    for candidate, sql_type in PYTHON_TYPE_COLUMNS.items():
        if python_type is candidate:
            return sql_type
    raise TypeError(f"No column type known for {python_type!r}")


def literal_default(field_info: FieldInfo) -> Any:
    """Return the field default when it can be written as a SQL DEFAULT"""
    default = field_info.default
    if default is PydanticUndefined or default is None:
        return None
    if isinstance(default, (bool, int, float, str, Decimal)):
        return default
    return None


def sql_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


def column_for(name: str, field_info: FieldInfo) -> Column:
    prop = property_of(field_info)
    key = bool(prop and prop.key)
    return Column(
        name=name,
        sql_type=column_type_for(field_info, prop),
        nullable=not (key or (prop and prop.required)),
        default=literal_default(field_info),
        key=key,
    )
