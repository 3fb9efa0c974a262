"""Mapping between declared column types, SQLAlchemy types and SQL tokens."""

import re
from typing import Any

from sqlalchemy.engine.interfaces import Dialect
from sqlalchemy.exc import CompileError
from sqlalchemy.types import (
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
    Time,
    TypeEngine,
    UserDefinedType,
)

from spatial.geometry import Geometry
from spatial.types import GEOMETRY_DATA_TYPES, geometry_type_name

GENERIC_TYPE_NAMES = (
    "string",
    "text",
    "integer",
    "float",
    "decimal",
    "datetime",
    "timestamp",
    "time",
    "date",
    "binary",
    "boolean",
)

DEFAULT_STRING_LENGTH = 255

GEOMETRY_PATTERN = re.compile(r"geometry", re.IGNORECASE)
QUOTED_DEFAULT_PATTERN = re.compile(r"^'(.*)'::[\w\s]+$", re.DOTALL)


class RawType(UserDefinedType[Any]):
    """A column type rendered verbatim, for names outside the generic type set."""

    cache_ok = True

    def __init__(self, name: str) -> None:
        """Initialize with the SQL type name to render."""
        self.name = name

    def get_col_spec(self, **_: Any) -> str:  # noqa: ANN401
        """Render the type name as given."""
        return self.name


def is_geometry_type(column_type: str | TypeEngine[Any]) -> bool:
    """Check whether a declared column type belongs to the spatial type set."""
    if isinstance(column_type, Geometry):
        return True
    return isinstance(column_type, str) and column_type in GEOMETRY_DATA_TYPES


def geometry_name(column_type: str | TypeEngine[Any]) -> str:
    """Return the declared spatial type name for a geometry column type.

    Subtypes outside the known set keep their PostGIS token as written.
    """
    if isinstance(column_type, Geometry):
        name = geometry_type_name(column_type.geometry_type)
        return name if name in GEOMETRY_DATA_TYPES else column_type.geometry_type
    return str(column_type)


def native_type(type_name: str, limit: int | None = None) -> TypeEngine[Any] | None:
    """Convert a declared generic type name to a SQLAlchemy TypeEngine.

    Returns None for names outside the generic type set.
    """
    sql_type: TypeEngine[Any] | None

    match type_name:
        case "string":
            sql_type = String(limit or DEFAULT_STRING_LENGTH)
        case "text":
            sql_type = Text()
        case "integer":
            sql_type = Integer()
        case "float":
            sql_type = Float()
        case "decimal":
            sql_type = Numeric()
        case "datetime" | "timestamp":
            sql_type = DateTime()
        case "time":
            sql_type = Time()
        case "date":
            sql_type = Date()
        case "binary":
            sql_type = LargeBinary()
        case "boolean":
            sql_type = Boolean()
        case _:
            sql_type = None

    return sql_type


def resolve_type(type_name: str, dialect: Dialect) -> str | None:
    """Resolve the SQL token for a declared type, or None if it has no mapping."""
    if token := GEOMETRY_DATA_TYPES.get(type_name):
        return token

    sql_type = native_type(type_name)
    if sql_type is None:
        return None

    try:
        return sql_type.compile(dialect=dialect)
    except CompileError:
        return None


def type_to_sql(type_name: str, dialect: Dialect) -> str:
    """Render a declared type as SQL, falling back to the name verbatim."""
    resolved = resolve_type(type_name, dialect)
    return type_name if resolved is None else resolved


def native_database_types(dialect: Dialect) -> dict[str, str]:
    """List every declarable type name with the SQL it renders to."""
    return {
        type_name: type_to_sql(type_name, dialect)
        for type_name in (*GENERIC_TYPE_NAMES, *GEOMETRY_DATA_TYPES)
    }


def simplified_type(field_type: str) -> str:
    """Reduce a catalog type such as ``character varying(255)`` to a type name.

    Examples:
        integer -> integer
        character varying(255) -> string
        timestamp without time zone -> datetime
        geometry -> geometry

    """
    field_type = field_type.lower()

    match field_type:
        case t if t.startswith(("integer", "bigint", "smallint")):
            return "integer"
        case t if t.startswith(("real", "double precision")):
            return "float"
        case t if t.startswith(("numeric", "decimal")):
            return "decimal"
        case t if t.startswith(("character varying", "character", "varchar")):
            return "string"
        case "text":
            return "text"
        case t if t.startswith("timestamp"):
            return "datetime"
        case t if t.startswith("time"):
            return "time"
        case "date":
            return "date"
        case "bytea":
            return "binary"
        case "boolean":
            return "boolean"
        case t if GEOMETRY_PATTERN.search(t):
            return "geometry"
        case _:
            return field_type


def default_value(default: str | None) -> str | None:
    """Extract a literal column default, e.g. ``'abc'::text`` -> ``abc``."""
    if default is None:
        return None
    if match := QUOTED_DEFAULT_PATTERN.match(default):
        return match[1].replace("''", "'")
    return default
