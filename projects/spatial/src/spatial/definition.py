"""Column and table definitions that route geometry columns to PostGIS."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self, Unpack

from sqlalchemy import Column, Integer, MetaData, Table
from sqlalchemy.schema import CreateTable

from spatial.ddl import add_geometry_column, set_not_null
from spatial.geometry import Geometry
from spatial.type_conversion import (
    RawType,
    geometry_name,
    is_geometry_type,
    native_type,
    type_to_sql,
)
from spatial.types import UNKNOWN_SRID, ColumnOptions, geometry_dimension

if TYPE_CHECKING:
    from sqlalchemy import TextClause
    from sqlalchemy.engine.interfaces import Dialect
    from sqlalchemy.types import TypeEngine


@dataclass(frozen=True)
class GeometryColumn:
    """A geometry column registered through ``AddGeometryColumn``."""

    name: str
    type: str
    srid: int = UNKNOWN_SRID
    with_z: bool = False
    with_m: bool = False
    null: bool = True

    @classmethod
    def from_options(
        cls,
        name: str,
        column_type: str | TypeEngine[Any],
        options: ColumnOptions,
    ) -> Self:
        """Build a geometry column from declaration options.

        A Geometry type instance supplies the SRID unless one is given.
        """
        type_srid = (
            column_type.srid if isinstance(column_type, Geometry) else UNKNOWN_SRID
        )
        return cls(
            name=name,
            type=geometry_name(column_type),
            srid=options.get("srid", type_srid),
            with_z=options.get("with_z", False),
            with_m=options.get("with_m", False),
            null=options.get("null", True),
        )

    @property
    def dimension(self) -> int:
        """Number of ordinates per coordinate."""
        return geometry_dimension(with_z=self.with_z, with_m=self.with_m)

    def geometry_type(self, dialect: Dialect) -> str:
        """PostGIS type token, suffixed with ``M`` for measured XYM types."""
        token = type_to_sql(self.type, dialect)
        return f"{token}M" if self.with_m and not self.with_z else token

    def to_sql(self, table_name: str, dialect: Dialect) -> list[TextClause]:
        """Statements that register the column, then enforce NOT NULL if needed.

        The catalog registration function cannot declare nullability, so the
        constraint is always a separate follow-up statement.
        """
        statements = [
            add_geometry_column(
                table_name,
                self.name,
                self.srid,
                self.geometry_type(dialect),
                self.dimension,
            ),
        ]
        if not self.null:
            statements.append(set_not_null(table_name, self.name, dialect))
        return statements


def generic_column(
    name: str,
    column_type: str | TypeEngine[Any],
    options: ColumnOptions,
) -> Column[Any]:
    """Build an ordinary SQLAlchemy column from declaration options."""
    sql_type: TypeEngine[Any]
    if isinstance(column_type, str):
        native = native_type(column_type, options.get("limit"))
        sql_type = RawType(column_type) if native is None else native
    else:
        sql_type = column_type

    default = options.get("default")
    return Column(
        name,
        sql_type,
        nullable=options.get("null", True),
        server_default=None if default is None else str(default),
    )


class TableDefinition:
    """Collects the columns declared inside a ``create_table`` block."""

    def __init__(self, name: str) -> None:
        """Initialize an empty definition for the named table."""
        self.name = name
        self.columns: list[Column[Any]] = []
        self.geometry_columns: list[GeometryColumn] = []

    def primary_key(self, name: str) -> None:
        """Declare an auto-incrementing integer primary key."""
        self.columns.append(Column(name, Integer(), primary_key=True))

    def column(
        self,
        name: str,
        column_type: str | TypeEngine[Any],
        **options: Unpack[ColumnOptions],
    ) -> None:
        """Declare a column; spatial types are registered after the table exists."""
        if is_geometry_type(column_type):
            self.geometry_columns.append(
                GeometryColumn.from_options(name, column_type, options),
            )
        else:
            self.columns.append(generic_column(name, column_type, options))

    def create_statement(self, *, temporary: bool = False) -> CreateTable:
        """Statement creating the table with its ordinary columns."""
        table = Table(
            self.name,
            MetaData(),
            *self.columns,
            prefixes=["TEMPORARY"] if temporary else [],
        )
        return CreateTable(table)

    def geometry_statements(self, dialect: Dialect) -> list[TextClause]:
        """Statements registering every declared geometry column."""
        return [
            statement
            for geometry_column in self.geometry_columns
            for statement in geometry_column.to_sql(self.name, dialect)
        ]
