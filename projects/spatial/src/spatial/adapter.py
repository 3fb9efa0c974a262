"""PostGIS-aware schema operations over a SQLAlchemy connection."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Any, Unpack

from shapely.geometry.base import BaseGeometry
from sqlalchemy import literal, text
from sqlalchemy.exc import DBAPIError

from spatial import ddl
from spatial.catalog import (
    check_constraints_query,
    column_definitions_query,
    indexes_query,
)
from spatial.codec import decode_geometry
from spatial.constraints import column_spatial_info
from spatial.definition import GeometryColumn, TableDefinition, generic_column
from spatial.geometry import Geometry
from spatial.query import select
from spatial.type_conversion import (
    GEOMETRY_PATTERN,
    default_value,
    is_geometry_type,
    native_database_types,
    simplified_type,
    type_to_sql,
)
from spatial.types import (
    SPATIAL_ACCESS_METHOD,
    ColumnOptions,
    ColumnSchema,
    IndexOptions,
    IndexSchema,
    SpatialColumnSchema,
    SpatialInfo,
    geometry_type_name,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlalchemy import Connection, Executable, Result
    from sqlalchemy.types import TypeEngine

logger = getLogger(__name__)


def is_spatial_access_method(access_method: str) -> bool:
    """Guess whether an index is spatial from its access method.

    Every GIST index counts as spatial, so a GIST index over non-geometry
    columns (ranges, full text) is misclassified.
    """
    return access_method == SPATIAL_ACCESS_METHOD


def spatial_column(column: ColumnSchema, info: SpatialInfo) -> SpatialColumnSchema:
    """Upgrade a plain column schema with resolved spatial metadata."""
    return SpatialColumnSchema(
        name=column["name"],
        default=column["default"],
        type=geometry_type_name(info.geometry_type or "GEOMETRY"),
        nullable=column["nullable"],
        srid=info.srid,
        with_z=info.with_z,
        with_m=info.with_m,
        geometry_type=info.geometry_type,
    )


class SpatialAdapter:
    """Schema operations on a PostgreSQL connection with PostGIS installed.

    Geometry columns are registered and removed through the PostGIS catalog
    functions; every other column goes through ordinary DDL.
    """

    def __init__(self, connection: Connection) -> None:
        """Initialize the adapter around an open connection."""
        self._connection = connection
        self.dialect = connection.dialect

    def execute(self, statement: Executable) -> Result[Any]:
        """Proxies a statement to the underlying connection."""
        logger.debug("Executing: %s", statement)
        return self._connection.execute(statement)

    def native_database_types(self) -> dict[str, str]:
        """Declarable type names, spatial ones included, with their SQL."""
        return native_database_types(self.dialect)

    def type_to_sql(self, type_name: str) -> str:
        """Render a declared type name as SQL, or verbatim if unmapped."""
        return type_to_sql(type_name, self.dialect)

    def quote(self, value: object) -> str:
        """Render a value as a SQL literal; geometries become quoted hex EWKB."""
        sql_type = Geometry() if isinstance(value, BaseGeometry) else None
        expression = literal(value, sql_type)
        return str(
            expression.compile(
                dialect=self.dialect,
                compile_kwargs={"literal_binds": True},
            ),
        )

    @contextmanager
    def create_table(
        self,
        table_name: str,
        *,
        primary_key: str | None = "id",
        force: bool = False,
        temporary: bool = False,
    ) -> Iterator[TableDefinition]:
        """Create a table from the columns declared in the ``with`` block.

        Geometry columns are registered one by one once the table exists. The
        statements are not wrapped in a transaction of their own.
        """
        definition = TableDefinition(table_name)
        if primary_key:
            definition.primary_key(primary_key)

        yield definition

        if force:
            self._drop_existing_table(table_name)

        self.execute(definition.create_statement(temporary=temporary))
        for statement in definition.geometry_statements(self.dialect):
            self.execute(statement)

    def _drop_existing_table(self, table_name: str) -> None:
        """Drop the table if it exists, inside a savepoint."""
        try:
            with self._connection.begin_nested():
                self.drop_table(table_name)
        except DBAPIError as e:
            logger.debug("Nothing to drop for %s: %s", table_name, e.orig)

    def drop_table(self, table_name: str) -> None:
        """Drop a table."""
        self.execute(ddl.drop_table(table_name))

    def add_column(
        self,
        table_name: str,
        column_name: str,
        column_type: str | TypeEngine[Any],
        **options: Unpack[ColumnOptions],
    ) -> None:
        """Add a column to an existing table, registering geometry columns."""
        if is_geometry_type(column_type):
            geometry_column = GeometryColumn.from_options(
                column_name,
                column_type,
                options,
            )
            for statement in geometry_column.to_sql(table_name, self.dialect):
                self.execute(statement)
        else:
            column = generic_column(column_name, column_type, options)
            self.execute(ddl.add_column(table_name, column, self.dialect))

    def remove_column(self, table_name: str, column_name: str) -> None:
        """Remove a column, through the spatial catalog when it is a geometry.

        The declared catalog type decides, so every geometry subtype qualifies.
        Unknown columns take the ordinary path so the database reports them.
        """
        field_types = {
            name: field_type
            for name, field_type, _, _ in self.column_definitions(table_name)
        }
        if GEOMETRY_PATTERN.search(field_types.get(column_name, "")):
            self.execute(ddl.drop_geometry_column(table_name, column_name))
        else:
            self.execute(ddl.drop_column(table_name, column_name, self.dialect))

    def add_index(
        self,
        table_name: str,
        column_names: str | Sequence[str],
        **options: Unpack[IndexOptions],
    ) -> None:
        """Add an index named ``<table>_<first column>_index`` unless named.

        A spatial index spanning several columns becomes one GIST index per
        column, each with its default name.
        """
        columns = (
            [column_names] if isinstance(column_names, str) else list(column_names)
        )
        if not columns:
            msg = "An index needs at least one column"
            raise ValueError(msg)
        if len(set(columns)) != len(columns):
            msg = f"Index columns must be distinct: {', '.join(columns)}"
            raise ValueError(msg)

        index_name = options.get("name") or ddl.default_index_name(
            table_name,
            columns[0],
        )

        if not options.get("spatial"):
            self.execute(
                ddl.create_index(
                    index_name,
                    table_name,
                    columns,
                    unique=options.get("unique", False),
                ),
            )
        elif len(columns) == 1:
            self.execute(ddl.create_spatial_index(index_name, table_name, columns[0]))
        elif options.get("name"):
            msg = (
                f"Spatial index {options['name']} cannot span columns "
                f"{', '.join(columns)}; omit the name to create one index per column"
            )
            raise ValueError(msg)
        else:
            for column in columns:
                self.execute(
                    ddl.create_spatial_index(
                        ddl.default_index_name(table_name, column),
                        table_name,
                        column,
                    ),
                )

    def remove_index(self, index_name: str) -> None:
        """Drop an index by name."""
        self.execute(ddl.drop_index(index_name, self.dialect))

    def indexes(self, table_name: str) -> list[IndexSchema]:
        """Return the table's indexes, primary keys excluded."""
        indexes: list[IndexSchema] = []

        for index_name, unique, column_name, access_method in self.execute(
            indexes_query(table_name),
        ):
            # Rows arrive sorted by index name, one per indexed column
            if not indexes or indexes[-1]["name"] != index_name:
                indexes.append(
                    IndexSchema(
                        table=table_name,
                        name=index_name,
                        unique=bool(unique),
                        spatial=is_spatial_access_method(access_method),
                        columns=[],
                    ),
                )
            indexes[-1]["columns"].append(column_name)

        return indexes

    def column_definitions(
        self,
        table_name: str,
    ) -> list[tuple[str, str, str | None, bool]]:
        """Name, declared type, default and NOT NULL flag for each column."""
        return [
            (name, field_type, default, not_null)
            for name, field_type, default, not_null in self.execute(
                column_definitions_query(table_name),
            )
        ]

    def check_constraints(self, table_name: str) -> list[str]:
        """Definitions of the table's check constraints."""
        return list(self.execute(check_constraints_query(table_name)).scalars())

    def columns(self, table_name: str) -> list[ColumnSchema]:
        """Describe the table's columns, geometry columns with spatial metadata.

        A geometry column without PostGIS check constraints is reported as a
        plain column.
        """
        spatial_info = column_spatial_info(self.check_constraints(table_name))
        columns: list[ColumnSchema] = []

        for name, field_type, default, not_null in self.column_definitions(table_name):
            column = ColumnSchema(
                name=name,
                default=default_value(default),
                type=simplified_type(field_type),
                nullable=not not_null,
            )
            if GEOMETRY_PATTERN.search(field_type) and name in spatial_info:
                column = spatial_column(column, spatial_info[name])
            columns.append(column)

        return columns

    def select_rows(self, table_name: str) -> Iterator[dict[str, Any]]:
        """Yield every row of the table, geometry values decoded.

        Values that fail to decode are returned as ``None``.
        """
        geometry_columns = {
            column["name"]
            for column in self.columns(table_name)
            if is_geometry_type(column["type"])
        }
        query = select().from_(self.dialect.identifier_preparer.quote(table_name))

        for row in self.execute(text(str(query))).mappings():
            yield {
                key: decode_geometry(value) if key in geometry_columns else value
                for key, value in row.items()
            }


