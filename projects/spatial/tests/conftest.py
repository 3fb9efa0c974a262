"""Shared fixtures: a connection stand-in that records compiled SQL."""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.dialects import postgresql

from spatial import SpatialAdapter

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlalchemy import Executable


class FakeResult:
    """The slice of a SQLAlchemy Result the adapter reads from."""

    def __init__(self, rows: Sequence[tuple[Any, ...]], keys: Sequence[str] = ()) -> None:
        """Initialize with canned rows and optional column names."""
        self._rows = list(rows)
        self._keys = list(keys)

    def __iter__(self) -> Iterator[Any]:
        """Iterate over the rows."""
        return iter(self._rows)

    def scalars(self) -> FakeResult:
        """Return the first column of every row."""
        return FakeResult([row[0] for row in self._rows])

    def mappings(self) -> FakeResult:
        """Return every row as a dict keyed by column name."""
        return FakeResult([dict(zip(self._keys, row, strict=True)) for row in self._rows])


class RecordingConnection:
    """Stands in for a SQLAlchemy Connection to a PostGIS database."""

    def __init__(self) -> None:
        """Initialize with no canned responses or failures."""
        self.dialect = postgresql.dialect()
        self.statements: list[str] = []
        self.parameters: list[dict[str, Any]] = []
        self._responses: list[tuple[str, FakeResult]] = []
        self._failures: list[tuple[str, Exception]] = []

    def respond(
        self,
        fragment: str,
        rows: Sequence[tuple[Any, ...]],
        keys: Sequence[str] = (),
    ) -> None:
        """Answer statements containing the fragment with the given rows."""
        self._responses.append((fragment, FakeResult(rows, keys)))

    def fail(self, fragment: str, error: Exception) -> None:
        """Raise the error for statements containing the fragment."""
        self._failures.append((fragment, error))

    def execute(self, statement: Executable) -> FakeResult:
        """Record the compiled statement and return the matching canned rows."""
        compiled = statement.compile(dialect=self.dialect)  # type: ignore[attr-defined]
        sql = " ".join(str(compiled).split())
        self.statements.append(sql)
        self.parameters.append(dict(compiled.params or {}))

        for fragment, error in self._failures:
            if fragment in sql:
                raise error
        for fragment, result in self._responses:
            if fragment in sql:
                return result
        return FakeResult([])

    def begin_nested(self) -> AbstractContextManager[None]:
        """Savepoints are not simulated."""
        return nullcontext()


@pytest.fixture(name="connection")
def create_connection() -> RecordingConnection:
    """Create a recording connection."""
    return RecordingConnection()


@pytest.fixture(name="adapter")
def create_adapter(connection: RecordingConnection) -> SpatialAdapter:
    """Create a SpatialAdapter over the recording connection."""
    return SpatialAdapter(connection)  # type: ignore[arg-type]


@pytest.fixture(name="places")
def create_places(connection: RecordingConnection) -> RecordingConnection:
    """Answer catalog queries for a ``places`` table with geometry columns.

    ``location`` is a 2D point, ``track`` a measured line string, ``outline`` a
    3D polygon with no SRID constraint, and ``raw_shape`` a geometry column
    without any constraints.
    """
    connection.respond(
        "format_type",
        [
            ("id", "integer", "nextval('places_id_seq'::regclass)", True),
            ("name", "character varying(255)", "'unnamed'::character varying", False),
            ("location", "geometry", None, True),
            ("track", "geometry", None, False),
            ("outline", "geometry", None, False),
            ("raw_shape", "geometry", None, False),
        ],
    )
    connection.respond(
        "pg_get_constraintdef",
        [
            ("CHECK (st_srid(location) = 4326)",),
            ("CHECK (st_ndims(track) = 3)",),
            ("CHECK (geometrytype(location) = 'POINT'::text OR location IS NULL)",),
            ("CHECK (st_ndims(location) = 2)",),
            ("CHECK (geometrytype(track) = 'LINESTRINGM'::text OR track IS NULL)",),
            ("CHECK (srid(track) = (-1))",),
            ("CHECK (ndims(outline) = 3)",),
            ("CHECK (geometrytype(outline) = 'POLYGON'::text OR outline IS NULL)",),
            ("CHECK (char_length(name) > 0)",),
        ],
    )
    return connection
