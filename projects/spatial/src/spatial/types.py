"""Typed schemas for spatial column and index metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, TypedDict, TypeGuard

# Known spatial types, keyed the way columns are declared, valued by PostGIS token
GEOMETRY_DATA_TYPES: dict[str, str] = {
    "point": "POINT",
    "line_string": "LINESTRING",
    "polygon": "POLYGON",
    "multi_point": "MULTIPOINT",
    "multi_line_string": "MULTILINESTRING",
    "multi_polygon": "MULTIPOLYGON",
    "geometry_collection": "GEOMETRYCOLLECTION",
    "geometry": "GEOMETRY",
}

_GEOMETRY_TYPE_NAMES = {token: name for name, token in GEOMETRY_DATA_TYPES.items()}

# Index access method that marks an index as spatial
SPATIAL_ACCESS_METHOD = "gist"

# Unspecified spatial reference system
UNKNOWN_SRID = -1


def geometry_type_name(token: str) -> str:
    """Map a PostGIS type token such as ``LINESTRING`` to its declared name."""
    return _GEOMETRY_TYPE_NAMES.get(token.upper(), token.lower())


def geometry_dimension(*, with_z: bool, with_m: bool) -> int:
    """Count coordinate ordinates: X/Y plus one for each of Z and M."""
    return 2 + with_z + with_m


def resolve_dimension(dimension: int | None, *, with_m: bool) -> tuple[bool, bool]:
    """Recover the ``(with_z, with_m)`` pair from a dimension count.

    A dimension of 3 is ambiguous on its own, so the M flag recorded from the
    geometry type literal decides between XYZ and XYM. Without a dimension
    the M flag is kept as recorded.
    """
    match dimension:
        case 4:
            return True, True
        case 3 if with_m:
            return False, True
        case 3:
            return True, False
        case None:
            return False, with_m
        case _:
            return False, False


@dataclass
class RawGeometryInfo:
    """Spatial facts about one column, gathered from its check constraints."""

    type: str | None = None
    srid: int | None = None
    dimension: int | None = None
    with_m: bool = False


class SpatialInfo(NamedTuple):
    """Resolved spatial metadata for a geometry column."""

    geometry_type: str | None
    srid: int | None
    with_z: bool
    with_m: bool


class ColumnSchema(TypedDict):
    """Schema for an ordinary database column."""

    name: str
    default: str | None
    type: str
    nullable: bool


class SpatialColumnSchema(ColumnSchema):
    """Schema for a geometry column registered in the PostGIS catalog."""

    srid: int | None
    with_z: bool
    with_m: bool
    geometry_type: str | None


class IndexSchema(TypedDict):
    """Schema for a table index."""

    table: str
    name: str
    unique: bool
    spatial: bool
    columns: list[str]  # In index key order


class ColumnOptions(TypedDict, total=False):
    """Options accepted when declaring or adding a column."""

    null: bool
    srid: int
    with_z: bool
    with_m: bool
    default: str | int | float | bool | None
    limit: int | None


class IndexOptions(TypedDict, total=False):
    """Options accepted when adding an index."""

    name: str | None
    spatial: bool
    unique: bool


def is_spatial(column: ColumnSchema) -> TypeGuard[SpatialColumnSchema]:
    """Check whether a column schema carries spatial metadata."""
    return "geometry_type" in column
