"""PostGIS geometry columns for SQLAlchemy schema operations."""

from spatial.adapter import SpatialAdapter, is_spatial_access_method
from spatial.codec import decode_geometry, encode_geometry
from spatial.constraints import column_spatial_info
from spatial.definition import GeometryColumn, TableDefinition
from spatial.geometry import Geometry
from spatial.types import (
    GEOMETRY_DATA_TYPES,
    ColumnSchema,
    IndexSchema,
    SpatialColumnSchema,
    SpatialInfo,
    is_spatial,
)

__all__ = [
    "GEOMETRY_DATA_TYPES",
    "ColumnSchema",
    "Geometry",
    "GeometryColumn",
    "IndexSchema",
    "SpatialAdapter",
    "SpatialColumnSchema",
    "SpatialInfo",
    "TableDefinition",
    "column_spatial_info",
    "decode_geometry",
    "encode_geometry",
    "is_spatial",
    "is_spatial_access_method",
]
