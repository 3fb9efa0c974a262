"""Spatial metadata detection from PostGIS check constraints.

``AddGeometryColumn`` guards a geometry column with up to three check
constraints, one per spatial property::

    CHECK (geometrytype(geom) = 'POINT'::text OR geom IS NULL)
    CHECK (st_ndims(geom) = 2)
    CHECK (st_srid(geom) = 4326)

Older PostGIS releases spell the functions without the ``st_`` prefix and
wrap negative SRIDs in parentheses; newer ones store the unknown SRID as
``0`` rather than ``-1``. Each constraint is matched independently
and nothing is assumed about their order or completeness.
"""

import re
from collections.abc import Iterable

from spatial.types import (
    UNKNOWN_SRID,
    RawGeometryInfo,
    SpatialInfo,
    resolve_dimension,
)

# Pattern building blocks
IDENTIFIER = r"\"?([^)\"]+)\"?"  # Column name, quotes stripped
VALUE = r"'([^']+)'"  # Quoted literal
INTEGER = r"\(?(-?\d+)\)?"  # Signed integer, e.g. (-1)
WHITESPACE = r"\s*"
OPEN_PAREN = r"\("
CLOSE_PAREN = r"\)"
EQUALS = r"="


def _function_equals(function: str, value: str) -> re.Pattern[str]:
    """Build pattern: function(identifier) = value."""
    return re.compile(
        WHITESPACE.join(
            (function + OPEN_PAREN + IDENTIFIER + CLOSE_PAREN, EQUALS, value),
        ),
        re.IGNORECASE,
    )


GEOMETRY_TYPE_PATTERN = _function_equals("geometrytype", VALUE)
DIMENSION_PATTERN = _function_equals("ndims", INTEGER)
SRID_PATTERN = _function_equals("srid", INTEGER)


def split_measure(type_literal: str) -> tuple[str, bool]:
    """Strip the trailing ``M`` of a measured type, e.g. ``POINTM`` -> ``POINT``."""
    if len(type_literal) > 1 and type_literal.upper().endswith("M"):
        return type_literal[:-1], True
    return type_literal, False


def normalize_srid(srid: int) -> int:
    """Map the PostGIS 2+ unknown SRID ``0`` to ``-1``."""
    return UNKNOWN_SRID if srid == 0 else srid


def collect_geometry_info(
    constraint_texts: Iterable[str],
) -> dict[str, RawGeometryInfo]:
    """Accumulate spatial facts per column from check constraint definitions."""
    raw_infos: dict[str, RawGeometryInfo] = {}

    for constraint_text in constraint_texts:
        if match := GEOMETRY_TYPE_PATTERN.search(constraint_text):
            raw_info = raw_infos.setdefault(match[1], RawGeometryInfo())
            raw_info.type, raw_info.with_m = split_measure(match[2])

        if match := DIMENSION_PATTERN.search(constraint_text):
            raw_info = raw_infos.setdefault(match[1], RawGeometryInfo())
            raw_info.dimension = int(match[2])

        if match := SRID_PATTERN.search(constraint_text):
            raw_info = raw_infos.setdefault(match[1], RawGeometryInfo())
            raw_info.srid = normalize_srid(int(match[2]))

    return raw_infos


def column_spatial_info(constraint_texts: Iterable[str]) -> dict[str, SpatialInfo]:
    """Resolve spatial metadata for every column named in the constraints."""
    return {
        column_name: SpatialInfo(
            raw_info.type,
            raw_info.srid,
            *resolve_dimension(raw_info.dimension, with_m=raw_info.with_m),
        )
        for column_name, raw_info in collect_geometry_info(constraint_texts).items()
    }
