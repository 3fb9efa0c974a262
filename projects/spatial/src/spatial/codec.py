"""Hex EWKB encoding of geometry values using Shapely."""

from __future__ import annotations

from logging import getLogger

from shapely import from_wkb, get_srid, set_srid, to_wkb
from shapely.errors import ShapelyError
from shapely.geometry.base import BaseGeometry

logger = getLogger(__name__)


def encode_geometry(geometry: BaseGeometry, srid: int | None = None) -> str:
    """Encode a geometry as hex EWKB, embedding the SRID when one is known."""
    if srid is not None and srid > 0:
        geometry = set_srid(geometry, srid)
    return to_wkb(geometry, hex=True, include_srid=bool(get_srid(geometry) > 0))


def decode_geometry(value: object) -> object:
    """Decode a hex EWKB string returned by PostGIS.

    Values that are not strings pass through untouched. Malformed strings
    decode to ``None`` so a single bad value does not abort a whole read.
    """
    if not isinstance(value, str):
        return value
    try:
        return from_wkb(value)
    except (ShapelyError, ValueError):
        logger.warning("Could not decode geometry value: %.32s", value)
        return None
