"""SQLAlchemy column type for PostGIS geometry values."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.types import UserDefinedType

from spatial.codec import decode_geometry, encode_geometry
from spatial.types import UNKNOWN_SRID

if TYPE_CHECKING:
    from collections.abc import Callable

    from shapely.geometry.base import BaseGeometry
    from sqlalchemy.engine.interfaces import Dialect


class Geometry(UserDefinedType["BaseGeometry"]):
    """A ``geometry`` column whose values are Shapely geometries.

    Values are sent to the database as hex EWKB and decoded back on read.
    The subtype and SRID are carried for the schema writer; the column itself
    is always stored as plain ``geometry``.
    """

    cache_ok = True

    def __init__(
        self,
        geometry_type: str = "GEOMETRY",
        srid: int = UNKNOWN_SRID,
    ) -> None:
        """Initialize with a PostGIS type token and spatial reference system."""
        self.geometry_type = geometry_type.upper()
        self.srid = srid

    def get_col_spec(self, **_: Any) -> str:  # noqa: ANN401
        """Render the storage type."""
        return "geometry"

    def bind_processor(
        self,
        dialect: Dialect,  # noqa: ARG002
    ) -> Callable[[BaseGeometry | None], str | None]:
        """Encode outgoing geometries as hex EWKB."""

        def process(value: BaseGeometry | None) -> str | None:
            return None if value is None else encode_geometry(value, self.srid)

        return process

    def literal_processor(
        self,
        dialect: Dialect,  # noqa: ARG002
    ) -> Callable[[BaseGeometry], str]:
        """Render a geometry as a quoted hex EWKB literal."""

        def process(value: BaseGeometry) -> str:
            return f"'{encode_geometry(value, self.srid)}'"

        return process

    def result_processor(
        self,
        dialect: Dialect,  # noqa: ARG002
        coltype: object,  # noqa: ARG002
    ) -> Callable[[object], object]:
        """Decode incoming hex EWKB, tolerating malformed values."""
        return decode_geometry
