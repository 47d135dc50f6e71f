"""
Wire models for the elevation profile endpoint.

The request is a GeoJSON-like LineString of integer GK4 coordinates; the
response lists one height record per requested point, in request order.
Response models are lenient: unknown fields are ignored and missing values
become None so a partial record never invalidates its whole batch.
"""

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ALTITUDE_FIELD, GEOMETRY_TYPE


class GridRequest(BaseModel):
    """LineString request body for one batch."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(GEOMETRY_TYPE, description="Geometry type, always LineString")
    coordinates: list[tuple[int, int]] = Field(
        ..., description="Ordered [easting, northing] pairs, one per sample"
    )


class Altitudes(BaseModel):
    """Altitude composite of a height record. Only COMB is used."""

    model_config = ConfigDict(extra="ignore")

    comb: float | None = Field(
        None, alias=ALTITUDE_FIELD, description="Combined (best) altitude in metres"
    )


class HeightPoint(BaseModel):
    """One height sample along the requested path."""

    model_config = ConfigDict(extra="ignore")

    dist: float | None = Field(None, description="Distance along the path in metres")
    alts: Altitudes | None = Field(None, description="Altitude composite")
    easting: float | None = Field(None, description="Echoed easting (unused)")
    northing: float | None = Field(None, description="Echoed northing (unused)")

    @property
    def altitude(self) -> float:
        """Combined altitude, 0 when the record carries none."""
        if self.alts is None or self.alts.comb is None:
            return 0.0
        return self.alts.comb


class GridResponse(BaseModel):
    """Response body of the profile endpoint."""

    model_config = ConfigDict(extra="ignore")

    heights: list[HeightPoint | None] = Field(
        default_factory=list, description="Height records in request order"
    )

    def altitudes(self) -> list[float]:
        """Altitudes in record order; null records count as 0."""
        return [pt.altitude if pt is not None else 0.0 for pt in self.heights]
