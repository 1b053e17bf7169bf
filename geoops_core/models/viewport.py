"""Viewport bounds — the geographic rectangle currently visible on the map."""

from pydantic import BaseModel, model_validator


class ViewportBounds(BaseModel):
    """
    Visible area. Edges are inclusive.

    A ``west`` edge greater than ``east`` means the viewport crosses the
    antimeridian: longitudes from ``west`` up to 180 and from -180 up to
    ``east`` are both inside.
    """

    south: float
    west: float
    north: float
    east: float

    @model_validator(mode="after")
    def _check_edges(self) -> "ViewportBounds":
        if self.south > self.north:
            raise ValueError(
                f"south ({self.south}) must be <= north ({self.north})"
            )
        return self

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    def contains(self, lat: float, lng: float) -> bool:
        if not self.south <= lat <= self.north:
            return False
        if self.crosses_antimeridian:
            return lng >= self.west or lng <= self.east
        return self.west <= lng <= self.east
