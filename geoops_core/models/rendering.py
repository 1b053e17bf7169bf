"""Rendered marker payloads."""

from typing import Optional, Tuple

from pydantic import BaseModel

from geoops_core.models.query import ComparisonValue


class MapSettings(BaseModel):
    """Saved settings of the map being displayed."""

    guid: Optional[str] = None
    title: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    zoom: Optional[int] = None


class MapView(BaseModel):
    center: Tuple[float, float]
    zoom: int


class EntityLink(BaseModel):
    """Navigation target for the first workload attached to a location."""

    action: str                   # "configure" | "view"
    label: str
    nerdlet_id: str
    entity_guid: Optional[str] = None


class MarkerPayload(BaseModel):
    """Everything the UI needs to draw one marker and its popup."""

    guid: str
    title: Optional[str] = None
    lat: float
    lng: float
    status_color: str
    comparison_value: ComparisonValue
    comparison_label: str
    description_text: str
    selected: bool = False
    entity_link: Optional[EntityLink] = None
