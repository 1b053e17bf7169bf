"""Map Location — a geo-tagged point of interest and its telemetry entities."""

import math
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

NOT_CONFIGURED = "NOT_CONFIGURED"

RawCoordinate = Union[float, str, None]


def _coerce_coordinate(value: RawCoordinate) -> Optional[float]:
    """Numeric strings are accepted; anything non-finite is rejected."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _as_text(value) -> Optional[str]:
    """Uploaded records are loosely typed: any non-null value is kept as text."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


class TelemetryEntity(BaseModel):
    """A monitored entity (workload, application, host) attached to a location."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    guid: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None                  # e.g., "WORKLOAD", "APPLICATION"
    alert_severity: str = Field(default=NOT_CONFIGURED, alias="alertSeverity")

    @field_validator("guid", "name", "type", mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)

    @field_validator("alert_severity", mode="before")
    @classmethod
    def _default_severity(cls, v):
        return _as_text(v) or NOT_CONFIGURED


class LocationPoint(BaseModel):
    """
    Raw position of a map location.

    Sources disagree on whether lat/lng are numbers or numeric strings, so the
    raw values are kept as given and only coerced when read through
    ``coordinates()``.
    """

    model_config = ConfigDict(extra="allow")

    lat: RawCoordinate = None
    lng: RawCoordinate = None
    description: Optional[str] = None

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _scalar_only(cls, v):
        # Anything that is not a scalar can never become a coordinate.
        if isinstance(v, (list, dict)):
            return None
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _description_text(cls, v):
        return _as_text(v)

    def coordinates(self) -> Optional[Tuple[float, float]]:
        """Return ``(lat, lng)`` as floats, or None if either is unusable."""
        lat = _coerce_coordinate(self.lat)
        lng = _coerce_coordinate(self.lng)
        if lat is None or lng is None:
            return None
        return lat, lng


class GeoEntity(BaseModel):
    """
    A map location as stored, uploaded, or supplied by the host feed.

    Reading is lenient: scalar fields are kept as text, a null or malformed
    ``entities`` is an empty list, and a ``location`` that is not an object is
    treated as missing. Whether a record is acceptable is decided by the
    location schema, not by this model.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    guid: str
    title: Optional[str] = None
    location: Optional[LocationPoint] = None
    entities: List[TelemetryEntity] = []
    external_id: Optional[str] = Field(default=None, alias="externalId")
    query: Optional[str] = None                 # Telemetry query for the marker value
    map: Optional[str] = None                   # Owning map guid

    @field_validator("guid", "title", "external_id", "query", "map", mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)

    @field_validator("location", mode="before")
    @classmethod
    def _location_object(cls, v):
        if isinstance(v, (dict, LocationPoint)):
            return v
        return None

    @field_validator("entities", mode="before")
    @classmethod
    def _entity_list(cls, v):
        if not isinstance(v, list):
            return []
        return [e for e in v if isinstance(e, (dict, TelemetryEntity))]

    @classmethod
    def from_raw(cls, raw: Union["GeoEntity", dict]) -> "GeoEntity":
        """
        Build a GeoEntity from either a bare record or a stored
        ``{"id": ..., "document": {...}}`` wrapper.
        """
        if isinstance(raw, GeoEntity):
            return raw
        document = raw.get("document")
        if isinstance(document, dict):
            raw = document
        return cls.model_validate(raw)

    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.location is None:
            return None
        return self.location.coordinates()

    def to_document(self) -> dict:
        """Serialize with the external field names used by storage."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
