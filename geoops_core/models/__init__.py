"""GeoOps data models."""

from geoops_core.models.config import GeoOpsConfig
from geoops_core.models.ingestion import (
    IngestionError,
    IngestionErrorKind,
    IngestionPreview,
    IngestionRecord,
    SchemaCheck,
    StoredDocument,
    WriteError,
    WriteResult,
)
from geoops_core.models.location import (
    NOT_CONFIGURED,
    GeoEntity,
    LocationPoint,
    TelemetryEntity,
)
from geoops_core.models.query import NOT_AVAILABLE, ComparisonValue, QueryDescriptor
from geoops_core.models.rendering import EntityLink, MapSettings, MapView, MarkerPayload
from geoops_core.models.viewport import ViewportBounds

__all__ = [
    "ComparisonValue",
    "EntityLink",
    "GeoEntity",
    "GeoOpsConfig",
    "IngestionError",
    "IngestionErrorKind",
    "IngestionPreview",
    "IngestionRecord",
    "LocationPoint",
    "MapSettings",
    "MapView",
    "MarkerPayload",
    "NOT_AVAILABLE",
    "NOT_CONFIGURED",
    "QueryDescriptor",
    "SchemaCheck",
    "StoredDocument",
    "TelemetryEntity",
    "ViewportBounds",
    "WriteError",
    "WriteResult",
]
