"""
Marker Renderer — turns map locations into marker payloads.

Pipeline per refresh:
  locations -> viewport filter -> batched query -> marker payloads

Status colour, comparison label, popup description and the workload link
are all derived here so the UI only has to draw what it is given.
"""

from typing import Iterable, List, Optional, Sequence, Union

from geoops_core.models.config import GeoOpsConfig
from geoops_core.models.location import NOT_CONFIGURED, GeoEntity, TelemetryEntity
from geoops_core.models.query import NOT_AVAILABLE, ComparisonValue
from geoops_core.models.rendering import EntityLink, MapSettings, MapView, MarkerPayload
from geoops_core.models.viewport import ViewportBounds
from geoops_core.query.coordinator import BatchQueryCoordinator
from geoops_core.viewport.filter import filter_visible

NO_DESCRIPTION = "No description."

SEVERITY_RANK = {
    "CRITICAL": 3,
    "WARNING": 2,
    "NOT_ALERTING": 1,
    NOT_CONFIGURED: 0,
}

SEVERITY_COLORS = {
    "CRITICAL": "#BF0016",
    "WARNING": "#FFD23D",
    "NOT_ALERTING": "#11A600",
    NOT_CONFIGURED: "#8E9494",
}


def worst_severity(location: GeoEntity) -> str:
    """Most severe alert state among the location's entities."""
    severities = [e.alert_severity for e in location.entities]
    if not severities:
        return NOT_CONFIGURED
    return max(severities, key=lambda s: SEVERITY_RANK.get(s, 0))


def status_color(location: GeoEntity) -> str:
    return SEVERITY_COLORS.get(worst_severity(location), SEVERITY_COLORS[NOT_CONFIGURED])


def format_comparison(value: ComparisonValue) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.2f}%"
    return str(value)


def entity_link(location: GeoEntity) -> Optional[EntityLink]:
    """Link to the first workload: configure it, or view it once configured."""
    workload = next((e for e in location.entities if e.type == "WORKLOAD"), None)
    if workload is None:
        return None

    if workload.alert_severity == NOT_CONFIGURED:
        return EntityLink(
            action="configure",
            label="Configure Workload Status",
            nerdlet_id="workloads.status-rollup-settings",
            entity_guid=workload.guid,
        )
    return EntityLink(
        action="view",
        label=f"View {workload.name} Workload",
        nerdlet_id="workloads.overview",
        entity_guid=workload.guid,
    )


def compose_entity_summary(location: Optional[GeoEntity]) -> List[TelemetryEntity]:
    """Summary rows for the active location's entities."""
    if location is None:
        return []
    return [
        TelemetryEntity(
            guid=e.guid,
            name=e.name,
            type=e.type,
            alertSeverity=e.alert_severity,
        )
        for e in location.entities
    ]


def calculate_view(
    center: Optional[Sequence[float]] = None,
    zoom: Optional[int] = None,
    map_settings: Optional[MapSettings] = None,
    config: Optional[GeoOpsConfig] = None,
) -> MapView:
    """Starting centre and zoom: explicit values, then the map's, then defaults."""
    config = config or GeoOpsConfig()

    start_center = None
    if center is not None and len(center) == 2:
        start_center = (float(center[0]), float(center[1]))
    elif map_settings and map_settings.lat is not None and map_settings.lng is not None:
        start_center = (map_settings.lat, map_settings.lng)

    start_zoom = zoom or (map_settings.zoom if map_settings else None) or config.default_zoom

    return MapView(center=start_center or config.default_center, zoom=start_zoom)


class MarkerRenderer:
    """Builds marker payloads for the visible locations of a map."""

    def __init__(
        self,
        coordinator: BatchQueryCoordinator,
        config: Optional[GeoOpsConfig] = None,
    ):
        self.coordinator = coordinator
        self.config = config or GeoOpsConfig()

        self._last_locations: Optional[Iterable[Union[GeoEntity, dict]]] = None
        self._last_bounds: Optional[ViewportBounds] = None
        self._visible: List[GeoEntity] = []

    async def render(
        self,
        account_id: int,
        locations: Iterable[Union[GeoEntity, dict]],
        bounds: Optional[ViewportBounds] = None,
        selected_guid: Optional[str] = None,
    ) -> List[MarkerPayload]:
        """
        Render the locations inside ``bounds``.

        Re-rendering the same ``locations`` object with the same bounds and
        account reuses the last query results instead of dispatching again.

        Raises QueryDispatchError if the batched query fails.
        """
        if locations is not self._last_locations or bounds != self._last_bounds:
            entities = [GeoEntity.from_raw(l) for l in locations]
            self._visible = filter_visible(entities, bounds)
            self._last_locations = locations
            self._last_bounds = bounds

        visible = self._visible
        values = await self.coordinator.refresh(account_id, visible)
        return [
            self._payload(e, values.get(e.guid, NOT_AVAILABLE), selected_guid)
            for e in visible
        ]

    def _payload(
        self,
        location: GeoEntity,
        value: ComparisonValue,
        selected_guid: Optional[str],
    ) -> MarkerPayload:
        lat, lng = location.coordinates()
        return MarkerPayload(
            guid=location.guid,
            title=location.title,
            lat=lat,
            lng=lng,
            status_color=status_color(location),
            comparison_value=value,
            comparison_label=format_comparison(value),
            description_text=location.location.description or NO_DESCRIPTION,
            selected=selected_guid is not None and location.guid == selected_guid,
            entity_link=entity_link(location),
        )
