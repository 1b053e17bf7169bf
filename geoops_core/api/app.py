"""
GeoOps API — FastAPI endpoints.

Exposes the map data services via a REST API for:
- Configuration
- Marker rendering (viewport filter + batched telemetry query)
- Location file uploads (preview, then save)
- Stored location lookup
- Selection state
"""

from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel, ValidationError

from geoops_core.ingestion.pipeline import ContractError, IngestionPipeline
from geoops_core.models.config import GeoOpsConfig
from geoops_core.models.ingestion import IngestionPreview
from geoops_core.models.rendering import MapSettings
from geoops_core.models.viewport import ViewportBounds
from geoops_core.query.coordinator import (
    BatchQueryCoordinator,
    QueryDispatchError,
    QueryTransport,
)
from geoops_core.query.transport import InMemoryQueryTransport
from geoops_core.rendering.markers import MarkerRenderer, calculate_view
from geoops_core.selection.state import SelectionState
from geoops_core.storage.store import LocationStore


# --- Request/Response Models ---

class MarkersRequest(BaseModel):
    account_id: int
    locations: List[dict] = []
    bounds: Optional[ViewportBounds] = None
    selected_guid: Optional[str] = None
    center: Optional[Tuple[float, float]] = None
    zoom: Optional[int] = None
    map_settings: Optional[MapSettings] = None


class SelectRequest(BaseModel):
    guid: Optional[str] = None
    account_id: Optional[int] = None


# --- Application Factory ---

def create_app(
    config: Optional[GeoOpsConfig] = None,
    store: Optional[LocationStore] = None,
    transport: Optional[QueryTransport] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="GeoOps API",
        description="Map locations, telemetry markers and location uploads",
        version="0.1.0",
    )

    # Initialize components
    cfg = config or GeoOpsConfig()
    ls = store or LocationStore()
    qt = transport or InMemoryQueryTransport()
    coordinator = BatchQueryCoordinator(qt, config=cfg)
    renderer = MarkerRenderer(coordinator, config=cfg)
    pipeline = IngestionPipeline(writer=ls, config=cfg)
    selection = SelectionState(delay=cfg.hover_close_delay_seconds)
    pending_uploads: Dict[str, IngestionPreview] = {}

    # Store components on app state for access in endpoints
    app.state.config = cfg
    app.state.location_store = ls
    app.state.query_transport = qt
    app.state.coordinator = coordinator
    app.state.renderer = renderer
    app.state.pipeline = pipeline
    app.state.selection = selection
    app.state.pending_uploads = pending_uploads

    # === CONFIGURATION ===

    @app.get("/config")
    def get_config():
        """Current configuration."""
        return app.state.config.model_dump(mode="json")

    @app.put("/config")
    def update_config(new_config: GeoOpsConfig):
        """Replace the configuration for every component."""
        app.state.config = new_config
        coordinator.config = new_config
        renderer.config = new_config
        pipeline.config = new_config
        selection.delay = new_config.hover_close_delay_seconds
        return new_config.model_dump(mode="json")

    # === MARKERS ===

    @app.post("/markers")
    async def render_markers(req: MarkersRequest):
        """Marker payloads for the locations inside the viewport."""
        selected = req.selected_guid or selection.selected_guid
        try:
            markers = await renderer.render(
                account_id=req.account_id,
                locations=req.locations,
                bounds=req.bounds,
                selected_guid=selected,
            )
        except QueryDispatchError as e:
            raise HTTPException(502, str(e))
        except ValidationError as e:
            raise HTTPException(422, e.errors(include_url=False, include_context=False))

        view = calculate_view(
            center=req.center,
            zoom=req.zoom,
            map_settings=req.map_settings,
            config=app.state.config,
        )
        return {
            "markers": [m.model_dump(mode="json") for m in markers],
            "view": view.model_dump(mode="json"),
        }

    # === UPLOADS ===

    @app.post("/maps/{map_guid}/uploads")
    async def upload_locations(map_guid: str, files: List[UploadFile] = File(...)):
        """Read uploaded files and hold the accepted locations for review."""
        preview = await pipeline.ingest(files)
        pending_uploads[map_guid] = preview
        return preview.model_dump(mode="json", by_alias=True)

    @app.get("/maps/{map_guid}/uploads")
    def get_pending_upload(map_guid: str):
        """The upload awaiting confirmation."""
        preview = pending_uploads.get(map_guid)
        if preview is None:
            raise HTTPException(404, "No pending upload for this map")
        return preview.model_dump(mode="json", by_alias=True)

    @app.post("/maps/{map_guid}/uploads/save")
    async def save_locations(map_guid: str, account_id: int):
        """Persist the pending upload; report per-location outcomes."""
        preview = pending_uploads.get(map_guid)
        if preview is None:
            raise HTTPException(404, "No pending upload for this map")
        try:
            ledger = await pipeline.persist(account_id, map_guid, preview.file_data)
        except ContractError as e:
            raise HTTPException(422, str(e))

        pending_uploads.pop(map_guid, None)
        return ledger.summary()

    # === STORED LOCATIONS ===

    @app.get("/maps/{map_guid}/locations")
    def list_locations(map_guid: str, account_id: int):
        """Stored locations of a map."""
        records = ls.list_records(account_id, map_guid=map_guid)
        return [r.model_dump(mode="json", by_alias=True) for r in records]

    @app.get("/locations/{guid}")
    def get_location(guid: str, account_id: int):
        location = ls.get_record(account_id, guid)
        if location is None:
            raise HTTPException(404, "Location not found")
        return location.model_dump(mode="json", by_alias=True)

    # === SELECTION ===

    @app.get("/selection")
    def get_selection():
        """Currently selected location."""
        return {
            "selected_guid": selection.selected_guid,
            "hover_phase": selection.hover_phase.value,
        }

    @app.post("/selection")
    def select_location(req: SelectRequest):
        """
        Select a location (or clear with a null guid).

        With an ``account_id`` the guid must name a stored location, which
        becomes the active location of the map.
        """
        if req.account_id is None:
            selection.select(req.guid)
        elif req.guid is None:
            selection.set_active_location(None)
        else:
            location = ls.get_record(req.account_id, req.guid)
            if location is None:
                raise HTTPException(404, "Location not found")
            selection.set_active_location(location)
        return {"selected_guid": selection.selected_guid}

    return app


# Default application instance
app = create_app()
