"""GeoOps runtime configuration."""

from typing import Tuple

from pydantic import BaseModel, Field


class GeoOpsConfig(BaseModel):
    """Configuration shared by the map, query and upload components."""

    query_prefix: str = Field(default="Q", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    items_path: str = "items"
    hover_close_delay_seconds: float = Field(ge=0, default=0.150)
    default_center: Tuple[float, float] = (10.5731, -7.5898)
    default_zoom: int = 3
    discard_stale_query_results: bool = True
