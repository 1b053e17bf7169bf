"""Viewport filtering — which map locations should be drawn and queried."""

from typing import Iterable, List, Optional

from geoops_core.models.location import GeoEntity
from geoops_core.models.viewport import ViewportBounds


def is_visible(entity: GeoEntity, bounds: Optional[ViewportBounds]) -> bool:
    """True when the entity has usable coordinates inside ``bounds``."""
    coords = entity.coordinates()
    if coords is None:
        return False
    if bounds is None:
        return True
    lat, lng = coords
    return bounds.contains(lat, lng)


def filter_visible(
    entities: Iterable[GeoEntity],
    bounds: Optional[ViewportBounds] = None,
) -> List[GeoEntity]:
    """
    Keep the locations to render, in input order.

    ``bounds=None`` means the map is not ready yet, so every location with
    valid coordinates passes.
    """
    return [e for e in entities if is_visible(e, bounds)]
