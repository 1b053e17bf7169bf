"""Tests for viewport filtering."""

from geoops_core.models.location import GeoEntity
from geoops_core.models.viewport import ViewportBounds
from geoops_core.viewport.filter import filter_visible, is_visible


def _loc(guid: str, lat=None, lng=None, **kwargs) -> GeoEntity:
    location = None if lat is None and lng is None else {"lat": lat, "lng": lng}
    return GeoEntity.model_validate({"guid": guid, "location": location, **kwargs})


def _guids(entities):
    return [e.guid for e in entities]


class TestFilterVisible:
    def test_string_coordinates_outside_bounds(self):
        """A location at lat "50" is outside a 0..20 viewport after coercion."""
        entities = [_loc("a", 10, 5), _loc("b", "50", "5")]
        bounds = ViewportBounds(south=0, west=0, north=20, east=10)

        assert _guids(filter_visible(entities, bounds)) == ["a"]

    def test_no_bounds_passes_all_valid(self):
        entities = [_loc("a", 10, 5), _loc("b", "50", "5"), _loc("c")]
        assert _guids(filter_visible(entities, None)) == ["a", "b"]

    def test_invalid_coordinates_dropped(self):
        entities = [
            _loc("ok", 1, 1),
            _loc("text", "north", 1),
            _loc("nan", "NaN", 1),
            _loc("half", 1, None),
            GeoEntity(guid="none"),
        ]
        assert _guids(filter_visible(entities)) == ["ok"]

    def test_order_preserved(self):
        entities = [_loc(g, i, i) for i, g in enumerate(["z", "m", "a", "q"])]
        assert _guids(filter_visible(entities)) == ["z", "m", "a", "q"]

    def test_boundary_is_inclusive(self):
        bounds = ViewportBounds(south=0, west=0, north=20, east=10)
        assert is_visible(_loc("edge", 20, 10), bounds)
        assert is_visible(_loc("corner", "0", "0"), bounds)

    def test_viewport_across_antimeridian(self):
        entities = [_loc("fiji", -17, 178), _loc("samoa", -14, -172), _loc("lima", -12, -77)]
        bounds = ViewportBounds(south=-20, west=170, north=0, east=-165)
        assert _guids(filter_visible(entities, bounds)) == ["fiji", "samoa"]

    def test_idempotent(self):
        entities = [
            _loc("a", 10, 5), _loc("b", "50", "5"), _loc("c", -5, 3),
            _loc("d", 19.9, 9.9), _loc("e"),
        ]
        bounds = ViewportBounds(south=0, west=0, north=20, east=10)

        once = filter_visible(entities, bounds)
        twice = filter_visible(once, bounds)
        assert _guids(once) == _guids(twice) == ["a", "d"]

    def test_does_not_modify_input(self):
        entities = [_loc("a", "10", "5")]
        filter_visible(entities, ViewportBounds(south=0, west=0, north=20, east=10))
        assert entities[0].location.lat == "10"

    def test_accepts_generator(self):
        entities = (_loc(str(i), i, i) for i in range(3))
        assert _guids(filter_visible(entities)) == ["0", "1", "2"]
