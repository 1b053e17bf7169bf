"""Tests for core data models."""

import pytest

from geoops_core.models import (
    NOT_CONFIGURED,
    GeoEntity,
    GeoOpsConfig,
    IngestionError,
    IngestionErrorKind,
    IngestionRecord,
    LocationPoint,
    QueryDescriptor,
    StoredDocument,
    TelemetryEntity,
    ViewportBounds,
    WriteError,
    WriteResult,
)


class TestLocationPoint:
    def test_numeric_coordinates(self):
        point = LocationPoint(lat=10, lng=5.5)
        assert point.coordinates() == (10.0, 5.5)

    def test_string_coordinates_are_coerced(self):
        point = LocationPoint(lat="50", lng=" -3.25 ")
        assert point.lat == "50"
        assert point.coordinates() == (50.0, -3.25)

    def test_zero_is_a_valid_coordinate(self):
        assert LocationPoint(lat=0, lng=0).coordinates() == (0.0, 0.0)

    @pytest.mark.parametrize("lat,lng", [
        (None, 5),
        ("abc", 5),
        ("nan", 5),
        (10, "inf"),
        ("", 1),
    ])
    def test_unusable_coordinates(self, lat, lng):
        assert LocationPoint(lat=lat, lng=lng).coordinates() is None


class TestTelemetryEntity:
    def test_severity_defaults_to_not_configured(self):
        entity = TelemetryEntity(guid="e1", name="Checkout", type="WORKLOAD")
        assert entity.alert_severity == NOT_CONFIGURED

    def test_null_severity_defaults(self):
        entity = TelemetryEntity.model_validate({"guid": "e1", "alertSeverity": None})
        assert entity.alert_severity == NOT_CONFIGURED

    def test_alias(self):
        entity = TelemetryEntity.model_validate({"guid": "e1", "alertSeverity": "CRITICAL"})
        assert entity.alert_severity == "CRITICAL"


class TestGeoEntity:
    def test_from_bare_record(self):
        entity = GeoEntity.from_raw({
            "guid": "loc-1",
            "title": "Store 1",
            "externalId": 1001,
            "location": {"lat": "40.7", "lng": "-74.0"},
        })
        assert entity.guid == "loc-1"
        assert entity.external_id == "1001"
        assert entity.coordinates() == (40.7, -74.0)

    def test_from_stored_wrapper(self):
        entity = GeoEntity.from_raw({
            "id": "loc-1",
            "document": {"guid": "loc-1", "title": "Store 1"},
        })
        assert entity.guid == "loc-1"
        assert entity.title == "Store 1"

    def test_from_raw_passthrough(self):
        entity = GeoEntity(guid="a")
        assert GeoEntity.from_raw(entity) is entity

    def test_guid_required(self):
        with pytest.raises(Exception):
            GeoEntity.model_validate({"title": "no guid"})

    def test_loose_scalars_read_as_text(self):
        entity = GeoEntity.model_validate({"guid": 1002, "title": 7, "externalId": 55})
        assert entity.guid == "1002"
        assert entity.title == "7"
        assert entity.external_id == "55"

    def test_null_or_malformed_entities_are_empty(self):
        assert GeoEntity.model_validate({"guid": "a", "entities": None}).entities == []
        assert GeoEntity.model_validate({"guid": "a", "entities": "x"}).entities == []
        entity = GeoEntity.model_validate({"guid": "a", "entities": [{"guid": "e1"}, 3]})
        assert [e.guid for e in entity.entities] == ["e1"]

    def test_non_object_location_is_missing(self):
        assert GeoEntity.model_validate({"guid": "a", "location": "here"}).location is None

    def test_no_location_has_no_coordinates(self):
        assert GeoEntity(guid="a").coordinates() is None

    def test_extra_fields_preserved_in_document(self):
        entity = GeoEntity.model_validate({
            "guid": "a",
            "title": "A",
            "externalId": "ex-1",
            "runbookUrl": "https://example.com/runbook",
            "entities": [{"guid": "e1", "type": "WORKLOAD"}],
        })
        document = entity.to_document()
        assert document["externalId"] == "ex-1"
        assert document["runbookUrl"] == "https://example.com/runbook"
        assert document["entities"][0]["alertSeverity"] == NOT_CONFIGURED
        assert "map" not in document


class TestViewportBounds:
    def test_inclusive_edges(self):
        bounds = ViewportBounds(south=0, west=0, north=20, east=10)
        assert bounds.contains(0, 0)
        assert bounds.contains(20, 10)
        assert not bounds.contains(20.0001, 5)

    def test_inverted_latitudes_rejected(self):
        with pytest.raises(Exception):
            ViewportBounds(south=10, west=0, north=0, east=10)

    def test_antimeridian_wrap(self):
        bounds = ViewportBounds(south=-10, west=170, north=10, east=-170)
        assert bounds.crosses_antimeridian
        assert bounds.contains(0, 175)
        assert bounds.contains(0, -175)
        assert bounds.contains(0, 180)
        assert bounds.contains(0, -170)
        assert not bounds.contains(0, 0)
        assert not bounds.contains(20, 175)


class TestConfig:
    def test_defaults(self):
        config = GeoOpsConfig()
        assert config.query_prefix == "Q"
        assert config.items_path == "items"
        assert config.hover_close_delay_seconds == 0.150
        assert config.discard_stale_query_results is True

    def test_prefix_must_be_alias_safe(self):
        with pytest.raises(Exception):
            GeoOpsConfig(query_prefix="1abc")
        with pytest.raises(Exception):
            GeoOpsConfig(query_prefix="Q-")

    def test_negative_delay_rejected(self):
        with pytest.raises(Exception):
            GeoOpsConfig(hover_close_delay_seconds=-1)


class TestIngestionModels:
    def test_failed_record(self):
        record = IngestionRecord(
            source="bad.json",
            success=False,
            error=IngestionError(kind=IngestionErrorKind.PARSE, message="nope"),
        )
        assert record.result == []
        assert record.model_dump(mode="json")["error"]["kind"] == "parse"

    def test_write_result_ok(self):
        assert WriteResult(data=GeoEntity(guid="a")).ok
        assert not WriteResult(error=WriteError(message="boom")).ok

    def test_stored_document(self):
        doc = StoredDocument(id="a", document=GeoEntity(guid="a"))
        assert doc.model_dump()["document"]["guid"] == "a"

    def test_query_descriptor(self):
        q = QueryDescriptor(key="Qabc", query="SELECT count(*) FROM Transaction")
        assert q.key == "Qabc"
