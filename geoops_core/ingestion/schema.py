"""
Location schema — JSON Schema for stored map locations and the relaxed
variant used when checking uploaded files.

At upload time a record has no owning map yet and may not have a guid, so
the relaxed schema drops the ``map`` and ``location`` properties and the
``guid``/``map``/``location`` requirements.
"""

import copy
from typing import Any, Optional

from jsonschema import Draft7Validator

from geoops_core.models.ingestion import SchemaCheck

MAP_LOCATION_JSON_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "MapLocation",
    "type": "object",
    "required": ["guid", "title", "externalId", "map", "location"],
    "properties": {
        "guid": {"type": "string"},
        "title": {"type": "string"},
        "externalId": {"type": ["string", "number"]},
        "map": {"type": "string"},
        "query": {"type": "string"},
        "location": {
            "type": "object",
            "required": ["lat", "lng"],
            "properties": {
                "lat": {"type": ["number", "string"]},
                "lng": {"type": ["number", "string"]},
                "description": {"type": "string"},
                "municipality": {"type": "string"},
                "region": {"type": "string"},
                "country": {"type": "string"},
                "postalCode": {"type": ["string", "number"]},
            },
        },
        "entities": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["guid"],
                "properties": {
                    "guid": {"type": "string"},
                    "name": {"type": "string"},
                    "type": {"type": "string"},
                    "alertSeverity": {"type": "string"},
                },
            },
        },
    },
}

_DEFERRED_PROPERTIES = ("map", "location")
_DEFERRED_REQUIRED = ("guid", "map", "location")


def relaxed_location_schema(schema: Optional[dict] = None) -> dict:
    """Copy ``schema`` without the fields that are only known after upload."""
    relaxed = copy.deepcopy(schema if schema is not None else MAP_LOCATION_JSON_SCHEMA)
    relaxed["required"] = [
        r for r in relaxed.get("required", []) if r not in _DEFERRED_REQUIRED
    ]
    properties = relaxed.get("properties", {})
    for name in _DEFERRED_PROPERTIES:
        properties.pop(name, None)
    return relaxed


def _describe(error) -> dict:
    return {
        "message": error.message,
        "path": list(error.absolute_path),
        "validator": error.validator,
        "schema_path": list(error.absolute_schema_path),
    }


class LocationSchema:
    """Compiled validator for one schema."""

    def __init__(self, schema: dict):
        Draft7Validator.check_schema(schema)
        self.schema = schema
        self.validator = Draft7Validator(schema)

    @classmethod
    def for_upload(cls) -> "LocationSchema":
        return cls(relaxed_location_schema())

    def check(self, record: Any) -> SchemaCheck:
        errors = sorted(
            self.validator.iter_errors(record),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        if not errors:
            return SchemaCheck(valid=True)
        return SchemaCheck(valid=False, errors=[_describe(e) for e in errors])


def validate_record(schema: dict, record: Any) -> SchemaCheck:
    """Validate one record against ``schema``."""
    return LocationSchema(schema).check(record)
