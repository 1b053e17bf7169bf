"""Ingestion records — per-file parse/validation outcomes and per-record write outcomes."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from geoops_core.models.location import GeoEntity


class IngestionErrorKind(str, Enum):
    PARSE = "parse"      # Not JSON, or no usable items array
    SCHEMA = "schema"    # First record failed the relaxed location schema


class IngestionError(BaseModel):
    kind: IngestionErrorKind
    message: str
    detail: List[dict] = []          # Schema violations, verbatim for display


class IngestionRecord(BaseModel):
    """Outcome of reading one uploaded file. Files are accepted or rejected whole."""

    source: Optional[str] = None     # File name, when known
    success: bool
    result: List[dict] = []
    error: Optional[IngestionError] = None


class IngestionPreview(BaseModel):
    """What the user reviews before confirming the save."""

    file_data: List[GeoEntity] = []
    file_errors: List[IngestionRecord] = []


class SchemaCheck(BaseModel):
    valid: bool
    errors: List[dict] = []


class WriteError(BaseModel):
    message: str
    detail: dict = {}


class WriteResult(BaseModel):
    """Outcome of persisting one location."""

    data: Optional[GeoEntity] = None
    error: Optional[WriteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class StoredDocument(BaseModel):
    """Storage wrapper: ``{"id": guid, "document": location}``."""

    id: str
    document: GeoEntity
