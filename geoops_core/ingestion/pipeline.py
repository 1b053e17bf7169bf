"""
Ingestion Pipeline — turns uploaded location files into saved map locations.

Two phases:
  Read:    every file is read and checked concurrently. A file is accepted
           whole or rejected whole; accepted records get a guid if missing.
  Persist: on user confirmation, every accepted record is written on its
           own. One failed write never blocks or undoes another.

Behavioral Contract:
- Parse, schema and write failures are reported as data, never raised
- Only the first record of each file is checked against the relaxed schema
- A record that reaches persistence without a guid or map raises ContractError
- Concurrent tasks are joined with an all-settled barrier
"""

import asyncio
import json
import logging
from typing import Iterable, List, Optional, Protocol, Sequence, Union

from pydantic import ValidationError

from geoops_core.ingestion.identity import assign_identity
from geoops_core.ingestion.results import WriteResultLedger
from geoops_core.ingestion.schema import LocationSchema
from geoops_core.models.config import GeoOpsConfig
from geoops_core.models.ingestion import (
    IngestionError,
    IngestionErrorKind,
    IngestionPreview,
    IngestionRecord,
    WriteError,
    WriteResult,
)
from geoops_core.models.location import GeoEntity

logger = logging.getLogger(__name__)


class ContractError(Exception):
    """Raised when a location reaches persistence without a guid or map."""
    pass


class FileRejected(Exception):
    """A whole file was refused during the read phase."""

    kind = IngestionErrorKind.PARSE

    def __init__(self, message: str, detail: Optional[List[dict]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or []

    def to_record(self, source: Optional[str]) -> IngestionRecord:
        return IngestionRecord(
            source=source,
            success=False,
            result=[],
            error=IngestionError(
                kind=self.kind, message=self.message, detail=self.detail
            ),
        )


class FileParseError(FileRejected):
    kind = IngestionErrorKind.PARSE


class FileSchemaError(FileRejected):
    kind = IngestionErrorKind.SCHEMA


class FileSource(Protocol):
    """Anything with an async ``read()``; FastAPI's UploadFile qualifies."""

    async def read(self) -> Union[bytes, str]:
        ...


class LocationWriter(Protocol):
    async def write_record(self, account_id: int, document: dict) -> WriteResult:
        ...


class InMemoryFile:
    """A named in-memory file."""

    def __init__(self, name: str, content: Union[bytes, str]):
        self.name = name
        self.content = content

    async def read(self) -> Union[bytes, str]:
        return self.content


def source_name(file: FileSource) -> Optional[str]:
    return getattr(file, "filename", None) or getattr(file, "name", None)


class IngestionPipeline:
    """Reads, checks, identifies and persists uploaded map locations."""

    def __init__(
        self,
        writer: Optional[LocationWriter] = None,
        config: Optional[GeoOpsConfig] = None,
        schema: Optional[LocationSchema] = None,
    ):
        self.writer = writer
        self.config = config or GeoOpsConfig()
        self.schema = schema or LocationSchema.for_upload()

    # --- Read phase ---

    async def ingest(self, files: Sequence[FileSource]) -> IngestionPreview:
        """Read every file and split them into accepted data and errors."""
        outcomes = await asyncio.gather(
            *(self._load_file(f) for f in files),
            return_exceptions=True,
        )

        accepted: List[IngestionRecord] = []
        file_errors: List[IngestionRecord] = []

        for file, outcome in zip(files, outcomes):
            name = source_name(file)
            if isinstance(outcome, IngestionRecord):
                accepted.append(outcome)
            elif isinstance(outcome, FileRejected):
                logger.warning("Rejected %s: %s", name, outcome.message)
                file_errors.append(outcome.to_record(name))
            elif isinstance(outcome, Exception):
                logger.warning("Could not read %s", name, exc_info=outcome)
                file_errors.append(
                    FileParseError(f"Failed to read file: {outcome}").to_record(name)
                )
            else:
                raise outcome

        file_data: List[GeoEntity] = []
        for record in accepted:
            try:
                file_data.extend(self._identify(record.result))
            except ValidationError as e:
                logger.warning("Rejected %s: %s", record.source, e)
                file_errors.append(
                    FileSchemaError(
                        "Records could not be read as map locations",
                        detail=[
                            {"message": err["msg"], "path": list(err["loc"]), "type": err["type"]}
                            for err in e.errors()
                        ],
                    ).to_record(record.source)
                )

        logger.info(
            "Read %d files: %d locations accepted, %d files rejected",
            len(files), len(file_data), len(file_errors),
        )
        return IngestionPreview(file_data=file_data, file_errors=file_errors)

    async def _load_file(self, file: FileSource) -> IngestionRecord:
        raw = await file.read()
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise FileParseError(f"File is not UTF-8 text: {e}") from e

        try:
            body = json.loads(raw) if raw else None
        except json.JSONDecodeError as e:
            raise FileParseError(
                "Failed to parse file as JSON",
                detail=[{"message": e.msg, "line": e.lineno, "column": e.colno}],
            ) from e

        items_path = self.config.items_path
        items = body.get(items_path) if isinstance(body, dict) else None
        if not isinstance(items, list) or not items:
            raise FileParseError(
                f"No location records found under '{items_path}'"
            )
        if not all(isinstance(item, dict) for item in items):
            raise FileParseError(
                f"Every entry under '{items_path}' must be an object"
            )

        # Only the first record is checked against the schema.
        check = self.schema.check(items[0])
        if not check.valid:
            raise FileSchemaError(
                "First location failed schema validation", detail=check.errors
            )

        return IngestionRecord(
            source=source_name(file), success=True, result=items, error=None
        )

    def _identify(self, items: Iterable[dict]) -> List[GeoEntity]:
        return [GeoEntity.model_validate(assign_identity(dict(i))) for i in items]

    # --- Persist phase ---

    async def persist(
        self,
        account_id: int,
        map_guid: str,
        records: Sequence[GeoEntity],
        ledger: Optional[WriteResultLedger] = None,
    ) -> WriteResultLedger:
        """
        Save every record for ``map_guid`` and partition the outcomes.

        Raises ContractError before any write if a record lacks a guid or map.
        """
        if self.writer is None:
            raise RuntimeError("No location writer configured")

        ledger = ledger if ledger is not None else WriteResultLedger()
        documents = [r.model_copy(update={"map": map_guid}) for r in records]
        for document in documents:
            self._check_contract(document)

        logger.info(
            "Saving %d locations to map %s for account %s",
            len(documents), map_guid, account_id,
        )
        outcomes = await asyncio.gather(
            *(self._write_and_record(account_id, d, ledger) for d in documents),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        logger.info(
            "Saved map %s: %d succeeded, %d failed",
            map_guid, len(ledger.successes), len(ledger.errors),
        )
        return ledger

    def _check_contract(self, document: GeoEntity) -> None:
        if not document.guid or not document.map:
            raise ContractError(
                f"Location {document.guid!r} is missing its guid or map guid"
            )

    async def _write_and_record(
        self, account_id: int, document: GeoEntity, ledger: WriteResultLedger
    ) -> None:
        result = await self._write_one(account_id, document)
        ledger.record(result)

    async def _write_one(self, account_id: int, document: GeoEntity) -> WriteResult:
        try:
            result = await self.writer.write_record(account_id, document.to_document())
        except Exception as e:
            logger.warning("Write failed for %s: %s", document.guid, e)
            return WriteResult(data=document, error=WriteError(message=str(e)))

        if result.data is None:
            result = result.model_copy(update={"data": document})
        if result.error is not None:
            logger.warning(
                "Write failed for %s: %s", document.guid, result.error.message
            )
        return result
