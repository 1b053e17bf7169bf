"""
Location Store — per-account document storage for map locations.

Implements the persistence API consumed by the ingestion pipeline:
``write_record(account_id, document) -> WriteResult``, one call per record.

Behavioral Contract:
- Documents are stored as ``{"id": guid, "document": location}`` per account
- Writing an existing guid replaces the stored document
- A document must satisfy the full location schema (guid, map and location
  required); failures come back as ``WriteResult.error``, never raised
"""

import json
import sqlite3
from datetime import datetime
from typing import List, Optional

from pydantic import ValidationError

from geoops_core.ingestion.schema import MAP_LOCATION_JSON_SCHEMA, LocationSchema
from geoops_core.models.ingestion import StoredDocument, WriteError, WriteResult
from geoops_core.models.location import GeoEntity


class LocationStore:
    """
    Map location document store.
    Prototype: SQLite. Production: the host platform's account storage.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._schema = LocationSchema(MAP_LOCATION_JSON_SCHEMA)
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the locations table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS map_locations (
                account_id INTEGER NOT NULL,
                id TEXT NOT NULL,
                map_guid TEXT NOT NULL,
                document_json TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (account_id, id)
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_map_locations_map
            ON map_locations(account_id, map_guid)
        """)
        self._conn.commit()

    async def write_record(self, account_id: int, document: dict) -> WriteResult:
        """Insert or replace one location document."""
        check = self._schema.check(document)
        if not check.valid:
            return WriteResult(
                data=None,
                error=WriteError(
                    message="Location failed schema validation",
                    detail={"errors": check.errors},
                ),
            )

        try:
            location = GeoEntity.model_validate(document)
        except ValidationError as e:
            return WriteResult(
                data=None,
                error=WriteError(message=f"Invalid location: {e.error_count()} errors"),
            )

        try:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO map_locations (
                    account_id, id, map_guid, document_json, updated_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    account_id,
                    location.guid,
                    location.map,
                    json.dumps(location.to_document()),
                    datetime.utcnow().isoformat(),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            return WriteResult(data=None, error=WriteError(message=str(e)))

        return WriteResult(data=location, error=None)

    def get_record(self, account_id: int, guid: str) -> Optional[GeoEntity]:
        row = self._conn.execute(
            "SELECT document_json FROM map_locations WHERE account_id = ? AND id = ?",
            (account_id, guid),
        ).fetchone()
        if row is None:
            return None
        return GeoEntity.model_validate(json.loads(row["document_json"]))

    def list_records(
        self, account_id: int, map_guid: Optional[str] = None
    ) -> List[StoredDocument]:
        """All stored locations for an account, optionally for one map."""
        if map_guid is None:
            rows = self._conn.execute(
                "SELECT id, document_json FROM map_locations "
                "WHERE account_id = ? ORDER BY updated_at, id",
                (account_id,),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT id, document_json FROM map_locations "
                "WHERE account_id = ? AND map_guid = ? ORDER BY updated_at, id",
                (account_id, map_guid),
            ).fetchall()
        return [
            StoredDocument(
                id=row["id"],
                document=GeoEntity.model_validate(json.loads(row["document_json"])),
            )
            for row in rows
        ]

    def delete_record(self, account_id: int, guid: str) -> bool:
        cursor = self._conn.execute(
            "DELETE FROM map_locations WHERE account_id = ? AND id = ?",
            (account_id, guid),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    def count(self, account_id: Optional[int] = None) -> int:
        if account_id is None:
            row = self._conn.execute("SELECT COUNT(*) AS n FROM map_locations").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) AS n FROM map_locations WHERE account_id = ?",
                (account_id,),
            ).fetchone()
        return row["n"]
