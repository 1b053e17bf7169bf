"""
Write Result Ledger — success/error partition of persisted locations.

Each location guid lives in at most one partition. A later outcome for the
same guid replaces the earlier one in place, moving it across partitions if
the outcome changed. Updates are synchronous, so concurrently resolving
writes on one event loop cannot interleave inside an update.
"""

from typing import Dict, List

from geoops_core.models.ingestion import StoredDocument, WriteError, WriteResult
from geoops_core.models.location import GeoEntity

SUCCESSES = "successes"
ERRORS = "errors"


class WriteResultLedger:
    """Outcomes of one save, keyed by location guid."""

    def __init__(self):
        self.successes: List[StoredDocument] = []
        self.errors: List[StoredDocument] = []
        self.write_errors: Dict[str, WriteError] = {}

    def add_or_update(self, collection_name: str, item: GeoEntity) -> None:
        """Replace the entry with the same guid, or append a new one."""
        collection = getattr(self, collection_name)
        document = StoredDocument(id=item.guid, document=item)

        index = next(
            (i for i, d in enumerate(collection) if d.document.guid == item.guid),
            -1,
        )
        updated = list(collection)
        if index >= 0:
            updated[index] = document
        else:
            updated.append(document)
        setattr(self, collection_name, updated)

    def remove(self, collection_name: str, guid: str) -> None:
        collection = getattr(self, collection_name)
        setattr(
            self,
            collection_name,
            [d for d in collection if d.document.guid != guid],
        )

    def record(self, result: WriteResult) -> None:
        """Fold one write outcome into the partition it belongs to."""
        if result.data is None:
            raise ValueError("Write result carries no location to record")

        guid = result.data.guid
        if result.error is not None:
            self.remove(SUCCESSES, guid)
            self.add_or_update(ERRORS, result.data)
            self.write_errors[guid] = result.error
        else:
            self.remove(ERRORS, guid)
            self.add_or_update(SUCCESSES, result.data)
            self.write_errors.pop(guid, None)

    def summary(self) -> dict:
        return {
            "success_count": len(self.successes),
            "error_count": len(self.errors),
            "successes": [d.model_dump(mode="json", by_alias=True) for d in self.successes],
            "errors": [
                {
                    **d.model_dump(mode="json", by_alias=True),
                    "error": (
                        self.write_errors[d.id].model_dump(mode="json")
                        if d.id in self.write_errors
                        else None
                    ),
                }
                for d in self.errors
            ],
        }
