"""Identity assignment for uploaded locations."""

from uuid import uuid4


def assign_identity(record: dict) -> dict:
    """Give ``record`` a random guid unless it already carries one."""
    if record.get("guid"):
        return record
    record["guid"] = str(uuid4())
    return record
