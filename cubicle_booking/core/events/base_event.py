"""
Change events published when rows are committed to the store.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4


class ChangeType(str, Enum):
    """Kinds of row change carried by the change feed."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ALL = "*"


class ChangeEvent:
    """A committed change to a single row of a table."""

    def __init__(
        self,
        table: str,
        change_type: ChangeType,
        record: Optional[Dict[str, Any]] = None,
    ):
        self.event_id = str(uuid4())
        self.table = table
        self.change_type = change_type
        self.record = record or {}
        self.timestamp = datetime.now(timezone.utc)

    def __str__(self) -> str:
        return f"{self.table}.{self.change_type.value}({self.event_id})"
