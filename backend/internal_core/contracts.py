from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

EVENT_COLUMNS: Tuple[str, ...] = (
    "id",
    "player_id",
    "hobbit_name",
    "event_type",
    "event_timestamp",
    "created_at",
)


class EventRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    # Column type varies by deployment; uuid values serialize as strings.
    player_id: Optional[Union[int, UUID, str]] = None
    hobbit_name: Optional[str] = None
    event_type: Optional[str] = None
    event_timestamp: Optional[datetime] = None
    created_at: Optional[datetime] = None


class EventPatch(BaseModel):
    """Partial update of the operator-editable columns.

    A field counts as supplied when it is present in the request body, even
    when its value is null; absent fields keep their stored value.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    hobbit_name: Optional[str] = Field(default=None, alias="hobbitName")
    event_type: Optional[str] = Field(default=None, alias="eventType")

    def assignments(self) -> List[Tuple[str, Optional[str]]]:
        """Supplied (column, value) pairs in fixed column order."""
        supplied = self.model_fields_set
        return [
            (column, getattr(self, column))
            for column in ("hobbit_name", "event_type")
            if column in supplied
        ]

    def is_empty(self) -> bool:
        return not self.assignments()


class ErrorBody(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"


def event_updated_payload(record: EventRecord) -> Dict[str, Any]:
    return {
        "type": "event_updated",
        "event": record.model_dump(mode="json", include=set(EVENT_COLUMNS)),
    }


def event_deleted_payload(event_id: int) -> Dict[str, Any]:
    return {"type": "event_deleted", "id": event_id}
