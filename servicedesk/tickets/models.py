from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# Keys of a stored ticket record that belong to the ticket itself
RECORD_FIELDS = frozenset(
    {
        "id",
        "title",
        "client",
        "category",
        "description",
        "priority",
        "requester",
        "status",
        "createdAt",
        "createdBy",
        "updatedAt",
        "assignedAnalyst",
        "interactions",
        "attachments",
    }
)
_FOLDED_RECORD_FIELDS = frozenset(key.lower() for key in RECORD_FIELDS)


def is_ticket_field(key: str) -> bool:
    """Whether ``key`` names a ticket attribute in any spelling (``created_by``, ``createdBy``, ...)."""

    return key.replace("_", "").lower() in _FOLDED_RECORD_FIELDS


class TicketStatus(str, Enum):
    """Lifecycle states shown to analysts."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    WAITING = "Waiting"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


@dataclass(frozen=True, slots=True)
class Interaction:
    """Message appended to a ticket."""

    timestamp: datetime
    author: str
    role: str
    message: str


@dataclass(frozen=True, slots=True)
class Attachment:
    original_name: str
    stored_name: str
    path: str
    uploaded_at: datetime
    uploaded_by: str


@dataclass(slots=True)
class Ticket:
    """Support request ("chamado") with its interactions and attachments.

    ``extra`` keeps fields written by administrators that have no dedicated
    attribute, so they survive a load/save cycle.
    """

    id: str
    title: str
    client: str
    category: str
    description: str
    priority: str
    requester: str
    status: str
    created_at: datetime
    created_by: str
    updated_at: datetime | None = None
    assigned_analyst: str | None = None
    interactions: list[Interaction] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def find_attachment(self, stored_name: str) -> Attachment | None:
        for attachment in self.attachments:
            if attachment.stored_name == stored_name:
                return attachment
        return None
