from __future__ import annotations

from typing import Any

from servicedesk.core.clock import from_iso, to_iso, utc_now
from servicedesk.storage import JsonRepository

from .models import Attachment, Interaction, Ticket, is_ticket_field


def interaction_to_record(interaction: Interaction) -> dict[str, Any]:
    return {
        "timestamp": to_iso(interaction.timestamp),
        "author": interaction.author,
        "role": interaction.role,
        "message": interaction.message,
    }


def attachment_to_record(attachment: Attachment) -> dict[str, Any]:
    return {
        "originalName": attachment.original_name,
        "storedName": attachment.stored_name,
        "path": attachment.path,
        "uploadedAt": to_iso(attachment.uploaded_at),
        "uploadedBy": attachment.uploaded_by,
    }


class TicketRepository(JsonRepository[Ticket]):
    @staticmethod
    def _to_record(entity: Ticket) -> dict[str, Any]:
        record: dict[str, Any] = dict(entity.extra)
        record.update(
            {
                "id": entity.id,
                "title": entity.title,
                "client": entity.client,
                "category": entity.category,
                "description": entity.description,
                "priority": entity.priority,
                "requester": entity.requester,
                "status": entity.status,
                "createdAt": to_iso(entity.created_at),
                "createdBy": entity.created_by,
                "updatedAt": to_iso(entity.updated_at),
                "assignedAnalyst": entity.assigned_analyst,
                "interactions": [interaction_to_record(item) for item in entity.interactions],
                "attachments": [attachment_to_record(item) for item in entity.attachments],
            }
        )
        return record

    @staticmethod
    def _from_record(record: dict[str, Any]) -> Ticket:
        # Keys spelling a ticket attribute in another casing are dropped, not kept as extras.
        # Records written before interactions/attachments existed lack those lists.
        interactions = [
            Interaction(
                timestamp=from_iso(item.get("timestamp")) or utc_now(),
                author=str(item.get("author") or ""),
                role=str(item.get("role") or ""),
                message=str(item.get("message") or ""),
            )
            for item in record.get("interactions") or []
        ]
        attachments = [
            Attachment(
                original_name=str(item.get("originalName") or ""),
                stored_name=str(item.get("storedName") or ""),
                path=str(item.get("path") or ""),
                uploaded_at=from_iso(item.get("uploadedAt")) or utc_now(),
                uploaded_by=str(item.get("uploadedBy") or ""),
            )
            for item in record.get("attachments") or []
        ]
        return Ticket(
            id=str(record["id"]),
            title=str(record.get("title") or ""),
            client=str(record.get("client") or ""),
            category=str(record.get("category") or ""),
            description=str(record.get("description") or ""),
            priority=str(record.get("priority") or ""),
            requester=str(record.get("requester") or ""),
            status=str(record.get("status") or ""),
            created_at=from_iso(record.get("createdAt")) or utc_now(),
            created_by=str(record.get("createdBy") or ""),
            updated_at=from_iso(record.get("updatedAt")),
            assigned_analyst=record.get("assignedAnalyst"),
            interactions=interactions,
            attachments=attachments,
            extra={key: value for key, value in record.items() if not is_ticket_field(key)},
        )
