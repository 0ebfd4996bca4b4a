from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, File, Form, UploadFile, status
from pydantic import BaseModel, ConfigDict

from servicedesk.api.schemas import CamelModel
from servicedesk.dependencies.auth import CurrentUser
from servicedesk.dependencies.services import TicketServiceDep
from servicedesk.tickets.attachments import IncomingFile
from servicedesk.tickets.models import Attachment, Interaction, Ticket, is_ticket_field

router = APIRouter(prefix="/api/tickets", tags=["tickets"])

FormField = Annotated[str | None, Form()]
UploadedFiles = Annotated[list[UploadFile] | None, File()]


class InteractionResponse(CamelModel):
    timestamp: datetime
    author: str
    role: str
    message: str

    @classmethod
    def from_entity(cls, interaction: Interaction) -> "InteractionResponse":
        return cls(
            timestamp=interaction.timestamp,
            author=interaction.author,
            role=interaction.role,
            message=interaction.message,
        )


class AttachmentResponse(CamelModel):
    original_name: str
    stored_name: str
    path: str
    uploaded_at: datetime
    uploaded_by: str

    @classmethod
    def from_entity(cls, attachment: Attachment) -> "AttachmentResponse":
        return cls(
            original_name=attachment.original_name,
            stored_name=attachment.stored_name,
            path=attachment.path,
            uploaded_at=attachment.uploaded_at,
            uploaded_by=attachment.uploaded_by,
        )


class TicketResponse(CamelModel):
    """Ticket as stored, including any extra fields set by administrators."""

    model_config = ConfigDict(extra="allow")

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
    interactions: list[InteractionResponse]
    attachments: list[AttachmentResponse]

    @classmethod
    def from_entity(cls, ticket: Ticket) -> "TicketResponse":
        extras = {key: value for key, value in ticket.extra.items() if not is_ticket_field(key)}
        return cls(
            **extras,
            id=ticket.id,
            title=ticket.title,
            client=ticket.client,
            category=ticket.category,
            description=ticket.description,
            priority=ticket.priority,
            requester=ticket.requester,
            status=ticket.status,
            created_at=ticket.created_at,
            created_by=ticket.created_by,
            updated_at=ticket.updated_at,
            assigned_analyst=ticket.assigned_analyst,
            interactions=[InteractionResponse.from_entity(item) for item in ticket.interactions],
            attachments=[AttachmentResponse.from_entity(item) for item in ticket.attachments],
        )


class InteractionRequest(BaseModel):
    message: str | None = None


class AssignRequest(BaseModel):
    analyst: str | None = None


async def _read_uploads(files: list[UploadFile] | None, max_bytes: int) -> list[IncomingFile]:
    """Read each upload, stopping one byte past ``max_bytes`` so oversized files still fail validation."""

    incoming: list[IncomingFile] = []
    for upload in files or []:
        # browsers send an empty part when no file was picked
        if not upload.filename:
            continue
        try:
            data = await upload.read(max_bytes + 1)
        finally:
            await upload.close()
        incoming.append(IncomingFile(filename=upload.filename, content_type=upload.content_type, data=data))
    return incoming


@router.get("", response_model=list[TicketResponse])
async def list_tickets(service: TicketServiceDep, _: CurrentUser) -> list[TicketResponse]:
    return [TicketResponse.from_entity(ticket) for ticket in await service.list_tickets()]


@router.get("/mine", response_model=list[TicketResponse])
async def list_my_tickets(service: TicketServiceDep, user: CurrentUser) -> list[TicketResponse]:
    return [TicketResponse.from_entity(ticket) for ticket in await service.list_created_by(user.name)]


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: str, service: TicketServiceDep, _: CurrentUser) -> TicketResponse:
    return TicketResponse.from_entity(await service.get_ticket(ticket_id))


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    service: TicketServiceDep,
    user: CurrentUser,
    title: FormField = None,
    client: FormField = None,
    category: FormField = None,
    description: FormField = None,
    priority: FormField = None,
    requester: FormField = None,
    attachments: UploadedFiles = None,
) -> TicketResponse:
    ticket = await service.create_ticket(
        fields={
            "title": title,
            "client": client,
            "category": category,
            "description": description,
            "priority": priority,
            "requester": requester,
        },
        files=await _read_uploads(attachments, service.max_upload_bytes),
        actor=user,
    )
    return TicketResponse.from_entity(ticket)


@router.patch("/{ticket_id}", response_model=TicketResponse)
@router.put("/{ticket_id}", response_model=TicketResponse, include_in_schema=False)
async def update_ticket(
    ticket_id: str,
    service: TicketServiceDep,
    user: CurrentUser,
    payload: Annotated[dict[str, Any], Body()],
) -> TicketResponse:
    return TicketResponse.from_entity(await service.update_ticket(ticket_id, payload, actor=user))


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(ticket_id: str, service: TicketServiceDep, user: CurrentUser) -> None:
    await service.delete_ticket(ticket_id, actor=user)


@router.post("/{ticket_id}/attachments", response_model=TicketResponse)
async def add_attachments(
    ticket_id: str,
    service: TicketServiceDep,
    user: CurrentUser,
    attachments: UploadedFiles = None,
) -> TicketResponse:
    ticket = await service.add_attachments(
        ticket_id, await _read_uploads(attachments, service.max_upload_bytes), actor=user
    )
    return TicketResponse.from_entity(ticket)


@router.delete("/{ticket_id}/attachments/{stored_name}", response_model=TicketResponse)
async def remove_attachment(
    ticket_id: str,
    stored_name: str,
    service: TicketServiceDep,
    user: CurrentUser,
) -> TicketResponse:
    return TicketResponse.from_entity(await service.remove_attachment(ticket_id, stored_name, actor=user))


@router.post("/{ticket_id}/interactions", response_model=TicketResponse)
async def add_interaction(
    ticket_id: str,
    payload: InteractionRequest,
    service: TicketServiceDep,
    user: CurrentUser,
) -> TicketResponse:
    ticket = await service.add_interaction(ticket_id, payload.message or "", actor=user)
    return TicketResponse.from_entity(ticket)


@router.post("/{ticket_id}/assign", response_model=TicketResponse)
async def assign_ticket(
    ticket_id: str,
    service: TicketServiceDep,
    user: CurrentUser,
    payload: AssignRequest | None = None,
) -> TicketResponse:
    analyst = payload.analyst if payload is not None else None
    return TicketResponse.from_entity(await service.assign(ticket_id, analyst, actor=user))
