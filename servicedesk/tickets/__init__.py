"""Ticket domain models and services."""

from .attachments import AttachmentStorage, IncomingFile
from .models import Attachment, Interaction, Ticket, TicketStatus
from .patches import AdminPatch, AnalystPatch
from .repository import TicketRepository
from .service import TicketService

__all__ = [
    "AdminPatch",
    "AnalystPatch",
    "Attachment",
    "AttachmentStorage",
    "IncomingFile",
    "Interaction",
    "Ticket",
    "TicketRepository",
    "TicketService",
    "TicketStatus",
]
