"""Role-specific ticket patch schemas.

Analysts may only move a ticket's status and priority; anything else they send
is dropped. Administrators may change every field except the ones that describe
the ticket's identity and history, and may add fields of their own.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from servicedesk.core.errors import ValidationError
from servicedesk.users.models import Role

from .models import TicketStatus, is_ticket_field

PROTECTED_FIELDS = frozenset({"id", "interactions", "attachments", "createdAt", "createdBy", "updatedAt"})


class _PatchBase(BaseModel):
    status: TicketStatus | None = None
    priority: str | None = Field(default=None, min_length=1)

    def changes(self) -> dict[str, Any]:
        """Fields present in the request, keyed by their stored (camelCase) name."""

        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    @field_validator("status", "priority", mode="before")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value


class AnalystPatch(_PatchBase):
    model_config = ConfigDict(extra="ignore")


class AdminPatch(_PatchBase):
    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)

    title: str | None = Field(default=None, min_length=1)
    client: str | None = None
    category: str | None = None
    description: str | None = None
    requester: str | None = None
    assigned_analyst: str | None = None

    @field_validator("title", "client", "category", "description", "requester", mode="before")
    @classmethod
    def _required_text(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("must not be blank")
        return value

    def changes(self) -> dict[str, Any]:
        values = super().changes()
        # extra keys that spell a ticket attribute (created_by, CREATEDAT) are not custom fields
        extras = set(self.model_extra or ())
        return {
            key: value
            for key, value in values.items()
            if key not in PROTECTED_FIELDS and not (key in extras and is_ticket_field(key))
        }


TicketPatch = Union[AdminPatch, AnalystPatch]


def parse_patch(role: Role, payload: dict[str, Any]) -> TicketPatch:
    """Validate ``payload`` against the schema the caller's role allows."""

    schema = AdminPatch if role == Role.ADMIN else AnalystPatch
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
        raise ValidationError(f"Invalid ticket update: {fields}") from exc
