from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from servicedesk.api.schemas import CamelModel
from servicedesk.catalog.models import Group
from servicedesk.dependencies.auth import AdminUser, CurrentUser
from servicedesk.dependencies.services import GroupServiceDep

router = APIRouter(prefix="/api/groups", tags=["groups"])


class GroupCreateRequest(BaseModel):
    name: str | None = None


class GroupUpdateRequest(GroupCreateRequest):
    active: bool | None = None


class GroupResponse(CamelModel):
    id: str
    name: str
    key: str
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, group: Group) -> "GroupResponse":
        return cls(
            id=group.id,
            name=group.name,
            key=group.key,
            active=group.active,
            created_at=group.created_at,
            updated_at=group.updated_at,
        )


@router.get("", response_model=list[GroupResponse])
async def list_groups(
    service: GroupServiceDep,
    user: CurrentUser,
    active: str | None = Query(default=None),
) -> list[GroupResponse]:
    groups = await service.list_items(role=user.role, active_only=active == "1")
    return [GroupResponse.from_entity(group) for group in groups]


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(payload: GroupCreateRequest, service: GroupServiceDep, _: AdminUser) -> GroupResponse:
    return GroupResponse.from_entity(await service.create(payload.model_dump(exclude_none=True)))


@router.put("/{group_id}", response_model=GroupResponse)
async def update_group(
    group_id: str,
    payload: GroupUpdateRequest,
    service: GroupServiceDep,
    _: AdminUser,
) -> GroupResponse:
    return GroupResponse.from_entity(await service.update(group_id, payload.model_dump(exclude_none=True)))


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(group_id: str, service: GroupServiceDep, _: AdminUser) -> None:
    await service.delete(group_id)
