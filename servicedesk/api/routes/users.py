from __future__ import annotations

from fastapi import APIRouter, status
from pydantic import BaseModel

from servicedesk.api.schemas import UserResponse
from servicedesk.dependencies.auth import AdminUser, ClientContext
from servicedesk.dependencies.services import UserServiceDep

router = APIRouter(prefix="/api/users", tags=["users"])


class UserCreateRequest(BaseModel):
    name: str | None = None
    login: str | None = None
    password: str | None = None
    role: str | None = None


class PasswordChangeRequest(BaseModel):
    password: str | None = None


class RoleChangeRequest(BaseModel):
    role: str | None = None


class ActiveChangeRequest(BaseModel):
    active: bool


@router.get("", response_model=list[UserResponse])
async def list_users(service: UserServiceDep, _: AdminUser) -> list[UserResponse]:
    return [UserResponse.from_entity(user) for user in await service.list_users()]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreateRequest, service: UserServiceDep, _: AdminUser) -> UserResponse:
    user = await service.create_user(
        name=payload.name or "",
        login=payload.login or "",
        password=payload.password or "",
        role=payload.role or "",
    )
    return UserResponse.from_entity(user)


@router.put("/{user_id}/password", response_model=UserResponse)
async def change_password(
    user_id: str,
    payload: PasswordChangeRequest,
    service: UserServiceDep,
    _: AdminUser,
) -> UserResponse:
    return UserResponse.from_entity(await service.change_password(user_id, payload.password or ""))


@router.put("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: str,
    payload: RoleChangeRequest,
    service: UserServiceDep,
    user: AdminUser,
) -> UserResponse:
    return UserResponse.from_entity(await service.change_role(user_id, payload.role or "", actor=user))


@router.put("/{user_id}/active", response_model=UserResponse)
async def set_active(
    user_id: str,
    payload: ActiveChangeRequest,
    service: UserServiceDep,
    user: AdminUser,
) -> UserResponse:
    return UserResponse.from_entity(await service.set_active(user_id, payload.active, actor=user))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, service: UserServiceDep, user: AdminUser) -> None:
    await service.delete_user(user_id, actor=user)


@router.post("/{user_id}/unlock", response_model=UserResponse)
async def unlock_user(
    user_id: str,
    service: UserServiceDep,
    user: AdminUser,
    context: ClientContext,
) -> UserResponse:
    return UserResponse.from_entity(await service.unlock_user(user_id, actor=user, context=context))
