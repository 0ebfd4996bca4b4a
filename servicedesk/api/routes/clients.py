from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from servicedesk.api.schemas import CamelModel
from servicedesk.catalog.models import Client
from servicedesk.dependencies.auth import AdminUser, CurrentUser
from servicedesk.dependencies.services import ClientServiceDep

router = APIRouter(prefix="/api/clients", tags=["clients"])


class ClientCreateRequest(BaseModel):
    name: str | None = None
    cnpj: str | None = None


class ClientUpdateRequest(ClientCreateRequest):
    active: bool | None = None


class ClientResponse(CamelModel):
    id: str
    name: str
    cnpj: str
    cnpj_digits: str
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, client: Client) -> "ClientResponse":
        return cls(
            id=client.id,
            name=client.name,
            cnpj=client.cnpj,
            cnpj_digits=client.cnpj_digits,
            active=client.active,
            created_at=client.created_at,
            updated_at=client.updated_at,
        )


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    service: ClientServiceDep,
    user: CurrentUser,
    active: str | None = Query(default=None),
) -> list[ClientResponse]:
    clients = await service.list_items(role=user.role, active_only=active == "1")
    return [ClientResponse.from_entity(client) for client in clients]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(payload: ClientCreateRequest, service: ClientServiceDep, _: AdminUser) -> ClientResponse:
    return ClientResponse.from_entity(await service.create(payload.model_dump(exclude_none=True)))


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    payload: ClientUpdateRequest,
    service: ClientServiceDep,
    _: AdminUser,
) -> ClientResponse:
    return ClientResponse.from_entity(await service.update(client_id, payload.model_dump(exclude_none=True)))


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: str, service: ClientServiceDep, _: AdminUser) -> None:
    await service.delete(client_id)
