from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from servicedesk.api.schemas import CamelModel
from servicedesk.catalog.models import Category
from servicedesk.dependencies.auth import AdminUser, CurrentUser
from servicedesk.dependencies.services import CategoryServiceDep

router = APIRouter(prefix="/api/categories", tags=["categories"])


class CategoryCreateRequest(BaseModel):
    group: str | None = None
    name: str | None = None


class CategoryUpdateRequest(CategoryCreateRequest):
    active: bool | None = None


class CategoryResponse(CamelModel):
    id: str
    group: str
    name: str
    key: str
    active: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            group=category.group,
            name=category.name,
            key=category.key,
            active=category.active,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    service: CategoryServiceDep,
    user: CurrentUser,
    active: str | None = Query(default=None),
) -> list[CategoryResponse]:
    categories = await service.list_items(role=user.role, active_only=active == "1")
    return [CategoryResponse.from_entity(category) for category in categories]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreateRequest,
    service: CategoryServiceDep,
    _: AdminUser,
) -> CategoryResponse:
    return CategoryResponse.from_entity(await service.create(payload.model_dump(exclude_none=True)))


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    payload: CategoryUpdateRequest,
    service: CategoryServiceDep,
    _: AdminUser,
) -> CategoryResponse:
    return CategoryResponse.from_entity(await service.update(category_id, payload.model_dump(exclude_none=True)))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: str, service: CategoryServiceDep, _: AdminUser) -> None:
    await service.delete(category_id)
