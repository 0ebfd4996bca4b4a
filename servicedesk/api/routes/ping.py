from fastapi import APIRouter

from servicedesk.dependencies.auth import CurrentUser

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Public health check")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/secure", summary="Authenticated health check")
async def secure_ping(user: CurrentUser) -> dict[str, str]:
    return {"status": "ok", "user": user.name}
