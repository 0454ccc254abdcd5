from fastapi import APIRouter, Depends
from pydantic import BaseModel

from woomanager.container import ServiceContainer, get_container

router = APIRouter(prefix="/sso", tags=["sso"])


class SsoStartRequest(BaseModel):
    store_url: str = ""
    app_user_id: str = ""


class SsoCallbackRequest(BaseModel):
    """Body WooCommerce posts to the callback URL once keys are issued."""

    key_id: int | str | None = None
    user_id: str | None = None
    consumer_key: str | None = None
    consumer_secret: str | None = None
    key_permissions: str | None = None


@router.post("/start")
async def start(req: SsoStartRequest, container: ServiceContainer = Depends(get_container)):
    auth_url = await container.sso.initiate(req.store_url, req.app_user_id)
    return {"authUrl": auth_url}


@router.post("/callback")
async def callback(req: SsoCallbackRequest, container: ServiceContainer = Depends(get_container)):
    result = await container.sso.complete_callback(
        issued_key_id="" if req.key_id is None else str(req.key_id),
        correlation_token=req.user_id or "",
        consumer_key=req.consumer_key or "",
        consumer_secret=req.consumer_secret or "",
    )
    return {
        "ok": True,
        "store_id": result.store.id,
        "app_user_id": result.store.app_user_id,
        "store_url": result.store.store_url,
        "webhooks": result.webhook_status,
    }
