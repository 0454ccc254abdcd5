from fastapi import APIRouter, Depends
from pydantic import BaseModel

from woomanager.container import ServiceContainer, get_container
from woomanager.services.auth.routes import current_store
from woomanager.stores.schemas import StoreRecord

router = APIRouter(prefix="/secondary-credentials", tags=["secondary-credentials"])


class ConnectRequest(BaseModel):
    key_id: str = ""
    key_secret: str = ""


@router.post("/connect")
async def connect(
    req: ConnectRequest,
    store: StoreRecord = Depends(current_store),
    container: ServiceContainer = Depends(get_container),
):
    updated = await container.secondary.connect(store, req.key_id, req.key_secret)
    return {"ok": True, "user": updated.public_view()}


@router.post("/skip")
async def skip(store: StoreRecord = Depends(current_store), container: ServiceContainer = Depends(get_container)):
    updated = await container.secondary.skip(store)
    return {"ok": True, "user": updated.public_view()}


@router.get("/status")
async def status(store: StoreRecord = Depends(current_store), container: ServiceContainer = Depends(get_container)):
    return container.secondary.status(store)
