from fastapi import APIRouter, Depends
from pydantic import BaseModel

from woomanager.container import ServiceContainer, get_container

router = APIRouter(prefix="/push", tags=["push"])


class SubscribeRequest(BaseModel):
    store_id: int
    subscription: dict


@router.post("/subscribe")
async def subscribe(req: SubscribeRequest, container: ServiceContainer = Depends(get_container)):
    added = await container.ingestion.subscribe(req.store_id, req.subscription)
    return {"ok": True, "added": added}


@router.get("/vapid-public-key")
async def vapid_public_key(container: ServiceContainer = Depends(get_container)):
    return {"publicKey": container.dispatcher.sender.require_public_key()}
