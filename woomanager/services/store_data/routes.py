from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from woomanager.common.errors import ForbiddenError, NotFoundError, ValidationError
from woomanager.container import ServiceContainer, get_container
from woomanager.services.auth.routes import current_store, optional_store
from woomanager.services.credentials.resolver import StoreConfig
from woomanager.services.sso.token_codec import handle_from_token
from woomanager.stores.schemas import StoreRecord

router = APIRouter(tags=["store-data"])


class ConfigRequest(BaseModel):
    config: StoreConfig | None = None


class SalesReportRequest(ConfigRequest):
    date_min: str | None = None
    date_max: str | None = None


class AppUserLookup(BaseModel):
    app_user_id: str = ""


def _config(req: ConfigRequest) -> StoreConfig:
    if req.config is None:
        raise ValidationError("missing config")
    return req.config


@router.post("/auth/test")
async def test_connection(
    req: ConfigRequest,
    caller: StoreRecord | None = Depends(optional_store),
    container: ServiceContainer = Depends(get_container),
):
    return await container.store_data.test_connection(_config(req), caller)


@router.post("/orders")
async def orders(
    req: ConfigRequest,
    caller: StoreRecord | None = Depends(optional_store),
    container: ServiceContainer = Depends(get_container),
):
    return {"orders": await container.store_data.orders(_config(req), caller)}


@router.post("/products")
async def products(
    req: ConfigRequest,
    caller: StoreRecord | None = Depends(optional_store),
    container: ServiceContainer = Depends(get_container),
):
    return {"products": await container.store_data.products(_config(req), caller)}


@router.post("/customers")
async def customers(
    req: ConfigRequest,
    caller: StoreRecord | None = Depends(optional_store),
    container: ServiceContainer = Depends(get_container),
):
    return {"customers": await container.store_data.customers(_config(req), caller)}


@router.post("/reports/sales")
async def sales_report(
    req: SalesReportRequest,
    caller: StoreRecord | None = Depends(optional_store),
    container: ServiceContainer = Depends(get_container),
):
    return await container.store_data.sales_report(_config(req), req.date_min, req.date_max, caller)


@router.post("/store/by-app-user")
async def store_by_app_user(req: AppUserLookup, container: ServiceContainer = Depends(get_container)):
    """Look a store up by handle; a full correlation token is accepted too."""

    handle = handle_from_token(req.app_user_id.strip())
    if not handle:
        raise ValidationError("app_user_id is required")
    store = await container.records.find_store_by_app_user_id(handle)
    if store is None:
        raise NotFoundError("store not found")
    return {"store": store.public_view()}


@router.get("/stores/{store_id}/notifications")
async def notifications(
    store_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    caller: StoreRecord = Depends(current_store),
    container: ServiceContainer = Depends(get_container),
):
    if store_id != caller.id:
        raise ForbiddenError("store belongs to another account")
    events = await container.records.list_notification_events(store_id, limit=limit)
    return {"notifications": [event.model_dump(mode="json") for event in events]}
