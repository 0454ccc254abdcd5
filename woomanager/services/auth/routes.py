from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from woomanager.common.errors import AuthenticationError
from woomanager.common.logging import store_id_ctx
from woomanager.container import ServiceContainer, get_container
from woomanager.stores.schemas import StoreRecord

router = APIRouter(prefix="/auth", tags=["auth"])
bearer = HTTPBearer(auto_error=False)


class Credentials(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


async def current_store(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    container: ServiceContainer = Depends(get_container),
) -> StoreRecord:
    """Store owning the bearer token; 401 when the header is missing or bad."""

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("missing bearer token")
    store = await container.auth.store_for_token(credentials.credentials)
    store_id_ctx.set(str(store.id))
    return store


async def optional_store(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    container: ServiceContainer = Depends(get_container),
) -> StoreRecord | None:
    """Like `current_store`, but anonymous callers get None; a bad token is still 401."""

    if credentials is None or not credentials.credentials:
        return None
    return await current_store(credentials, container)


@router.post("/signup")
async def signup(req: Credentials, container: ServiceContainer = Depends(get_container)):
    return await container.auth.signup(req.username, req.password)


@router.post("/login")
async def login(req: Credentials, container: ServiceContainer = Depends(get_container)):
    return await container.auth.login(req.username, req.password)


@router.get("/me")
async def me(store: StoreRecord = Depends(current_store)):
    return {"user": store.public_view()}
