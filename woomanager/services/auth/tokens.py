"""Bearer tokens for operator sessions (PyJWT, HS256)."""

from datetime import datetime, timedelta, timezone

import jwt

from woomanager.common.errors import AuthenticationError

ALGORITHM = "HS256"


class TokenService:
    def __init__(self, secret: str, ttl_minutes: int) -> None:
        self.secret = secret
        self.ttl = timedelta(minutes=ttl_minutes)

    def create_access_token(self, store_id: int, app_user_id: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(store_id),
            "app_user_id": app_user_id,
            "token_type": "access",
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def store_id_from_token(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("invalid token") from exc
        if payload.get("token_type") != "access":
            raise AuthenticationError("invalid token type")
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthenticationError("invalid token subject") from exc
