from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError
from jose.jwt import encode, decode
from pydantic import ValidationError

from agents.core.errors import AuthError
from api.config import settings
from api.schemas.auth_schemas import AuthTokenPayload

ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(
    uid: str,
    expires_in: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
) -> str:
    """Create a JWT access token for `uid`. Token issuance is normally external; used by tests and local tooling."""
    exp = datetime.now(timezone.utc) + (expires_in or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = AuthTokenPayload(sub=uid, exp=exp)
    return encode(payload.model_dump(), secret_key or settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: Optional[str], secret_key: Optional[str] = None) -> AuthTokenPayload:
    if not token:
        raise AuthError("Missing token")
    try:
        payload = decode(token, secret_key or settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return AuthTokenPayload(**payload)
    except (JWTError, ValidationError) as e:
        raise AuthError(f"Invalid token: {e}") from e
