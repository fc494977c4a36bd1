from typing import Optional, Protocol

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from agents.core.errors import AuthError
from api.schemas.auth_schemas import Identity
from api.utils.jwt import verify_token
from api.utils.logger import configure_logging

logger = configure_logging()

bearer_scheme = HTTPBearer(auto_error=False)


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> Identity:
        """Return the identity behind `token` or raise AuthError."""
        ...


class JwtIdentityVerifier:
    """Verifies HS256 bearer tokens; the `sub` claim is the uid."""

    def __init__(self, secret_key: Optional[str] = None):
        self.secret_key = secret_key

    def verify(self, token: str) -> Identity:
        payload = verify_token(token, secret_key=self.secret_key)
        return Identity(uid=payload.sub)


def get_identity_verifier(request: Request) -> IdentityVerifier:
    verifier = getattr(request.app.state, "identity_verifier", None)
    if verifier is None:
        verifier = JwtIdentityVerifier()
        request.app.state.identity_verifier = verifier
    return verifier


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Identity:
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
        )
    try:
        return verifier.verify(credentials.credentials)
    except AuthError as e:
        logger.warning("token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized",
        )
