from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AuthTokenPayload(BaseModel):
    sub: str
    exp: Optional[datetime] = None


class Identity(BaseModel):
    """Authenticated principal. `uid` keys everything the user owns."""
    uid: str
