"""
API schemas package. Import from submodules or from this package.

Example:
    from api.schemas import GenerateRequest, HistoryEntryResponse
    from api.schemas.history_schemas import HistoryEntryResponse
"""

from api.schemas.auth_schemas import AuthTokenPayload, Identity
from api.schemas.generate_schemas import ErrorResponse, GenerateRequest
from api.schemas.history_schemas import HistoryEntryResponse

__all__ = [
    "AuthTokenPayload",
    "ErrorResponse",
    "GenerateRequest",
    "HistoryEntryResponse",
    "Identity",
]
