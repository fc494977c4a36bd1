"""
Generation endpoint: streams an explanation with its image URL in the X-Image-Url header.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from api.bootstrap import get_stream_relay
from api.schemas.auth_schemas import Identity
from api.schemas.generate_schemas import ErrorResponse, GenerateRequest
from api.services.stream_relay import GenerationRequest, StreamRelay
from api.utils.auth import get_current_identity

generate_routes = APIRouter()


@generate_routes.post(
    "/generate",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/plain": {}}, "description": "Chunked explanation text; image URL in X-Image-Url."},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def generate(
    req: GenerateRequest,
    identity: Identity = Depends(get_current_identity),
    relay: StreamRelay = Depends(get_stream_relay),
) -> StreamingResponse:
    """Stream an explanation for `req.topic` and save it to the caller's history when complete."""
    return await relay.handle_generate(GenerationRequest(identity=identity, topic=req.topic))
