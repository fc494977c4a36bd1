"""
Stream relay: resolve the image reference, then stream the explanation and persist it.

Order of operations per request:
  1. MetadataResolver runs to completion. A failure here becomes a structured
     502 before any body byte exists.
  2. The image URL is attached as the X-Image-Url header and the body opens.
  3. Every fragment from ChunkProducer is recorded and forwarded as received.
  4. Only after the producer ends naturally is the GenerationResult assembled and
     appended to the history store, exactly once. A client disconnect ends the
     body without persisting anything. An upstream failure mid-stream aborts the
     body (no terminating chunk), so the client sees a read error; nothing is
     persisted either.

Persistence failures are logged only; the client has already received the full
answer and is not told.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator

from fastapi import HTTPException, status
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from agents.core.errors import UpstreamMetadataError, UpstreamStreamError
from agents.explainer_agent import AuxiliaryMetadata, ChunkProducer, MetadataResolver
from api.schemas.auth_schemas import Identity
from api.utils.history_store import GenerationResult, HistoryStore
from api.utils.logger import configure_logging, log_request

logger = configure_logging()

IMAGE_URL_HEADER = "X-Image-Url"


@dataclass(frozen=True)
class GenerationRequest:
    identity: Identity
    topic: str


class StreamRelay:
    def __init__(
        self,
        resolver: MetadataResolver,
        producer: ChunkProducer,
        history_store: HistoryStore,
    ):
        self.resolver = resolver
        self.producer = producer
        self.history_store = history_store

    async def handle_generate(self, request: GenerationRequest) -> StreamingResponse:
        """Resolve metadata, then return a streaming response carrying it out-of-band."""
        logger.info("generate uid=%s topic=%r", request.identity.uid, request.topic)
        try:
            with log_request(logger, "resolve_metadata"):
                metadata = await self.resolver.resolve(request.topic)
        except UpstreamMetadataError as e:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Could not prepare an image for this topic: {e.reason}",
            ) from e
        logger.info("image url resolved uid=%s url=%s", request.identity.uid, metadata.artifact_reference)

        return StreamingResponse(
            self.relay(request, metadata),
            media_type="text/plain; charset=utf-8",
            headers={
                IMAGE_URL_HEADER: metadata.artifact_reference,
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
            },
        )

    async def relay(self, request: GenerationRequest, metadata: AuxiliaryMetadata) -> AsyncIterator[str]:
        """
        Forward fragments in arrival order; persist the assembled text after a natural end.
        Client disconnects cancel this generator, which skips persistence as well.
        """
        fragments: list[str] = []
        try:
            with log_request(logger, "relay_stream"):
                async for fragment in self.producer.stream(request.topic):
                    fragments.append(fragment)
                    yield fragment
        except UpstreamStreamError as e:
            # Re-raised: the server drops the connection without the terminating chunk.
            logger.error(
                "stream aborted uid=%s topic=%r fragments=%d reason=%s",
                request.identity.uid, request.topic, len(fragments), e.reason,
            )
            raise

        result = GenerationResult(
            uid=request.identity.uid,
            topic=request.topic,
            full_text="".join(fragments),
            artifact_reference=metadata.artifact_reference,
        )
        await self.persist(result, fragment_count=len(fragments))

    async def persist(self, result: GenerationResult, fragment_count: int = 0) -> str | None:
        try:
            record_id = await run_in_threadpool(self.history_store.append, result)
        except Exception:
            logger.exception("history append failed uid=%s topic=%r", result.uid, result.topic)
            return None
        logger.info(
            "history saved id=%s uid=%s fragments=%d chars=%d",
            record_id, result.uid, fragment_count, len(result.full_text),
        )
        return record_id
