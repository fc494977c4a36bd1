from fastapi import Request

from agents.explainer_agent import ChunkProducer, MetadataResolver
from api.config import Settings, get_settings
from api.services.stream_relay import StreamRelay
from api.utils.history_store import HistoryStore, get_history_store
from infra.llm.ollama import OllamaLLM


def build_stream_relay(settings: Settings | None = None, history_store: HistoryStore | None = None) -> StreamRelay:
    settings = settings or get_settings()

    llm = OllamaLLM(
        model=settings.ollama_model,
        temperature=settings.ollama_temperature,
        base_url=settings.ollama_base_url,
    )

    return StreamRelay(
        resolver=MetadataResolver(llm, image_base_url=settings.image_base_url),
        producer=ChunkProducer(llm, words=settings.explanation_words),
        history_store=history_store or get_history_store(),
    )


def get_stream_relay(request: Request) -> StreamRelay:
    relay = getattr(request.app.state, "stream_relay", None)
    if relay is None:
        relay = build_stream_relay()
        request.app.state.stream_relay = relay
    return relay


def get_history(request: Request) -> HistoryStore:
    store = getattr(request.app.state, "history_store", None)
    if store is None:
        store = get_history_store()
        request.app.state.history_store = store
    return store
