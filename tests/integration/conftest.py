"""
Integration test fixtures. Drive the real FastAPI app with a fake LLM and an in-memory DB.
"""
import pytest
from fastapi.testclient import TestClient

from agents.explainer_agent import ChunkProducer, MetadataResolver
from api.services.stream_relay import StreamRelay
from api.utils.jwt import create_access_token
from tests.fakes import FakeLLM


@pytest.fixture
def app():
    from api.api import app
    yield app
    for attr in ("stream_relay", "history_store", "identity_verifier"):
        if getattr(app.state, attr, None) is not None:
            delattr(app.state, attr)


@pytest.fixture
def configure_relay(app, history_store):
    """Install a relay built on the given fake LLM (or resolver) and the in-memory history store."""

    def _configure(llm: FakeLLM, resolver=None) -> StreamRelay:
        relay = StreamRelay(
            resolver=resolver or MetadataResolver(llm, image_base_url="https://img"),
            producer=ChunkProducer(llm),
            history_store=history_store,
        )
        app.state.stream_relay = relay
        app.state.history_store = history_store
        return relay

    return _configure


@pytest.fixture
def api_client(app, history_store):
    """FastAPI TestClient with the in-memory history store installed."""
    app.state.history_store = history_store
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-1')}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user-2')}"}
