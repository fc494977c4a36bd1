"""
Unit test fixtures. Use fakes; no real DB server, no LLM, no network.
"""
import pytest

from tests.fakes import FakeLLM, FixedResolver, RecordingHistoryStore

VOLCANO_FRAGMENTS = ["Volcanoes ", "form when ", "magma rises."]


@pytest.fixture
def volcano_llm():
    return FakeLLM(fragments=VOLCANO_FRAGMENTS)


@pytest.fixture
def fixed_resolver():
    return FixedResolver()


@pytest.fixture
def recording_store():
    return RecordingHistoryStore()
