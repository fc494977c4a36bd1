"""Unit tests for StreamConsumer and StreamSession against a scripted relay."""
import asyncio
import json

import httpx
import pytest

from client.consumer import StreamConsumer
from client.session import StreamSession
from client.state import HistoryEntry, Phase
from client.transport import RelayClient
from tests.fakes import RecordingNarrator, ScriptedStream, wait_for

VOLCANOES = ["Volcanoes ", "form when ", "magma rises."]
GRAVITY = ["Gravity ", "pulls masses ", "together."]


def _consumer(scripted: ScriptedStream, **kwargs) -> StreamConsumer:
    relay = RelayClient("http://relay", "tok", transport=httpx.MockTransport(scripted))
    kwargs.setdefault("render_interval", 0.01)
    return StreamConsumer(relay, **kwargs)


@pytest.mark.unit
class TestGenerate:
    @pytest.mark.asyncio
    async def test_volcanoes_scenario_completes(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES}})

        async with _consumer(scripted) as consumer:
            final = await consumer.generate("volcanoes")

            assert final.phase == Phase.COMPLETE
            assert final.visible_text == "Volcanoes form when magma rises."
            assert final.buffered_text == final.visible_text
            assert final.artifact_reference == "https://img/volcanoes"
            assert final.error is None

            assert len(consumer.history) == 1
            entry = consumer.history[0]
            assert entry.topic == "volcanoes"
            assert entry.explanation == "Volcanoes form when magma rises."
            assert entry.image_url == "https://img/volcanoes"

    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_topic(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES}})

        async with _consumer(scripted) as consumer:
            await consumer.generate("  volcanoes  ")

        request = scripted.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/generate"
        assert request.headers["Authorization"] == "Bearer tok"
        assert json.loads(request.content) == {"topic": "volcanoes"}

    @pytest.mark.asyncio
    async def test_metadata_observed_before_any_text(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES, "delay": 0.02}})
        seen = []

        async with _consumer(scripted) as consumer:
            consumer.subscribe(seen.append)
            await consumer.generate("volcanoes")

        assert seen[0].phase == Phase.AWAITING_METADATA
        assert seen[0].artifact_reference is None
        with_text = [s for s in seen if s.visible_text]
        assert with_text
        assert all(s.artifact_reference == "https://img/volcanoes" for s in with_text)
        streaming = [s for s in seen if s.phase == Phase.STREAMING]
        assert streaming[0].visible_text == ""

    @pytest.mark.asyncio
    async def test_visible_text_is_monotone_prefix_of_buffer(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES, "delay": 0.015}})
        seen = []

        async with _consumer(scripted) as consumer:
            consumer.subscribe(seen.append)
            final = await consumer.generate("volcanoes")

        previous = ""
        for state in seen:
            assert state.buffered_text.startswith(state.visible_text)
            assert state.visible_text.startswith(previous)
            previous = state.visible_text
        assert previous == final.buffered_text

    @pytest.mark.asyncio
    async def test_multibyte_split_across_chunks(self):
        scripted = ScriptedStream({"coffee": {"fragments": [b"caf\xc3", b"\xa9 au lait"]}})

        async with _consumer(scripted) as consumer:
            final = await consumer.generate("coffee")

        assert final.visible_text == "café au lait"

    @pytest.mark.asyncio
    async def test_blank_topic_is_rejected(self):
        async with _consumer(ScriptedStream({})) as consumer:
            with pytest.raises(ValueError):
                await consumer.submit("   ")


@pytest.mark.unit
class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_image_header_fails(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES, "image_url": None}})

        async with _consumer(scripted) as consumer:
            final = await consumer.generate("volcanoes")

        assert final.phase == Phase.FAILED
        assert final.error == "Failed to generate content: Did not receive an image URL from the server."
        assert final.visible_text == ""
        assert consumer.history == []

    @pytest.mark.asyncio
    async def test_error_status_reports_server_message(self):
        scripted = ScriptedStream({"volcanoes": {"status": 502, "message": "image model unavailable"}})

        async with _consumer(scripted) as consumer:
            final = await consumer.generate("volcanoes")

        assert final.phase == Phase.FAILED
        assert final.error == "Failed to generate content: image model unavailable"
        assert final.artifact_reference is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fail_after", [1, 2])
    async def test_mid_stream_read_error_keeps_partial_text(self, fail_after):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES, "fail_after": fail_after}})

        async with _consumer(scripted) as consumer:
            final = await consumer.generate("volcanoes")

        expected = "".join(VOLCANOES[:fail_after])
        assert final.phase == Phase.FAILED
        assert final.buffered_text == expected
        assert final.visible_text == expected
        assert final.artifact_reference == "https://img/volcanoes"
        assert final.error == "Failed to generate content: connection reset by peer"
        assert consumer.history == []

    @pytest.mark.asyncio
    async def test_aborted_chunked_body_fails_without_local_history(self):
        incomplete = httpx.RemoteProtocolError("peer closed connection without sending complete message body")
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES, "fail_after": 1, "error": incomplete}})

        async with _consumer(scripted) as consumer:
            final = await consumer.generate("volcanoes")

        assert final.phase == Phase.FAILED
        assert final.visible_text == "Volcanoes "
        assert final.error.startswith("Failed to generate content: peer closed connection")
        assert consumer.history == []

    @pytest.mark.asyncio
    async def test_session_without_relay_cannot_read(self):
        session = StreamSession("volcanoes")

        with pytest.raises(RuntimeError):
            session.start()
        with pytest.raises(RuntimeError):
            await session._read()


@pytest.mark.unit
class TestCancellation:
    @pytest.mark.asyncio
    async def test_new_submission_abandons_previous_stream(self):
        scripted = ScriptedStream(
            {
                "volcanoes": {"fragments": VOLCANOES * 5, "delay": 0.03},
                "gravity": {"fragments": GRAVITY},
            }
        )
        seen = []

        async with _consumer(scripted) as consumer:
            first = await consumer.submit("volcanoes")
            await wait_for(lambda: first.state.visible_text != "")

            consumer.subscribe(seen.append)
            second = await consumer.submit("gravity")
            frozen = first.state

            assert first.cancelled
            assert not first.scheduler.running

            final = await second.wait()
            await first.wait()
            await asyncio.sleep(0.05)

            assert final.phase == Phase.COMPLETE
            assert consumer.state.visible_text == "Gravity pulls masses together."
            assert first.state == frozen
            assert not first.active
            assert [e.topic for e in consumer.history] == ["gravity"]

        assert all("Volcanoes" not in s.visible_text for s in seen)
        assert all(s.topic == "gravity" for s in seen)

    @pytest.mark.asyncio
    async def test_history_selection_mid_stream(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES * 5, "delay": 0.03}})
        entry = HistoryEntry(
            id="h-1",
            topic="gravity",
            explanation="Gravity pulls masses together.",
            image_url="https://img/gravity",
        )

        async with _consumer(scripted) as consumer:
            streaming = await consumer.submit("volcanoes")
            await wait_for(lambda: streaming.state.visible_text != "")

            shown = consumer.select_history(entry)
            await asyncio.sleep(0.1)

            assert streaming.cancelled
            assert consumer.session is shown
            assert consumer.state.phase == Phase.COMPLETE
            assert consumer.state.visible_text == "Gravity pulls masses together."
            assert consumer.state.artifact_reference == "https://img/gravity"
            assert consumer.history == []

    @pytest.mark.asyncio
    async def test_aclose_stops_scheduler_and_read_loop(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES, "hold": 5}})
        consumer = _consumer(scripted)

        session = await consumer.submit("volcanoes")
        await wait_for(lambda: session.state.phase == Phase.STREAMING)
        await consumer.aclose()

        assert not session.active
        assert not session.scheduler.running
        assert consumer.relay._client.is_closed
        with pytest.raises(RuntimeError):
            await consumer.submit("gravity")


@pytest.mark.unit
class TestHistory:
    @pytest.mark.asyncio
    async def test_refresh_replaces_local_history(self):
        wire = [
            {
                "id": "2",
                "topic": "gravity",
                "explanation": "Gravity pulls.",
                "imageUrl": "https://img/gravity",
                "createdAt": "2024-01-02T00:00:00Z",
            },
            {
                "id": "1",
                "topic": "volcanoes",
                "explanation": "Volcanoes erupt.",
                "imageUrl": "https://img/volcanoes",
                "createdAt": "2024-01-01T00:00:00Z",
            },
        ]
        scripted = ScriptedStream({}, history=wire)

        async with _consumer(scripted) as consumer:
            entries = await consumer.refresh_history()

        assert [e.topic for e in entries] == ["gravity", "volcanoes"]
        assert entries[0].image_url == "https://img/gravity"
        assert entries[0].created_at == "2024-01-02T00:00:00Z"
        assert consumer.history_error is None
        assert scripted.requests[0].headers["Authorization"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_previous_history(self):
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES}}, history_status=500)

        async with _consumer(scripted) as consumer:
            await consumer.generate("volcanoes")
            entries = await consumer.refresh_history()

        assert [e.topic for e in entries] == ["volcanoes"]
        assert consumer.history_error == "Could not load your history. Please try refreshing."


@pytest.mark.unit
class TestNarration:
    @pytest.mark.asyncio
    async def test_speak_reads_visible_text(self):
        narrator = RecordingNarrator()
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES}})

        async with _consumer(scripted, narrator=narrator) as consumer:
            await consumer.generate("volcanoes")
            assert consumer.speak() is True

        assert narrator.spoken == ["Volcanoes form when magma rises."]

    @pytest.mark.asyncio
    async def test_new_submission_cancels_narration(self):
        narrator = RecordingNarrator()
        scripted = ScriptedStream({"volcanoes": {"fragments": VOLCANOES}, "gravity": {"fragments": GRAVITY}})

        async with _consumer(scripted, narrator=narrator) as consumer:
            await consumer.generate("volcanoes")
            consumer.speak()
            cancels = narrator.cancels

            await consumer.generate("gravity")

        assert narrator.cancels == cancels + 1

    @pytest.mark.asyncio
    async def test_speak_without_narrator_or_text(self):
        async with _consumer(ScriptedStream({})) as consumer:
            assert consumer.speak() is False

        narrator = RecordingNarrator()
        async with _consumer(ScriptedStream({}), narrator=narrator) as consumer:
            assert consumer.speak() is False
        assert narrator.spoken == []
