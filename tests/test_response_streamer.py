"""
Unit tests for the ResponseStreamer.

These tests drive full response cycles against a recording websocket and a
scripted completion provider, checking frame order, completion markers,
hangup detection, failure handling and supersession.
"""

import asyncio
from unittest.mock import patch

import pytest
from conftest import FakeCompletionProvider, FakeContextRetriever

from app.bot.response_streamer import ResponseStreamer, contains_hangup_phrase
from app.config import settings
from app.config.constants import APOLOGY_TEXT
from app.exceptions import GenerationFailure
from app.models.agent import AgentConfiguration
from app.models.message_schemas import (
    ReminderRequiredFrame,
    ResponseRequiredFrame,
    Utterance,
)


def response_frame(response_id, user_text="hi"):
    return ResponseRequiredFrame(
        interaction_type="response_required",
        response_id=response_id,
        transcript=[Utterance(role="user", content=user_text)],
    )


def frames_for(websocket, response_id):
    return [
        f for f in websocket.frames
        if f["response_type"] == "response" and f["response_id"] == response_id
    ]


def assert_well_formed_stream(frames):
    """content_complete=false zero or more times, then exactly one true, last."""
    assert frames, "no frames emitted"
    assert [f["content_complete"] for f in frames].count(True) == 1
    assert frames[-1]["content_complete"] is True


@pytest.mark.asyncio
async def test_streams_fragments_then_closing_frame(session, recording_websocket):
    provider = FakeCompletionProvider(["Sure, ", "a table ", "for two."])
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    task = streamer.start_response(session, response_frame(3))
    await task

    frames = frames_for(recording_websocket, 3)
    assert [f["content"] for f in frames] == ["Sure, ", "a table ", "for two.", ""]
    assert all(f["end_call"] is False for f in frames)
    assert_well_formed_stream(frames)
    assert session.active_task is None
    assert session.active_response_id is None


@pytest.mark.asyncio
async def test_hangup_phrase_across_fragments_ends_call(session, recording_websocket):
    provider = FakeCompletionProvider(["Good", "bye"])
    streamer = ResponseStreamer(provider, FakeContextRetriever(), hangup_detection_enabled=True)

    await streamer.start_response(session, response_frame(7, "bye, goodbye"))

    frames = frames_for(recording_websocket, 7)
    assert frames[-1] == {
        "response_type": "response",
        "response_id": 7,
        "content": "",
        "content_complete": True,
        "end_call": True,
    }
    assert all(f["end_call"] is False for f in frames[:-1])


@pytest.mark.asyncio
async def test_no_hangup_phrase_keeps_call(session, recording_websocket):
    provider = FakeCompletionProvider(["See you ", "soon"])
    streamer = ResponseStreamer(provider, FakeContextRetriever(), hangup_detection_enabled=True)

    await streamer.start_response(session, response_frame(2))

    assert frames_for(recording_websocket, 2)[-1]["end_call"] is False


@pytest.mark.asyncio
async def test_hangup_detection_toggle_off(session, recording_websocket):
    provider = FakeCompletionProvider(["Goodbye!"])
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    with patch.object(settings, "HANGUP_DETECTION_ENABLED", False):
        await streamer.start_response(session, response_frame(4))

    assert frames_for(recording_websocket, 4)[-1]["end_call"] is False


@pytest.mark.asyncio
async def test_provider_failure_sends_single_apology(session, recording_websocket):
    provider = FakeCompletionProvider(error=GenerationFailure("rate limited: secret detail"))
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    await streamer.start_response(session, response_frame(9))

    frames = frames_for(recording_websocket, 9)
    assert frames == [
        {
            "response_type": "response",
            "response_id": 9,
            "content": APOLOGY_TEXT,
            "content_complete": True,
            "end_call": False,
        }
    ]
    assert "secret detail" not in "".join(recording_websocket.sent_messages)
    assert session.is_open


@pytest.mark.asyncio
async def test_provider_failure_mid_stream_closes_with_apology(session, recording_websocket):
    provider = FakeCompletionProvider(
        ["Let me ", "check"], error=RuntimeError("connection reset"), fail_after=1
    )
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    await streamer.start_response(session, response_frame(5))

    frames = frames_for(recording_websocket, 5)
    assert [f["content"] for f in frames] == ["Let me ", APOLOGY_TEXT]
    assert_well_formed_stream(frames)
    assert frames[-1]["end_call"] is False


@pytest.mark.asyncio
async def test_uses_agent_credential_before_process_key(session):
    provider = FakeCompletionProvider(["ok"])
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    with patch.object(settings, "OPENAI_API_KEY", "sk-env"):
        await streamer.start_response(session, response_frame(1))

    assert provider.api_keys == ["sk-agent"]


@pytest.mark.asyncio
async def test_context_is_retrieved_for_last_user_utterance(recording_websocket):
    from app.models.session import CallSession

    agent = AgentConfiguration(agent_id="a", knowledge_base="kb-9", openai_api_key="sk")
    session = CallSession("call-2", "a", agent, recording_websocket)
    retriever = FakeContextRetriever(context="Opening hours: 9-5")
    provider = FakeCompletionProvider(["We open at nine."])
    streamer = ResponseStreamer(provider, retriever)

    frame = ResponseRequiredFrame(
        interaction_type="response_required",
        response_id=1,
        transcript=[
            Utterance(role="user", content="hello"),
            Utterance(role="agent", content="Hi!"),
            Utterance(role="user", content="when do you open?"),
        ],
    )
    await streamer.start_response(session, frame)

    assert retriever.calls == [("kb-9", "when do you open?", "sk")]
    system_prompt = provider.requests[0].messages[0].content
    assert "Opening hours: 9-5" in system_prompt


@pytest.mark.asyncio
async def test_context_failure_does_not_fail_generation(recording_websocket):
    from app.models.session import CallSession

    agent = AgentConfiguration(agent_id="a", knowledge_base="kb-9", openai_api_key="sk")
    session = CallSession("call-3", "a", agent, recording_websocket)
    retriever = FakeContextRetriever(error=RuntimeError("vector store down"))
    provider = FakeCompletionProvider(["Fine."])
    streamer = ResponseStreamer(provider, retriever)

    await streamer.start_response(session, response_frame(1))

    frames = frames_for(recording_websocket, 1)
    assert [f["content"] for f in frames] == ["Fine.", ""]


@pytest.mark.asyncio
async def test_no_context_lookup_without_knowledge_base(session):
    retriever = FakeContextRetriever(context="unused")
    streamer = ResponseStreamer(FakeCompletionProvider(["ok"]), retriever)

    await streamer.start_response(session, response_frame(1))

    assert retriever.calls == []


@pytest.mark.asyncio
async def test_reminder_required_uses_reminder_prompt(session, recording_websocket):
    provider = FakeCompletionProvider(["Are you there?"])
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    frame = ReminderRequiredFrame(interaction_type="reminder_required", response_id=2)
    await streamer.start_response(session, frame)

    assert provider.requests[0].messages[-1].role.value == "user"
    assert_well_formed_stream(frames_for(recording_websocket, 2))


@pytest.mark.asyncio
async def test_supersession_cuts_off_previous_response(session, recording_websocket):
    provider = FakeCompletionProvider(["one ", "two ", "three ", "four "], delay=0.02)
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    first = streamer.start_response(session, response_frame(5))
    await asyncio.sleep(0.03)
    second = streamer.start_response(session, response_frame(6))
    assert session.active_response_id == 6
    await second

    assert first.cancelled()
    frames = [f for f in recording_websocket.frames if f["response_type"] == "response"]
    first_six = next(i for i, f in enumerate(frames) if f["response_id"] == 6)
    assert all(f["response_id"] != 5 for f in frames[first_six:])
    assert all(not f["content_complete"] for f in frames_for(recording_websocket, 5))
    assert_well_formed_stream(frames_for(recording_websocket, 6))
    # The superseded provider stream was closed
    assert provider.closed == 2


@pytest.mark.asyncio
async def test_repeat_of_in_flight_response_is_ignored(session):
    provider = FakeCompletionProvider(["a", "b"], delay=0.01)
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    first = streamer.start_response(session, response_frame(3))
    assert streamer.start_response(session, response_frame(3)) is None
    await first
    assert len(provider.requests) == 1


@pytest.mark.asyncio
async def test_stale_response_id_is_dropped(session, recording_websocket):
    streamer = ResponseStreamer(FakeCompletionProvider(["ok"]), FakeContextRetriever())

    await streamer.start_response(session, response_frame(8))
    assert streamer.start_response(session, response_frame(4)) is None
    assert frames_for(recording_websocket, 4) == []


@pytest.mark.asyncio
async def test_transport_close_stops_stream_silently(session, recording_websocket):
    provider = FakeCompletionProvider(["one ", "two ", "three "], delay=0.02)
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    task = streamer.start_response(session, response_frame(1))
    await asyncio.sleep(0.03)
    session.close()
    await asyncio.wait([task])

    frames = frames_for(recording_websocket, 1)
    assert len(frames) < 3
    assert all(not f["content_complete"] for f in frames)
    assert provider.closed == 1


@pytest.mark.asyncio
async def test_send_failure_marks_session_closed(session, recording_websocket):
    async def broken_send(text):
        raise RuntimeError("Cannot call send once a close message has been sent")

    recording_websocket.send_text = broken_send
    provider = FakeCompletionProvider(["a", "b", "c"])
    streamer = ResponseStreamer(provider, FakeContextRetriever())

    await streamer.start_response(session, response_frame(1))

    assert session.is_open is False
    assert provider.closed == 1


def test_contains_hangup_phrase():
    agent = AgentConfiguration(hangup_phrases=("goodbye", "have a nice day"))
    assert contains_hangup_phrase(agent, "Okay, GOODBYE!")
    assert contains_hangup_phrase(agent, "Have a Nice Day")
    assert not contains_hangup_phrase(agent, "Good morning")
    assert not contains_hangup_phrase(AgentConfiguration(), "goodbye")
