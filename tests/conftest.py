import asyncio
import json
import logging

import pytest

from app.models.agent import AgentConfiguration
from app.models.session import CallSession


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


class RecordingWebSocket:
    """A websocket stand-in that records sent frames."""

    def __init__(self):
        self.sent_messages = []
        self.closed_with = None

    async def send_text(self, text):
        self.sent_messages.append(text)

    async def close(self, code=1000, reason=None):
        self.closed_with = code

    @property
    def frames(self):
        return [json.loads(message) for message in self.sent_messages]


class FakeCompletionProvider:
    """Yields scripted fragments, optionally failing or pausing between them."""

    def __init__(self, fragments=(), error=None, delay=0.0, fail_after=None):
        self.fragments = list(fragments)
        self.error = error
        self.delay = delay
        self.fail_after = fail_after
        self.requests = []
        self.api_keys = []
        self.closed = 0

    async def stream_completion(self, request, api_key):
        self.requests.append(request)
        self.api_keys.append(api_key)
        if self.error is not None and self.fail_after is None:
            raise self.error
        try:
            for index, fragment in enumerate(self.fragments):
                if self.fail_after is not None and index == self.fail_after:
                    raise self.error
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield fragment
        finally:
            self.closed += 1


class FakeContextRetriever:
    def __init__(self, context="", error=None):
        self.context = context
        self.error = error
        self.calls = []

    async def retrieve_context(self, knowledge_base_id, query_text, api_key=None):
        self.calls.append((knowledge_base_id, query_text, api_key))
        if self.error is not None:
            raise self.error
        return self.context


@pytest.fixture
def agent_config():
    return AgentConfiguration(
        agent_id="agent-1",
        system_prompt="You book tables for Casa Pepe.",
        greeting="Hello",
        hangup_phrases=("goodbye",),
        openai_api_key="sk-agent",
    )


@pytest.fixture
def recording_websocket():
    return RecordingWebSocket()


@pytest.fixture
def session(agent_config, recording_websocket):
    return CallSession("call-1", "agent-1", agent_config, recording_websocket)
