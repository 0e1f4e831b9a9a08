"""
Unit tests for prompt assembly.
"""

from app.bot.prompt_builder import (
    AGENT_INSTRUCTIONS_HEADER,
    CONTEXT_HEADER,
    EXTRACTION_HEADER,
    VOICE_PREAMBLE,
    build_generation_request,
    build_system_prompt,
)
from app.config.constants import DEFAULT_REMINDER_TEXT, DEFAULT_SYSTEM_PROMPT
from app.models.agent import AgentConfiguration
from app.models.generation import MessageRole
from app.models.message_schemas import Utterance


def make_transcript(*turns):
    return [Utterance(role=role, content=content) for role, content in turns]


class TestBuildSystemPrompt:
    def test_sections_in_order(self):
        agent = AgentConfiguration(
            system_prompt="Sell pizza.",
            extraction_fields=("name", "address"),
            language="en",
        )
        prompt = build_system_prompt(agent, context="Menu: margherita")

        assert prompt.startswith(VOICE_PREAMBLE)
        assert prompt.index(AGENT_INSTRUCTIONS_HEADER) < prompt.index(CONTEXT_HEADER)
        assert prompt.index(CONTEXT_HEADER) < prompt.index(EXTRACTION_HEADER)
        assert "Sell pizza." in prompt
        assert "Menu: margherita" in prompt
        assert "name, address" in prompt
        assert prompt.endswith("Always communicate in en.")

    def test_empty_context_is_omitted(self):
        prompt = build_system_prompt(AgentConfiguration(system_prompt="x"), context="   ")
        assert CONTEXT_HEADER not in prompt

    def test_extraction_fields_can_be_disabled(self):
        agent = AgentConfiguration(extraction_fields=("name",))
        prompt = build_system_prompt(agent, include_extraction_fields=False)
        assert EXTRACTION_HEADER not in prompt

    def test_empty_configuration_gets_default_instructions(self):
        agent = AgentConfiguration(system_prompt="", language="")
        prompt = build_system_prompt(agent)
        assert prompt.strip()
        assert DEFAULT_SYSTEM_PROMPT in prompt


class TestBuildGenerationRequest:
    def test_transcript_mapping_and_blank_skipping(self):
        agent = AgentConfiguration(model="gpt-4o", temperature=0.3, max_tokens=99)
        transcript = make_transcript(
            ("agent", "Hello"),
            ("user", "hi"),
            ("user", "   "),
            ("user", "table for two"),
            ("agent", ""),
        )

        request = build_generation_request(agent, "", transcript, "response_required")

        assert request.model == "gpt-4o"
        assert request.temperature == 0.3
        assert request.max_tokens == 99
        roles = [m.role for m in request.messages]
        assert roles == [
            MessageRole.SYSTEM,
            MessageRole.ASSISTANT,
            MessageRole.USER,
            MessageRole.USER,
        ]
        assert [m.content for m in request.messages[1:]] == ["Hello", "hi", "table for two"]

    def test_reminder_appends_trailing_user_message(self):
        agent = AgentConfiguration(reminder_text="Still there?")
        transcript = make_transcript(("agent", "Hello"))

        request = build_generation_request(agent, "", transcript, "reminder_required")

        assert request.messages[-1].role == MessageRole.USER
        assert request.messages[-1].content == "Still there?"

    def test_reminder_default_text(self):
        request = build_generation_request(AgentConfiguration(), "", [], "reminder_required")
        assert request.messages[-1].content == DEFAULT_REMINDER_TEXT

    def test_always_one_system_message(self):
        request = build_generation_request(AgentConfiguration(), "", [], "response_required")
        assert len(request.messages) == 1
        assert request.messages[0].role == MessageRole.SYSTEM
        assert request.messages[0].content

    def test_openai_message_format(self):
        request = build_generation_request(
            AgentConfiguration(), "", make_transcript(("user", "hola")), "response_required"
        )
        messages = request.to_openai_messages()
        assert messages[0]["role"] == "system"
        assert messages[1] == {"role": "user", "content": "hola"}

    def test_is_deterministic(self):
        agent = AgentConfiguration(system_prompt="x", extraction_fields=("a",))
        transcript = make_transcript(("user", "hi"))
        first = build_generation_request(agent, "ctx", transcript, "response_required")
        second = build_generation_request(agent, "ctx", transcript, "response_required")
        assert first == second
