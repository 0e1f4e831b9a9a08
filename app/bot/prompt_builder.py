"""
Prompt assembly for one response cycle.

Pure functions only: the same agent configuration, context, transcript and
interaction type always produce the same ``GenerationRequest``.
"""

from typing import List, Sequence

from app.config.constants import (
    DEFAULT_REMINDER_TEXT,
    DEFAULT_SYSTEM_PROMPT,
    INTERACTION_REMINDER_REQUIRED,
)
from app.models.agent import AgentConfiguration
from app.models.generation import ChatMessage, GenerationRequest, MessageRole
from app.models.message_schemas import Utterance

VOICE_PREAMBLE = """You are talking with a person on a live phone call. Everything you write is spoken aloud.
- Keep every reply short: one to three brief sentences, no lists, no markdown.
- Start replies naturally, with a short filler such as "mm", "okay" or "let me see" when you need a moment, so the caller never hears dead air.
- The caller's words come from speech recognition and may be garbled. If something is unclear, ask them to repeat it in a natural way. Never mention transcription problems, errors or anything about how you work."""

AGENT_INSTRUCTIONS_HEADER = "## Agent Instructions:"
CONTEXT_HEADER = "## Relevant Context (Use this to answer questions):"
EXTRACTION_HEADER = "## Mission: You MUST extract these fields during the conversation:"
LANGUAGE_INSTRUCTION = "## Language Instruction: Always communicate in {language}."

_ROLE_MAP = {
    "agent": MessageRole.ASSISTANT,
    "user": MessageRole.USER,
}


def build_system_prompt(
    agent: AgentConfiguration,
    context: str = "",
    include_extraction_fields: bool = True,
) -> str:
    """
    Build the single system message for a response cycle.

    Args:
        agent: The agent configuration
        context: Retrieved knowledge-base text, may be empty
        include_extraction_fields: Whether to add the extraction mission section

    Returns:
        The system prompt text, never empty
    """
    instructions = agent.system_prompt.strip() or DEFAULT_SYSTEM_PROMPT
    sections = [VOICE_PREAMBLE, f"{AGENT_INSTRUCTIONS_HEADER}\n{instructions}"]

    if context and context.strip():
        sections.append(f"{CONTEXT_HEADER}\n{context.strip()}")

    if include_extraction_fields and agent.extraction_fields:
        sections.append(f"{EXTRACTION_HEADER} {', '.join(agent.extraction_fields)}")

    if agent.language:
        sections.append(LANGUAGE_INSTRUCTION.format(language=agent.language))

    return "\n\n".join(sections)


def build_messages(
    agent: AgentConfiguration,
    context: str,
    transcript: Sequence[Utterance],
    interaction_type: str,
    include_extraction_fields: bool = True,
) -> List[ChatMessage]:
    messages = [
        ChatMessage(
            role=MessageRole.SYSTEM,
            content=build_system_prompt(agent, context, include_extraction_fields),
        )
    ]

    for utterance in transcript:
        if not utterance.content or not utterance.content.strip():
            continue
        messages.append(ChatMessage(role=_ROLE_MAP[utterance.role], content=utterance.content))

    if interaction_type == INTERACTION_REMINDER_REQUIRED:
        reminder = agent.reminder_text.strip() or DEFAULT_REMINDER_TEXT
        messages.append(ChatMessage(role=MessageRole.USER, content=reminder))

    return messages


def build_generation_request(
    agent: AgentConfiguration,
    context: str,
    transcript: Sequence[Utterance],
    interaction_type: str,
    include_extraction_fields: bool = True,
) -> GenerationRequest:
    """
    Assemble the provider request for one response cycle.

    Args:
        agent: The agent configuration
        context: Retrieved knowledge-base text, may be empty
        transcript: Conversation so far, oldest first
        interaction_type: ``response_required`` or ``reminder_required``
        include_extraction_fields: Whether to add the extraction mission section

    Returns:
        An immutable generation request
    """
    messages = build_messages(
        agent, context, transcript, interaction_type, include_extraction_fields
    )
    return GenerationRequest(
        messages=tuple(messages),
        model=agent.model,
        temperature=agent.temperature,
        max_tokens=agent.max_tokens,
    )
