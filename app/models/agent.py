"""
Agent configuration model.

An ``AgentConfiguration`` is a read-only snapshot of one call-agent profile,
loaded from the external record store at handshake time and shared by
reference across the tasks of a call session.
"""

from typing import Any, Dict, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from app.config.constants import (
    DEFAULT_GREETING,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
)


def split_list_field(value: Union[str, Iterable[str], None], lower: bool = False) -> Tuple[str, ...]:
    """
    Normalize a comma-separated string (or a list of strings) into a tuple.

    Blank entries are dropped and duplicates removed, keeping first-seen order.
    """
    if not value:
        return ()
    items = value.split(",") if isinstance(value, str) else value
    result = []
    for item in items:
        item = str(item).strip()
        if lower:
            item = item.lower()
        if item and item not in result:
            result.append(item)
    return tuple(result)


class AgentConfiguration(BaseModel):
    """Configuration of one call agent. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    agent_id: str = Field("", description="Agent identifier in the record store")
    name: str = Field("", description="Display name")
    system_prompt: str = Field("", description="Agent's own instructions")
    greeting: str = Field(DEFAULT_GREETING, description="Opening line, spoken first")
    model: str = Field(DEFAULT_MODEL, description="Provider model identifier")
    temperature: float = Field(DEFAULT_TEMPERATURE, description="Sampling temperature")
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, description="Max output tokens per reply")
    reminder_text: str = Field("", description="Prompt used when the user is silent")
    knowledge_base: Optional[str] = Field(None, description="Knowledge-source identifier")
    hangup_phrases: Tuple[str, ...] = Field((), description="Lower-cased hangup triggers")
    extraction_fields: Tuple[str, ...] = Field((), description="Fields to collect")
    language: str = Field(DEFAULT_LANGUAGE, description="Target language tag")
    openai_api_key: Optional[str] = Field(None, repr=False, description="Per-agent credential")

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "AgentConfiguration":
        """
        Build a configuration from a raw store record.

        Missing or null fields fall back to ``DEFAULT_AGENT_CONFIGURATION``.

        Args:
            record: Row from the ``agents`` table

        Returns:
            The parsed configuration
        """
        defaults = DEFAULT_AGENT_CONFIGURATION

        def pick(key: str, default):
            value = record.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                return default
            return value

        max_tokens = int(pick("max_tokens", defaults.max_tokens))
        return cls(
            agent_id=str(pick("id", defaults.agent_id)),
            name=pick("name", defaults.name),
            system_prompt=pick("system_prompt", defaults.system_prompt),
            greeting=pick("greeting", defaults.greeting),
            model=pick("model", defaults.model),
            temperature=float(pick("temperature", defaults.temperature)),
            max_tokens=max_tokens if max_tokens > 0 else defaults.max_tokens,
            reminder_text=pick("reminder_text", defaults.reminder_text),
            knowledge_base=pick("knowledge_base", defaults.knowledge_base),
            hangup_phrases=split_list_field(record.get("hangup_phrases"), lower=True),
            extraction_fields=split_list_field(record.get("extraction_fields")),
            language=pick("language", defaults.language),
            openai_api_key=pick("openai_api_key", defaults.openai_api_key),
        )

    def resolve_api_key(self, fallback: Optional[str] = None) -> Optional[str]:
        """Return the per-agent credential, else ``fallback``, else None."""
        return self.openai_api_key or fallback or None


DEFAULT_AGENT_CONFIGURATION = AgentConfiguration(agent_id="default")
