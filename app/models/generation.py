"""
Models for requests sent to the text-generation provider.
"""

from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict


class MessageRole(str, Enum):
    """Role of a participant in a conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """One role-tagged message of a generation request."""
    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str


class GenerationRequest(BaseModel):
    """Everything the provider needs for one response cycle. Never mutated."""
    model_config = ConfigDict(frozen=True)

    messages: Tuple[ChatMessage, ...]
    model: str
    temperature: float
    max_tokens: int

    def to_openai_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": message.role.value, "content": message.content}
            for message in self.messages
        ]
