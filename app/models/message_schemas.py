"""
Pydantic models for the call-transcript WebSocket protocol.

This module defines structured data models for all incoming and outgoing frames
of the LLM WebSocket protocol, providing type validation and documentation.
Inbound frames are decoded into a tagged union keyed by ``interaction_type``;
required fields are validated per variant at decode time.
"""

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    StrictFloat,
    StrictInt,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from app.exceptions import ProtocolViolation

# JSON numbers only, echoed back unchanged
Timestamp = Union[StrictInt, StrictFloat]


class Utterance(BaseModel):
    """One turn of the live transcript."""

    role: Literal["agent", "user"] = Field(..., description="Who spoke")
    content: str = Field("", description="What was said")

    @field_validator("content", mode="before")
    def coerce_missing_content(cls, v):
        """Treat a null content as an empty utterance."""
        return "" if v is None else v


# Inbound frames
class BaseInboundFrame(BaseModel):
    """Fields shared by every inbound frame."""

    interaction_type: str = Field(..., description="Interaction kind discriminator")
    response_id: Optional[int] = Field(
        None, description="Correlation id for the reply stream"
    )
    transcript: List[Utterance] = Field(
        default_factory=list, description="Conversation so far, oldest first"
    )
    timestamp: Optional[Timestamp] = Field(None, description="Ping timestamp")
    turntaking: Optional[str] = Field(None, description="Turn-taking hint")
    call: Optional[Dict[str, Any]] = Field(None, description="Call details payload")

    @field_validator("transcript", mode="before")
    def coerce_missing_transcript(cls, v):
        return [] if v is None else v

    def last_user_utterance(self) -> Optional[str]:
        """Return the content of the most recent user-role utterance, if any."""
        for utterance in reversed(self.transcript):
            if utterance.role == "user":
                return utterance.content
        return None


class CallDetailsFrame(BaseInboundFrame):
    interaction_type: Literal["call_details"]


class PingPongFrame(BaseInboundFrame):
    interaction_type: Literal["ping_pong"]
    timestamp: Timestamp = Field(..., description="Echoed back verbatim")


class UpdateOnlyFrame(BaseInboundFrame):
    interaction_type: Literal["update_only"]


class ResponseRequiredFrame(BaseInboundFrame):
    interaction_type: Literal["response_required"]
    response_id: int = Field(..., description="Correlation id for the reply stream")


class ReminderRequiredFrame(BaseInboundFrame):
    interaction_type: Literal["reminder_required"]
    response_id: int = Field(..., description="Correlation id for the reply stream")


InboundFrame = Annotated[
    Union[
        CallDetailsFrame,
        PingPongFrame,
        UpdateOnlyFrame,
        ResponseRequiredFrame,
        ReminderRequiredFrame,
    ],
    Field(discriminator="interaction_type"),
]

# Frames that start a generation cycle
GenerationFrame = Union[ResponseRequiredFrame, ReminderRequiredFrame]

_inbound_adapter = TypeAdapter(InboundFrame)


def parse_inbound_frame(data: str) -> BaseInboundFrame:
    """
    Decode one text frame into its typed inbound variant.

    Args:
        data: Raw UTF-8 text received from the transport

    Returns:
        The validated inbound frame

    Raises:
        ProtocolViolation: If the text is not a JSON object or fails validation
    """
    try:
        payload = json.loads(data)
    except ValueError as e:
        raise ProtocolViolation(f"Cannot parse incoming message: {e}")

    if not isinstance(payload, dict):
        raise ProtocolViolation("Incoming message must be a JSON object")

    try:
        return _inbound_adapter.validate_python(payload)
    except ValidationError as e:
        raise ProtocolViolation(
            f"Invalid {payload.get('interaction_type')!r} frame: {e.error_count()} validation error(s)"
        )


# Outbound frames
class ConfigSettings(BaseModel):
    auto_reconnect: bool = Field(..., description="Let the remote party reconnect")
    call_details: bool = Field(..., description="Request a call_details frame")


class ConfigResponse(BaseModel):
    """Config frame, sent exactly once and first on every connection."""

    response_type: Literal["config"] = "config"
    config: ConfigSettings


class AgentResponse(BaseModel):
    """One fragment of a reply stream."""

    response_type: Literal["response"] = "response"
    response_id: int = Field(..., description="Echo of the triggering response id")
    content: str = Field(..., description="Text fragment to speak")
    content_complete: bool = Field(..., description="Last frame for this response id")
    end_call: bool = Field(False, description="Hang up after speaking")


class PingPongResponse(BaseModel):
    """Keep-alive echo."""

    response_type: Literal["ping_pong"] = "ping_pong"
    timestamp: Timestamp


# Union type for all possible outgoing frames
OutgoingFrame = Union[ConfigResponse, AgentResponse, PingPongResponse]
