"""
Models module for data structures and state management in the real-time LLM agent.

Key components:
- message_schemas: Pydantic models for inbound and outbound protocol frames,
  including the tagged union used to decode and validate inbound frames.
- agent: The read-only agent configuration snapshot and its store-record parser.
- generation: Role-tagged messages and the per-cycle generation request.
- session: Per-call session state and the registry of live sessions.

Usage examples:
```python
from app.models.message_schemas import AgentResponse, parse_inbound_frame

frame = parse_inbound_frame('{"interaction_type": "ping_pong", "timestamp": 1}')

response = AgentResponse(
    response_id=3, content="Hello", content_complete=False, end_call=False
)
await websocket.send_text(response.model_dump_json())
```
"""

from app.models.agent import DEFAULT_AGENT_CONFIGURATION, AgentConfiguration
from app.models.generation import ChatMessage, GenerationRequest, MessageRole
from app.models.message_schemas import (
    AgentResponse,
    BaseInboundFrame,
    CallDetailsFrame,
    ConfigResponse,
    ConfigSettings,
    InboundFrame,
    OutgoingFrame,
    PingPongFrame,
    PingPongResponse,
    ReminderRequiredFrame,
    ResponseRequiredFrame,
    UpdateOnlyFrame,
    Utterance,
    parse_inbound_frame,
)
from app.models.session import CallSession, CallSessionManager
