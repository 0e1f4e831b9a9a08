"""
Handles inbound frames of the LLM WebSocket protocol.

Each interaction type is routed to one handler. Handlers never block on
generation: response-triggering frames are handed to the ``ResponseStreamer``,
which runs the cycle on its own task, so ping_pong frames are answered while a
response is still streaming.
"""

import logging
from typing import Awaitable, Callable, Dict

from app.config import settings
from app.config.constants import (
    INTERACTION_CALL_DETAILS,
    INTERACTION_PING_PONG,
    INTERACTION_REMINDER_REQUIRED,
    INTERACTION_RESPONSE_REQUIRED,
    INTERACTION_UPDATE_ONLY,
    LOGGER_NAME,
    TURNTAKING_AGENT_TURN,
)
from app.bot.response_streamer import ResponseStreamer
from app.models.message_schemas import (
    BaseInboundFrame,
    CallDetailsFrame,
    PingPongFrame,
    PingPongResponse,
    ResponseRequiredFrame,
    UpdateOnlyFrame,
    parse_inbound_frame,
)
from app.models.session import CallSession

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
HandlerFunc = Callable[
    [BaseInboundFrame, CallSession, ResponseStreamer], Awaitable[None]
]


async def handle_call_details(
    frame: CallDetailsFrame,
    session: CallSession,
    streamer: ResponseStreamer,
) -> None:
    """Log the call details payload. No frame is sent back."""
    logger.info(f"[{session.call_id}] Call details received: {frame.call}")


async def handle_ping_pong(
    frame: PingPongFrame,
    session: CallSession,
    streamer: ResponseStreamer,
) -> None:
    """
    Echo a keep-alive frame.

    The timestamp is copied verbatim from the inbound frame.
    """
    await session.send_frame(PingPongResponse(timestamp=frame.timestamp))


async def handle_update_only(
    frame: UpdateOnlyFrame,
    session: CallSession,
    streamer: ResponseStreamer,
) -> None:
    """
    Handle a transcript update.

    Normally nothing is sent. When turn-taking promotion is enabled and the
    remote party signals ``agent_turn``, the update is treated as a
    response_required frame.
    """
    if frame.turntaking != TURNTAKING_AGENT_TURN or not settings.TURNTAKING_PROMOTION_ENABLED:
        return

    if frame.response_id is None:
        logger.warning(
            f"[{session.call_id}] update_only with agent_turn has no response_id, ignoring"
        )
        return

    logger.info(
        f"[{session.call_id}] Remote party expects a response despite update_only (agent_turn)"
    )
    promoted = ResponseRequiredFrame.model_validate(
        {**frame.model_dump(), "interaction_type": INTERACTION_RESPONSE_REQUIRED}
    )
    streamer.start_response(session, promoted)


async def handle_response_required(
    frame: BaseInboundFrame,
    session: CallSession,
    streamer: ResponseStreamer,
) -> None:
    """Hand a response_required or reminder_required frame to the streamer."""
    streamer.start_response(session, frame)


FRAME_HANDLERS: Dict[str, HandlerFunc] = {
    INTERACTION_CALL_DETAILS: handle_call_details,
    INTERACTION_PING_PONG: handle_ping_pong,
    INTERACTION_UPDATE_ONLY: handle_update_only,
    INTERACTION_RESPONSE_REQUIRED: handle_response_required,
    INTERACTION_REMINDER_REQUIRED: handle_response_required,
}


async def dispatch_frame(
    data: str,
    session: CallSession,
    streamer: ResponseStreamer,
    handlers: Dict[str, HandlerFunc] = FRAME_HANDLERS,
) -> BaseInboundFrame:
    """
    Decode one text frame and route it to its handler.

    Args:
        data: Raw text frame
        session: The call session the frame arrived on
        streamer: Response streamer for generation-triggering frames
        handlers: Handler table keyed by interaction type

    Returns:
        The decoded frame

    Raises:
        ProtocolViolation: If the frame cannot be decoded or validated
    """
    frame = parse_inbound_frame(data)
    logger.debug(
        f"[{session.call_id}] Received {frame.interaction_type}"
        + (f" for response {frame.response_id}" if frame.response_id is not None else "")
    )
    handler = handlers.get(frame.interaction_type)
    if handler is None:
        logger.warning(f"[{session.call_id}] Unhandled interaction type: {frame.interaction_type}")
        return frame
    await handler(frame, session, streamer)
    return frame
