"""
WebSocket connection manager for the LLM WebSocket protocol.

This module implements the server side of one call's connection lifecycle:
- Resolve the agent and close the connection before any frame if that fails
- Send the handshake (config frame, then the greeting as response 0)
- Read frames in arrival order and hand them to the frame dispatcher
- Cancel in-flight generation and release the session when the call ends

The WebSocketManager class is the central component that orchestrates all WebSocket
communications between the remote call platform and the response streamer.
"""

import asyncio
import logging
import socket
from typing import Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect

from app.bot.response_streamer import ResponseStreamer
from app.config.constants import (
    CLOSE_INTERNAL_ERROR,
    CLOSE_POLICY_VIOLATION,
    CLOSE_UNSUPPORTED_DATA,
    DEFAULT_GREETING,
    GREETING_RESPONSE_ID,
    LOGGER_NAME,
)
from app.exceptions import ConfigurationUnavailable, ProtocolViolation
from app.handlers.frame_handlers import FRAME_HANDLERS, HandlerFunc, dispatch_frame
from app.models.message_schemas import AgentResponse, ConfigResponse, ConfigSettings
from app.models.session import CallSession, CallSessionManager
from app.services.agent_store import AgentStore

logger = logging.getLogger(LOGGER_NAME)

# Capabilities announced in the config frame
AUTO_RECONNECT = True
CALL_DETAILS = False


class WebSocketManager:
    """Manages call connections and routes their frames to the dispatcher.

    Args:
        agent_store: Source of agent configurations
        response_streamer: Runs response cycles for generation-triggering frames
        session_manager: Registry of live sessions; a new one is created if omitted
    """

    def __init__(
        self,
        agent_store: AgentStore,
        response_streamer: ResponseStreamer,
        session_manager: Optional[CallSessionManager] = None,
    ):
        self.agent_store = agent_store
        self.response_streamer = response_streamer
        self.session_manager = session_manager or CallSessionManager()
        self.handlers: Dict[str, HandlerFunc] = dict(FRAME_HANDLERS)

    async def _optimize_socket(self, websocket: WebSocket) -> None:
        """
        Disable Nagle's algorithm on the underlying TCP socket, if reachable.
        """
        try:
            client = websocket.client
            if hasattr(client, "sock") and client.sock is not None:
                client.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                logger.info("Optimized socket: TCP_NODELAY enabled for low latency")
        except Exception as e:
            logger.warning(f"Could not optimize socket: {e}")

    async def handle_websocket(
        self, websocket: WebSocket, call_id: str, agent_id: Optional[str]
    ) -> None:
        """Handle a call connection throughout its lifecycle.

        Args:
            websocket: The FastAPI WebSocket connection object
            call_id: Call identifier from the connection target
            agent_id: Agent identifier from the connection target, may be missing

        The connection is closed without any frame when the agent id is
        missing (policy violation) or its configuration cannot be loaded.
        Binary frames close the connection with "unsupported data", frames
        that fail to decode with "protocol error".
        """
        if not agent_id:
            logger.warning(f"[{call_id}] Rejecting connection: no agent id")
            await self._reject(websocket, call_id, CLOSE_POLICY_VIOLATION)
            return

        try:
            agent_config = await self.agent_store.load_agent_configuration(agent_id)
        except ConfigurationUnavailable as e:
            logger.error(f"[{call_id}] Rejecting connection: {e}")
            await self._reject(websocket, call_id, e.close_code)
            return

        await websocket.accept()
        await self._optimize_socket(websocket)
        logger.info(f"[{call_id}] WebSocket connected for agent {agent_id}")

        session = CallSession(call_id, agent_id, agent_config, websocket)
        self.session_manager.add_session(session)

        try:
            await self.send_handshake(session)
            await self._message_loop(session)
        except ProtocolViolation as e:
            logger.error(f"[{call_id}] Protocol violation: {e.reason}")
            await self._shutdown_session(session)
            await self._close_transport(session, e.close_code, e.reason)
        except WebSocketDisconnect as e:
            logger.info(f"[{call_id}] WebSocket disconnected (code {e.code})")
        except Exception as e:
            logger.error(f"[{call_id}] Error in WebSocket connection: {e}", exc_info=True)
            await self._shutdown_session(session)
            await self._close_transport(session, CLOSE_INTERNAL_ERROR, "Internal error")
        finally:
            await self._shutdown_session(session)
            self.session_manager.remove_session(session)
            logger.info(f"[{call_id}] Session released")

    async def _reject(self, websocket: WebSocket, call_id: str, code: int) -> None:
        """
        Complete the handshake and close at once with ``code``.

        Closing before accept is answered with HTTP 403 by the server, which
        carries no close code.
        """
        await websocket.accept()
        try:
            await websocket.close(code=code)
        except (RuntimeError, OSError) as e:
            logger.debug(f"[{call_id}] Transport already closed: {e}")

    async def send_handshake(self, session: CallSession) -> None:
        """Send the config frame followed by the opening greeting."""
        await session.send_frame(
            ConfigResponse(
                config=ConfigSettings(auto_reconnect=AUTO_RECONNECT, call_details=CALL_DETAILS)
            )
        )
        greeting = session.agent_config.greeting or DEFAULT_GREETING
        logger.info(f'[{session.call_id}] Sending greeting: "{greeting}"')
        await session.send_frame(
            AgentResponse(
                response_id=GREETING_RESPONSE_ID,
                content=greeting,
                content_complete=True,
                end_call=False,
            )
        )

    async def _message_loop(self, session: CallSession) -> None:
        while True:
            message = await session.websocket.receive()

            if message["type"] == "websocket.disconnect":
                logger.info(
                    f"[{session.call_id}] WebSocket closed by remote party (code {message.get('code')})"
                )
                session.is_open = False
                return

            text = message.get("text")
            if text is None:
                raise ProtocolViolation(
                    "Expected text message, got binary.", CLOSE_UNSUPPORTED_DATA
                )

            await dispatch_frame(text, session, self.response_streamer, self.handlers)

    async def _shutdown_session(self, session: CallSession) -> None:
        """Stop in-flight generation and wait for it to unwind."""
        task = session.active_task
        session.close()
        if task is not None and not task.done():
            await asyncio.wait([task])

    async def _close_transport(self, session: CallSession, code: int, reason: str) -> None:
        try:
            await session.websocket.close(code=code, reason=reason)
        except (RuntimeError, OSError) as e:
            logger.debug(f"[{session.call_id}] Transport already closed: {e}")
