"""
Call session state for the LLM WebSocket protocol.

This module provides the ``CallSession`` record owned by the connection
lifecycle manager for the duration of one call, and the ``CallSessionManager``
registry which tracks live sessions by call identifier.

A session is only touched from its own connection's coroutines: the frame
dispatcher and the response tasks it spawns. All outbound writes go through
``CallSession.send_frame`` so frames are never interleaved mid-write.
"""

import asyncio
import logging
from typing import Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from app.config.constants import LOGGER_NAME
from app.models.agent import AgentConfiguration

logger = logging.getLogger(LOGGER_NAME)


class CallSession:
    """
    Per-connection state of one call.

    Attributes:
        call_id: Call identifier taken from the connection target
        agent_id: Agent identifier taken from the connection target
        agent_config: Read-only configuration snapshot for the agent
        websocket: The transport for this call
        active_response_id: Response id currently being generated, if any
        active_task: Task running the current response cycle, if any
        highest_response_id: Highest response id observed on this session
        is_open: False once the transport has closed
    """

    def __init__(
        self,
        call_id: str,
        agent_id: str,
        agent_config: AgentConfiguration,
        websocket: WebSocket,
    ):
        self.call_id = call_id
        self.agent_id = agent_id
        self.agent_config = agent_config
        self.websocket = websocket
        self.active_response_id: Optional[int] = None
        self.active_task: Optional[asyncio.Task] = None
        self.highest_response_id = -1
        self.is_open = True
        self._send_lock = asyncio.Lock()

    def has_active_response(self) -> bool:
        return self.active_task is not None and not self.active_task.done()

    async def send_frame(self, frame: BaseModel) -> bool:
        """
        Serialize and send one outbound frame.

        Args:
            frame: Any outbound frame model

        Returns:
            True if the frame was written, False if the transport is closed
        """
        if not self.is_open:
            return False
        async with self._send_lock:
            if not self.is_open:
                return False
            try:
                await self.websocket.send_text(frame.model_dump_json())
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.info(f"[{self.call_id}] Transport closed while sending: {e}")
                self.is_open = False
                return False
        return True

    def cancel_active_response(self) -> None:
        """Cancel the in-flight response task, if any."""
        if self.has_active_response():
            logger.info(
                f"[{self.call_id}] Cancelling in-flight response {self.active_response_id}"
            )
            self.active_task.cancel()

    def close(self) -> None:
        """Mark the transport closed and stop any in-flight generation."""
        self.is_open = False
        self.cancel_active_response()


class CallSessionManager:
    """
    Registry of live call sessions keyed by call identifier.
    """

    def __init__(self):
        """Initialize an empty dictionary of active sessions."""
        self.active_sessions: Dict[str, CallSession] = {}

    def add_session(self, session: CallSession) -> None:
        """
        Add a session to the registry.

        Args:
            session: The newly accepted call session
        """
        self.active_sessions[session.call_id] = session

    def get_session(self, call_id: str) -> Optional[CallSession]:
        """
        Get a live session by call id, or None if it does not exist.
        """
        return self.active_sessions.get(call_id)

    def remove_session(self, session: CallSession) -> Optional[CallSession]:
        """
        Remove a session from the registry.

        A reconnect may have registered a newer session under the same call
        id; that entry is left in place.

        Args:
            session: The session to remove

        Returns:
            The removed session, or None if it was not the registered one
        """
        if self.active_sessions.get(session.call_id) is not session:
            return None
        return self.active_sessions.pop(session.call_id)

    def get_all_sessions(self) -> Dict[str, CallSession]:
        return self.active_sessions
