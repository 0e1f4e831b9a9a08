"""
WebSocket client that plays the call platform's side of the LLM protocol.

This module provides a client for exercising a running agent server: it
connects like the call platform would, reads the handshake, sends transcript
turns and keep-alive frames, and collects streamed replies.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import websockets

from app.config.constants import (
    INTERACTION_PING_PONG,
    INTERACTION_REMINDER_REQUIRED,
    INTERACTION_RESPONSE_REQUIRED,
    LOGGER_NAME,
    RESPONSE_TYPE_CONFIG,
    RESPONSE_TYPE_PING_PONG,
    RESPONSE_TYPE_RESPONSE,
)
from app.models.message_schemas import AgentResponse, ConfigResponse, Utterance

logger = logging.getLogger(LOGGER_NAME)


class CallSimulatorClient:
    """
    Simulated call platform for one call.

    The client keeps the running transcript and a response id counter, the
    same way the platform does.
    """

    def __init__(self, url: str):
        """
        Initialize the simulator client.

        Args:
            url: WebSocket URL of the call, including the agent id
        """
        self.url = url
        self.websocket = None
        self.transcript: List[Utterance] = []
        self.next_response_id = 1
        self.config: Optional[ConfigResponse] = None

    async def connect(self) -> bool:
        """
        Connect to the agent server.

        Returns:
            True if connection was successful, False otherwise
        """
        try:
            self.websocket = await websockets.connect(self.url)
            logger.info(f"Connected to agent WebSocket at {self.url}")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to agent server: {e}")
            return False

    async def receive_handshake(self) -> Optional[str]:
        """
        Read the config frame and the opening greeting.

        Returns:
            The greeting text, or None if the handshake was not as expected
        """
        if not self.websocket:
            logger.error("Cannot receive handshake: Not connected")
            return None

        config_frame = json.loads(await self.websocket.recv())
        if config_frame.get("response_type") != RESPONSE_TYPE_CONFIG:
            logger.error(f"Expected config frame, got: {config_frame}")
            return None
        self.config = ConfigResponse(**config_frame)

        greeting_frame = json.loads(await self.websocket.recv())
        if greeting_frame.get("response_type") != RESPONSE_TYPE_RESPONSE:
            logger.error(f"Expected greeting response, got: {greeting_frame}")
            return None
        greeting = AgentResponse(**greeting_frame)
        if greeting.content:
            self.transcript.append(Utterance(role="agent", content=greeting.content))
        logger.info(f"Greeting received: {greeting.content}")
        return greeting.content

    async def send_ping(self, timestamp: Optional[int] = None) -> int:
        """
        Send a ping_pong frame.

        Returns:
            The timestamp that was sent
        """
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        await self._send(
            {"interaction_type": INTERACTION_PING_PONG, "timestamp": timestamp}
        )
        return timestamp

    async def say(self, text: str) -> Tuple[str, bool]:
        """
        Add a user utterance and wait for the agent's full reply.

        Args:
            text: What the simulated caller says

        Returns:
            The reply text and whether the agent asked to end the call
        """
        self.transcript.append(Utterance(role="user", content=text))
        return await self.request_response(INTERACTION_RESPONSE_REQUIRED)

    async def remind(self) -> Tuple[str, bool]:
        """Ask the agent for a follow-up after user silence."""
        return await self.request_response(INTERACTION_REMINDER_REQUIRED)

    async def request_response(self, interaction_type: str) -> Tuple[str, bool]:
        """
        Send a response-triggering frame and collect the streamed reply.

        ping_pong frames and frames for other response ids are skipped.
        """
        if not self.websocket:
            logger.error("Cannot request response: Not connected")
            return "", False

        response_id = self.next_response_id
        self.next_response_id += 1
        await self._send(
            {
                "interaction_type": interaction_type,
                "response_id": response_id,
                "transcript": [u.model_dump() for u in self.transcript],
            }
        )

        fragments = []
        while True:
            frame = json.loads(await self.websocket.recv())
            if frame.get("response_type") == RESPONSE_TYPE_PING_PONG:
                continue
            if frame.get("response_type") != RESPONSE_TYPE_RESPONSE:
                logger.warning(f"Unexpected frame: {frame}")
                continue
            response = AgentResponse(**frame)
            if response.response_id != response_id:
                continue
            fragments.append(response.content)
            if response.content_complete:
                reply = "".join(fragments)
                if reply:
                    self.transcript.append(Utterance(role="agent", content=reply))
                return reply, response.end_call

    async def close(self) -> None:
        """
        Close the WebSocket connection.
        """
        if self.websocket:
            await self.websocket.close()
            logger.info("Closed WebSocket connection")
            self.websocket = None

    async def _send(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send(json.dumps(payload))
        logger.debug(f"Sent {payload['interaction_type']} frame")
