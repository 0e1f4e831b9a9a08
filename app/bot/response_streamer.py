"""
Response streaming for the LLM WebSocket protocol.

``ResponseStreamer`` runs one generation-and-reply cycle per response-triggering
frame: it retrieves context, assembles the prompt, streams provider fragments
back as ``response`` frames and closes the stream with exactly one
``content_complete`` frame.

At most one cycle runs per session. A newer response id supersedes the
in-flight one: the old task is cancelled and the new task waits for it to
finish before writing anything, so the two streams never interleave.
"""

import asyncio
import logging
from contextlib import aclosing
from functools import partial
from typing import Optional

from app.bot.prompt_builder import build_generation_request
from app.config import settings
from app.config.constants import APOLOGY_TEXT, LOGGER_NAME
from app.models.agent import AgentConfiguration
from app.models.message_schemas import AgentResponse, GenerationFrame
from app.models.session import CallSession
from app.services.completion_provider import CompletionProvider
from app.services.context_retrieval import ContextRetriever

logger = logging.getLogger(LOGGER_NAME)


def contains_hangup_phrase(agent: AgentConfiguration, text: str) -> bool:
    """Case-insensitive substring match of ``text`` against the agent's hangup phrases."""
    lowered = text.lower()
    return any(phrase.lower() in lowered for phrase in agent.hangup_phrases if phrase)


class ResponseStreamer:
    """
    Drives response cycles for call sessions.

    Args:
        completion_provider: Streams text fragments from the model
        context_retriever: Looks up knowledge-base context
        hangup_detection_enabled: Overrides ``settings.HANGUP_DETECTION_ENABLED``
        extraction_fields_enabled: Overrides ``settings.EXTRACTION_FIELDS_ENABLED``
    """

    def __init__(
        self,
        completion_provider: CompletionProvider,
        context_retriever: ContextRetriever,
        hangup_detection_enabled: Optional[bool] = None,
        extraction_fields_enabled: Optional[bool] = None,
    ):
        self.completion_provider = completion_provider
        self.context_retriever = context_retriever
        self._hangup_detection_enabled = hangup_detection_enabled
        self._extraction_fields_enabled = extraction_fields_enabled

    @property
    def hangup_detection_enabled(self) -> bool:
        if self._hangup_detection_enabled is None:
            return settings.HANGUP_DETECTION_ENABLED
        return self._hangup_detection_enabled

    @property
    def extraction_fields_enabled(self) -> bool:
        if self._extraction_fields_enabled is None:
            return settings.EXTRACTION_FIELDS_ENABLED
        return self._extraction_fields_enabled

    def start_response(
        self, session: CallSession, frame: GenerationFrame
    ) -> Optional[asyncio.Task]:
        """
        Start a response cycle for ``frame`` without waiting for it.

        The supersession check and the swap of the session's active response
        happen without yielding to the event loop.

        Args:
            session: The call session the frame arrived on
            frame: A response_required or reminder_required frame

        Returns:
            The task running the cycle, or None if the frame was dropped
        """
        response_id = frame.response_id

        if response_id < session.highest_response_id:
            logger.warning(
                f"[{session.call_id}] Dropping stale response {response_id} "
                f"(highest seen {session.highest_response_id})"
            )
            return None

        previous_task = None
        if session.has_active_response():
            if session.active_response_id == response_id:
                logger.info(
                    f"[{session.call_id}] Response {response_id} already in flight, ignoring repeat"
                )
                return None
            logger.info(
                f"[{session.call_id}] Response {response_id} supersedes {session.active_response_id}"
            )
            previous_task = session.active_task
            session.cancel_active_response()

        session.highest_response_id = response_id
        session.active_response_id = response_id
        task = asyncio.create_task(self._run_response_cycle(session, frame, previous_task))
        session.active_task = task
        task.add_done_callback(partial(self._on_cycle_done, session))
        return task

    def _on_cycle_done(self, session: CallSession, task: asyncio.Task) -> None:
        if session.active_task is task:
            session.active_task = None
            session.active_response_id = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"[{session.call_id}] Response task failed: {task.exception()}",
                exc_info=task.exception(),
            )

    async def _run_response_cycle(
        self,
        session: CallSession,
        frame: GenerationFrame,
        previous_task: Optional[asyncio.Task],
    ) -> None:
        if previous_task is not None:
            await asyncio.wait([previous_task])
        try:
            await self.stream_response(session, frame)
        except asyncio.CancelledError:
            logger.info(f"[{session.call_id}] Response {frame.response_id} cancelled")
            raise

    async def stream_response(self, session: CallSession, frame: GenerationFrame) -> None:
        """
        Run one response cycle to completion on the current task.

        Args:
            session: The call session to write frames to
            frame: The triggering response_required or reminder_required frame
        """
        agent = session.agent_config
        response_id = frame.response_id
        logger.info(
            f"[{session.call_id}] Drafting response {response_id} ({frame.interaction_type})"
        )

        api_key = agent.resolve_api_key(settings.OPENAI_API_KEY)
        context = await self._retrieve_context(session, frame, api_key)
        request = build_generation_request(
            agent,
            context,
            frame.transcript,
            frame.interaction_type,
            include_extraction_fields=self.extraction_fields_enabled,
        )

        fragments = []
        try:
            async with aclosing(
                self.completion_provider.stream_completion(request, api_key)
            ) as stream:
                async for fragment in stream:
                    if not session.is_open:
                        return
                    fragments.append(fragment)
                    sent = await session.send_frame(
                        AgentResponse(
                            response_id=response_id,
                            content=fragment,
                            content_complete=False,
                            end_call=False,
                        )
                    )
                    if not sent:
                        return
        except Exception as e:
            logger.error(
                f"[{session.call_id}] Error in OpenAI streaming for response {response_id}: {e}",
                exc_info=True,
            )
            await session.send_frame(
                AgentResponse(
                    response_id=response_id,
                    content=APOLOGY_TEXT,
                    content_complete=True,
                    end_call=False,
                )
            )
            return

        full_text = "".join(fragments)
        end_call = self.hangup_detection_enabled and contains_hangup_phrase(agent, full_text)
        if end_call:
            logger.info(f"[{session.call_id}] Hangup phrase detected in response {response_id}")

        await session.send_frame(
            AgentResponse(
                response_id=response_id,
                content="",
                content_complete=True,
                end_call=end_call,
            )
        )
        logger.info(
            f"[{session.call_id}] Response {response_id} complete ({len(full_text)} chars)"
        )

    async def _retrieve_context(
        self, session: CallSession, frame: GenerationFrame, api_key: Optional[str]
    ) -> str:
        knowledge_base = session.agent_config.knowledge_base
        query = frame.last_user_utterance()
        if not knowledge_base or not query:
            return ""
        try:
            return await self.context_retriever.retrieve_context(knowledge_base, query, api_key)
        except Exception as e:
            logger.warning(f"[{session.call_id}] Context retrieval failed, continuing without: {e}")
            return ""
