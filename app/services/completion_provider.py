"""
Streaming text-generation provider.

Wraps OpenAI chat completions as an async iterator of text fragments. The
provider stream is closed as soon as the consumer stops iterating, including
when the consuming task is cancelled.
"""

import logging
from typing import AsyncIterator, Optional

from openai import OpenAIError

from app.config.constants import LOGGER_NAME
from app.exceptions import GenerationFailure
from app.models.generation import GenerationRequest
from app.services.openai_clients import OpenAIClientRegistry

logger = logging.getLogger(LOGGER_NAME)


class CompletionProvider:
    def __init__(self, openai_clients: OpenAIClientRegistry):
        self.openai_clients = openai_clients

    async def stream_completion(
        self, request: GenerationRequest, api_key: Optional[str]
    ) -> AsyncIterator[str]:
        """
        Stream response text from OpenAI.

        Args:
            request: Messages and sampling parameters for this cycle
            api_key: Provider credential; generation fails fast without one

        Yields:
            Non-empty text deltas in generation order

        Raises:
            GenerationFailure: If no credential is available or the provider errors
        """
        if not api_key:
            raise GenerationFailure("No provider credential configured")

        client = self.openai_clients.get_client(api_key)
        try:
            stream = await client.chat.completions.create(
                model=request.model,
                messages=request.to_openai_messages(),
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                stream=True,
            )
        except OpenAIError as e:
            raise GenerationFailure(f"Completion request failed: {e}") from e

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is not None and delta.content:
                    yield delta.content
        except OpenAIError as e:
            raise GenerationFailure(f"Completion stream failed: {e}") from e
        finally:
            await stream.close()
