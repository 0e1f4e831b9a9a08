"""
Cache of ``AsyncOpenAI`` clients keyed by credential.

Agents may carry their own provider credential, so one client is kept per
distinct API key and shared by every call that uses it.
"""

from typing import Dict

from openai import AsyncOpenAI


class OpenAIClientRegistry:
    def __init__(self):
        self._clients: Dict[str, AsyncOpenAI] = {}

    def get_client(self, api_key: str) -> AsyncOpenAI:
        client = self._clients.get(api_key)
        if client is None:
            client = AsyncOpenAI(api_key=api_key)
            self._clients[api_key] = client
        return client

    async def close(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.close()
