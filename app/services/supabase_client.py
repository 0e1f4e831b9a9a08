"""
Minimal async client for the Supabase REST (PostgREST) interface.

Only the two calls the agent server needs are implemented: a filtered
``select`` on a table and a stored-procedure ``rpc`` call.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class SupabaseClient:
    """
    Thin wrapper over ``httpx.AsyncClient`` for one Supabase project.

    Errors are not handled here: ``httpx.HTTPError`` propagates to the caller,
    which decides whether the failure is fatal.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 5.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url.rstrip("/")
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def select(
        self, table: str, filters: Dict[str, str], columns: str = "*"
    ) -> List[Dict[str, Any]]:
        """
        Return the rows of ``table`` whose columns equal the given values.

        Args:
            table: Table name
            filters: Column name to expected value
            columns: PostgREST select expression
        """
        params = {"select": columns}
        for column, value in filters.items():
            params[column] = f"eq.{value}"
        response = await self._client.get(
            f"{self.url}/rest/v1/{table}", params=params, headers=self._headers
        )
        response.raise_for_status()
        return response.json()

    async def rpc(self, function: str, payload: Dict[str, Any]) -> Any:
        """Call a stored procedure and return its decoded JSON result."""
        response = await self._client.post(
            f"{self.url}/rest/v1/rpc/{function}", json=payload, headers=self._headers
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self._client.aclose()
