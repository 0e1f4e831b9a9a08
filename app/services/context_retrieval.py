"""
Knowledge-base context retrieval.

Given the caller's latest utterance, fetches the most similar documents of the
agent's knowledge base from the vector store. Retrieval is best effort: every
failure is logged and degrades to an empty context.
"""

import logging
from typing import Any, List, Optional

import httpx
from openai import OpenAIError

from app.config.constants import (
    EMBEDDING_MODEL,
    LOGGER_NAME,
    MATCH_COUNT,
    MATCH_THRESHOLD,
)
from app.exceptions import ContextRetrievalFailure
from app.services.openai_clients import OpenAIClientRegistry
from app.services.supabase_client import SupabaseClient

logger = logging.getLogger(LOGGER_NAME)

MATCH_DOCUMENTS_RPC = "match_documents"


class ContextRetriever:
    """
    Looks up supplementary context for a query in a knowledge base.

    Documents are ranked by the ``match_documents`` stored procedure, which
    filters by knowledge-base id and similarity threshold.
    """

    def __init__(
        self,
        knowledge_store: Optional[SupabaseClient],
        openai_clients: OpenAIClientRegistry,
    ):
        self.knowledge_store = knowledge_store
        self.openai_clients = openai_clients

    async def retrieve_context(
        self,
        knowledge_base_id: Optional[str],
        query_text: Optional[str],
        api_key: Optional[str] = None,
    ) -> str:
        """
        Return the matching documents joined by blank lines, or "".

        Args:
            knowledge_base_id: Knowledge-source identifier; no lookup when empty
            query_text: Text to embed and search for
            api_key: Provider credential used for the embedding call

        Returns:
            The concatenated document bodies in the store's ranking order
        """
        if not knowledge_base_id:
            return ""
        if not query_text or not query_text.strip():
            return ""

        try:
            embedding = await self._embed(query_text, api_key)
            documents = await self._match_documents(embedding, knowledge_base_id)
        except Exception as e:
            logger.error(f"RAG Error for knowledge base {knowledge_base_id}: {e}", exc_info=True)
            return ""

        return "\n\n".join(documents)

    async def _embed(self, text: str, api_key: Optional[str]) -> List[float]:
        if not api_key:
            raise ContextRetrievalFailure("No provider credential for embeddings")
        client = self.openai_clients.get_client(api_key)
        try:
            response = await client.embeddings.create(model=EMBEDDING_MODEL, input=text)
        except OpenAIError as e:
            raise ContextRetrievalFailure(f"Embedding request failed: {e}") from e
        return response.data[0].embedding

    async def _match_documents(self, embedding: List[float], knowledge_base_id: str) -> List[str]:
        if self.knowledge_store is None:
            raise ContextRetrievalFailure("No knowledge store configured")
        try:
            rows: Any = await self.knowledge_store.rpc(
                MATCH_DOCUMENTS_RPC,
                {
                    "query_embedding": embedding,
                    "match_threshold": MATCH_THRESHOLD,
                    "match_count": MATCH_COUNT,
                    "filter_kb_id": knowledge_base_id,
                },
            )
        except (httpx.HTTPError, ValueError) as e:
            raise ContextRetrievalFailure(f"Document match failed: {e}") from e

        if not isinstance(rows, list):
            raise ContextRetrievalFailure(f"Unexpected match_documents payload: {type(rows).__name__}")

        documents = []
        for row in rows[:MATCH_COUNT]:
            content = row.get("content") if isinstance(row, dict) else None
            if content:
                documents.append(content)
        return documents
