"""
Agent configuration stores.

The connection lifecycle manager loads one ``AgentConfiguration`` per call
through an ``AgentStore``. ``SupabaseAgentStore`` reads the ``agents`` table of
the external record store; ``InMemoryAgentStore`` serves local runs and tests.
"""

import logging
from typing import Dict, Iterable, Optional

import httpx

from app.config import settings
from app.config.constants import LOGGER_NAME
from app.exceptions import AgentNotFound, ConfigurationUnavailable
from app.models.agent import DEFAULT_AGENT_CONFIGURATION, AgentConfiguration
from app.services.supabase_client import SupabaseClient

logger = logging.getLogger(LOGGER_NAME)

AGENTS_TABLE = "agents"


class AgentStore:
    """Interface for loading agent configurations."""

    async def load_agent_configuration(self, agent_id: str) -> AgentConfiguration:
        """
        Load the configuration for ``agent_id``.

        Raises:
            AgentNotFound: If the store has no such agent
            ConfigurationUnavailable: If the store could not be queried
        """
        raise NotImplementedError

    async def close(self) -> None:
        pass


class InMemoryAgentStore(AgentStore):
    def __init__(self, agents: Optional[Iterable[AgentConfiguration]] = None):
        self.agents: Dict[str, AgentConfiguration] = {}
        for agent in agents or ():
            self.add_agent(agent)

    def add_agent(self, agent: AgentConfiguration) -> None:
        self.agents[agent.agent_id] = agent

    async def load_agent_configuration(self, agent_id: str) -> AgentConfiguration:
        agent = self.agents.get(agent_id)
        if agent is None:
            raise AgentNotFound(agent_id)
        return agent


class SupabaseAgentStore(AgentStore):
    """Loads agent records from the Supabase ``agents`` table."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    async def load_agent_configuration(self, agent_id: str) -> AgentConfiguration:
        try:
            rows = await self.client.select(AGENTS_TABLE, {"id": agent_id})
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error loading config for agent {agent_id}: {e}")
            raise ConfigurationUnavailable(agent_id, str(e)) from e

        if not isinstance(rows, list):
            logger.error(f"Unexpected agents payload for agent {agent_id}: {type(rows).__name__}")
            raise ConfigurationUnavailable(agent_id, "unexpected payload")

        if not rows:
            raise AgentNotFound(agent_id)

        if not isinstance(rows[0], dict):
            raise ConfigurationUnavailable(agent_id, "invalid record")

        try:
            agent = AgentConfiguration.from_record(rows[0])
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid config record for agent {agent_id}: {e}")
            raise ConfigurationUnavailable(agent_id, "invalid record") from e
        logger.info(f"Config loaded for agent: {agent_id}")
        return agent

    async def close(self) -> None:
        await self.client.close()


def create_agent_store(client: Optional[SupabaseClient] = None) -> AgentStore:
    """
    Pick the agent store for this process.

    Uses Supabase when a client is given, otherwise an in-memory store holding
    only the default agent.
    """
    if client is not None:
        logger.info(f"Using Supabase agent store at {client.url}")
        return SupabaseAgentStore(client)
    logger.warning(
        "SUPABASE_URL not set; serving only the default agent from memory"
    )
    return InMemoryAgentStore([DEFAULT_AGENT_CONFIGURATION])


def create_supabase_client() -> Optional[SupabaseClient]:
    """Build the Supabase client from settings, or None if not configured."""
    if not settings.SUPABASE_URL:
        return None
    return SupabaseClient(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY,
        timeout=settings.AGENT_STORE_TIMEOUT,
    )
