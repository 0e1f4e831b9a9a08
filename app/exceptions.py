"""
Error taxonomy for the real-time LLM agent.

Each error type maps to one recovery level: the connection (protocol
violations, configuration problems), the response cycle (generation
failures) or the call site (context retrieval failures).
"""

from app.config.constants import (
    CLOSE_CONFIGURATION_UNAVAILABLE,
    CLOSE_POLICY_VIOLATION,
    CLOSE_PROTOCOL_ERROR,
)


class LLMAgentError(Exception):
    """Base class for all application errors."""


class ProtocolViolation(LLMAgentError):
    """An inbound frame broke the wire contract. Fatal to the connection."""

    def __init__(self, reason: str, close_code: int = CLOSE_PROTOCOL_ERROR):
        super().__init__(reason)
        self.reason = reason
        self.close_code = close_code


class ConfigurationUnavailable(LLMAgentError):
    """The agent configuration could not be loaded at handshake time."""

    close_code = CLOSE_CONFIGURATION_UNAVAILABLE

    def __init__(self, agent_id: str, detail: str = ""):
        message = f"Configuration unavailable for agent {agent_id!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.agent_id = agent_id


class AgentNotFound(ConfigurationUnavailable):
    """The store has no record for the requested agent."""

    close_code = CLOSE_POLICY_VIOLATION


class ContextRetrievalFailure(LLMAgentError):
    """The knowledge store could not be queried."""


class GenerationFailure(LLMAgentError):
    """The completion provider failed or could not be called."""
