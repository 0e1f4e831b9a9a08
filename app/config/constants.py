"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for protocol names, close codes and model defaults,
and making it easier to maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "real_time_llm_agent"

# Inbound interaction types
INTERACTION_CALL_DETAILS = "call_details"
INTERACTION_PING_PONG = "ping_pong"
INTERACTION_UPDATE_ONLY = "update_only"
INTERACTION_RESPONSE_REQUIRED = "response_required"
INTERACTION_REMINDER_REQUIRED = "reminder_required"

# Turn-taking hints
TURNTAKING_AGENT_TURN = "agent_turn"
TURNTAKING_USER_TURN = "user_turn"

# Outbound response types
RESPONSE_TYPE_CONFIG = "config"
RESPONSE_TYPE_RESPONSE = "response"
RESPONSE_TYPE_PING_PONG = "ping_pong"

# Response id used for the unsolicited opening greeting
GREETING_RESPONSE_ID = 0

# WebSocket close codes
CLOSE_PROTOCOL_ERROR = 1002
CLOSE_UNSUPPORTED_DATA = 1003
CLOSE_POLICY_VIOLATION = 1008
CLOSE_INTERNAL_ERROR = 1011
CLOSE_CONFIGURATION_UNAVAILABLE = 1013

# Default agent settings
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.8
DEFAULT_MAX_TOKENS = 400
DEFAULT_LANGUAGE = "es"
DEFAULT_GREETING = "Hola, ¿cómo puedo ayudarte?"
DEFAULT_REMINDER_TEXT = "(The user has been silent. Send a friendly follow-up.)"
DEFAULT_SYSTEM_PROMPT = "You are a helpful voice assistant on a phone call."
APOLOGY_TEXT = (
    "Disculpa, tuve un problema procesando tu solicitud. ¿Podrías repetirlo?"
)

# Knowledge retrieval
EMBEDDING_MODEL = "text-embedding-3-small"
MATCH_COUNT = 3
MATCH_THRESHOLD = 0.5
