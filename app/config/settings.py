"""
Environment-based settings for the real-time LLM agent server.

Values are read once at import time. Tests override them with
``patch.object`` on this module.
"""

import os


def _env_flag(name: str, default: bool = True) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

# Provider credential used when an agent carries none
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

# External record store for agent profiles and knowledge documents
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv(
    "SUPABASE_ANON_KEY", ""
)
AGENT_STORE_TIMEOUT = float(os.getenv("AGENT_STORE_TIMEOUT", "5.0"))

# Capability toggles
TURNTAKING_PROMOTION_ENABLED = _env_flag("TURNTAKING_PROMOTION_ENABLED")
HANGUP_DETECTION_ENABLED = _env_flag("HANGUP_DETECTION_ENABLED")
EXTRACTION_FIELDS_ENABLED = _env_flag("EXTRACTION_FIELDS_ENABLED")
