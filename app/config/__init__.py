"""
Configuration module for the real-time LLM agent server.

Key components:
- constants: Protocol names, WebSocket close codes and model defaults.
- settings: Environment-driven values (credentials, store location, capability toggles).
- logging_config: Console and rotating-file logging for the application logger.

Usage examples:
```python
from app.config.constants import LOGGER_NAME, INTERACTION_PING_PONG
from app.config.logging_config import configure_logging

logger = configure_logging()
logger.info("Application started")
```
"""

# Config module initialization
