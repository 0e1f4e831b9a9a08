"""
Handlers module for the LLM WebSocket protocol.

Key components:
- frame_handlers: Decodes inbound frames and routes them by interaction type:
  call_details is logged, ping_pong is echoed, update_only is ignored unless
  promoted by a turn-taking hint, and response_required / reminder_required
  start a response cycle.

Usage examples:
```python
from app.handlers.frame_handlers import dispatch_frame

async for text in websocket.iter_text():
    await dispatch_frame(text, session, response_streamer)
```
"""

# Handlers module initialization
