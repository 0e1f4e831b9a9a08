"""
Bot module: prompt assembly and response streaming.

Key components:
- prompt_builder: Pure functions turning agent configuration, retrieved context
  and the live transcript into a GenerationRequest.
- ResponseStreamer: Runs one cancellable generation-and-reply cycle per
  response-triggering frame and enforces one active response per session.

Usage examples:
```python
from app.bot import ResponseStreamer

streamer = ResponseStreamer(completion_provider, context_retriever)
streamer.start_response(session, frame)
```
"""

from app.bot.prompt_builder import build_generation_request, build_system_prompt
from app.bot.response_streamer import ResponseStreamer, contains_hangup_phrase

__all__ = [
    "ResponseStreamer",
    "build_generation_request",
    "build_system_prompt",
    "contains_hangup_phrase",
]
