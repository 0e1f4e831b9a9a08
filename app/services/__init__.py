"""
Services module for external integrations in the real-time LLM agent.

Key components:
- supabase_client: Async REST client for the external record store.
- agent_store: Loads agent configurations (Supabase or in-memory).
- openai_clients: One cached AsyncOpenAI client per provider credential.
- context_retrieval: Knowledge-base lookup by embedding similarity, fail-open.
- completion_provider: Streams chat-completion text fragments from OpenAI.
- websocket_client: Simulates the call platform against a running server.

Usage examples:
```python
from app.services.websocket_client import CallSimulatorClient

client = CallSimulatorClient("ws://localhost:8080/llm-websocket/default/call-1")
if await client.connect():
    greeting = await client.receive_handshake()
    reply, end_call = await client.say("Hi, what are your opening hours?")
    await client.close()
```
"""
