"""
Real-Time LLM Agent - Call Transcript Protocol to OpenAI Bridge

This application is a custom-LLM backend for a voice call platform. The platform
transcribes the call and sends the live transcript over a WebSocket; this server
decides when to answer, generates the agent's reply with OpenAI and streams it
back fragment by fragment for speech synthesis.

Architecture Overview:
- FastAPI server exposing one WebSocket per call
- Agent profiles loaded from an external record store (Supabase)
- Optional knowledge-base context retrieved by embedding similarity
- Streaming chat completions with supersession and cancellation

Key Components:
- bot: Prompt assembly and the response streaming orchestrator
- config: Application-wide constants, environment settings and logging setup
- handlers: Frame dispatch for the LLM WebSocket protocol
- models: Protocol frames, agent configuration and call session state
- services: Clients for the record store, OpenAI and a call simulator
- websocket_manager: Connection lifecycle for one call

Getting Started:
1. Set up environment variables:
   - OPENAI_API_KEY: Your OpenAI API key (agents may carry their own)
   - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY: Agent and knowledge store
   - PORT: Port to run the server on (default 8080)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the server:
   ```bash
   python run.py
   ```

3. Point the call platform's custom LLM URL to:
   - ws://your-server:8080/llm-websocket/{agent_id}/{call_id}
"""

# This file is intentionally left empty
# It makes the app directory a proper Python package
