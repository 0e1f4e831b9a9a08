"""
FastAPI server bridging the LLM WebSocket call protocol to OpenAI.

This module initializes and configures the FastAPI application that the call
platform connects to, one WebSocket per call. Each connection is bound to an
agent configuration loaded from the external record store; the agent's replies
are generated by OpenAI and streamed back as protocol frames.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import dotenv
from fastapi import FastAPI, WebSocket

# Load environment variables from .env file if it exists
env_path = Path(".") / ".env"
if env_path.exists():
    dotenv.load_dotenv(env_path)

from app.bot.response_streamer import ResponseStreamer  # noqa: E402
from app.config import settings  # noqa: E402
from app.config.logging_config import configure_logging  # noqa: E402
from app.services.agent_store import create_agent_store, create_supabase_client  # noqa: E402
from app.services.completion_provider import CompletionProvider  # noqa: E402
from app.services.context_retrieval import ContextRetriever  # noqa: E402
from app.services.openai_clients import OpenAIClientRegistry  # noqa: E402
from app.websocket_manager import WebSocketManager  # noqa: E402

# Configure logging
logger = configure_logging()

SERVICE_NAME = "Real-Time LLM Agent"
SERVICE_VERSION = "1.0.0"

openai_clients = OpenAIClientRegistry()
supabase_client = create_supabase_client()
agent_store = create_agent_store(supabase_client)
response_streamer = ResponseStreamer(
    CompletionProvider(openai_clients),
    ContextRetriever(supabase_client, openai_clients),
)

# Create WebSocket manager
websocket_manager = WebSocketManager(agent_store, response_streamer)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await agent_store.close()
    await openai_clients.close()
    logger.info("External clients closed")


# Create FastAPI application
app = FastAPI(
    title=SERVICE_NAME,
    description="Custom LLM WebSocket server streaming OpenAI replies to a voice call platform",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


@app.websocket("/llm-websocket/{agent_id}/{call_id}")
async def agent_websocket_endpoint(websocket: WebSocket, agent_id: str, call_id: str):
    """WebSocket endpoint for one call, with the agent id as a path segment."""
    await websocket_manager.handle_websocket(websocket, call_id, agent_id)


@app.websocket("/llm-websocket/{call_id}")
async def call_websocket_endpoint(
    websocket: WebSocket, call_id: str, agent_id: Optional[str] = None
):
    """WebSocket endpoint for one call, with the agent id as a query parameter.

    Connections without ``agent_id`` are closed with a policy violation before
    any frame is sent.
    """
    await websocket_manager.handle_websocket(websocket, call_id, agent_id)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status, whether a provider credential is configured, and the
        number of live calls.
    """
    return {
        "status": "healthy",
        "openai_api_key_configured": bool(settings.OPENAI_API_KEY),
        "agent_store": type(websocket_manager.agent_store).__name__,
        "active_calls": len(websocket_manager.session_manager.get_all_sessions()),
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "name": SERVICE_NAME,
        "description": "Custom LLM WebSocket server for voice calls",
        "version": SERVICE_VERSION,
        "endpoints": {
            "/llm-websocket/{agent_id}/{call_id}": "WebSocket endpoint for a call",
            "/llm-websocket/{call_id}?agent_id=...": "WebSocket endpoint for a call",
            "/health": "Health check endpoint",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        ws_ping_interval=5,
        ws_ping_timeout=20,
        http="h11",
    )
