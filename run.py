"""
Run script for starting the Real-Time LLM Agent server with low-latency settings.

Usage:
    python run.py [--port PORT] [--host HOST] [--log-level LEVEL]
"""

import argparse
import os
import sys
from pathlib import Path

import uvicorn

sys.path.append(str(Path(__file__).parent))

from app.config import settings
from app.config.logging_config import configure_logging


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Start the Real-Time LLM Agent server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port to run the server on (default: 8080 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=settings.HOST,
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


def main():
    """Main entry point for starting the server."""
    args = parse_args()
    logger = configure_logging(args.log_level)

    if not settings.OPENAI_API_KEY:
        # Agents may still carry their own key
        logger.warning("OPENAI_API_KEY not set; only agents with their own key can reply")
    if not settings.SUPABASE_URL:
        logger.warning("SUPABASE_URL not set; serving the built-in default agent only")

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    logger.info(f"WebSocket: ws://{args.host}:{args.port}/llm-websocket/{{agent_id}}/{{call_id}}")

    uvicorn.run(
        "app.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        http="h11",
        access_log=False,
        ws_ping_interval=5,
        ws_ping_timeout=20,
        reload=os.getenv("ENV", "production").lower() == "development",
    )


if __name__ == "__main__":
    main()
