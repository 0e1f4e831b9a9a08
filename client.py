"""
Call simulator: talk to a running agent server as the call platform would.

Usage:
    python client.py --agent-id default --message "Hi" --message "Bye"
"""

import argparse
import asyncio
import logging
import uuid

from app.services.websocket_client import CallSimulatorClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("llm_call_client")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Simulate a call against the agent server")
    parser.add_argument("--url", default="ws://localhost:8080/llm-websocket")
    parser.add_argument("--agent-id", default="default")
    parser.add_argument("--call-id", default=None)
    parser.add_argument(
        "--message",
        action="append",
        default=[],
        help="Caller utterance; repeat for several turns",
    )
    return parser.parse_args(argv)


async def run_call(url: str, messages) -> None:
    """
    Run one simulated call:
    1. Connect and read the handshake
    2. Send each message as a user turn and print the agent's reply
    3. Stop early if the agent ends the call
    """
    client = CallSimulatorClient(url)
    if not await client.connect():
        return

    try:
        greeting = await client.receive_handshake()
        print(f"AGENT: {greeting}")

        sent = await client.send_ping()
        logger.info(f"Ping sent with timestamp {sent}")

        for text in messages:
            print(f"USER:  {text}")
            reply, end_call = await client.say(text)
            print(f"AGENT: {reply}")
            if end_call:
                logger.info("Agent ended the call")
                break
    finally:
        await client.close()


def main():
    args = parse_args()
    call_id = args.call_id or str(uuid.uuid4())
    url = f"{args.url.rstrip('/')}/{args.agent_id}/{call_id}"
    logger.info(f"Starting simulated call {call_id} against {url}")
    asyncio.run(run_call(url, args.message or ["Hola"]))


if __name__ == "__main__":
    main()
