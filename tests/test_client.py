from unittest.mock import AsyncMock, patch

import pytest

import client
import run


def test_run_parse_args_defaults():
    args = run.parse_args([])
    assert isinstance(args.port, int)
    assert args.log_level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def test_run_parse_args_overrides():
    args = run.parse_args(["--port", "9000", "--host", "127.0.0.1", "--log-level", "DEBUG"])
    assert (args.port, args.host, args.log_level) == (9000, "127.0.0.1", "DEBUG")


def test_client_parse_args_collects_messages():
    args = client.parse_args(["--agent-id", "a-1", "--message", "Hola", "--message", "Adiós"])
    assert args.agent_id == "a-1"
    assert args.message == ["Hola", "Adiós"]
    assert args.url == "ws://localhost:8080/llm-websocket"


@pytest.mark.asyncio
async def test_run_call_stops_when_agent_ends_call():
    simulator = AsyncMock()
    simulator.connect.return_value = True
    simulator.receive_handshake.return_value = "Hola"
    simulator.say.side_effect = [("Hasta luego", True), ("unused", False)]

    with patch("client.CallSimulatorClient", return_value=simulator):
        await client.run_call("ws://test/llm-websocket/a/c", ["Adiós", "Otra cosa"])

    simulator.say.assert_called_once_with("Adiós")
    simulator.close.assert_called_once()


@pytest.mark.asyncio
async def test_run_call_gives_up_when_connect_fails():
    simulator = AsyncMock()
    simulator.connect.return_value = False

    with patch("client.CallSimulatorClient", return_value=simulator):
        await client.run_call("ws://test/llm-websocket/a/c", ["Hola"])

    simulator.receive_handshake.assert_not_called()
    simulator.close.assert_not_called()
