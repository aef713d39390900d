"""Wire-level integration tests for the MCP stdio transport contract."""

from __future__ import annotations

import json
import subprocess
import sys

_INITIALIZE = [
    {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "initialize",
        "params": {
            "protocolVersion": "2025-06-18",
            "capabilities": {},
            "clientInfo": {"name": "pytest", "version": "0"},
        },
    },
    {"jsonrpc": "2.0", "method": "notifications/initialized"},
]


def _run_mcp_exchange(env: dict[str, str], messages: list[dict]) -> list[dict]:
    proc = subprocess.Popen(
        [sys.executable, "-m", "appledocs.server"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        env=env,
    )

    assert proc.stdin is not None
    assert proc.stdout is not None
    assert proc.stderr is not None

    for message in messages:
        proc.stdin.write(json.dumps(message) + "\n")
    proc.stdin.flush()

    # Keep stdin open until every request is answered; closing it early tears
    # down the receive loop and drops in-flight tool responses.
    expected_ids = frozenset(msg["id"] for msg in messages if "id" in msg)
    responses: list[dict] = []
    seen_ids: set = set()
    while seen_ids < expected_ids:
        line = proc.stdout.readline()
        if not line:  # server exited before answering all requests
            break
        stripped = line.strip()
        if stripped:
            resp = json.loads(stripped)
            responses.append(resp)
            rid = resp.get("id")
            if rid is not None:
                seen_ids.add(rid)

    proc.stdin.close()
    proc.stderr.read()  # drain for reliable process shutdown
    proc.wait(timeout=10)
    proc.stdout.close()
    proc.stderr.close()

    return responses


def test_initialize_and_tools_list_contract(subprocess_env: dict[str, str]) -> None:
    responses = _run_mcp_exchange(
        subprocess_env,
        [*_INITIALIZE, {"jsonrpc": "2.0", "id": 2, "method": "tools/list", "params": {}}],
    )

    init_response = next(response for response in responses if response.get("id") == 1)
    init_result = init_response["result"]
    assert init_result["serverInfo"]["name"] == "apple-docs-mcp"
    assert "tools" in init_result["capabilities"]

    tools_response = next(response for response in responses if response.get("id") == 2)
    tools_by_name = {tool["name"]: tool for tool in tools_response["result"]["tools"]}

    assert set(tools_by_name) == {
        "search_apple_docs",
        "get_apple_doc_content",
        "download_apple_code_sample",
        "get_cache_stats",
        "clear_cache",
    }

    doc_schema = tools_by_name["get_apple_doc_content"]["inputSchema"]
    assert doc_schema["type"] == "object"
    assert doc_schema["required"] == ["url"]
    assert doc_schema["properties"]["skip_cache"]["type"] == "boolean"


def test_cache_stats_wire_success(subprocess_env: dict[str, str]) -> None:
    responses = _run_mcp_exchange(
        subprocess_env,
        [
            *_INITIALIZE,
            {
                "jsonrpc": "2.0",
                "id": 2,
                "method": "tools/call",
                "params": {"name": "get_cache_stats", "arguments": {}},
            },
        ],
    )

    tool_response = next(response for response in responses if response.get("id") == 2)
    assert tool_response["result"]["isError"] is False

    payload = json.loads(tool_response["result"]["content"][0]["text"])
    assert payload["cache"]["total_documents"] == 0
    assert set(payload) == {"cache", "resources", "config"}


def test_invalid_url_wire_error_envelope(subprocess_env: dict[str, str]) -> None:
    responses = _run_mcp_exchange(
        subprocess_env,
        [
            *_INITIALIZE,
            {
                "jsonrpc": "2.0",
                "id": 2,
                "method": "tools/call",
                "params": {
                    "name": "get_apple_doc_content",
                    "arguments": {"url": "https://evil.example.com/documentation/x"},
                },
            },
        ],
    )

    tool_response = next(response for response in responses if response.get("id") == 2)
    assert tool_response["result"]["isError"] is True

    text_payload = tool_response["result"]["content"][0]["text"]
    assert "Error executing tool" not in text_payload

    payload = json.loads(text_payload)
    assert payload["error"]["code"] == "INVALID_INPUT"
    assert payload["error"]["recoverable"] is False
    assert "developer.apple.com" in payload["error"]["message"]
