"""JSON-RPC client for the external MCP restaurant-calling server."""

import itertools
import json
import logging
from typing import Any

import httpx

from rezkyoo.config import get_config
from rezkyoo.errors import McpError

logger = logging.getLogger(__name__)

# MCP server requires both formats in the Accept header
ACCEPT_HEADER = "application/json, text/event-stream"


def unwrap_tool_result(result: Any) -> Any:
    """Extract the tool output from an MCP ``tools/call`` result.

    The MCP SDK wraps tool output as ``{"content": [{"type": "text", "text": ...}]}``.
    The text is parsed as JSON when possible, otherwise returned as ``{"text": ...}``.
    Results without a text content block are returned unchanged.
    """
    if isinstance(result, dict) and isinstance(result.get("content"), list):
        text_block = next(
            (
                block
                for block in result["content"]
                if isinstance(block, dict) and block.get("type") == "text"
            ),
            None,
        )
        if text_block and text_block.get("text"):
            try:
                return json.loads(text_block["text"])
            except json.JSONDecodeError:
                return {"text": text_block["text"]}
    return result


def _raise_for_rpc_error(message: dict) -> None:
    error = message.get("error")
    if error:
        detail = error.get("message") if isinstance(error, dict) else str(error)
        raise McpError(detail or "MCP tool call failed")


def parse_sse_response(text: str) -> Any:
    """Parse a Server-Sent Events body; the last parseable ``data:`` frame wins.

    Raises:
        McpError: If no frame holds valid JSON or the frame is a JSON-RPC error
    """
    last_data = None
    for line in text.splitlines():
        if not line.startswith("data:"):
            continue
        payload = line[len("data:"):].strip()
        if not payload:
            continue
        try:
            last_data = json.loads(payload)
        except json.JSONDecodeError:
            continue

    if last_data is None:
        raise McpError("No valid data found in SSE response")

    if not isinstance(last_data, dict):
        return last_data

    _raise_for_rpc_error(last_data)
    result = last_data.get("result")
    if result is None:
        return last_data
    return unwrap_tool_result(result)


class McpClient:
    """Calls MCP tools over JSON-RPC 2.0 (``tools/call``) on ``{base_url}/mcp``."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        config = get_config()
        self.base_url = base_url if base_url is not None else config.rezkyoo_mcp_base_url
        self.timeout = timeout if timeout is not None else config.rezkyoo_mcp_timeout
        self._transport = transport
        self._ids = itertools.count(1)

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> Any:
        """Call an MCP tool and return its unwrapped output.

        Args:
            tool_name: Name of the MCP tool
            arguments: Tool arguments

        Returns:
            Parsed tool output

        Raises:
            McpError: On missing configuration, transport failures,
                non-2xx responses and JSON-RPC errors
        """
        if not self.base_url:
            raise McpError("REZKYOO_MCP_BASE_URL is not configured")

        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": "tools/call",
            "params": {"name": tool_name, "arguments": arguments},
        }

        logger.debug(f"MCP request {request_id}: {tool_name}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url.rstrip('/')}/mcp",
                    json=payload,
                    headers={"Accept": ACCEPT_HEADER},
                )
        except httpx.HTTPError as e:
            raise McpError(f"MCP request failed: {e}") from e

        if not response.is_success:
            raise McpError(f"MCP request failed: {response.status_code} {response.text}")

        if "text/event-stream" in response.headers.get("content-type", ""):
            return parse_sse_response(response.text)

        try:
            message = response.json()
        except json.JSONDecodeError as e:
            raise McpError("MCP server returned invalid JSON") from e

        if not isinstance(message, dict):
            return message
        _raise_for_rpc_error(message)
        return unwrap_tool_result(message.get("result"))

    async def find_restaurants(self, arguments: dict[str, Any]) -> Any:
        return await self.call_tool("find_restaurants", arguments)

    async def start_calls(self, arguments: dict[str, Any]) -> Any:
        return await self.call_tool("start_calls", arguments)

    async def get_batch_status(self, arguments: dict[str, Any]) -> Any:
        return await self.call_tool("get_batch_status", arguments)

    async def confirm_booking(self, arguments: dict[str, Any]) -> Any:
        return await self.call_tool("confirm_booking", arguments)

    async def get_booking_status(self, arguments: dict[str, Any]) -> Any:
        return await self.call_tool("get_booking_status", arguments)

    async def release_hold(self, arguments: dict[str, Any]) -> Any:
        return await self.call_tool("release_hold", arguments)
