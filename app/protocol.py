"""
Request routing for the JSON-RPC 2.0 tool protocol, shared by every transport.

Tool failures (bad arguments, unknown tool, upstream errors) are business outcomes:
they come back as a normal result with isError=True. Only routing failures
(unknown method, malformed params) become protocol errors.
"""
import logging
import time
from typing import Any, Optional

from app.config import SERVICE_VERSION
from app.errors import InvalidParamsError, InvalidRequestError, ProtocolError, UnknownMethodError
from tools.base import WeatherQuery
from tools.errors import ToolError, UnknownToolError
from tools.registry import CURRENT_WEATHER, WEATHER_FORECAST, ToolRegistry
from tools.weather_api import WeatherGateway

log = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"
SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")
SERVER_NAME = "weather-server"


def text_result(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


def error_result(message: str) -> dict:
    return {"content": [{"type": "text", "text": f"Error: {message}"}], "isError": True}


def success_response(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}}


class RequestRouter:
    """Dispatches tools/list and tools/call (plus initialize and ping). Holds no per-request state."""

    def __init__(self, registry: ToolRegistry, gateway: WeatherGateway):
        self.registry = registry
        self._tool_handlers = {
            CURRENT_WEATHER: gateway.get_current_weather,
            WEATHER_FORECAST: gateway.get_weather_forecast,
        }

    async def handle(self, method: str, params: Optional[dict]) -> dict:
        """Route one call. Raises UnknownMethodError / InvalidParamsError; never raises for tool failures."""
        if method == "tools/list":
            return self.registry.to_payload()
        if method == "tools/call":
            return await self.call_tool(params)
        if method == "initialize":
            return self._initialize(params or {})
        if method == "ping":
            return {}
        if method.startswith("notifications/"):
            return {}
        raise UnknownMethodError(method)

    async def call_tool(self, params: Optional[dict]) -> dict:
        if not isinstance(params, dict):
            raise InvalidParamsError("tools/call requires params")
        name = params.get("name")
        if not isinstance(name, str):
            log.warning("tool_call_failed", extra={"tool": repr(name), "error": "missing tool name"})
            return error_result(str(UnknownToolError(name)))
        start = time.perf_counter()
        try:
            self.registry.get(name)
            query = WeatherQuery.from_arguments(params.get("arguments"))
            report = await self._tool_handlers[name](query)
        except ToolError as e:
            log.warning("tool_call_failed", extra={"tool": name, "error": str(e)[:200]})
            return error_result(str(e))
        except Exception as e:
            log.exception("tool_call_error", extra={"tool": name})
            return error_result(str(e) or type(e).__name__)
        duration = time.perf_counter() - start
        log.info("tool_call_done", extra={"tool": name, "duration_sec": round(duration, 3)})
        return text_result(report.to_text())

    def _initialize(self, params: dict) -> dict:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else PROTOCOL_VERSION
        return {
            "protocolVersion": version,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVICE_VERSION},
        }

    async def _notify(self, method: str, params: Any) -> None:
        """Run a notification for its side effects. Failures are logged; there is no one to answer."""
        try:
            await self.handle(method, params)
        except ProtocolError as e:
            log.debug("notification_ignored", extra={"method": method, "error": str(e)})
        except Exception:
            log.exception("notification_error", extra={"method": method})

    async def handle_message(self, message: Any) -> Optional[dict]:
        """
        Wrap handle() in the JSON-RPC envelope. Returns the response dict,
        or None for notifications (messages without an id).
        """
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_response(request_id, InvalidRequestError.code, "Invalid Request")

        method = message["method"]
        if "id" not in message:
            await self._notify(method, message.get("params"))
            return None

        request_id = message["id"]
        try:
            result = await self.handle(method, message.get("params"))
        except ProtocolError as e:
            return error_response(request_id, e.code, str(e))
        except Exception:
            log.exception("request_error", extra={"method": method})
            return error_response(request_id, ProtocolError.code, "Internal error")
        return success_response(request_id, result)
