"""Unit tests for RequestRouter: routing, error-flagged tool results, JSON-RPC envelopes. Gateway is mocked."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.errors import InvalidParamsError, UnknownMethodError
from app.protocol import PROTOCOL_VERSION, RequestRouter
from tools.base import Forecast, ForecastDay, Units, WeatherQuery, WeatherReport
from tools.errors import NotFoundError, UpstreamError
from tools.registry import ToolRegistry

REPORT = WeatherReport(
    location_name="Leiria",
    temperature=18,
    feels_like=17,
    description="broken clouds",
    humidity=92,
    wind_speed=1.4,
    units=Units.METRIC,
)


@pytest.fixture
def gateway():
    gw = MagicMock()
    gw.get_current_weather = AsyncMock(return_value=REPORT)
    gw.get_weather_forecast = AsyncMock(
        return_value=Forecast(
            location_name="Leiria",
            days=(ForecastDay("Sun May 10 2026", 12, 19, "mist", 90, 2),),
            units=Units.METRIC,
        )
    )
    return gw


@pytest.fixture
def router(gateway):
    return RequestRouter(ToolRegistry(), gateway)


def _call(router, name, arguments=None):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return asyncio.run(router.handle("tools/call", params))


def test_tools_list_is_identical_across_calls(router):
    first = asyncio.run(router.handle("tools/list", None))
    second = asyncio.run(router.handle("tools/list", {}))
    assert first == second
    assert [t["name"] for t in first["tools"]] == ["get_current_weather", "get_weather_forecast"]


def test_current_weather_call(router, gateway):
    result = _call(router, "get_current_weather", {"location": "Leiria", "units": "metric"})
    assert "isError" not in result
    assert result["content"][0]["type"] == "text"
    assert "Current Weather for Leiria" in result["content"][0]["text"]
    gateway.get_current_weather.assert_awaited_once_with(WeatherQuery(location="Leiria", units=Units.METRIC))


def test_forecast_call(router, gateway):
    result = _call(router, "get_weather_forecast", {"location": "Leiria"})
    assert "📅 Sun May 10 2026" in result["content"][0]["text"]
    gateway.get_weather_forecast.assert_awaited_once()
    gateway.get_current_weather.assert_not_awaited()


@pytest.mark.parametrize("arguments", [None, {}, {"location": ""}])
def test_missing_location_is_error_result(router, gateway, arguments):
    result = _call(router, "get_current_weather", arguments)
    assert result["isError"] is True
    assert result["content"][0]["text"] == "Error: Location is required"
    gateway.get_current_weather.assert_not_awaited()


def test_unknown_tool_never_reaches_gateway(router, gateway):
    result = _call(router, "get_tides", {"location": "Leiria"})
    assert result["isError"] is True
    assert "Unknown tool: get_tides" in result["content"][0]["text"]
    assert gateway.get_current_weather.await_count == 0
    assert gateway.get_weather_forecast.await_count == 0


def test_not_found_is_error_result(router, gateway):
    gateway.get_current_weather.side_effect = NotFoundError('Location "Nonexistentcity" not found')
    result = _call(router, "get_current_weather", {"location": "Nonexistentcity"})
    assert result["isError"] is True
    assert "Nonexistentcity" in result["content"][0]["text"]


def test_upstream_error_is_error_result(router, gateway):
    gateway.get_weather_forecast.side_effect = UpstreamError("Weather API error: 503 Service Unavailable", status=503)
    result = _call(router, "get_weather_forecast", {"location": "Leiria"})
    assert result == {
        "content": [{"type": "text", "text": "Error: Weather API error: 503 Service Unavailable"}],
        "isError": True,
    }


def test_unexpected_exception_is_error_result(router, gateway):
    gateway.get_current_weather.side_effect = RuntimeError("boom")
    result = _call(router, "get_current_weather", {"location": "Leiria"})
    assert result["isError"] is True
    assert result["content"][0]["text"] == "Error: boom"


def test_unknown_method(router):
    with pytest.raises(UnknownMethodError):
        asyncio.run(router.handle("resources/list", {}))


@pytest.mark.parametrize("params", [None, ["get_current_weather"]])
def test_tools_call_requires_params_object(router, params):
    with pytest.raises(InvalidParamsError):
        asyncio.run(router.handle("tools/call", params))


@pytest.mark.parametrize("params", [{}, {"name": ""}, {"name": 5}, {"arguments": {"location": "x"}}])
def test_tools_call_without_usable_name_is_unknown_tool(router, gateway, params):
    result = asyncio.run(router.handle("tools/call", params))
    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Error: Unknown tool: ")
    gateway.get_current_weather.assert_not_awaited()
    gateway.get_weather_forecast.assert_not_awaited()


def test_initialize(router):
    result = asyncio.run(router.handle("initialize", {"protocolVersion": "2025-03-26"}))
    assert result["protocolVersion"] == "2025-03-26"
    assert result["capabilities"] == {"tools": {}}
    assert result["serverInfo"]["name"] == "weather-server"

    fallback = asyncio.run(router.handle("initialize", {"protocolVersion": "1999-01-01"}))
    assert fallback["protocolVersion"] == PROTOCOL_VERSION


class TestHandleMessage:
    def test_success_envelope(self, router):
        response = asyncio.run(router.handle_message({"jsonrpc": "2.0", "id": 7, "method": "ping"}))
        assert response == {"jsonrpc": "2.0", "id": 7, "result": {}}

    def test_unknown_method_envelope(self, router):
        response = asyncio.run(router.handle_message({"jsonrpc": "2.0", "id": "a", "method": "nope"}))
        assert response["id"] == "a"
        assert response["error"]["code"] == -32601
        assert "result" not in response

    def test_invalid_params_envelope(self, router):
        response = asyncio.run(router.handle_message({"jsonrpc": "2.0", "id": 1, "method": "tools/call"}))
        assert response["error"]["code"] == -32602

    def test_tool_failure_is_not_a_protocol_error(self, router):
        message = {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "get_current_weather"}}
        response = asyncio.run(router.handle_message(message))
        assert "error" not in response
        assert response["result"]["isError"] is True

    def test_notification_gets_no_response(self, router):
        assert asyncio.run(router.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"})) is None

    def test_notification_is_routed(self, router, gateway):
        message = {"jsonrpc": "2.0", "method": "tools/call",
                   "params": {"name": "get_current_weather", "arguments": {"location": "Leiria"}}}
        assert asyncio.run(router.handle_message(message)) is None
        gateway.get_current_weather.assert_awaited_once()

    def test_unknown_notification_is_dropped(self, router):
        assert asyncio.run(router.handle_message({"jsonrpc": "2.0", "method": "resources/whatever"})) is None

    @pytest.mark.parametrize("message", [[], "tools/list", {"id": 3}, {"id": 3, "method": 5}])
    def test_invalid_request(self, router, message):
        response = asyncio.run(router.handle_message(message))
        assert response["error"]["code"] == -32600
