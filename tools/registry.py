"""
Static tool catalog: the two weather tools and their input schemas.
Definitions are built once at import and never mutated; tools/list always returns them in the same order.
"""
import logging

from tools.base import ToolDefinition
from tools.errors import UnknownToolError

logger = logging.getLogger(__name__)

CURRENT_WEATHER = "get_current_weather"
WEATHER_FORECAST = "get_weather_forecast"


def _weather_input_schema() -> dict:
    return {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "City name or location (e.g., 'London', 'New York, NY')",
            },
            "units": {
                "type": "string",
                "enum": ["metric", "imperial", "kelvin"],
                "description": "Temperature units (metric=Celsius, imperial=Fahrenheit, kelvin=Kelvin)",
                "default": "metric",
            },
        },
        "required": ["location"],
    }


DEFAULT_TOOLS = (
    ToolDefinition(
        name=CURRENT_WEATHER,
        description="Get current weather information for a specific location",
        input_schema=_weather_input_schema(),
    ),
    ToolDefinition(
        name=WEATHER_FORECAST,
        description="Get 5-day weather forecast for a specific location",
        input_schema=_weather_input_schema(),
    ),
)


class ToolRegistry:
    """Lookup over a fixed tuple of ToolDefinitions."""

    def __init__(self, tools: tuple[ToolDefinition, ...] = DEFAULT_TOOLS):
        names = [t.name for t in tools]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate tool names: {names}")
        self._tools = tools
        self._by_name = {t.name: t for t in tools}

    def list_tools(self) -> tuple[ToolDefinition, ...]:
        return self._tools

    def to_payload(self) -> dict:
        """tools/list result body."""
        return {"tools": [t.to_dict() for t in self._tools]}

    def get(self, name: str) -> ToolDefinition:
        tool = self._by_name.get(name)
        if tool is None:
            logger.warning("Tool '%s' not found in registry", name)
            raise UnknownToolError(name)
        return tool

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
