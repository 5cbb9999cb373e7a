"""Shared types for tool inputs/outputs. Inputs are pydantic models validated at the router boundary; results are frozen dataclasses."""
import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from tools.errors import ValidationError


class Units(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"
    KELVIN = "kelvin"

    @property
    def temperature_symbol(self) -> str:
        return {"metric": "°C", "imperial": "°F", "kelvin": "K"}[self.value]

    @property
    def wind_unit(self) -> str:
        # No dedicated Kelvin wind unit: standard output is m/s.
        return "mph" if self is Units.IMPERIAL else "m/s"

    @property
    def api_value(self) -> str:
        """Value for OpenWeatherMap's `units` query parameter (Kelvin output is called `standard`)."""
        return "standard" if self is Units.KELVIN else self.value


def round_half_up(value: float) -> int:
    """Round halves towards positive infinity (-2.5 -> -2, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def plain_number(value: Union[int, float]) -> str:
    """Render 3.0 as '3' and 3.5 as '3.5'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class WeatherQuery(BaseModel):
    """Validated arguments shared by both weather tools."""
    model_config = ConfigDict(frozen=True)

    location: str = Field(min_length=1, description="City name or location (e.g., 'London', 'New York, NY')")
    units: Units = Field(default=Units.METRIC, description="Temperature units")

    @classmethod
    def from_arguments(cls, arguments: Any) -> "WeatherQuery":
        """Build from a raw `arguments` mapping; raises ValidationError with a caller-facing message."""
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValidationError("Tool arguments must be an object")
        location = arguments.get("location")
        if isinstance(location, str):
            location = location.strip()
        if not location:
            raise ValidationError("Location is required")
        data = {"location": location}
        if arguments.get("units") is not None:
            data["units"] = arguments["units"]
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            err = e.errors()[0]
            name = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
            raise ValidationError(f"Invalid {name}: {err.get('msg', 'invalid value')}") from e


@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-described operation exposed through tools/list."""
    name: str
    description: str
    input_schema: dict[str, Any] = field(hash=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": copy.deepcopy(self.input_schema),
        }


@dataclass(frozen=True)
class WeatherReport:
    """Current conditions for one location, already rounded for display."""
    location_name: str
    temperature: int
    feels_like: int
    description: str
    humidity: Union[int, float]
    wind_speed: Union[int, float]
    units: Units

    def to_text(self) -> str:
        sym = self.units.temperature_symbol
        return (
            f"🌤️ Current Weather for {self.location_name}\n\n"
            f"🌡️ Temperature: {self.temperature}{sym} (feels like {self.feels_like}{sym})\n"
            f"📝 Conditions: {self.description}\n"
            f"💧 Humidity: {plain_number(self.humidity)}%\n"
            f"💨 Wind Speed: {plain_number(self.wind_speed)} {self.units.wind_unit}"
        )


@dataclass(frozen=True)
class ForecastDay:
    """One calendar date of forecast. Description, humidity and wind come from the date's first sample."""
    date_label: str
    min_temperature: int
    max_temperature: int
    description: str
    humidity: Union[int, float]
    wind_speed: Union[int, float]


@dataclass(frozen=True)
class Forecast:
    location_name: str
    days: tuple[ForecastDay, ...]
    units: Units

    def to_text(self) -> str:
        sym = self.units.temperature_symbol
        lines = [f"🌤️ 5-Day Weather Forecast for {self.location_name}\n\n"]
        for day in self.days:
            lines.append(
                f"📅 {day.date_label}\n"
                f"🌡️ {day.min_temperature}{sym} - {day.max_temperature}{sym}\n"
                f"📝 {day.description}\n"
                f"💧 Humidity: {plain_number(day.humidity)}%\n"
                f"💨 Wind: {plain_number(day.wind_speed)} {self.units.wind_unit}\n\n"
            )
        return "".join(lines)
