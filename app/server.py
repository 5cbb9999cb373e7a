"""
Process entry point. DEPLOYMENT_MODE=cloud serves HTTP/SSE with uvicorn; anything else serves the stdio pipe.
A missing OPENWEATHER_API_KEY is fatal.
"""
import asyncio
import logging
import sys

import pydantic
import uvicorn

from app.config import get_settings
from app.logging_config import setup_logging
from app.main import create_app
from app.protocol import RequestRouter
from app.stdio import serve_stdio
from tools.registry import ToolRegistry
from tools.weather_api import WeatherGateway

log = logging.getLogger(__name__)


def main() -> int:
    try:
        settings = get_settings()
    except pydantic.ValidationError as e:
        setup_logging()
        missing_key = any(err.get("loc") == ("openweather_api_key",) for err in e.errors())
        if missing_key:
            log.error("OPENWEATHER_API_KEY environment variable is required")
        else:
            log.error("Invalid configuration: %s", e)
        return 1

    setup_logging(settings.log_level)

    if settings.deployment_mode == "cloud":
        log.info("Weather MCP server listening on http://%s:%s (SSE: /sse, direct: /mcp, health: /health)",
                 settings.host, settings.port)
        uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
        return 0

    router = RequestRouter(ToolRegistry(), WeatherGateway.from_settings(settings))
    log.info("Weather MCP server running on stdio")
    try:
        asyncio.run(serve_stdio(router))
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received. Shutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
