"""Tool execution errors. Rendered by the router as error-flagged tool results, never as protocol faults."""
from typing import Optional


class ToolError(Exception):
    """Base for failures that belong in a tool result."""


class ValidationError(ToolError):
    """Caller input missing or malformed (e.g. empty location)."""


class NotFoundError(ToolError):
    """Upstream reports the queried location does not exist."""


class UpstreamError(ToolError):
    """Non-404 upstream failure or network failure. status is None when no response arrived."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UnknownToolError(ToolError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name
