"""Server-Sent Events stream for one session: an endpoint event, then queued messages, with keepalive comments."""
import asyncio
import json
from typing import AsyncIterator

from app.sessions import SessionManager

KEEPALIVE_COMMENT = ": keepalive\n\n"


def format_event(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


async def sse_events(sessions: SessionManager, message_path: str, keepalive_seconds: float) -> AsyncIterator[str]:
    """
    Open a session and stream it until the client goes away. The session is
    closed however the stream ends (disconnect, cancellation or error).
    """
    session = sessions.open()
    try:
        yield format_event("endpoint", f"{message_path}?sessionId={session.session_id}")
        while True:
            try:
                message = await asyncio.wait_for(session.outbox.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield KEEPALIVE_COMMENT
                continue
            yield format_event("message", json.dumps(message, ensure_ascii=False))
    finally:
        sessions.close(session.session_id)
