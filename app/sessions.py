"""
Live SSE sessions: session id -> outbound message queue.

Each id is opened and closed only by the stream that owns it. Ids are single use:
once closed, dispatching to it raises SessionNotFoundError and queued messages are dropped.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from app.errors import SessionNotFoundError

log = logging.getLogger(__name__)


@dataclass
class Session:
    session_id: str
    outbox: asyncio.Queue = field(default_factory=asyncio.Queue)


class SessionManager:
    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def open(self) -> Session:
        session = Session(session_id=uuid.uuid4().hex)
        self._sessions[session.session_id] = session
        log.info("sse_session_open", extra={"session_id": session.session_id, "open_sessions": len(self._sessions)})
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        dropped = session.outbox.qsize()
        log.info(
            "sse_session_close",
            extra={"session_id": session_id, "dropped_messages": dropped, "open_sessions": len(self._sessions)},
        )

    def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def dispatch(self, session_id: str, message: dict) -> None:
        """Queue a message for the session's stream. Raises SessionNotFoundError for unknown or closed ids."""
        self.get(session_id).outbox.put_nowait(message)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
