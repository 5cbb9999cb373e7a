"""Transport and protocol errors. Codes are the standard JSON-RPC 2.0 error codes."""


class AuthenticationError(Exception):
    """Credential missing or invalid. Surfaced as HTTP 401 before routing."""


class SessionNotFoundError(KeyError):
    """No live streaming session with this id."""

    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class ProtocolError(Exception):
    code = -32603


class InvalidRequestError(ProtocolError):
    code = -32600


class UnknownMethodError(ProtocolError):
    code = -32601

    def __init__(self, method: str):
        super().__init__(f"Unknown method: {method}")
        self.method = method


class InvalidParamsError(ProtocolError):
    code = -32602
