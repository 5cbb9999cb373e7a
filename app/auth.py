"""
Token authentication for the HTTP transports. Stateless and side-effect free.

Credential precedence: Authorization: Bearer <token>, then x-api-key, then ?token=.
Only the first present source is checked; an invalid Bearer does not fall back to the others.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

BEARER_PREFIX = "Bearer "
STRUCTURED_PREFIX = "mcp"
STRUCTURED_MIN_LENGTH = 32
STRUCTURED_MIN_SEGMENTS = 3


@dataclass(frozen=True)
class CredentialSources:
    authorization: Optional[str] = None
    api_key: Optional[str] = None
    query_token: Optional[str] = None

    def first_present(self) -> Optional[str]:
        """Token from the highest-precedence source that is present, or None."""
        if self.authorization and self.authorization.startswith(BEARER_PREFIX):
            return self.authorization[len(BEARER_PREFIX):]
        if self.api_key:
            return self.api_key
        if self.query_token:
            return self.query_token
        return None


def is_structured_token(token: str) -> bool:
    """mcp_<environment>_<payload>, at least 32 chars. Shape only; nothing is verified cryptographically."""
    if len(token) < STRUCTURED_MIN_LENGTH or not token.startswith(STRUCTURED_PREFIX + "_"):
        return False
    parts = token.split("_")
    return len(parts) >= STRUCTURED_MIN_SEGMENTS and parts[0] == STRUCTURED_PREFIX


class Authenticator:
    def __init__(
        self,
        enforce: bool,
        accepted_tokens: Iterable[str] = (),
        accept_structured: bool = False,
    ):
        self.enforce = enforce
        self._accepted = frozenset(accepted_tokens)
        self._accept_structured = accept_structured

    @classmethod
    def from_settings(cls, settings) -> "Authenticator":
        return cls(
            enforce=settings.require_auth,
            accepted_tokens=settings.accepted_tokens,
            accept_structured=settings.accept_structured_tokens,
        )

    def authenticate(self, sources: CredentialSources) -> bool:
        if not self.enforce:
            return True
        token = sources.first_present()
        if token is None:
            return False
        return self.validate_token(token)

    def validate_token(self, token: str) -> bool:
        if not token:
            return False
        if token in self._accepted:
            return True
        return self._accept_structured and is_structured_token(token)
