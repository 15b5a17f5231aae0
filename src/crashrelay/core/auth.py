"""
Webhook token authentication.

Crashlytics cannot send custom headers, so the shared secret travels in the
"token" query parameter of the webhook URL.
"""

import hmac
from typing import Optional

import structlog
from fastapi import Request

from .exceptions import AuthenticationError

logger = structlog.get_logger(__name__)

TOKEN_QUERY_PARAM = "token"


def mask_token(token: str) -> str:
    """Partial token for log output."""
    return token[:4] + "..." if len(token) >= 8 else "invalid"


class TokenAuthenticator:
    """
    Authenticates webhook calls against a single configured token.
    """

    def __init__(self, token: str) -> None:
        self._token = token.encode("utf-8")

    def verify(self, candidate: Optional[str]) -> None:
        """
        Verify a token taken from the request.

        Surrounding whitespace is ignored. Raises AuthenticationError when the
        token is missing or does not match.
        """
        value = (candidate or "").strip()
        if not value:
            logger.warning("Authentication failed: missing token")
            raise AuthenticationError()

        if not hmac.compare_digest(value.encode("utf-8"), self._token):
            logger.warning("Authentication failed: unknown token", token=mask_token(value))
            raise AuthenticationError()

        logger.debug("Token authenticated successfully", token=mask_token(value))


async def authenticate_webhook(request: Request) -> None:
    """
    FastAPI dependency guarding the webhook route.

    Runs before the route body, so the handler is never invoked for a bad token.
    """
    authenticator: TokenAuthenticator = request.app.state.authenticator
    # A repeated parameter is judged by its first value
    tokens = request.query_params.getlist(TOKEN_QUERY_PARAM)
    authenticator.verify(tokens[0] if tokens else None)
