"""
Token acquisition for the reporting API
"""

import httpx
from typing import Optional
from core.context import ExecutionContext
from core.exceptions import AuthenticationError, TransportError
import logging

logger = logging.getLogger(__name__)


class TokenProvider:
    """
    Exchange credentials for an API token.

    The token is cached after the first successful login and reused until
    ``invalidate()`` is called (the API client does this on HTTP 401).
    """

    def __init__(self, context: ExecutionContext, client: httpx.AsyncClient):
        self.context = context
        self.client = client
        self._token: Optional[str] = None

    def invalidate(self):
        self._token = None

    async def obtain(self) -> str:
        """
        Return a token, logging in if none is cached.

        Raises:
            AuthenticationError: Credentials rejected or no token in response
            TransportError: The auth endpoint could not be reached
        """
        if self._token:
            return self._token

        url = self.context.auth_url
        body = {
            "email": self.context.email,
            "password": self.context.password.get_secret_value(),
        }

        try:
            response = await self.client.post(url, json=body, timeout=self.context.timeout)
        except httpx.HTTPError as e:
            raise TransportError(
                f"Failed to reach auth endpoint {url}",
                context={"api_url": url},
                original_exception=e
            )

        if response.status_code >= 400:
            raise AuthenticationError(
                f"Authentication failed for {self.context.email}",
                context={
                    "api_url": url,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                }
            )

        try:
            token = response.json().get(self.context.token_field)
        except (ValueError, AttributeError) as e:
            raise AuthenticationError(
                "Auth endpoint returned an unreadable response",
                context={"api_url": url, "response_body": response.text[:500]},
                original_exception=e
            )

        if not token:
            raise AuthenticationError(
                f"No '{self.context.token_field}' in auth response",
                context={"api_url": url, "status_code": response.status_code}
            )

        logger.debug(f"Obtained API token for {self.context.email}")
        self._token = str(token)
        return self._token
