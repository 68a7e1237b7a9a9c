"""
Reporting API client with token handling and "Continue wait" retry logic.

The reporting service answers long-running queries with
``{"error": "Continue wait"}`` and expects the caller to send the same request
again. This module provides:
- Authenticated requests (raw token in the Authorization header)
- Re-sending a request while the service signals "Continue wait"
- A configurable retry policy (unbounded with no delay by default)
- One re-login when a cached token is rejected with HTTP 401
- Translation of transport and upstream failures into custom exceptions
"""

import httpx
import asyncio
from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field, ValidationError
from core.context import ExecutionContext
from core.exceptions import (
    AuthenticationError,
    RateLimitError,
    TransportError,
    UpstreamError
)
from ingestion.auth import TokenProvider
from schemas.cube import CubeMetadata, QuerySpec, Page
import logging

logger = logging.getLogger(__name__)

CONTINUE_WAIT = "Continue wait"


class RetryPolicy(BaseModel):
    """
    How to react to "Continue wait".

    Attributes:
        max_attempts: Total requests allowed per call; None retries forever
        delay: Seconds to sleep before the first retry
        backoff: Multiplier applied to the delay after each retry
    """
    max_attempts: Optional[int] = Field(None, ge=1)
    delay: float = Field(0.0, ge=0)
    backoff: float = Field(1.0, ge=1)

    def allows_retry(self, waits: int) -> bool:
        """Whether another request may follow ``waits`` "Continue wait" answers"""
        return self.max_attempts is None or waits < self.max_attempts

    def delay_for(self, waits: int) -> float:
        return self.delay * (self.backoff ** (waits - 1))


class APIClient:
    """
    Client for the catalog and load endpoints.

    Can be used as an async context manager; an ``httpx.AsyncClient`` is
    created and closed automatically unless one is passed in.
    """

    def __init__(
        self,
        context: ExecutionContext,
        retry_policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.AsyncClient] = None,
        token_provider: Optional[TokenProvider] = None
    ):
        self.context = context
        self.retry_policy = retry_policy or RetryPolicy()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=context.timeout)
        self.token_provider = token_provider or TokenProvider(context, self.client)

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    async def _send(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send one logical request, re-sending it while the service says "Continue wait".

        Returns:
            Decoded JSON body of the final response

        Raises:
            AuthenticationError: Token rejected twice, or HTTP 403
            RateLimitError: Retry policy exhausted
            TransportError: Timeout or network failure
            UpstreamError: HTTP error status or error payload
        """
        waits = 0
        relogged = False

        while True:
            token = await self.token_provider.obtain()
            headers = {
                "Authorization": token,
                "Content-Type": "application/json"
            }

            try:
                response = await self.client.request(
                    method,
                    url,
                    headers=headers,
                    json=payload,
                    timeout=self.context.timeout
                )
            except httpx.TimeoutException as e:
                raise TransportError(
                    f"Request to {url} timed out",
                    context={"api_url": url, "timeout": self.context.timeout},
                    original_exception=e
                )
            except httpx.HTTPError as e:
                raise TransportError(
                    f"Network error talking to {url}",
                    context={"api_url": url},
                    original_exception=e
                )

            if response.status_code == 401:
                if relogged:
                    raise AuthenticationError(
                        f"Token rejected by {url}",
                        context={"api_url": url, "status_code": 401}
                    )
                logger.info("Token rejected, logging in again")
                self.token_provider.invalidate()
                relogged = True
                continue

            try:
                body = response.json()
            except ValueError:
                body = None

            if isinstance(body, dict) and body.get("error") == CONTINUE_WAIT:
                waits += 1
                if not self.retry_policy.allows_retry(waits):
                    raise RateLimitError(
                        f"Still processing after {waits} attempts",
                        context={"api_url": url},
                        attempts=waits
                    )
                delay = self.retry_policy.delay_for(waits)
                logger.debug(f"Continue wait from {url} (attempt {waits}), retrying in {delay}s")
                if delay > 0:
                    await asyncio.sleep(delay)
                continue

            if response.status_code == 403:
                raise AuthenticationError(
                    f"Access denied by {url}",
                    context={"api_url": url, "status_code": 403}
                )

            if response.status_code >= 400:
                raise UpstreamError(
                    f"HTTP {response.status_code} from {url}",
                    context={
                        "api_url": url,
                        "status_code": response.status_code,
                        "response_body": response.text[:500]
                    }
                )

            if not isinstance(body, dict):
                raise UpstreamError(
                    "Expected a JSON object in response",
                    context={"api_url": url, "response_body": response.text[:500]}
                )

            if "error" in body:
                raise UpstreamError(
                    f"API error: {body['error']}",
                    context={"api_url": url, "status_code": response.status_code}
                )

            if waits:
                logger.info(f"{url} answered after {waits} retries")
            return body

    async def fetch_catalog(self) -> List[CubeMetadata]:
        """Fetch every cube with its dimension and measure names"""
        url = self.context.meta_url
        body = await self._send("GET", url)

        try:
            return [CubeMetadata(**cube) for cube in body.get("cubes", [])]
        except (ValidationError, TypeError) as e:
            raise UpstreamError(
                "Malformed cube descriptor in catalog",
                context={"api_url": url},
                original_exception=e
            )

    async def run_query(self, query: QuerySpec) -> Page:
        """Run one load query and return its rows"""
        url = self.context.load_url
        body = await self._send("POST", url, query.to_payload())

        rows = body.get("data")
        if not isinstance(rows, list):
            raise UpstreamError(
                "Load response has no data array",
                context={"api_url": url, "offset": query.offset, "limit": query.limit}
            )

        try:
            return Page(rows=rows)
        except ValidationError as e:
            raise UpstreamError(
                "Load response rows are not objects",
                context={"api_url": url, "offset": query.offset, "limit": query.limit},
                original_exception=e
            )
