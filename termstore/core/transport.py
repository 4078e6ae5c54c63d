"""Send-moment handlers performing the actual network call.

HttpxSend is the default transport. RetryingHttpxSend wraps the same call
with exponential backoff for transient failures and is meant to replace the
default through a "replace" registration.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from termstore.core.errors import RequestTimeoutError, TransportError

logger = logging.getLogger(__name__)


class HttpxSend:
    """Send handler issuing the request with httpx.

    Without a shared client, a short-lived ``httpx.AsyncClient`` is created
    per request so that per-request settings (proxy, deadline) apply.

    Attributes:
        client: Shared client, or None for a client per request
        transport: Transport handed to per-request clients (tests use
                   ``httpx.MockTransport``)
        timeout: Deadline in seconds when the request sets none
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.transport = transport
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    async def __call__(self, url: Any, init: Any, result: Any):
        if self.client is not None and init.proxy is not None:
            # A shared client has its transport fixed at construction
            raise TransportError(
                f"Cannot route {init.method} {url} through proxy {init.proxy}: "
                f"configure the proxy on the shared httpx client instead"
            )
        response = await self.fetch(url, init)
        return url, init, response

    async def fetch(self, url: Any, init: Any) -> httpx.Response:
        """Issue one request.

        Raises:
            RequestTimeoutError: If the deadline passes
            TransportError: For connection level failures
        """
        timeout = init.timeout or self.timeout

        try:
            if self.client is not None:
                return await asyncio.wait_for(self._request(self.client, url, init, timeout), timeout)

            async with httpx.AsyncClient(
                timeout=timeout,
                transport=self.transport,
                proxy=init.proxy,
            ) as client:
                return await asyncio.wait_for(self._request(client, url, init, timeout), timeout)

        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise RequestTimeoutError(f"Request timeout after {timeout}s: {url}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Request failed: {e}") from e

    async def _request(self, client: httpx.AsyncClient, url: Any, init: Any, timeout: float) -> httpx.Response:
        logger.debug(f"Sending {init.method} {url}")
        response = await client.request(
            init.method,
            str(url),
            headers=init.headers,
            json=init.json,
            content=init.content,
            timeout=timeout,
        )
        logger.debug(f"Received {response.status_code} for {init.method} {url}")
        return response


class RetryingHttpxSend(HttpxSend):
    """HttpxSend with exponential backoff.

    Retries connection failures, timeouts and the status codes listed in
    RETRY_STATUS_CODES. A numeric Retry-After header overrides the computed
    delay.
    """

    RETRY_STATUS_CODES = (429, 503, 504)

    def __init__(self, retries: int = 3, base_delay: float = 0.5, **kwargs: Any):
        super().__init__(**kwargs)
        self.retries = retries
        self.base_delay = base_delay

    def _delay(self, attempt: int, retry_after: Optional[str]) -> float:
        if retry_after:
            try:
                return max(float(retry_after), 0.0)
            except ValueError:
                pass
        return self.base_delay * (2 ** attempt)

    async def fetch(self, url: Any, init: Any) -> httpx.Response:
        attempt = 0

        while True:
            try:
                response = await super().fetch(url, init)
            except TransportError as e:
                if attempt >= self.retries:
                    raise
                delay = self._delay(attempt, None)
                logger.warning(
                    f"{e} - retry {attempt + 1}/{self.retries} in {delay:.2f}s"
                )
            else:
                if response.status_code not in self.RETRY_STATUS_CODES or attempt >= self.retries:
                    return response
                delay = self._delay(attempt, response.headers.get("Retry-After"))
                logger.warning(
                    f"{init.method} {url} returned {response.status_code} - "
                    f"retry {attempt + 1}/{self.retries} in {delay:.2f}s"
                )

            attempt += 1
            await asyncio.sleep(delay)
