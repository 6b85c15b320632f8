"""
HTTP session shared by the forge API clients.

Every request runs through the BackoffRetrier with the fixed API policy. A
non-2xx response is raised as an ApiError carrying the status and body
verbatim; transport errors are raised as httpx produces them.
"""

import time
from typing import Any, Dict, Mapping, Optional

import httpx

from forgelink.models.policy import API_RETRY_POLICY, RetryPolicy
from forgelink.platforms.errors import api_error_for
from forgelink.utils.logging import get_logger, log_api_call
from forgelink.utils.resilience import BackoffRetrier

logger = get_logger(__name__)


class ForgeHttp:
    """
    Authenticated JSON session against one forge's REST API.

    Args:
        service: Service name used in logs ('gitlab' or 'github')
        base_url: API root, e.g. https://gitlab.com/api/v4
        auth_headers: Header carrying the credential
        timeout: Transport timeout in seconds
        retrier: Retry executor (default: BackoffRetrier with asyncio.sleep)
        policy: Retry policy (default: API_RETRY_POLICY)
        transport: Optional httpx transport, used by tests
        extra_headers: Headers sent with every request, e.g. API version pins
    """

    def __init__(
        self,
        service: str,
        base_url: str,
        auth_headers: Mapping[str, str],
        timeout: float = 30.0,
        retrier: Optional[BackoffRetrier] = None,
        policy: RetryPolicy = API_RETRY_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        extra_headers: Optional[Mapping[str, str]] = None,
    ):
        self.service = service
        self.base_url = base_url.rstrip("/")
        self.retrier = retrier or BackoffRetrier()
        self.policy = policy

        headers: Dict[str, str] = {"Content-Type": "application/json"}
        headers.update(extra_headers or {})
        headers.update(auth_headers)

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Any] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """
        Send a request, retrying until a 2xx response or the budget runs out.

        Raises:
            NotFoundError: On a final 404
            TransientApiError: On any other final non-2xx status
            httpx.TransportError: When the network fails on every attempt
        """

        async def _send() -> httpx.Response:
            start_time = time.monotonic()
            try:
                response = await self._client.request(method, endpoint, json=json, params=params)
            except httpx.TransportError as e:
                log_api_call(
                    logger,
                    service=self.service,
                    endpoint=endpoint,
                    method=method,
                    duration_ms=(time.monotonic() - start_time) * 1000,
                    error=f"{type(e).__name__}: {e}",
                )
                raise

            duration_ms = (time.monotonic() - start_time) * 1000
            if response.is_success:
                log_api_call(
                    logger,
                    service=self.service,
                    endpoint=endpoint,
                    method=method,
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                )
                return response

            log_api_call(
                logger,
                service=self.service,
                endpoint=endpoint,
                method=method,
                status_code=response.status_code,
                duration_ms=duration_ms,
                error=response.text,
            )
            raise api_error_for(method, endpoint, response.status_code, response.text)

        return await self.retrier.execute(_send, self.policy, name=f"{method} {endpoint}")

    async def get_json(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = await self.request("GET", endpoint, params=params)
        return response.json()

    async def send_json(self, method: str, endpoint: str, payload: Any) -> Any:
        response = await self.request(method, endpoint, json=payload)
        if not response.content:
            return None
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()
