"""HTTP transport for the LockLLM API.

:class:`HttpClient` and :class:`AsyncHttpClient` execute one logical API call
each: they attach authentication and a request identifier, retry rate-limited
responses and transport failures with exponential backoff, and turn every
other failure into a typed :class:`~lockllm.exceptions.LockLLMError`.
"""

import asyncio
import logging
import re
import time
import uuid
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, NamedTuple, Optional, Union

import httpx

from ._version import __version__
from .config import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    MAX_BACKOFF_MS,
    SDK_USER_AGENT,
)
from .exceptions import NetworkError, RateLimitError, parse_error
from .types import RequestOptions

logger = logging.getLogger("lockllm")

_LEADING_INT = re.compile(r"\s*(-?\d+)")


class APIResponse(NamedTuple):
    """Decoded response body paired with the resolved request identifier."""

    data: Any
    request_id: str


class RequestAborted(Exception):
    """Raised when the caller's cancellation token fires during an attempt."""


class _Retry(NamedTuple):
    delay: int
    reason: str


def generate_request_id() -> str:
    """Generate a locally unique request identifier."""
    return f"req_{int(time.time() * 1000)}_{uuid.uuid4().hex[:13]}"


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Parse a ``Retry-After`` header value into milliseconds.

    Accepts either a number of seconds or an HTTP date. Returns ``None`` when
    the header is absent or unparseable. The result is never negative.
    """
    if not value:
        return None

    match = _LEADING_INT.match(value)
    if match:
        return max(0, int(match.group(1)) * 1000)

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max(0, int((retry_at.timestamp() - time.time()) * 1000))


def calculate_backoff(attempt: int, base_delay: int = DEFAULT_BASE_DELAY_MS) -> int:
    """Exponential backoff in milliseconds, capped at 30 seconds."""
    return min(base_delay * 2**attempt, MAX_BACKOFF_MS)


def get_request_headers(
    api_key: str,
    request_id: str,
    extra_headers: Optional[Mapping[str, str]] = None,
) -> httpx.Headers:
    """Generate headers for LockLLM API requests.

    Args:
        api_key: The LockLLM API key for authentication.
        request_id: Identifier sent as ``X-Request-Id``.
        extra_headers: Caller supplied headers. They win over the defaults,
            compared case-insensitively.

    Returns:
        The merged header collection.
    """
    headers = httpx.Headers(
        {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "X-Request-Id": request_id,
            "User-Agent": f"{SDK_USER_AGENT}/{__version__}",
        }
    )
    if extra_headers:
        headers.update(extra_headers)
    return headers


def _resolve_timeout(options: Optional[RequestOptions], default: float) -> float:
    if options is not None and options.timeout:
        return options.timeout
    return default


def _decode_body(response: httpx.Response, request_id: str) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise NetworkError(
            f"Invalid JSON in response: {exc}", cause=exc, request_id=request_id
        ) from exc


def _decode_error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


def _process_response(
    response: httpx.Response,
    request_id: str,
    attempt: int,
    max_retries: int,
) -> Union[APIResponse, _Retry]:
    """Turn one HTTP response into a result, a retry decision, or a raised error."""
    response_request_id = response.headers.get("X-Request-Id") or request_id
    can_retry = attempt < max_retries

    if response.is_success:
        return APIResponse(_decode_body(response, response_request_id), response_request_id)

    if response.status_code == 429:
        retry_after = parse_retry_after(response.headers.get("Retry-After"))
        if can_retry:
            delay = retry_after if retry_after is not None else calculate_backoff(attempt)
            return _Retry(delay, "rate limited")

        error_data = _decode_error_body(response)
        envelope = error_data.get("error") if isinstance(error_data, dict) else None
        if not isinstance(envelope, dict):
            envelope = {}
        raise RateLimitError(
            envelope.get("message") or "Rate limit exceeded",
            retry_after,
            envelope.get("request_id") or response_request_id,
        )

    error = parse_error(_decode_error_body(response), response_request_id)
    if error.status is None:
        error.status = response.status_code
    if isinstance(error, RateLimitError) and can_retry:
        return _Retry(calculate_backoff(attempt), "rate limit error")
    raise error


def _describe(exc: BaseException) -> str:
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return str(exc) or "Request timed out"
    return str(exc) or "Network request failed"


_TRANSPORT_ERRORS = (httpx.TransportError, asyncio.TimeoutError, RequestAborted)


class HttpClient:
    """Synchronous HTTP client for the LockLLM API.

    The cancellation token (``RequestOptions.signal``) is a
    ``threading.Event``. It is checked before every attempt and interrupts
    retry waits; an attempt already on the wire is bounded by the timeout.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: LockLLM API base URL.
            api_key: LockLLM API key for authentication.
            timeout: Default request timeout in seconds.
            max_retries: Retries after the first attempt.
            http_client: Optional preconfigured ``httpx.Client``.
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries
        self._http = http_client or httpx.Client(timeout=timeout)

    def get(self, path: str, options: Optional[RequestOptions] = None) -> Any:
        return self.request("GET", path, None, options).data

    def post(self, path: str, body: Any = None, options: Optional[RequestOptions] = None) -> Any:
        return self.request("POST", path, body, options).data

    def put(self, path: str, body: Any = None, options: Optional[RequestOptions] = None) -> Any:
        return self.request("PUT", path, body, options).data

    def delete(self, path: str, options: Optional[RequestOptions] = None) -> Any:
        return self.request("DELETE", path, None, options).data

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
    ) -> APIResponse:
        """Make an HTTP request with retry logic.

        Raises:
            LockLLMError: The typed error for the failure. Rate-limit and
                transport failures are only raised once retries run out.
        """
        url = f"{self._base_url}{path}"
        request_id = generate_request_id()
        signal = options.signal if options is not None else None
        last_error: Optional[BaseException] = None

        for attempt in range(self._max_retries + 1):
            try:
                response = self._send(method, url, body, request_id, options)
            except _TRANSPORT_ERRORS as exc:
                last_error = exc
                if attempt < self._max_retries:
                    delay = calculate_backoff(attempt)
                    logger.warning(
                        "%s %s failed (%s), retrying in %dms (attempt %d of %d)",
                        method, path, _describe(exc), delay, attempt + 1, self._max_retries,
                    )
                    self._sleep(delay, signal)
                    continue
                break

            result = _process_response(response, request_id, attempt, self._max_retries)
            if isinstance(result, APIResponse):
                return result
            logger.warning(
                "%s %s %s, retrying in %dms (attempt %d of %d)",
                method, path, result.reason, result.delay, attempt + 1, self._max_retries,
            )
            self._sleep(result.delay, signal)

        raise NetworkError(
            _describe(last_error) if last_error else "Network request failed",
            cause=last_error,
            request_id=request_id,
        ) from last_error

    def _send(
        self,
        method: str,
        url: str,
        body: Any,
        request_id: str,
        options: Optional[RequestOptions],
    ) -> httpx.Response:
        signal = options.signal if options is not None else None
        if signal is not None and signal.is_set():
            raise RequestAborted("Request was aborted")

        headers = get_request_headers(
            self._api_key, request_id, options.headers if options is not None else None
        )
        logger.debug("%s %s (request_id=%s)", method, url, request_id)
        return self._http.request(
            method,
            url,
            headers=headers,
            json=body,
            timeout=_resolve_timeout(options, self._timeout),
        )

    @staticmethod
    def _sleep(delay_ms: int, signal: Any) -> None:
        seconds = delay_ms / 1000
        if signal is not None:
            signal.wait(seconds)
        else:
            time.sleep(seconds)

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class AsyncHttpClient:
    """Asynchronous HTTP client for the LockLLM API.

    Without a cancellation token each attempt runs under the timeout. With
    one (an ``asyncio.Event``), the attempt races the token instead and the
    caller owns the deadline.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries
        # Deadlines are enforced per attempt by asyncio, not by httpx.
        self._http = http_client or httpx.AsyncClient(timeout=None)

    async def get(self, path: str, options: Optional[RequestOptions] = None) -> Any:
        return (await self.request("GET", path, None, options)).data

    async def post(self, path: str, body: Any = None, options: Optional[RequestOptions] = None) -> Any:
        return (await self.request("POST", path, body, options)).data

    async def put(self, path: str, body: Any = None, options: Optional[RequestOptions] = None) -> Any:
        return (await self.request("PUT", path, body, options)).data

    async def delete(self, path: str, options: Optional[RequestOptions] = None) -> Any:
        return (await self.request("DELETE", path, None, options)).data

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: Optional[RequestOptions] = None,
    ) -> APIResponse:
        """Make an HTTP request with retry logic (async)."""
        url = f"{self._base_url}{path}"
        request_id = generate_request_id()
        signal = options.signal if options is not None else None
        last_error: Optional[BaseException] = None

        for attempt in range(self._max_retries + 1):
            try:
                response = await self._send(method, url, body, request_id, options)
            except _TRANSPORT_ERRORS as exc:
                last_error = exc
                if attempt < self._max_retries:
                    delay = calculate_backoff(attempt)
                    logger.warning(
                        "%s %s failed (%s), retrying in %dms (attempt %d of %d)",
                        method, path, _describe(exc), delay, attempt + 1, self._max_retries,
                    )
                    await self._sleep(delay, signal)
                    continue
                break

            result = _process_response(response, request_id, attempt, self._max_retries)
            if isinstance(result, APIResponse):
                return result
            logger.warning(
                "%s %s %s, retrying in %dms (attempt %d of %d)",
                method, path, result.reason, result.delay, attempt + 1, self._max_retries,
            )
            await self._sleep(result.delay, signal)

        raise NetworkError(
            _describe(last_error) if last_error else "Network request failed",
            cause=last_error,
            request_id=request_id,
        ) from last_error

    async def _send(
        self,
        method: str,
        url: str,
        body: Any,
        request_id: str,
        options: Optional[RequestOptions],
    ) -> httpx.Response:
        headers = get_request_headers(
            self._api_key, request_id, options.headers if options is not None else None
        )
        logger.debug("%s %s (request_id=%s)", method, url, request_id)
        send = self._http.request(method, url, headers=headers, json=body)

        signal = options.signal if options is not None else None
        if signal is None:
            return await asyncio.wait_for(send, timeout=_resolve_timeout(options, self._timeout))

        request_task = asyncio.ensure_future(send)
        abort_task = asyncio.ensure_future(signal.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, abort_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            abort_task.cancel()
            if not request_task.done():
                request_task.cancel()

        if request_task in done:
            return request_task.result()
        raise RequestAborted("Request was aborted")

    @staticmethod
    async def _sleep(delay_ms: int, signal: Any) -> None:
        seconds = delay_ms / 1000
        if signal is None:
            await asyncio.sleep(seconds)
            return

        waiter = asyncio.ensure_future(signal.wait())
        try:
            await asyncio.wait({waiter}, timeout=seconds)
        finally:
            waiter.cancel()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncHttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
