"""Cohere clients routed through the LockLLM proxy.

The Cohere SDK has no ``default_headers`` argument, so the LockLLM headers
are set on the httpx client it sends requests with.
"""

from typing import Any, Dict, Optional

import httpx

from .config import resolve_base_url
from .generic_client import ProxyOptionsArg, merge_proxy_headers, require_api_key
from .urls import get_proxy_url

try:
    from cohere import AsyncClient as AsyncCohere
    from cohere import Client as Cohere
    COHERE_AVAILABLE = True
except ImportError:
    COHERE_AVAILABLE = False
    Cohere = None  # type: ignore
    AsyncCohere = None  # type: ignore


def _require_cohere() -> None:
    if not COHERE_AVAILABLE:
        raise ImportError(
            "cohere package is not installed. "
            "Install it with: pip install lockllm[cohere]"
        )


def _build_cohere(
    client_cls: Any,
    http_client_cls: Any,
    api_key: Optional[str],
    base_url: Optional[str],
    proxy_options: ProxyOptionsArg,
    cohere_kwargs: Dict[str, Any],
) -> Any:
    key = require_api_key(api_key)
    headers = merge_proxy_headers(cohere_kwargs.pop("default_headers", None), proxy_options)
    http_client = cohere_kwargs.pop("httpx_client", None)
    if http_client is None:
        http_client = http_client_cls(headers=headers)
    else:
        http_client.headers.update(headers)
    return client_cls(
        api_key=key,
        base_url=base_url or get_proxy_url("cohere", resolve_base_url(None)),
        httpx_client=http_client,
        **cohere_kwargs,
    )


def create_cohere(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **cohere_kwargs: Any,
) -> "Cohere":
    """Create a Cohere client that routes through the LockLLM proxy.

    Example:
        from lockllm import create_cohere

        co = create_cohere(api_key="llm_...", proxy_options={"scan_action": "block"})

        response = co.chat(model="command-r-plus", message="Hello!")

    Args:
        api_key: LockLLM API key. Falls back to ``LOCKLLM_API_KEY``.
        base_url: Proxy URL override (default
            ``https://api.lockllm.com/v1/proxy/cohere``).
        proxy_options: Options sent as ``x-lockllm-*`` headers.
        **cohere_kwargs: Additional arguments passed to the Cohere client.
            A caller supplied ``httpx_client`` gets the LockLLM headers added
            to its own.

    Raises:
        ImportError: If the cohere package is not installed.
        ConfigurationError: If no LockLLM API key is available.
    """
    _require_cohere()
    return _build_cohere(Cohere, httpx.Client, api_key, base_url, proxy_options, cohere_kwargs)


def create_async_cohere(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **cohere_kwargs: Any,
) -> "AsyncCohere":
    """Async version of :func:`create_cohere`."""
    _require_cohere()
    return _build_cohere(
        AsyncCohere, httpx.AsyncClient, api_key, base_url, proxy_options, cohere_kwargs
    )
