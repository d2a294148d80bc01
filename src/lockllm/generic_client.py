"""Route any provider SDK through the LockLLM proxy.

The provider SDK is constructed with the LockLLM API key, the provider's
proxy URL and the LockLLM headers as default headers. Requests made through
it are scanned by the gateway and forwarded to the provider with the key
stored in the LockLLM dashboard.

Example:
    from mistralai import Mistral
    from lockllm import create_client

    mistral = create_client("mistral", Mistral, api_key="llm_...")
"""

from typing import Any, Callable, Dict, Mapping, Optional, TypeVar, Union

from .config import DASHBOARD_URL, resolve_api_key, resolve_base_url
from .exceptions import ConfigurationError
from .proxy_headers import build_lockllm_headers, coerce_proxy_options
from .types import ProxyOptions
from .urls import get_proxy_url

T = TypeVar("T")

ProxyOptionsArg = Optional[Union[ProxyOptions, Mapping[str, Any]]]


def merge_proxy_headers(
    default_headers: Optional[Mapping[str, str]],
    proxy_options: ProxyOptionsArg,
) -> Dict[str, str]:
    """Merge caller headers with the LockLLM headers.

    Later sources win: the caller's ``default_headers``, then the headers
    built from ``proxy_options``, then ``proxy_options.headers``.
    """
    merged: Dict[str, str] = dict(default_headers or {})
    if proxy_options is None:
        return merged

    options = coerce_proxy_options(proxy_options)
    merged.update(build_lockllm_headers(options))
    merged.update(options.headers or {})
    return merged


def require_api_key(api_key: Optional[str]) -> str:
    """Resolve the LockLLM key for a provider client.

    The key is resolved here so the provider SDK never falls back to its own
    environment variable and sends a provider key to the proxy.
    """
    key = resolve_api_key(api_key)
    if not key or not key.strip():
        raise ConfigurationError(f"API key is required. Get your API key from {DASHBOARD_URL}")
    return key


def create_client(
    provider: str,
    client_cls: Callable[..., T],
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **client_kwargs: Any,
) -> T:
    """Create a client for any provider using its official SDK.

    Args:
        provider: Provider name, e.g. ``"mistral"`` or ``"groq"``.
        client_cls: The SDK client class (or any factory accepting
            ``api_key``, ``base_url`` and ``default_headers``).
        api_key: LockLLM API key. Falls back to ``LOCKLLM_API_KEY``.
        base_url: Override for the provider's proxy URL. Defaults to the
            provider path under ``LOCKLLM_BASE_URL`` or the public gateway.
        proxy_options: Scan, policy, routing, cache and compression options.
        **client_kwargs: Passed through to ``client_cls``.

    Returns:
        The constructed SDK client.

    Raises:
        ConfigurationError: If the key is missing or the provider unknown.
    """
    default_headers = client_kwargs.pop("default_headers", None)
    return client_cls(
        api_key=require_api_key(api_key),
        base_url=base_url or get_proxy_url(provider, resolve_base_url(None)),
        default_headers=merge_proxy_headers(default_headers, proxy_options),
        **client_kwargs,
    )
