"""Anthropic clients routed through the LockLLM proxy."""

from typing import Any, Optional

from .generic_client import ProxyOptionsArg, create_client

try:
    from anthropic import Anthropic, AsyncAnthropic
    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False
    Anthropic = None  # type: ignore
    AsyncAnthropic = None  # type: ignore


def _require_anthropic() -> None:
    if not ANTHROPIC_AVAILABLE:
        raise ImportError(
            "anthropic package is not installed. "
            "Install it with: pip install lockllm[anthropic]"
        )


def create_anthropic(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **anthropic_kwargs: Any,
) -> "Anthropic":
    """Create an Anthropic client that routes through the LockLLM proxy.

    Example:
        from lockllm import create_anthropic

        client = create_anthropic(api_key="llm_...")

        response = client.messages.create(
            model="claude-3-opus-20240229",
            max_tokens=1024,
            messages=[{"role": "user", "content": "Hello!"}]
        )

    Args:
        api_key: LockLLM API key. Falls back to ``LOCKLLM_API_KEY``.
        base_url: Proxy URL override (default
            ``https://api.lockllm.com/v1/proxy/anthropic``).
        proxy_options: Options sent as ``x-lockllm-*`` headers.
        **anthropic_kwargs: Additional arguments passed to Anthropic client

    Raises:
        ImportError: If the anthropic package is not installed.
    """
    _require_anthropic()
    return create_client(
        "anthropic", Anthropic, api_key, base_url, proxy_options, **anthropic_kwargs
    )


def create_async_anthropic(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **anthropic_kwargs: Any,
) -> "AsyncAnthropic":
    """Async version of :func:`create_anthropic`."""
    _require_anthropic()
    return create_client(
        "anthropic", AsyncAnthropic, api_key, base_url, proxy_options, **anthropic_kwargs
    )
