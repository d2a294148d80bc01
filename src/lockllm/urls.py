"""Proxy URL helpers.

Each supported provider has its own BYOK proxy endpoint under
``<base>/v1/proxy/<provider>``. The universal endpoint serves any model with
LockLLM credits and no provider key.
"""

from typing import Dict

from .config import DEFAULT_BASE_URL, PROVIDERS, PROXY_PATH
from .exceptions import ConfigurationError


def _proxy_base(base_url: str) -> str:
    return f"{base_url.rstrip('/')}{PROXY_PATH}"


def get_proxy_url(provider: str, base_url: str = DEFAULT_BASE_URL) -> str:
    """Get the proxy URL for a specific provider.

    Example:
        >>> get_proxy_url("openai")
        'https://api.lockllm.com/v1/proxy/openai'

    Raises:
        ConfigurationError: If ``provider`` is not a supported provider.
    """
    if provider not in PROVIDERS:
        raise ConfigurationError(
            f"Unknown provider: {provider!r}. Supported providers: {', '.join(PROVIDERS)}"
        )
    return f"{_proxy_base(base_url)}/{provider}"


def get_universal_proxy_url(base_url: str = DEFAULT_BASE_URL) -> str:
    """Get the universal (non-BYOK) proxy URL."""
    return f"{_proxy_base(base_url)}/chat/completions"


def get_all_proxy_urls(base_url: str = DEFAULT_BASE_URL) -> Dict[str, str]:
    """Map every supported provider to its proxy URL."""
    return {provider: get_proxy_url(provider, base_url) for provider in PROVIDERS}
