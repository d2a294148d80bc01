"""OpenAI clients routed through the LockLLM proxy.

Drop-in replacements: the returned objects are regular ``openai.OpenAI`` /
``openai.AsyncOpenAI`` instances pointed at the proxy.

Example:
    from lockllm import create_openai

    client = create_openai(
        api_key="llm_...",
        proxy_options={"scan_action": "block"},
    )

    response = client.chat.completions.create(
        model="gpt-4",
        messages=[{"role": "user", "content": "Hello!"}]
    )

Many providers (Groq, DeepSeek, Mistral, ...) speak the OpenAI API, so the
same SDK works for them through :func:`create_openai_compatible`.
"""

from typing import Any, Optional

from openai import AsyncOpenAI, OpenAI

from .generic_client import ProxyOptionsArg, create_client


def create_openai(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **openai_kwargs: Any,
) -> OpenAI:
    """Create an OpenAI client that routes through the LockLLM proxy.

    The OpenAI key itself is configured in the LockLLM dashboard.

    Args:
        api_key: LockLLM API key. Falls back to ``LOCKLLM_API_KEY``.
        base_url: Proxy URL override (default
            ``https://api.lockllm.com/v1/proxy/openai``).
        proxy_options: Scan, policy, abuse, PII, routing, cache and
            compression options, sent as ``x-lockllm-*`` headers.
        **openai_kwargs: Additional arguments passed to ``openai.OpenAI``.
    """
    return create_client("openai", OpenAI, api_key, base_url, proxy_options, **openai_kwargs)


def create_async_openai(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **openai_kwargs: Any,
) -> AsyncOpenAI:
    """Async version of :func:`create_openai`."""
    return create_client("openai", AsyncOpenAI, api_key, base_url, proxy_options, **openai_kwargs)


def create_openai_compatible(
    provider: str,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **openai_kwargs: Any,
) -> OpenAI:
    """Create an OpenAI SDK client for an OpenAI-compatible provider.

    Example:
        groq = create_openai_compatible("groq", api_key="llm_...")
        groq.chat.completions.create(
            model="llama-3.1-70b-versatile",
            messages=[{"role": "user", "content": "Hello!"}],
        )
    """
    return create_client(provider, OpenAI, api_key, base_url, proxy_options, **openai_kwargs)


def create_async_openai_compatible(
    provider: str,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    proxy_options: ProxyOptionsArg = None,
    **openai_kwargs: Any,
) -> AsyncOpenAI:
    return create_client(provider, AsyncOpenAI, api_key, base_url, proxy_options, **openai_kwargs)


# Provider shortcuts

def create_groq(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Groq client."""
    return create_openai_compatible("groq", api_key, **kwargs)


def create_deepseek(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a DeepSeek client."""
    return create_openai_compatible("deepseek", api_key, **kwargs)


def create_perplexity(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Perplexity client."""
    return create_openai_compatible("perplexity", api_key, **kwargs)


def create_mistral(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Mistral AI client."""
    return create_openai_compatible("mistral", api_key, **kwargs)


def create_openrouter(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create an OpenRouter client."""
    return create_openai_compatible("openrouter", api_key, **kwargs)


def create_together(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Together AI client."""
    return create_openai_compatible("together", api_key, **kwargs)


def create_xai(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create an xAI (Grok) client."""
    return create_openai_compatible("xai", api_key, **kwargs)


def create_fireworks(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Fireworks AI client."""
    return create_openai_compatible("fireworks", api_key, **kwargs)


def create_anyscale(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create an Anyscale client."""
    return create_openai_compatible("anyscale", api_key, **kwargs)


def create_huggingface(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Hugging Face client."""
    return create_openai_compatible("huggingface", api_key, **kwargs)


def create_gemini(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Google Gemini client over its OpenAI-compatible API."""
    return create_openai_compatible("gemini", api_key, **kwargs)


def create_azure(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create an Azure OpenAI client.

    Endpoint, deployment and API version are stored with the upstream key.
    """
    return create_openai_compatible("azure", api_key, **kwargs)


def create_bedrock(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create an AWS Bedrock client."""
    return create_openai_compatible("bedrock", api_key, **kwargs)


def create_vertex_ai(api_key: Optional[str] = None, **kwargs: Any) -> OpenAI:
    """Create a Google Vertex AI client."""
    return create_openai_compatible("vertex-ai", api_key, **kwargs)
