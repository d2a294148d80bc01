"""Configuration constants and types for the LockLLM SDK."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Final, Optional, Tuple


class Sensitivity(str, Enum):
    """Detection threshold used by the remote scanner."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScanMode(str, Enum):
    """Which security checks the gateway performs.

    NORMAL: core prompt-injection detection only.
    POLICY_ONLY: custom policies only.
    COMBINED: both (the gateway default).
    """

    NORMAL = "normal"
    POLICY_ONLY = "policy_only"
    COMBINED = "combined"


class ScanAction(str, Enum):
    """What the gateway does when a threat or violation is found."""

    BLOCK = "block"
    ALLOW_WITH_WARNING = "allow_with_warning"


class RouteAction(str, Enum):
    """Intelligent routing mode for proxied requests."""

    DISABLED = "disabled"
    AUTO = "auto"
    CUSTOM = "custom"


class PIIAction(str, Enum):
    """Opt-in PII handling."""

    STRIP = "strip"
    BLOCK = "block"
    ALLOW_WITH_WARNING = "allow_with_warning"


class CompressionAction(str, Enum):
    """Opt-in prompt compression method.

    TOON converts JSON to a compact notation, COMPACT applies the paid
    compressor, COMBINED runs TOON first and then COMPACT.
    """

    TOON = "toon"
    COMPACT = "compact"
    COMBINED = "combined"


# Default configuration values
DEFAULT_BASE_URL: Final[str] = "https://api.lockllm.com"
DEFAULT_TIMEOUT: Final[float] = 60.0  # seconds
DEFAULT_MAX_RETRIES: Final[int] = 3

# Retry policy (milliseconds, matching the Retry-After arithmetic)
DEFAULT_BASE_DELAY_MS: Final[int] = 1000
MAX_BACKOFF_MS: Final[int] = 30000

PROXY_PATH: Final[str] = "/v1/proxy"

# Environment variables consulted when the constructor is not given a value
API_KEY_ENV: Final[str] = "LOCKLLM_API_KEY"
BASE_URL_ENV: Final[str] = "LOCKLLM_BASE_URL"

DASHBOARD_URL: Final[str] = "https://www.lockllm.com/dashboard"

# SDK identification
SDK_USER_AGENT: Final[str] = "lockllm-python"

PROVIDERS: Final[Tuple[str, ...]] = (
    "openai",
    "anthropic",
    "gemini",
    "cohere",
    "openrouter",
    "perplexity",
    "mistral",
    "groq",
    "deepseek",
    "together",
    "xai",
    "fireworks",
    "anyscale",
    "huggingface",
    "azure",
    "bedrock",
    "vertex-ai",
)


@dataclass(frozen=True)
class LockLLMConfig:
    """Resolved client configuration. Read-only once the client is built."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES


def resolve_api_key(api_key: Optional[str]) -> Optional[str]:
    """Return the explicit key, or the environment key when none was passed."""
    if api_key is not None:
        return api_key
    return os.environ.get(API_KEY_ENV)


def resolve_base_url(base_url: Optional[str]) -> str:
    if base_url:
        return base_url
    return os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
