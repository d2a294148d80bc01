"""Custom exceptions for the LockLLM SDK.

Every failure surfaced by the SDK is a :class:`LockLLMError`. Errors returned
by the gateway are rebuilt from their JSON envelope by :func:`parse_error`.
"""

from typing import Any, Dict, List, Optional

from .types import AbuseDetails, PIIDetails, PolicyViolation, ScanResult

# Codes the gateway uses for balance and credit problems
CREDIT_ERROR_CODES = frozenset(
    {
        "insufficient_credits",
        "no_balance",
        "balance_check_failed",
        "credits_unavailable",
        "invalid_provider_for_credits_mode",
        "insufficient_routing_credits",
    }
)

CONFIG_ERROR_TYPES = frozenset({"configuration_error", "lockllm_config_error"})
CONFIG_ERROR_CODES = frozenset({"no_upstream_key", "no_byok_key"})


class LockLLMError(Exception):
    """Base exception for all LockLLM SDK errors.

    Attributes:
        message: Human readable description.
        type: Stable error type tag (e.g. ``"rate_limit_error"``).
        code: Machine readable code, when known.
        status: HTTP status the error corresponds to, when known.
        request_id: Request identifier for support and log correlation.
        details: Variant specific payload.
    """

    def __init__(
        self,
        message: str,
        type: str = "unknown_error",
        code: Optional[str] = None,
        status: Optional[int] = None,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = type
        self.code = code
        self.status = status
        self.request_id = request_id
        self.details = details or {}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(message={self.message!r}, type={self.type!r}, "
            f"code={self.code!r}, status={self.status!r}, request_id={self.request_id!r})"
        )


class AuthenticationError(LockLLMError):
    """Raised when the API key is missing, invalid or revoked."""

    def __init__(self, message: str, request_id: Optional[str] = None) -> None:
        super().__init__(
            message,
            type="authentication_error",
            code="unauthorized",
            status=401,
            request_id=request_id,
        )


class RateLimitError(LockLLMError):
    """Raised when the gateway keeps answering 429 after all retries.

    Attributes:
        retry_after: Wait suggested by the server, in milliseconds.
    """

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="rate_limit_error",
            code="rate_limited",
            status=429,
            request_id=request_id,
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class PromptInjectionError(LockLLMError):
    """Raised when the gateway blocked the input as a prompt injection.

    Attributes:
        scan_result: The scan verdict (safe, label, confidence, injection,
            sensitivity).
    """

    def __init__(
        self,
        message: str,
        scan_result: ScanResult,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="lockllm_security_error",
            code="prompt_injection_detected",
            status=400,
            request_id=request_id,
            details={"scan_result": scan_result},
        )
        self.scan_result = scan_result


class PolicyViolationError(LockLLMError):
    """Raised when one or more custom policies were violated in block mode."""

    def __init__(
        self,
        message: str,
        violated_policies: List[PolicyViolation],
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="lockllm_policy_error",
            code="policy_violation",
            status=403,
            request_id=request_id,
            details={"violated_policies": violated_policies},
        )
        self.violated_policies = violated_policies


class AbuseDetectedError(LockLLMError):
    """Raised when abuse detection is enabled in block mode and fires.

    ``abuse_details`` holds the overall confidence, the abuse type tags, the
    bot/repetition/resource/pattern indicator scores and an optional
    recommendation.
    """

    def __init__(
        self,
        message: str,
        abuse_details: AbuseDetails,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="lockllm_abuse_error",
            code="abuse_detected",
            status=400,
            request_id=request_id,
            details={"abuse_details": abuse_details},
        )
        self.abuse_details = abuse_details


class PIIDetectedError(LockLLMError):
    """Raised when PII detection is enabled in block mode and finds entities."""

    def __init__(
        self,
        message: str,
        pii_details: PIIDetails,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="lockllm_pii_error",
            code="pii_detected",
            status=403,
            request_id=request_id,
            details={"pii_details": pii_details},
        )
        self.pii_details = pii_details


class InsufficientCreditsError(LockLLMError):
    """Raised when the account balance cannot cover the request."""

    def __init__(
        self,
        message: str,
        current_balance: float = 0,
        estimated_cost: float = 0,
        code: str = "insufficient_credits",
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="lockllm_balance_error",
            code=code,
            status=402,
            request_id=request_id,
            details={"current_balance": current_balance, "estimated_cost": estimated_cost},
        )
        self.current_balance = current_balance
        self.estimated_cost = estimated_cost


class UpstreamError(LockLLMError):
    """Raised when the upstream LLM provider returned an error."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        upstream_status: Optional[int] = None,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="upstream_error",
            code="provider_error",
            status=502,
            request_id=request_id,
            details={"provider": provider, "upstream_status": upstream_status},
        )
        self.provider = provider
        self.upstream_status = upstream_status


class ConfigurationError(LockLLMError):
    """Raised when there's a configuration error in the SDK or the account."""

    def __init__(self, message: str, request_id: Optional[str] = None) -> None:
        super().__init__(
            message,
            type="configuration_error",
            code="invalid_config",
            status=400,
            request_id=request_id,
        )


class NetworkError(LockLLMError):
    """Raised when the gateway could not be reached after all retries.

    This covers connection failures, timeouts and aborted requests. The
    underlying exception is kept in ``cause``.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            type="network_error",
            code="connection_failed",
            status=0,
            request_id=request_id,
        )
        self.cause = cause


def parse_error(response: Any, request_id: Optional[str] = None) -> LockLLMError:
    """Build the typed error for a gateway error envelope.

    The envelope looks like ``{"error": {"message", "type", "code",
    "request_id", ...}}``. Rules are checked in order and the first match
    wins, so a ``prompt_injection_detected`` code without a ``scan_result``
    falls through to the generic error.

    Args:
        response: Decoded JSON body of the failed response.
        request_id: Identifier to use when the envelope carries none.

    Returns:
        The matching :class:`LockLLMError` subclass instance.
    """
    error = response.get("error") if isinstance(response, dict) else None
    if not error or not isinstance(error, dict):
        return LockLLMError("Unknown error occurred", type="unknown_error", request_id=request_id)

    message = error.get("message") or "An error occurred"
    error_type = error.get("type")
    code = error.get("code")
    rid = error.get("request_id") or request_id

    if code == "prompt_injection_detected" and error.get("scan_result"):
        return PromptInjectionError(message, error["scan_result"], request_id=rid)

    if code == "policy_violation" and error.get("violated_policies"):
        return PolicyViolationError(message, error["violated_policies"], request_id=rid)

    if code == "abuse_detected" and error.get("abuse_details"):
        return AbuseDetectedError(message, error["abuse_details"], request_id=rid)

    if code == "pii_detected" and error.get("pii_details"):
        return PIIDetectedError(message, error["pii_details"], request_id=rid)

    if code in CREDIT_ERROR_CODES:
        return InsufficientCreditsError(
            message,
            current_balance=error.get("current_balance") or 0,
            estimated_cost=error.get("estimated_cost") or 0,
            code=code,
            request_id=rid,
        )

    if error_type == "authentication_error" or code == "unauthorized":
        return AuthenticationError(message, request_id=rid)

    # retry_after is filled in by the transport for 429 responses
    if error_type == "rate_limit_error" or code == "rate_limited":
        return RateLimitError(message, None, request_id=rid)

    if error_type == "upstream_error" or code == "provider_error":
        return UpstreamError(
            message,
            provider=error.get("provider"),
            upstream_status=error.get("upstream_status"),
            request_id=rid,
        )

    if error_type in CONFIG_ERROR_TYPES or code in CONFIG_ERROR_CODES:
        return ConfigurationError(message, request_id=rid)

    return LockLLMError(
        message,
        type=error_type or "unknown_error",
        code=code,
        request_id=rid,
    )
