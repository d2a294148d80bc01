"""Tests for the error taxonomy and parse_error."""

import pytest

from lockllm import (
    AbuseDetectedError,
    AuthenticationError,
    ConfigurationError,
    InsufficientCreditsError,
    LockLLMError,
    NetworkError,
    PIIDetectedError,
    PolicyViolationError,
    PromptInjectionError,
    RateLimitError,
    UpstreamError,
    parse_error,
)


class TestErrorClasses:
    """Test the fixed tags carried by each error variant."""

    @pytest.mark.parametrize(
        "error,error_type,code,status",
        [
            (AuthenticationError("bad key"), "authentication_error", "unauthorized", 401),
            (RateLimitError("slow down", 2000), "rate_limit_error", "rate_limited", 429),
            (
                PromptInjectionError("blocked", {"safe": False}),
                "lockllm_security_error",
                "prompt_injection_detected",
                400,
            ),
            (PolicyViolationError("blocked", []), "lockllm_policy_error", "policy_violation", 403),
            (AbuseDetectedError("blocked", {}), "lockllm_abuse_error", "abuse_detected", 400),
            (PIIDetectedError("blocked", {}), "lockllm_pii_error", "pii_detected", 403),
            (
                InsufficientCreditsError("broke"),
                "lockllm_balance_error",
                "insufficient_credits",
                402,
            ),
            (UpstreamError("provider down"), "upstream_error", "provider_error", 502),
            (ConfigurationError("no key"), "configuration_error", "invalid_config", 400),
            (NetworkError("offline"), "network_error", "connection_failed", 0),
        ],
    )
    def test_variant_tags(self, error, error_type, code, status) -> None:
        """Test that every variant has its type, code and status."""
        assert isinstance(error, LockLLMError)
        assert error.type == error_type
        assert error.code == code
        assert error.status == status

    def test_message_is_exception_text(self) -> None:
        """Test that str(error) is the message."""
        error = LockLLMError("something broke")
        assert str(error) == "something broke"
        assert error.message == "something broke"

    def test_network_error_keeps_cause(self) -> None:
        """Test that NetworkError exposes the underlying exception."""
        cause = OSError("connection refused")
        error = NetworkError("offline", cause=cause, request_id="req_1")
        assert error.cause is cause
        assert error.request_id == "req_1"

    def test_repr_includes_type_and_request_id(self) -> None:
        """Test the debugging representation."""
        error = AuthenticationError("bad key", request_id="req_1")
        assert "AuthenticationError" in repr(error)
        assert "req_1" in repr(error)


class TestParseError:
    """Test mapping of gateway error envelopes to typed errors."""

    def test_missing_error_object(self) -> None:
        """Test that a body without an error object is an unknown error."""
        error = parse_error({"foo": "bar"})
        assert type(error) is LockLLMError
        assert error.message == "Unknown error occurred"
        assert error.type == "unknown_error"

    def test_non_dict_body(self) -> None:
        """Test that a non-object body is an unknown error."""
        error = parse_error("Bad Gateway", request_id="req_x")
        assert error.message == "Unknown error occurred"
        assert error.request_id == "req_x"

    def test_prompt_injection(self) -> None:
        """Test mapping of a blocked injection."""
        scan_result = {
            "safe": False,
            "label": 1,
            "confidence": 0.95,
            "injection": 0.95,
            "sensitivity": "medium",
        }
        error = parse_error(
            {
                "error": {
                    "message": "Malicious prompt detected",
                    "type": "lockllm_security_error",
                    "code": "prompt_injection_detected",
                    "request_id": "req_abc",
                    "scan_result": scan_result,
                }
            }
        )
        assert isinstance(error, PromptInjectionError)
        assert error.status == 400
        assert error.request_id == "req_abc"
        assert error.scan_result == scan_result
        assert error.scan_result["injection"] == 0.95

    def test_prompt_injection_without_scan_result_is_generic(self) -> None:
        """Test that a missing payload falls through to the generic error."""
        error = parse_error(
            {
                "error": {
                    "message": "x",
                    "type": "lockllm_security_error",
                    "code": "prompt_injection_detected",
                }
            }
        )
        assert type(error) is LockLLMError
        assert error.type == "lockllm_security_error"
        assert error.code == "prompt_injection_detected"

    def test_policy_violation(self) -> None:
        """Test mapping of a custom policy violation."""
        policies = [{"policy_name": "No medical advice", "violated_categories": [{"name": "health"}]}]
        error = parse_error(
            {"error": {"message": "Policy violated", "code": "policy_violation", "violated_policies": policies}}
        )
        assert isinstance(error, PolicyViolationError)
        assert error.status == 403
        assert error.violated_policies == policies

    def test_abuse_detected(self) -> None:
        """Test mapping of abuse detection."""
        details = {"confidence": 0.9, "abuse_types": ["bot_generated"]}
        error = parse_error({"error": {"message": "Abuse", "code": "abuse_detected", "abuse_details": details}})
        assert isinstance(error, AbuseDetectedError)
        assert error.abuse_details == details

    def test_pii_detected(self) -> None:
        """Test mapping of PII detection."""
        details = {"entity_types": ["email"], "entity_count": 2}
        error = parse_error({"error": {"message": "PII", "code": "pii_detected", "pii_details": details}})
        assert isinstance(error, PIIDetectedError)
        assert error.status == 403
        assert error.pii_details == details

    @pytest.mark.parametrize(
        "code",
        [
            "insufficient_credits",
            "no_balance",
            "balance_check_failed",
            "credits_unavailable",
            "invalid_provider_for_credits_mode",
            "insufficient_routing_credits",
        ],
    )
    def test_credit_codes(self, code) -> None:
        """Test that every credit code maps to InsufficientCreditsError."""
        error = parse_error(
            {"error": {"message": "Balance", "code": code, "current_balance": 1.5, "estimated_cost": 3}}
        )
        assert isinstance(error, InsufficientCreditsError)
        assert error.status == 402
        assert error.code == code
        assert error.current_balance == 1.5
        assert error.estimated_cost == 3

    def test_credit_amounts_default_to_zero(self) -> None:
        """Test that absent balance fields default to 0."""
        error = parse_error({"error": {"message": "Balance", "code": "no_balance"}})
        assert error.current_balance == 0
        assert error.estimated_cost == 0

    def test_authentication_by_type(self) -> None:
        """Test mapping by authentication_error type."""
        error = parse_error({"error": {"message": "Invalid key", "type": "authentication_error"}})
        assert isinstance(error, AuthenticationError)
        assert error.status == 401

    def test_authentication_by_code(self) -> None:
        """Test mapping by unauthorized code."""
        error = parse_error({"error": {"message": "Invalid key", "code": "unauthorized"}})
        assert isinstance(error, AuthenticationError)

    def test_rate_limit_has_no_retry_after(self) -> None:
        """Test that the mapper itself never sets retry_after."""
        error = parse_error({"error": {"message": "Slow down", "type": "rate_limit_error"}})
        assert isinstance(error, RateLimitError)
        assert error.retry_after is None

    def test_upstream_error(self) -> None:
        """Test mapping of upstream provider failures."""
        error = parse_error(
            {
                "error": {
                    "message": "Provider failed",
                    "code": "provider_error",
                    "provider": "openai",
                    "upstream_status": 503,
                }
            }
        )
        assert isinstance(error, UpstreamError)
        assert error.provider == "openai"
        assert error.upstream_status == 503
        assert error.status == 502

    @pytest.mark.parametrize(
        "envelope",
        [
            {"type": "configuration_error"},
            {"type": "lockllm_config_error"},
            {"code": "no_upstream_key"},
            {"code": "no_byok_key"},
        ],
    )
    def test_configuration_error(self, envelope) -> None:
        """Test mapping of configuration problems."""
        error = parse_error({"error": {"message": "Configure a key", **envelope}})
        assert isinstance(error, ConfigurationError)
        assert error.status == 400

    def test_generic_error_keeps_fields(self) -> None:
        """Test that unknown codes keep the envelope's type and code."""
        error = parse_error(
            {"error": {"message": "Teapot", "type": "weird_error", "code": "teapot", "request_id": "req_t"}}
        )
        assert type(error) is LockLLMError
        assert error.type == "weird_error"
        assert error.code == "teapot"
        assert error.request_id == "req_t"

    def test_missing_message_default(self) -> None:
        """Test the default message when the envelope has none."""
        error = parse_error({"error": {"type": "weird_error"}})
        assert error.message == "An error occurred"

    def test_envelope_request_id_wins(self) -> None:
        """Test that the envelope request id beats the fallback."""
        error = parse_error({"error": {"message": "x", "request_id": "req_env"}}, request_id="req_hdr")
        assert error.request_id == "req_env"

    def test_fallback_request_id(self) -> None:
        """Test that the fallback request id is used when the envelope has none."""
        error = parse_error({"error": {"message": "x", "code": "unauthorized"}}, request_id="req_hdr")
        assert error.request_id == "req_hdr"

    def test_first_matching_rule_wins(self) -> None:
        """Test that an injection payload beats an authentication type."""
        error = parse_error(
            {
                "error": {
                    "message": "x",
                    "type": "authentication_error",
                    "code": "prompt_injection_detected",
                    "scan_result": {"safe": False},
                }
            }
        )
        assert isinstance(error, PromptInjectionError)
