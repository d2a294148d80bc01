"""Client for the LockLLM scan API."""

from typing import Any, Mapping, Optional, Union

import httpx

from .config import CompressionAction, PIIAction, ScanAction, ScanMode, Sensitivity
from .proxy_headers import header_value, is_enabled
from .transport import AsyncHttpClient, HttpClient
from .types import NOT_GIVEN, NotGiven, RequestOptions

SCAN_PATH = "/v1/scan"


def build_scan_headers(
    *,
    sensitivity: Optional[Union[Sensitivity, str]] = None,
    mode: Optional[Union[ScanMode, str]] = None,
    chunk: Optional[bool] = None,
    scan_action: Optional[Union[ScanAction, str]] = None,
    policy_action: Optional[Union[ScanAction, str]] = None,
    abuse_action: Union[ScanAction, str, None, NotGiven] = NOT_GIVEN,
    pii_action: Union[PIIAction, str, None, NotGiven] = NOT_GIVEN,
    compression_action: Union[CompressionAction, str, None, NotGiven] = NOT_GIVEN,
    compression_rate: Optional[float] = None,
    extra_headers: Optional[Mapping[str, str]] = None,
) -> httpx.Headers:
    """Generate the headers that configure a scan.

    Scan parameters travel as headers so the request body stays ``{input}``.
    A header is only emitted for an option the caller set, and replaces any
    caller header of the same name regardless of case.
    """
    headers = httpx.Headers(extra_headers or {})

    if mode:
        headers["x-lockllm-scan-mode"] = header_value(mode)
    if sensitivity:
        headers["x-lockllm-sensitivity"] = header_value(sensitivity)
    if chunk is not None:
        headers["x-lockllm-chunk"] = "true" if chunk else "false"

    if scan_action:
        headers["x-lockllm-scan-action"] = header_value(scan_action)
    if policy_action:
        headers["x-lockllm-policy-action"] = header_value(policy_action)
    # Opt-in detectors: None is the explicit "disabled" value
    if is_enabled(abuse_action):
        headers["x-lockllm-abuse-action"] = header_value(abuse_action)
    if is_enabled(pii_action):
        headers["x-lockllm-pii-action"] = header_value(pii_action)

    if is_enabled(compression_action):
        headers["x-lockllm-compression"] = header_value(compression_action)
    if compression_rate is not None:
        headers["x-lockllm-compression-rate"] = header_value(compression_rate)

    return headers


class ScanClient:
    """Scan prompts through ``POST /v1/scan``.

    Wraps either transport. With :class:`~lockllm.transport.AsyncHttpClient`
    :meth:`scan` returns an awaitable.
    """

    def __init__(self, http: Union[HttpClient, AsyncHttpClient]) -> None:
        self._http = http

    def scan(
        self,
        input: str,
        *,
        sensitivity: Optional[Union[Sensitivity, str]] = None,
        mode: Optional[Union[ScanMode, str]] = None,
        chunk: Optional[bool] = None,
        scan_action: Optional[Union[ScanAction, str]] = None,
        policy_action: Optional[Union[ScanAction, str]] = None,
        abuse_action: Union[ScanAction, str, None, NotGiven] = NOT_GIVEN,
        pii_action: Union[PIIAction, str, None, NotGiven] = NOT_GIVEN,
        compression_action: Union[CompressionAction, str, None, NotGiven] = NOT_GIVEN,
        compression_rate: Optional[float] = None,
        options: Optional[RequestOptions] = None,
    ) -> Any:
        """Scan a prompt for injection attacks.

        Args:
            input: The text to scan.
            sensitivity: Detection threshold (gateway default: medium).
            mode: Which checks to run (gateway default: combined).
            chunk: Force chunked scanning of large inputs.
            scan_action: Behaviour on core injection (block or warn).
            policy_action: Behaviour on custom policy violations.
            abuse_action: Enable abuse detection. ``None`` keeps it off.
            pii_action: Enable PII detection. ``None`` keeps it off.
            compression_action: Enable prompt compression.
            compression_rate: Target rate for compact compression (0.3-0.7).
            options: Per-call headers, timeout and cancellation token.

        Returns:
            The scan response dict: ``safe``, ``label``, ``sensitivity``,
            scores, usage and any warning sub-objects.

        Raises:
            PromptInjectionError: If ``scan_action`` is block and the input
                is an injection.
            PolicyViolationError: If ``policy_action`` is block and a policy
                was violated.
            LockLLMError: For any other API or network failure.
        """
        headers = build_scan_headers(
            sensitivity=sensitivity,
            mode=mode,
            chunk=chunk,
            scan_action=scan_action,
            policy_action=policy_action,
            abuse_action=abuse_action,
            pii_action=pii_action,
            compression_action=compression_action,
            compression_rate=compression_rate,
            extra_headers=options.headers if options is not None else None,
        )
        request_options = RequestOptions(
            headers=headers,
            timeout=options.timeout if options is not None else None,
            signal=options.signal if options is not None else None,
        )
        return self._http.post(SCAN_PATH, {"input": input}, request_options)
