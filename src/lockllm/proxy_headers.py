"""Request headers and response metadata for the LockLLM proxy.

Gateway behaviour is configured entirely through ``x-lockllm-*`` request
headers, and the gateway reports what it did through response headers. The
functions here translate between those headers and Python values; they hold
no state.
"""

import base64
import binascii
import json
import math
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .types import NOT_GIVEN, ProxyOptions, ProxyResponseMetadata

HeaderSource = Union[Mapping[str, str], Iterable[Tuple[str, str]]]

_PROXY_OPTION_FIELDS = frozenset(ProxyOptions.__dataclass_fields__)


def header_value(value: Any) -> str:
    """Render an option value as the gateway expects it on the wire."""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_enabled(value: Any) -> bool:
    """True unless an opt-in option is NOT_GIVEN or explicitly ``None``."""
    return value is not NOT_GIVEN and value is not None


def coerce_proxy_options(options: Union[ProxyOptions, Mapping[str, Any]]) -> ProxyOptions:
    if isinstance(options, ProxyOptions):
        return options
    unknown = set(options) - _PROXY_OPTION_FIELDS
    if unknown:
        raise TypeError(f"Unknown proxy option(s): {', '.join(sorted(unknown))}")
    return ProxyOptions(**options)


def build_lockllm_headers(
    options: Optional[Union[ProxyOptions, Mapping[str, Any]]] = None,
) -> Dict[str, str]:
    """Build LockLLM headers from proxy request options.

    Only options that were set produce a header, so the gateway applies its
    own defaults for everything else: combined scan mode, allow_with_warning
    for scan and policy actions, abuse and PII detection off, routing off,
    caching on.

    Args:
        options: A :class:`ProxyOptions` or a mapping with the same keys.
            ``abuse_action``, ``pii_action`` and ``compression_action`` set
            to ``None`` mean "disabled" and emit nothing.

    Returns:
        Header name to value mapping. Empty when ``options`` is ``None``.
    """
    headers: Dict[str, str] = {}
    if options is None:
        return headers
    opts = coerce_proxy_options(options)

    if opts.scan_mode:
        headers["x-lockllm-scan-mode"] = header_value(opts.scan_mode)
    if opts.scan_action:
        headers["x-lockllm-scan-action"] = header_value(opts.scan_action)
    if opts.policy_action:
        headers["x-lockllm-policy-action"] = header_value(opts.policy_action)
    if is_enabled(opts.abuse_action):
        headers["x-lockllm-abuse-action"] = header_value(opts.abuse_action)
    if is_enabled(opts.pii_action):
        headers["x-lockllm-pii-action"] = header_value(opts.pii_action)
    if opts.route_action:
        headers["x-lockllm-route-action"] = header_value(opts.route_action)
    if opts.sensitivity:
        headers["x-lockllm-sensitivity"] = header_value(opts.sensitivity)

    # Caching is on by default; only an explicit opt-out is sent.
    if opts.cache_response is False:
        headers["x-lockllm-cache-response"] = "false"
    if opts.cache_ttl is not None:
        headers["x-lockllm-cache-ttl"] = header_value(opts.cache_ttl)

    if is_enabled(opts.compression_action):
        headers["x-lockllm-compression"] = header_value(opts.compression_action)
    if opts.compression_rate is not None:
        headers["x-lockllm-compression-rate"] = header_value(opts.compression_rate)

    return headers


class _HeaderLookup:
    """Case-insensitive read access over any header collection.

    Works for ``httpx.Headers``, plain dicts with arbitrary key casing and
    iterables of ``(name, value)`` pairs. Empty values read as absent.
    """

    def __init__(self, headers: HeaderSource) -> None:
        items = headers.items() if hasattr(headers, "items") else headers
        self._headers = {str(name).lower(): value for name, value in items}

    def get(self, name: str) -> Optional[str]:
        value = self._headers.get(name.lower())
        if value is None or value == "":
            return None
        return str(value)

    def get_float(self, name: str) -> Optional[float]:
        value = self.get(name)
        if value is None:
            return None
        try:
            return float(value)
        except ValueError:
            return None

    def get_int(self, name: str) -> Optional[int]:
        value = self.get(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            parsed = self.get_float(name)
            if parsed is None or not math.isfinite(parsed):
                return None
            return int(parsed)


def _or_default(value: Optional[Any], default: Any) -> Any:
    return default if value is None else value


def parse_proxy_metadata(headers: HeaderSource) -> ProxyResponseMetadata:
    """Parse proxy metadata from response headers.

    Args:
        headers: Response headers, e.g. ``response.headers`` from httpx or a
            plain dict. Header names are matched case-insensitively.

    Returns:
        A :class:`~lockllm.types.ProxyResponseMetadata` dict. Sub-records are
        only present when the gateway sent their flag header.
    """
    h = _HeaderLookup(headers)

    metadata: ProxyResponseMetadata = {
        "request_id": h.get("x-request-id") or "",
        "scanned": h.get("x-lockllm-scanned") == "true",
        "safe": h.get("x-lockllm-safe") == "true",
        "scan_mode": h.get("x-scan-mode") or "combined",
        "credits_mode": h.get("x-lockllm-credits-mode") or "byok",
        "provider": h.get("x-lockllm-provider") or "",
    }

    model = h.get("x-lockllm-model")
    if model is not None:
        metadata["model"] = model

    sensitivity = h.get("x-lockllm-sensitivity")
    if sensitivity is not None:
        metadata["sensitivity"] = sensitivity

    label = h.get_int("x-lockllm-label")
    if label is not None:
        metadata["label"] = label

    # Only an explicit "true" is reported; anything else leaves the key unset.
    if h.get("x-lockllm-blocked") == "true":
        metadata["blocked"] = True

    if h.get("x-lockllm-scan-warning") == "true":
        metadata["scan_warning"] = {
            "injection_score": _or_default(h.get_float("x-lockllm-injection-score"), 0),
            "confidence": _or_default(h.get_float("x-lockllm-confidence"), 0),
            "detail": h.get("x-lockllm-scan-detail") or "",
        }

    if h.get("x-lockllm-policy-warnings") == "true":
        metadata["policy_warnings"] = {
            "count": _or_default(h.get_int("x-lockllm-warning-count"), 0),
            "confidence": _or_default(h.get_float("x-lockllm-policy-confidence"), 0),
            "detail": h.get("x-lockllm-warning-detail") or "",
        }

    if h.get("x-lockllm-abuse-detected") == "true":
        metadata["abuse_detected"] = {
            "confidence": _or_default(h.get_float("x-lockllm-abuse-confidence"), 0),
            "types": h.get("x-lockllm-abuse-types") or "",
            "detail": h.get("x-lockllm-abuse-detail") or "",
        }

    pii_detected = h.get("x-lockllm-pii-detected")
    if pii_detected is not None:
        metadata["pii_detected"] = {
            "detected": pii_detected == "true",
            "entity_types": h.get("x-lockllm-pii-types") or "",
            "entity_count": _or_default(h.get_int("x-lockllm-pii-count"), 0),
            "action": h.get("x-lockllm-pii-action") or "",
        }

    if h.get("x-lockllm-route-enabled") == "true":
        metadata["routing"] = {
            "enabled": True,
            "task_type": h.get("x-lockllm-task-type") or "",
            "complexity": _or_default(h.get_float("x-lockllm-complexity"), 0),
            "selected_model": h.get("x-lockllm-selected-model") or "",
            "selected_provider": h.get("x-lockllm-selected-provider") or "",
            "routing_reason": h.get("x-lockllm-routing-reason") or "",
            "original_provider": h.get("x-lockllm-original-provider") or "",
            "original_model": h.get("x-lockllm-original-model") or "",
            "estimated_savings": _or_default(h.get_float("x-lockllm-estimated-savings"), 0),
            "estimated_original_cost": _or_default(
                h.get_float("x-lockllm-estimated-original-cost"), 0
            ),
            "estimated_routed_cost": _or_default(h.get_float("x-lockllm-estimated-routed-cost"), 0),
            "estimated_input_tokens": _or_default(h.get_int("x-lockllm-estimated-input-tokens"), 0),
            "estimated_output_tokens": _or_default(
                h.get_int("x-lockllm-estimated-output-tokens"), 0
            ),
            "routing_fee_reason": h.get("x-lockllm-routing-fee-reason") or "",
        }

    # Credit tracking
    for key, header in (
        ("credits_reserved", "x-lockllm-credits-reserved"),
        ("routing_fee_reserved", "x-lockllm-routing-fee-reserved"),
        ("credits_deducted", "x-lockllm-credits-deducted"),
        ("balance_after", "x-lockllm-balance-after"),
    ):
        value = h.get_float(header)
        if value is not None:
            metadata[key] = value  # type: ignore[literal-required]

    # Response cache
    cache_status = h.get("x-lockllm-cache-status")
    if cache_status is not None:
        metadata["cache_status"] = cache_status
    cache_age = h.get_int("x-lockllm-cache-age")
    if cache_age is not None:
        metadata["cache_age"] = cache_age
    tokens_saved = h.get_int("x-lockllm-tokens-saved")
    if tokens_saved is not None:
        metadata["tokens_saved"] = tokens_saved
    cost_saved = h.get_float("x-lockllm-cost-saved")
    if cost_saved is not None:
        metadata["cost_saved"] = cost_saved

    compression_method = h.get("x-lockllm-compression-method")
    if compression_method is not None:
        metadata["compression"] = {
            "method": compression_method,
            "applied": h.get("x-lockllm-compression-applied") == "true",
            "ratio": _or_default(h.get_float("x-lockllm-compression-ratio"), 1.0),
        }

    return metadata


def decode_detail_field(detail: Optional[str]) -> Any:
    """Decode a base64-encoded JSON detail header.

    Used for ``x-lockllm-scan-detail``, ``x-lockllm-warning-detail`` and
    ``x-lockllm-abuse-detail``. Returns ``None`` when the value is not valid
    base64 or does not contain JSON.
    """
    if not isinstance(detail, str):
        return None
    try:
        decoded = base64.b64decode(detail, validate=True)
        return json.loads(decoded.decode("utf-8"))
    except (binascii.Error, ValueError):
        return None
