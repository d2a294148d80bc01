"""Request option containers and response shapes for the LockLLM SDK.

Responses are returned to callers as plain dictionaries decoded from the
gateway's JSON. The ``TypedDict`` classes below document those shapes; no
validation is applied client-side.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, TypedDict, Union

from .config import CompressionAction, PIIAction, RouteAction, ScanAction, ScanMode, Sensitivity


class NotGiven:
    """Sentinel for options the caller did not set.

    Opt-in detectors distinguish "not configured" (``NOT_GIVEN``) from
    "explicitly disabled" (``None``). Neither produces a header.
    """

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_GIVEN"


NOT_GIVEN = NotGiven()


@dataclass
class RequestOptions:
    """Per-call overrides.

    Attributes:
        headers: Extra headers merged over the SDK defaults.
        timeout: Timeout in seconds for this call only.
        signal: Cancellation token. ``asyncio.Event`` for async clients,
            ``threading.Event`` for sync clients. Setting it aborts an async
            attempt in flight; a sync client stops before its next attempt.
    """

    headers: Optional[Mapping[str, str]] = None
    timeout: Optional[float] = None
    signal: Optional[Any] = None


@dataclass
class ProxyOptions:
    """Gateway behaviour for proxied provider requests."""

    scan_mode: Optional[Union[ScanMode, str]] = None
    scan_action: Optional[Union[ScanAction, str]] = None
    policy_action: Optional[Union[ScanAction, str]] = None
    abuse_action: Union[ScanAction, str, None, NotGiven] = NOT_GIVEN
    pii_action: Union[PIIAction, str, None, NotGiven] = NOT_GIVEN
    route_action: Optional[Union[RouteAction, str]] = None
    sensitivity: Optional[Union[Sensitivity, str]] = None
    cache_response: Optional[bool] = None
    cache_ttl: Optional[int] = None
    compression_action: Union[CompressionAction, str, None, NotGiven] = NOT_GIVEN
    compression_rate: Optional[float] = None
    headers: Optional[Mapping[str, str]] = None


class ScanResult(TypedDict, total=False):
    safe: bool
    label: int
    confidence: float
    injection: float
    sensitivity: str


class ViolatedCategory(TypedDict):
    name: str


class PolicyViolation(TypedDict, total=False):
    policy_name: str
    violated_categories: List[ViolatedCategory]
    violation_details: str


class AbuseIndicators(TypedDict):
    bot_score: float
    repetition_score: float
    resource_score: float
    pattern_score: float


class AbuseDetails(TypedDict, total=False):
    confidence: float
    abuse_types: List[str]
    indicators: AbuseIndicators
    recommendation: str


class PIIDetails(TypedDict):
    entity_types: List[str]
    entity_count: int


class ScanUsage(TypedDict):
    requests: int
    input_chars: int


class ScanDebug(TypedDict):
    duration_ms: float
    inference_ms: float
    mode: str


class ScanResponse(TypedDict, total=False):
    """Body of a successful ``POST /v1/scan``."""

    request_id: str
    safe: bool
    label: int
    sensitivity: str
    confidence: float
    injection: float
    policy_confidence: float
    usage: ScanUsage
    debug: ScanDebug
    policy_warnings: List[PolicyViolation]
    scan_warning: Dict[str, Any]
    abuse_warnings: Dict[str, Any]
    pii_result: Dict[str, Any]
    compression_result: Dict[str, Any]
    routing: Dict[str, Any]


class ScanWarningMetadata(TypedDict):
    injection_score: float
    confidence: float
    detail: str


class PolicyWarningsMetadata(TypedDict):
    count: int
    confidence: float
    detail: str


class AbuseMetadata(TypedDict):
    confidence: float
    types: str
    detail: str


class PIIMetadata(TypedDict):
    detected: bool
    entity_types: str
    entity_count: int
    action: str


class RoutingMetadata(TypedDict):
    enabled: bool
    task_type: str
    complexity: float
    selected_model: str
    selected_provider: str
    routing_reason: str
    original_provider: str
    original_model: str
    estimated_savings: float
    estimated_original_cost: float
    estimated_routed_cost: float
    estimated_input_tokens: int
    estimated_output_tokens: int
    routing_fee_reason: str


class CompressionMetadata(TypedDict):
    method: str
    applied: bool
    ratio: float


class ProxyResponseMetadata(TypedDict, total=False):
    """Gateway metadata parsed from proxied response headers.

    ``request_id``, ``scanned``, ``safe``, ``scan_mode``, ``credits_mode`` and
    ``provider`` are always present; every other key only when the gateway
    emitted the corresponding header.
    """

    request_id: str
    scanned: bool
    safe: bool
    scan_mode: str
    credits_mode: str
    provider: str
    model: str
    sensitivity: str
    label: int
    blocked: bool
    scan_warning: ScanWarningMetadata
    policy_warnings: PolicyWarningsMetadata
    abuse_detected: AbuseMetadata
    pii_detected: PIIMetadata
    routing: RoutingMetadata
    credits_reserved: float
    routing_fee_reserved: float
    credits_deducted: float
    balance_after: float
    cache_status: str
    cache_age: int
    tokens_saved: int
    cost_saved: float
    compression: CompressionMetadata
