"""Management API clients.

Each client is a thin wrapper over the transport: it builds the resource
path, appends the filters that were given as a query string, and returns the
decoded JSON unchanged. Validation of names, providers or URLs happens on
the server and comes back as a typed error.

With :class:`~lockllm.transport.AsyncHttpClient` every method returns an
awaitable.
"""

from typing import Any, Dict, Optional, Union
from urllib.parse import quote, urlencode

from .proxy_headers import header_value
from .transport import AsyncHttpClient, HttpClient
from .types import RequestOptions


def build_query(path: str, **params: Any) -> str:
    """Append the parameters that are not ``None`` to ``path``."""
    present = {key: header_value(value) for key, value in params.items() if value is not None}
    if not present:
        return path
    return f"{path}?{urlencode(present)}"


def _item_path(base: str, item_id: str) -> str:
    return f"{base}/{quote(str(item_id), safe='')}"


class _ResourceClient:
    path: str = ""

    def __init__(self, http: Union[HttpClient, AsyncHttpClient]) -> None:
        self._http = http


class PoliciesClient(_ResourceClient):
    """Custom policy management (``/api/v1/policies``)."""

    path = "/api/v1/policies"

    def list(self, options: Optional[RequestOptions] = None) -> Any:
        """List all custom policies."""
        return self._http.get(self.path, options)

    def get(self, policy_id: str, options: Optional[RequestOptions] = None) -> Any:
        """Get a custom policy by ID."""
        return self._http.get(_item_path(self.path, policy_id), options)

    def create(self, policy: Dict[str, Any], options: Optional[RequestOptions] = None) -> Any:
        """Create a custom policy.

        Args:
            policy: ``policy_name``, ``policy_description`` and optionally
                ``enabled``.
        """
        return self._http.post(self.path, policy, options)

    def update(
        self, policy_id: str, updates: Dict[str, Any], options: Optional[RequestOptions] = None
    ) -> Any:
        """Update a custom policy."""
        return self._http.put(_item_path(self.path, policy_id), updates, options)

    def delete(self, policy_id: str, options: Optional[RequestOptions] = None) -> Any:
        """Delete a custom policy."""
        return self._http.delete(_item_path(self.path, policy_id), options)


class RoutingClient(_ResourceClient):
    """Intelligent routing rules (``/api/v1/routing``).

    A rule maps a task type and complexity tier to a model and provider.
    """

    path = "/api/v1/routing"

    def list_rules(self, options: Optional[RequestOptions] = None) -> Any:
        return self._http.get(self.path, options)

    def get_rule(self, rule_id: str, options: Optional[RequestOptions] = None) -> Any:
        return self._http.get(_item_path(self.path, rule_id), options)

    def create_rule(self, rule: Dict[str, Any], options: Optional[RequestOptions] = None) -> Any:
        """Create a routing rule.

        Args:
            rule: ``task_type``, ``complexity_tier``, ``model_name``,
                ``provider_preference`` and optionally ``use_byok`` and
                ``enabled``.
        """
        return self._http.post(self.path, rule, options)

    def update_rule(
        self, rule_id: str, updates: Dict[str, Any], options: Optional[RequestOptions] = None
    ) -> Any:
        return self._http.put(_item_path(self.path, rule_id), updates, options)

    def delete_rule(self, rule_id: str, options: Optional[RequestOptions] = None) -> Any:
        return self._http.delete(_item_path(self.path, rule_id), options)


class TiersClient(_ResourceClient):
    """Tier information and credit balance."""

    def get_tier_info(self, options: Optional[RequestOptions] = None) -> Any:
        """Get the current tier, monthly spending and next tier requirement."""
        return self._http.get("/api/v1/tiers", options)

    def get_balance(self, options: Optional[RequestOptions] = None) -> Any:
        """Get the current credit balance."""
        return self._http.get("/api/v1/credits/balance", options)

    def list_transactions(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        transaction_type: Optional[str] = None,
        options: Optional[RequestOptions] = None,
    ) -> Any:
        """List credit transactions.

        Args:
            limit: Maximum number of transactions.
            offset: Pagination offset.
            transaction_type: purchase, deduction, refund, adjustment or
                signup_bonus.
        """
        path = build_query(
            "/api/v1/credits/transactions",
            limit=limit,
            offset=offset,
            transaction_type=transaction_type,
        )
        return self._http.get(path, options)


class LogsClient(_ResourceClient):
    """Activity logs (``/api/v1/logs``)."""

    path = "/api/v1/logs"

    def list(
        self,
        log_type: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        options: Optional[RequestOptions] = None,
    ) -> Any:
        """List activity logs.

        Args:
            log_type: scan_api, webhook_delivery or proxy_request.
            status: success, failure, error or pending.
            start_date: ISO 8601 lower bound.
            end_date: ISO 8601 upper bound.
            limit: Maximum number of logs.
            offset: Pagination offset.
        """
        path = build_query(
            self.path,
            log_type=log_type or None,
            status=status or None,
            start_date=start_date or None,
            end_date=end_date or None,
            limit=limit,
            offset=offset,
        )
        return self._http.get(path, options)

    def get(self, log_id: str, options: Optional[RequestOptions] = None) -> Any:
        return self._http.get(_item_path(self.path, log_id), options)


class WebhooksClient(_ResourceClient):
    """Webhook management (``/api/v1/webhooks``)."""

    path = "/api/v1/webhooks"

    def list(self, options: Optional[RequestOptions] = None) -> Any:
        return self._http.get(self.path, options)

    def create(self, webhook: Dict[str, Any], options: Optional[RequestOptions] = None) -> Any:
        """Create a webhook.

        Args:
            webhook: ``url`` and optionally ``enabled`` and ``events``. The
                response carries the signing ``secret``.
        """
        return self._http.post(self.path, webhook, options)

    def delete(self, webhook_id: str, options: Optional[RequestOptions] = None) -> Any:
        return self._http.delete(_item_path(self.path, webhook_id), options)


class UpstreamKeysClient(_ResourceClient):
    """Bring-your-own-key provider credentials (``/api/v1/proxy``).

    Stored API keys are encrypted server-side and never returned.
    """

    path = "/api/v1/proxy"

    def list(self, options: Optional[RequestOptions] = None) -> Any:
        return self._http.get(self.path, options)

    def get(self, key_id: str, options: Optional[RequestOptions] = None) -> Any:
        return self._http.get(_item_path(self.path, key_id), options)

    def create(self, key: Dict[str, Any], options: Optional[RequestOptions] = None) -> Any:
        """Register an upstream key.

        Args:
            key: ``provider`` and ``api_key``, plus optional ``nickname``,
                ``endpoint_url``, ``deployment_name``, ``api_version`` and
                ``enabled``.
        """
        return self._http.post(self.path, key, options)

    def update(
        self, key_id: str, updates: Dict[str, Any], options: Optional[RequestOptions] = None
    ) -> Any:
        return self._http.put(_item_path(self.path, key_id), updates, options)

    def delete(self, key_id: str, options: Optional[RequestOptions] = None) -> Any:
        return self._http.delete(_item_path(self.path, key_id), options)
