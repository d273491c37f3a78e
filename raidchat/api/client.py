"""
Async client for the item-management API.

Wraps httpx.AsyncClient with the RAID and workflow endpoints the chat
interpreter needs.

Return type conventions:
- HTTP error statuses come back as ApiResult(success=False, error=<detail>).
  The server's JSON "detail" field is used when present.
- Transport faults (connection refused, timeouts, DNS) raise
  ApiTransportError. The chat session renders those as upstream errors.
- Request payloads are checked against JSON Schema before sending and
  raise ValidationError if invalid.

This layer never retries; one method call is one HTTP request.
"""

import logging
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from raidchat.api.models import ApiResult, RaidItem, RaidItemList, WorkflowStateInfo
from raidchat.chat.models import RaidType
from raidchat.lib.config import ChatConfig
from raidchat.lib.validate import validate_before_send

logger = logging.getLogger(__name__)


class ApiTransportError(Exception):
    """The request never produced an HTTP response."""

    def __init__(self, method: str, url: str, cause: Exception):
        self.method = method
        self.url = url
        super().__init__(f"{method} {url} failed: {cause}")


class ItemApi(Protocol):
    """The collaborator the execution gateway calls."""

    async def create(self, project_key: str, payload: dict[str, Any]) -> ApiResult[RaidItem]:
        ...

    async def update(self, project_key: str, item_id: str, updates: dict[str, Any]) -> ApiResult[RaidItem]:
        ...

    async def list_items(self, project_key: str, item_type: Optional[RaidType] = None) -> ApiResult[RaidItemList]:
        ...

    async def transition_workflow(
        self, project_key: str, to_state: str, actor: str = "", reason: Optional[str] = None,
    ) -> ApiResult[WorkflowStateInfo]:
        ...


def _error_detail(response: httpx.Response) -> str:
    """Best human-readable error text from an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        detail = body.get("detail") or body.get("error") or body.get("message")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            return str(detail)

    text = response.text.strip()
    return text or f"HTTP {response.status_code} {response.reason_phrase}"


class RaidApiClient:
    """httpx-backed implementation of ItemApi.

    Usage:
        async with RaidApiClient.from_config(config) as api:
            result = await api.create("PROJ", payload)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: ChatConfig, transport: httpx.AsyncBaseTransport | None = None) -> "RaidApiClient":
        return cls(
            base_url=config.api_base_url,
            api_key=config.api_key,
            timeout=config.api_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "RaidApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"[API] {method} {url}: transport error: {e}")
            raise ApiTransportError(method, url, e) from e
        logger.debug(f"[API] {method} {url} -> {response.status_code}")
        return response

    async def _call(self, method: str, url: str, model, **kwargs) -> ApiResult:
        response = await self._request(method, url, **kwargs)
        if response.is_error:
            detail = _error_detail(response)
            logger.info(f"[API] {method} {url} rejected ({response.status_code}): {detail}")
            return ApiResult.fail(detail)
        try:
            return ApiResult.ok(model.model_validate(response.json()))
        except (ValueError, PydanticValidationError) as e:
            logger.warning(f"[API] {method} {url}: unexpected response body: {e}")
            return ApiResult.fail(f"Unexpected response from server: {e}")

    async def create(self, project_key: str, payload: dict[str, Any]) -> ApiResult[RaidItem]:
        """POST /projects/{key}/raid"""
        url = f"/projects/{project_key}/raid"
        validate_before_send(payload, "raid_item_create", url)
        return await self._call("POST", url, RaidItem, json=payload)

    async def update(self, project_key: str, item_id: str, updates: dict[str, Any]) -> ApiResult[RaidItem]:
        """PUT /projects/{key}/raid/{id}"""
        url = f"/projects/{project_key}/raid/{item_id}"
        validate_before_send(updates, "raid_item_update", url)
        return await self._call("PUT", url, RaidItem, json=updates)

    async def list_items(self, project_key: str, item_type: Optional[RaidType] = None) -> ApiResult[RaidItemList]:
        """GET /projects/{key}/raid, optionally filtered by type"""
        params = {"type": item_type.value} if item_type else None
        return await self._call("GET", f"/projects/{project_key}/raid", RaidItemList, params=params)

    async def transition_workflow(
        self, project_key: str, to_state: str, actor: str = "", reason: Optional[str] = None,
    ) -> ApiResult[WorkflowStateInfo]:
        """PATCH /projects/{key}/workflow/state"""
        body: dict[str, Any] = {"to_state": to_state}
        if actor:
            body["actor"] = actor
        if reason:
            body["reason"] = reason
        return await self._call(
            "PATCH", f"/projects/{project_key}/workflow/state", WorkflowStateInfo, json=body,
        )
