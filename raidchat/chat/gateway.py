"""
Execution gateway: turns a completed conversation into one API call.

Preconditions are re-checked here even when the caller already asked
is_executable(), so a bypassed check can never send a half-built command.
Every path returns an ExecutionResult carrying a ready-to-display assistant
message; only exceptions raised by the API client itself escape, and the
chat session renders those with format_upstream_error().

Each execute*() call makes at most one API request and never retries.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from raidchat.api.client import ItemApi
from raidchat.api.models import RaidItem, RaidItemList, WorkflowStateInfo
from raidchat.chat.models import (
    ChatMessage,
    ConversationState,
    CreateItemState,
    EditItemState,
    RaidPriority,
    RaidStatus,
    RaidType,
    assistant_message,
    type_for_item_id,
)

logger = logging.getLogger(__name__)

ERROR_INCOMPLETE = "Incomplete conversation"
ERROR_MISSING_ID = "Missing item ID"
ERROR_NO_UPDATES = "No updates provided"
ERROR_MISSING_FIELDS = "Missing required fields"

DEFAULT_STATUS = RaidStatus.OPEN
DEFAULT_PRIORITY = RaidPriority.MEDIUM

FAILURE_MARKER = "❌"
SUCCESS_MARKER = "✅"


@dataclass
class ExecutionResult:
    """Outcome of executing a command. message is always set."""
    success: bool
    message: ChatMessage
    data: Any = None
    error: Optional[str] = None


def _wire(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _failed(content: str, error: str) -> ExecutionResult:
    return ExecutionResult(
        success=False,
        message=assistant_message(content, error=error),
        error=error,
    )


def _type_label(item_type: Optional[RaidType], item_id: str = "") -> str:
    if item_type is None and item_id:
        item_type = type_for_item_id(item_id)
    return item_type.value if item_type else "item"


def format_created(item: RaidItem) -> str:
    lines = [
        f"{SUCCESS_MARKER} Created {item.type.value} {item.id}: {item.title}",
        "",
        f"Description: {item.description}",
        f"Priority: {item.priority.value}",
        f"Status: {item.status.value}",
    ]
    if item.owner:
        lines.append(f"Owner: {item.owner}")
    return "\n".join(lines)


def format_updated(item: RaidItem, item_type_label: str, changed: list[str]) -> str:
    """Render the item as the server returned it after the update."""
    lines = [
        f"{SUCCESS_MARKER} Updated {item_type_label} {item.id}",
        "",
        f"Title: {item.title}",
        f"Status: {item.status.value}",
        f"Priority: {item.priority.value}",
    ]
    if item.owner:
        lines.append(f"Owner: {item.owner}")
    lines.append(f"Changed: {', '.join(changed)}")
    return "\n".join(lines)


def format_upstream_error(text: str) -> ChatMessage:
    """Failure message for errors outside the structured paths (e.g. transport faults)."""
    return assistant_message(f"{FAILURE_MARKER} Error: {text}", error=text, failure=True)


def check_preconditions(state: Optional[ConversationState]) -> Optional[ExecutionResult]:
    """Return a failed result if state cannot be executed, else None."""
    if state is None or not state.complete:
        return _failed(
            "This conversation is not complete yet. Please answer all questions first.",
            ERROR_INCOMPLETE,
        )

    if isinstance(state, EditItemState):
        if not state.item_id:
            return _failed("Cannot update: no item id was provided.", ERROR_MISSING_ID)
        if not state.updates:
            return _failed(
                f"Nothing to update: no changes were provided for {state.item_id}.",
                ERROR_NO_UPDATES,
            )
        return None

    missing = [
        name for name, present in (
            ("type", state.item_type),
            ("title", state.collected.get("title")),
            ("description", state.collected.get("description")),
        )
        if not present
    ]
    if missing:
        return _failed(
            f"Cannot create item: missing required fields ({', '.join(missing)}).",
            ERROR_MISSING_FIELDS,
        )
    return None


def build_create_payload(state: CreateItemState) -> dict[str, Any]:
    """Request body for a create, with defaults for unset optional fields."""
    collected = state.collected
    return {
        "type": _wire(state.item_type),
        "title": collected["title"],
        "description": collected["description"],
        "status": _wire(collected.get("status") or DEFAULT_STATUS),
        "priority": _wire(collected.get("priority") or DEFAULT_PRIORITY),
        "owner": collected.get("owner") or "",
    }


async def execute(state: Optional[ConversationState], api: ItemApi) -> ExecutionResult:
    """Run the command described by a completed conversation."""
    failure = check_preconditions(state)
    if failure:
        logger.info(f"[GATEWAY] refused to execute: {failure.error}")
        return failure

    if isinstance(state, CreateItemState):
        return await _execute_create(state, api)
    return await _execute_edit(state, api)


async def _execute_create(state: CreateItemState, api: ItemApi) -> ExecutionResult:
    payload = build_create_payload(state)
    type_label = payload["type"]

    response = await api.create(state.project_key, payload)

    if not response.success or response.data is None:
        error = response.error or "Unknown error"
        logger.info(f"[GATEWAY] {state.project_key}: create {type_label} failed: {error}")
        return _failed(f"Failed to create {type_label}: {error}", error)

    item = response.data
    logger.info(f"[GATEWAY] {state.project_key}: created {type_label} {item.id}")
    return ExecutionResult(
        success=True,
        message=assistant_message(format_created(item), item=item, item_id=item.id),
        data=item,
    )


async def _execute_edit(state: EditItemState, api: ItemApi) -> ExecutionResult:
    updates = {name: _wire(value) for name, value in state.updates.items()}

    response = await api.update(state.project_key, state.item_id, updates)

    if not response.success or response.data is None:
        error = response.error or "Unknown error"
        label = _type_label(None, state.item_id)
        logger.info(f"[GATEWAY] {state.project_key}: update {state.item_id} failed: {error}")
        return _failed(f"Failed to update {label} {state.item_id}: {error}", error)

    item = response.data
    label = _type_label(item.type, state.item_id)
    logger.info(f"[GATEWAY] {state.project_key}: updated {item.id}")
    return ExecutionResult(
        success=True,
        message=assistant_message(format_updated(item, label, list(updates)), item=item, item_id=item.id),
        data=item,
    )


def format_item_list(items: RaidItemList, item_type: Optional[RaidType]) -> str:
    noun = f"{item_type.value}s" if item_type else "RAID items"
    if not items.items:
        return f"No {noun} found."
    lines = [f"{len(items.items)} {noun}:"]
    for item in items.items:
        owner = f" ({item.owner})" if item.owner else ""
        lines.append(f"- {item.id} [{item.priority.value}/{item.status.value}] {item.title}{owner}")
    return "\n".join(lines)


async def execute_list(project_key: str, item_type: Optional[RaidType], api: ItemApi) -> ExecutionResult:
    """List items immediately; list requests have no dialogue."""
    response = await api.list_items(project_key, item_type)

    if not response.success or response.data is None:
        error = response.error or "Unknown error"
        return _failed(f"Failed to list items: {error}", error)

    return ExecutionResult(
        success=True,
        message=assistant_message(format_item_list(response.data, item_type)),
        data=response.data,
    )


async def execute_transition(
    project_key: str,
    target_state: str,
    api: ItemApi,
    actor: str = "",
) -> ExecutionResult:
    """Ask the server to move the project workflow to target_state.

    The server owns the workflow state machine and rejects invalid moves;
    target_state is passed through exactly as the user typed it.
    """
    response = await api.transition_workflow(project_key, target_state, actor=actor)

    if not response.success or response.data is None:
        error = response.error or "Unknown error"
        logger.info(f"[GATEWAY] {project_key}: transition to {target_state} failed: {error}")
        return _failed(f"Failed to transition to {target_state}: {error}", error)

    info: WorkflowStateInfo = response.data
    previous = info.previous_state or "unknown"
    return ExecutionResult(
        success=True,
        message=assistant_message(
            f"Moved project {project_key} from {previous} to {info.current_state}"
        ),
        data=info,
    )
