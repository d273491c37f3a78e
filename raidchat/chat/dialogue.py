"""
Slot-filling dialogue engine.

Given a classified Intent, builds the ordered list of questions still needed
to complete the command and applies the user's replies one at a time.

The questions for each command live in STEP_TABLE, keyed by CommandKind.
Fields the classifier already extracted are dropped from the list, so
"create a risk" never asks for the type and "update R-12" never asks for the
id. States are immutable: every accepted reply returns a new state, every
rejected reply returns the same state object with an error.

Usage:
    start = begin_dialogue(intent, "PROJ")
    print(start.prompt)
    result = advance(start.state, "Vendor may go bust")
    if result.error:
        print(result.error)      # re-ask current_prompt(result.state)
"""

import dataclasses
import logging
from typing import Any, NamedTuple, Optional

from raidchat.chat.models import (
    CommandKind,
    ConversationState,
    CreateItemState,
    DialogueStep,
    EditItemState,
    Intent,
    Progress,
    RaidPriority,
    RaidStatus,
    RaidType,
    parse_raid_priority,
    parse_raid_status,
    parse_raid_type,
)
from raidchat.lib.constants import ITEM_ID_PATTERN, SKIP_WORDS
from raidchat.lib.prompts import PromptOverrides
from raidchat.lib.suggest import did_you_mean

logger = logging.getLogger(__name__)


FIELD_LABELS = {
    "type": "Item type",
    "title": "Title",
    "description": "Description",
    "priority": "Priority",
    "owner": "Owner",
    "item_id": "Item id",
    "status": "Status",
}

# prompts.yaml flow names
FLOW_NAMES = {
    CommandKind.CREATE_ITEM: "create",
    CommandKind.EDIT_ITEM: "edit",
}

READY_PROMPT = "I have everything I need. Submitting now."


def _choices(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def _validate_type(raw: str) -> Optional[str]:
    if parse_raid_type(raw):
        return None
    return (
        f"'{raw}' is not a RAID type. Choose one of: {', '.join(_choices(RaidType))}."
        + did_you_mean(raw, _choices(RaidType))
    )


def _validate_priority(raw: str) -> Optional[str]:
    if parse_raid_priority(raw):
        return None
    return (
        f"'{raw}' is not a priority. Choose one of: {', '.join(_choices(RaidPriority))}."
        + did_you_mean(raw, _choices(RaidPriority))
    )


def _validate_status(raw: str) -> Optional[str]:
    if parse_raid_status(raw):
        return None
    return (
        f"'{raw}' is not a status. Choose one of: {', '.join(_choices(RaidStatus))}."
        + did_you_mean(raw, _choices(RaidStatus))
    )


def _validate_item_id(raw: str) -> Optional[str]:
    if ITEM_ID_PATTERN.search(raw):
        return None
    return f"'{raw}' doesn't look like an item id. Use the form R-12, I-3 or RAID-7."


def _coerce_item_id(raw: str) -> str:
    return ITEM_ID_PATTERN.search(raw).group(0).upper()


STEP_TABLE: dict[CommandKind, tuple[DialogueStep, ...]] = {
    CommandKind.CREATE_ITEM: (
        DialogueStep(
            field="type",
            prompt="What type of RAID item is this? (risk, assumption, issue, dependency)",
            validate=_validate_type,
            coerce=parse_raid_type,
        ),
        DialogueStep(field="title", prompt="What is the title?"),
        DialogueStep(field="description", prompt="Please provide a description:"),
        DialogueStep(
            field="priority",
            prompt="What is the priority? (critical, high, medium, low; 'skip' for medium)",
            required=False,
            validate=_validate_priority,
            coerce=parse_raid_priority,
        ),
        DialogueStep(
            field="owner",
            prompt="Who owns this item? ('skip' to leave unassigned)",
            required=False,
        ),
    ),
    CommandKind.EDIT_ITEM: (
        DialogueStep(
            field="item_id",
            prompt="Which item do you want to update? (e.g. R-12)",
            validate=_validate_item_id,
            coerce=_coerce_item_id,
        ),
        DialogueStep(
            field="status",
            prompt="New status? (open, in_progress, mitigated, closed, accepted; 'skip' to keep)",
            required=False,
            validate=_validate_status,
            coerce=parse_raid_status,
        ),
        DialogueStep(
            field="priority",
            prompt="New priority? (critical, high, medium, low; 'skip' to keep)",
            required=False,
            validate=_validate_priority,
            coerce=parse_raid_priority,
        ),
        DialogueStep(
            field="owner",
            prompt="New owner? ('skip' to keep)",
            required=False,
        ),
    ),
}

CREATE_PREFILL_FIELDS = ("title", "priority", "owner")
EDIT_UPDATE_FIELDS = ("status", "priority", "owner")


class DialogueStart(NamedTuple):
    state: ConversationState
    prompt: str


class AdvanceResult(NamedTuple):
    state: Optional[ConversationState]
    error: Optional[str] = None


def build_steps(
    kind: CommandKind,
    supplied: set[str],
    prompts: PromptOverrides | None = None,
) -> tuple[DialogueStep, ...]:
    """Return the steps for kind, minus supplied fields, with prompt overrides applied."""
    overrides = (prompts or {}).get(FLOW_NAMES[kind], {})
    steps = []
    for step in STEP_TABLE[kind]:
        if step.field in supplied:
            continue
        if step.field in overrides:
            step = dataclasses.replace(step, prompt=overrides[step.field])
        steps.append(step)
    return tuple(steps)


def begin_dialogue(
    intent: Intent,
    project_key: str,
    prompts: PromptOverrides | None = None,
) -> Optional[DialogueStart]:
    """Start a dialogue for intent, or return None if it has no multi-turn flow.

    LIST_ITEMS and TRANSITION_WORKFLOW run immediately; UNKNOWN has nothing
    to run.
    """
    params = intent.params

    if intent.kind == CommandKind.CREATE_ITEM:
        item_type = params.get("item_type")
        collected: dict[str, Any] = {}
        supplied = set()
        if item_type:
            supplied.add("type")
        for field_name in CREATE_PREFILL_FIELDS:
            if params.get(field_name):
                collected[field_name] = params[field_name]
                supplied.add(field_name)
        state = CreateItemState(
            project_key=project_key,
            item_type=item_type,
            collected=collected,
            steps=build_steps(CommandKind.CREATE_ITEM, supplied, prompts),
        )

    elif intent.kind == CommandKind.EDIT_ITEM:
        item_id = params.get("item_id", "")
        updates = {f: params[f] for f in EDIT_UPDATE_FIELDS if params.get(f)}
        supplied = set()
        if item_id:
            supplied.add("item_id")
        if updates:
            # The message already said what to change; don't ask about the rest
            supplied.update(EDIT_UPDATE_FIELDS)
        state = EditItemState(
            project_key=project_key,
            item_id=item_id,
            updates=updates,
            steps=build_steps(CommandKind.EDIT_ITEM, supplied, prompts),
        )

    else:
        return None

    logger.debug(
        f"[DIALOGUE] {project_key}: begin {state.kind.value} "
        f"with {len(state.steps)} step(s): {[s.field for s in state.steps]}"
    )
    return DialogueStart(state=state, prompt=current_prompt(state) or READY_PROMPT)


def _store(state: ConversationState, field_name: str, value: Any) -> ConversationState:
    """Return a new state with value stored and the cursor advanced."""
    cursor = state.cursor + 1

    if isinstance(state, CreateItemState):
        if field_name == "type":
            return dataclasses.replace(state, item_type=value, cursor=cursor)
        collected = dict(state.collected)
        if value is not None:
            collected[field_name] = value
        return dataclasses.replace(state, collected=collected, cursor=cursor)

    if field_name == "item_id":
        return dataclasses.replace(state, item_id=value, cursor=cursor)
    updates = dict(state.updates)
    if value is not None:
        updates[field_name] = value
    return dataclasses.replace(state, updates=updates, cursor=cursor)


def advance(state: Optional[ConversationState], reply: str) -> AdvanceResult:
    """Apply one user reply to the current step.

    On failure the returned state is the same object that was passed in.
    """
    if state is None:
        return AdvanceResult(state=None, error="No active conversation")

    if state.complete:
        return AdvanceResult(state=state, error="This conversation is already complete.")

    step = state.steps[state.cursor]
    raw = reply.strip()

    if not step.required and raw.lower() in SKIP_WORDS:
        logger.debug(f"[DIALOGUE] {state.project_key}: skipped optional '{step.field}'")
        return AdvanceResult(state=_store(state, step.field, None))

    if not raw:
        return AdvanceResult(state=state, error=f"{FIELD_LABELS.get(step.field, step.field)} is required.")

    if step.validate:
        error = step.validate(raw)
        if error:
            logger.debug(f"[DIALOGUE] {state.project_key}: rejected '{step.field}': {error}")
            return AdvanceResult(state=state, error=error)

    value = step.coerce(raw) if step.coerce else raw
    logger.debug(f"[DIALOGUE] {state.project_key}: filled '{step.field}'")
    return AdvanceResult(state=_store(state, step.field, value))


def current_prompt(state: Optional[ConversationState]) -> Optional[str]:
    """Prompt for the step awaiting a reply, or None if there is none."""
    if state is None or state.complete:
        return None
    return state.steps[state.cursor].prompt


def progress(state: Optional[ConversationState]) -> Progress:
    if state is None:
        return Progress(current=0, total=0)
    return Progress(current=state.cursor, total=len(state.steps))


def is_executable(state: Optional[ConversationState]) -> bool:
    """True when no required step is left and the business-required fields are set.

    Unanswered optional steps don't block submission: a create with title
    and description is executable while priority and owner are still open.
    """
    if state is None or any(step.required for step in state.steps[state.cursor:]):
        return False

    if isinstance(state, CreateItemState):
        return bool(state.collected.get("title") and state.collected.get("description"))

    if isinstance(state, EditItemState):
        return bool(state.item_id and state.updates)

    return False
