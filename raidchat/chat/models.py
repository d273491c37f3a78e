"""
Data models for the chat command interpreter.

Enum values are the lower-case strings the item-management API uses on the
wire, so they can be sent as-is.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional, Union


class CommandKind(Enum):
    """What a chat message asks the interpreter to do."""
    CREATE_ITEM = "create_item"
    EDIT_ITEM = "edit_item"
    LIST_ITEMS = "list_items"
    TRANSITION_WORKFLOW = "transition_workflow"
    UNKNOWN = "unknown"


class RaidType(Enum):
    RISK = "risk"
    ASSUMPTION = "assumption"
    ISSUE = "issue"
    DEPENDENCY = "dependency"


class RaidStatus(Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    MITIGATED = "mitigated"
    CLOSED = "closed"
    ACCEPTED = "accepted"


class RaidPriority(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MessageRole(Enum):
    USER = "user"
    ASSISTANT = "assistant"


# Word -> canonical type. Plural and common short forms included.
TYPE_SYNONYMS: dict[str, RaidType] = {
    "risk": RaidType.RISK,
    "risks": RaidType.RISK,
    "assumption": RaidType.ASSUMPTION,
    "assumptions": RaidType.ASSUMPTION,
    "issue": RaidType.ISSUE,
    "issues": RaidType.ISSUE,
    "dependency": RaidType.DEPENDENCY,
    "dependencies": RaidType.DEPENDENCY,
    "dep": RaidType.DEPENDENCY,
    "deps": RaidType.DEPENDENCY,
}

# Id prefix -> type. "RAID-" ids carry no type.
ID_PREFIX_TYPES: dict[str, RaidType] = {
    "R": RaidType.RISK,
    "A": RaidType.ASSUMPTION,
    "I": RaidType.ISSUE,
    "D": RaidType.DEPENDENCY,
}

# Substring cues, checked in order (first hit wins)
_STATUS_CUES = [
    ("progress", RaidStatus.IN_PROGRESS),
    ("mitigat", RaidStatus.MITIGATED),
    ("clos", RaidStatus.CLOSED),
    ("accept", RaidStatus.ACCEPTED),
    ("open", RaidStatus.OPEN),
]

_PRIORITY_CUES = [
    ("crit", RaidPriority.CRITICAL),
    ("high", RaidPriority.HIGH),
    ("med", RaidPriority.MEDIUM),
    ("low", RaidPriority.LOW),
]


def parse_raid_type(text: str) -> Optional[RaidType]:
    """Map free text to a RaidType via the synonym table, or None."""
    lowered = text.lower()
    for word in lowered.replace(",", " ").replace(".", " ").split():
        if word in TYPE_SYNONYMS:
            return TYPE_SYNONYMS[word]
    # "depends on", "risky" and other run-on forms
    for stem, raid_type in (("depend", RaidType.DEPENDENCY), ("risk", RaidType.RISK),
                            ("assum", RaidType.ASSUMPTION), ("issue", RaidType.ISSUE)):
        if stem in lowered:
            return raid_type
    return None


def parse_raid_status(text: str) -> Optional[RaidStatus]:
    lowered = text.lower().replace("-", "_")
    for value in RaidStatus:
        if lowered.strip() == value.value:
            return value
    for cue, status in _STATUS_CUES:
        if cue in lowered:
            return status
    return None


def parse_raid_priority(text: str) -> Optional[RaidPriority]:
    lowered = text.lower()
    for cue, priority in _PRIORITY_CUES:
        if cue in lowered:
            return priority
    return None


def type_for_item_id(item_id: str) -> Optional[RaidType]:
    """Infer the item type from an id prefix (R-3 -> risk). None for RAID-n."""
    prefix = item_id.split("-", 1)[0].upper()
    return ID_PREFIX_TYPES.get(prefix)


@dataclass(frozen=True)
class Intent:
    """The classified purpose of one chat message."""
    kind: CommandKind
    confidence: float
    params: dict[str, Any] = field(default_factory=dict)
    original_text: str = ""


@dataclass(frozen=True)
class DialogueStep:
    """One question in a slot-filling dialogue."""
    field: str
    prompt: str
    required: bool = True
    validate: Optional[Callable[[str], Optional[str]]] = None  # error text or None
    coerce: Optional[Callable[[str], Any]] = None  # applied after validation


@dataclass(frozen=True)
class CreateItemState:
    """In-progress dialogue for creating a RAID item."""
    project_key: str
    item_type: Optional[RaidType]
    collected: dict[str, Any] = field(default_factory=dict)
    steps: tuple[DialogueStep, ...] = ()
    cursor: int = 0
    kind: CommandKind = field(default=CommandKind.CREATE_ITEM, init=False)

    @property
    def complete(self) -> bool:
        return self.cursor >= len(self.steps)


@dataclass(frozen=True)
class EditItemState:
    """In-progress dialogue for updating a RAID item."""
    project_key: str
    item_id: str
    updates: dict[str, Any] = field(default_factory=dict)
    steps: tuple[DialogueStep, ...] = ()
    cursor: int = 0
    kind: CommandKind = field(default=CommandKind.EDIT_ITEM, init=False)

    @property
    def complete(self) -> bool:
        return self.cursor >= len(self.steps)


ConversationState = Union[CreateItemState, EditItemState]


class Progress(NamedTuple):
    """Position within a dialogue."""
    current: int
    total: int

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.current * 100 / self.total)


@dataclass(frozen=True)
class ChatMessage:
    """A single transcript entry. Never mutated after creation."""
    id: str
    role: MessageRole
    content: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


def new_message(role: MessageRole, content: str, **metadata) -> ChatMessage:
    """Create a ChatMessage with a fresh id and timestamp."""
    return ChatMessage(
        id=str(uuid.uuid4()),
        role=role,
        content=content,
        timestamp=datetime.now(timezone.utc),
        metadata=metadata,
    )


def assistant_message(content: str, **metadata) -> ChatMessage:
    return new_message(MessageRole.ASSISTANT, content, **metadata)
