"""
Intent classification for chat messages.

Turns one free-text message into an Intent using ordered phrase patterns.
This is keyword matching, not language understanding: the phrase groups are
checked in a fixed priority order (create, edit, list, transition) and the
first group that matches decides the kind. Entities (item type, item id,
target workflow state) are pulled out opportunistically along the way.

Confidence contract:
- 0.0  no phrase group matched (UNKNOWN)
- 0.9  group matched and its required entity is present
       (type for create, id for edit, target state for transition,
       nothing extra for list)
- 0.7  group matched but the required entity is missing

Callers decide what threshold turns a match into an action.

Usage:
    from raidchat.chat.classifier import classify

    intent = classify("Log a new risk about vendor lock-in")
    intent.kind            # CommandKind.CREATE_ITEM
    intent.params          # {"item_type": RaidType.RISK, "title": "vendor lock-in"}
"""

import logging
import re
from typing import Any, Protocol

from raidchat.chat.models import (
    CommandKind,
    Intent,
    TYPE_SYNONYMS,
    parse_raid_priority,
    parse_raid_status,
)
from raidchat.lib.constants import (
    CONFIDENCE_MATCHED,
    CONFIDENCE_MISSING_ENTITY,
    CONFIDENCE_UNKNOWN,
    ITEM_ID_PATTERN,
)

logger = logging.getLogger(__name__)


class IntentClassifier(Protocol):
    """Anything that can turn a message into an Intent."""

    def classify(self, text: str) -> Intent:
        ...


_TYPE_WORDS = "|".join(sorted(TYPE_SYNONYMS, key=len, reverse=True))
_NOUN = rf"(?:raid|items?|{_TYPE_WORDS})"
_ID = r"(?:raid|r|a|i|d)-\d+"
_FILLER = r"(?:(?:a|an|the|new|another|this|that)\s+)*"

CREATE_PATTERNS = [
    re.compile(rf"\b(?:create|add|log|raise|record)\s+{_FILLER}(?:[\w-]+\s+){{0,2}}?{_NOUN}\b"),
]

# "I need a new risk"; see _is_create for when it does not count
NEW_ITEM_PATTERN = re.compile(rf"\bnew\s+(?:[\w-]+\s+){{0,2}}?{_NOUN}\b")

EDIT_PATTERNS = [
    re.compile(rf"\b(?:edit|update|modify|change|amend)\s+{_FILLER}(?:{_NOUN}|{_ID})\b"),
]

LIST_PATTERNS = [
    re.compile(
        rf"\b(?:list|show|view|get|display)\s+(?:(?:all|the|my|open|new)\s+)*"
        rf"(?:raids?|items|risks|assumptions|issues|dependencies|deps)\b"
    ),
]

TRANSITION_PATTERNS = [
    re.compile(r"\btransition\b"),
    re.compile(r"\bmove\s+(?:the\s+)?(?:project|workflow)\b"),
    re.compile(r"\bmove\s+to\b"),
    re.compile(r"\b(?:change|set)\s+(?:the\s+)?(?:workflow\s+|project\s+)?state\b"),
]

# Applied to the case-preserved text so the state token is kept verbatim
TARGET_STATE_PATTERN = re.compile(
    r"\b(?:transition(?:\s+(?:the\s+)?(?:project|workflow))?"
    r"|move(?:\s+(?:the\s+)?(?:project|workflow))?"
    r"|(?:change|set)\s+(?:the\s+)?(?:workflow\s+|project\s+)?state)"
    r"\s+to\s+([\w-]+)",
    re.IGNORECASE,
)

TITLE_PATTERN = re.compile(r"\b(?:about|regarding|titled|called)\s+(.+)$", re.IGNORECASE)
STATUS_UPDATE_PATTERN = re.compile(r"\bstatus\s+(?:to\s+|=\s*|as\s+)?([\w -]+?)(?:$|,|\band\b)")
PRIORITY_UPDATE_PATTERN = re.compile(r"\bpriority\s+(?:to\s+|=\s*|as\s+)?(\w+)")
OWNER_UPDATE_PATTERN = re.compile(r"\b(?:assign(?:ed)?|owner)\s+(?:it\s+)?to\s+(\S+)", re.IGNORECASE)
CREATE_PRIORITY_PATTERN = re.compile(
    r"\b(critical|high|medium|low)[\s-]+priority\b"
    r"|\bpriority\s+(?:of\s+|is\s+)?(critical|high|medium|low)\b"
)
CREATE_OWNER_PATTERN = re.compile(
    r"\b(?:assign(?:ed)?\s+to|owned\s+by|owner\s+is)\s+(\S+)", re.IGNORECASE
)


def normalize(text: str) -> str:
    """Collapse whitespace, keep case."""
    return " ".join(text.split())


def extract_item_type(lowered: str):
    for word in re.findall(r"[a-z]+", lowered):
        if word in TYPE_SYNONYMS:
            return TYPE_SYNONYMS[word]
    return None


def extract_item_id(text: str) -> str | None:
    match = ITEM_ID_PATTERN.search(text)
    return match.group(0).upper() if match else None


def extract_target_state(text: str) -> str | None:
    match = TARGET_STATE_PATTERN.search(text)
    return match.group(1) if match else None


def _extract_edit_updates(lowered: str, collapsed: str) -> dict[str, Any]:
    """Pre-fill updates from 'status to closed', 'priority high', 'assign to bob'."""
    updates: dict[str, Any] = {}

    match = STATUS_UPDATE_PATTERN.search(lowered)
    if match:
        status = parse_raid_status(match.group(1))
        if status:
            updates["status"] = status

    match = PRIORITY_UPDATE_PATTERN.search(lowered)
    if match:
        priority = parse_raid_priority(match.group(1))
        if priority:
            updates["priority"] = priority

    match = OWNER_UPDATE_PATTERN.search(collapsed)
    if match:
        updates["owner"] = match.group(1).rstrip(".,")

    return updates


def _extract_create_fields(lowered: str, collapsed: str) -> dict[str, Any]:
    """Pre-fill title, priority and owner from 'a high priority risk about X assigned to bob'."""
    fields: dict[str, Any] = {}

    owner = CREATE_OWNER_PATTERN.search(collapsed)
    if owner:
        fields["owner"] = owner.group(1).rstrip(".,")

    match = CREATE_PRIORITY_PATTERN.search(lowered)
    if match:
        fields["priority"] = parse_raid_priority(match.group(1) or match.group(2))

    title = TITLE_PATTERN.search(collapsed)
    if title:
        text = title.group(1)
        if owner and owner.start() > title.start(1):
            text = collapsed[title.start(1):owner.start()]
        text = text.strip(" .,!?")
        if text:
            fields["title"] = text

    return fields


def _is_create(lowered: str) -> bool:
    if any(p.search(lowered) for p in CREATE_PATTERNS):
        return True
    # "show new risks" and "update the new risk R-3" are list and edit requests
    if any(p.search(lowered) for p in LIST_PATTERNS + EDIT_PATTERNS):
        return False
    return bool(NEW_ITEM_PATTERN.search(lowered))


class PatternClassifier:
    """Regex/keyword implementation of IntentClassifier."""

    def classify(self, text: str) -> Intent:
        collapsed = normalize(text)
        lowered = collapsed.lower()

        if _is_create(lowered):
            params: dict[str, Any] = {}
            item_type = extract_item_type(lowered)
            if item_type:
                params["item_type"] = item_type
            params.update(_extract_create_fields(lowered, collapsed))
            return self._intent(CommandKind.CREATE_ITEM, text, params, "item_type")

        if any(p.search(lowered) for p in EDIT_PATTERNS):
            params = {}
            item_id = extract_item_id(collapsed)
            if item_id:
                params["item_id"] = item_id
            params.update(_extract_edit_updates(lowered, collapsed))
            return self._intent(CommandKind.EDIT_ITEM, text, params, "item_id")

        if any(p.search(lowered) for p in LIST_PATTERNS):
            params = {}
            item_type = extract_item_type(lowered)
            if item_type:
                params["item_type"] = item_type
            return self._intent(CommandKind.LIST_ITEMS, text, params, None)

        if any(p.search(lowered) for p in TRANSITION_PATTERNS):
            params = {}
            target = extract_target_state(collapsed)
            if target:
                params["target_state"] = target
            return self._intent(CommandKind.TRANSITION_WORKFLOW, text, params, "target_state")

        logger.debug(f"[CLASSIFY] no phrase group matched: {collapsed!r}")
        return Intent(
            kind=CommandKind.UNKNOWN,
            confidence=CONFIDENCE_UNKNOWN,
            params={},
            original_text=text,
        )

    @staticmethod
    def _intent(kind: CommandKind, text: str, params: dict, required: str | None) -> Intent:
        confidence = (
            CONFIDENCE_MATCHED if required is None or required in params
            else CONFIDENCE_MISSING_ENTITY
        )
        logger.debug(f"[CLASSIFY] {kind.value} ({confidence}) params={params}")
        return Intent(kind=kind, confidence=confidence, params=params, original_text=text)


_default = PatternClassifier()


def classify(text: str) -> Intent:
    """Classify text with the default pattern classifier."""
    return _default.classify(text)
