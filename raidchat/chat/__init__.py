"""Conversational command interpreter for RAID registers.

Pipeline: classify() -> begin_dialogue()/advance() -> gateway.execute().

The gateway and ChatSession live in raidchat.chat.gateway and
raidchat.chat.session; they depend on raidchat.api and are not re-exported
here so that raidchat.api can import these models without a cycle.
"""

from raidchat.chat.models import (
    ChatMessage,
    CommandKind,
    ConversationState,
    CreateItemState,
    DialogueStep,
    EditItemState,
    Intent,
    MessageRole,
    Progress,
    RaidPriority,
    RaidStatus,
    RaidType,
)
from raidchat.chat.classifier import IntentClassifier, PatternClassifier, classify
from raidchat.chat.dialogue import (
    AdvanceResult,
    DialogueStart,
    advance,
    begin_dialogue,
    current_prompt,
    is_executable,
    progress,
)

__all__ = [
    "ChatMessage",
    "CommandKind",
    "ConversationState",
    "CreateItemState",
    "DialogueStep",
    "EditItemState",
    "Intent",
    "MessageRole",
    "Progress",
    "RaidPriority",
    "RaidStatus",
    "RaidType",
    "IntentClassifier",
    "PatternClassifier",
    "classify",
    "AdvanceResult",
    "DialogueStart",
    "advance",
    "begin_dialogue",
    "current_prompt",
    "is_executable",
    "progress",
]
