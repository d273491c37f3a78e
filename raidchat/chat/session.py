"""
Chat session: the headless orchestrator for one conversation surface.

A ChatSession owns everything that changes while a user chats with one
project: the single active ConversationState, its lifecycle FSM and the
transcript. Nothing is global, so the same engine runs behind a web chat
panel, the CLI REPL or a server-side bot.

Turns are processed one at a time. The host must await handle_input()
before sending the next message.

Usage:
    session = ChatSession("PROJ", api)
    for message in await session.handle_input("create a risk"):
        print(message.content)
"""

import logging
from typing import Optional

from raidchat.api.client import ItemApi
from raidchat.chat.classifier import IntentClassifier, PatternClassifier
from raidchat.chat.dialogue import advance, begin_dialogue, current_prompt, progress
from raidchat.chat.fsm import DialogueFSM
from raidchat.chat.gateway import (
    FAILURE_MARKER,
    execute,
    execute_list,
    execute_transition,
    format_upstream_error,
)
from raidchat.chat.models import (
    ChatMessage,
    CommandKind,
    ConversationState,
    Intent,
    Progress,
    assistant_message,
)
from raidchat.chat.transcript import Transcript
from raidchat.lib.config import ChatConfig
from raidchat.lib.constants import CANCEL_WORDS
from raidchat.lib.prompts import PromptOverrides

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I didn't quite understand that. Try commands like:\n"
    "- Create a risk about data security\n"
    "- Update R-1 status to closed\n"
    "- Show all assumptions\n"
    "- Transition to planning"
)

CANCELLED_TEXT = "Conversation cancelled. How can I help you?"
ASK_TARGET_STATE_TEXT = (
    "Which workflow state should the project move to? "
    "For example: 'transition to planning'."
)
UNSUPPORTED_TEXT = "Sorry, I can't handle that kind of command yet."


class ChatSession:
    """One user's chat with one project."""

    def __init__(
        self,
        project_key: str,
        api: ItemApi,
        classifier: IntentClassifier | None = None,
        config: ChatConfig | None = None,
        prompts: PromptOverrides | None = None,
    ):
        self.project_key = project_key
        self.api = api
        self.classifier = classifier or PatternClassifier()
        self.config = config or ChatConfig()
        self.prompts = prompts or {}
        self.transcript = Transcript()
        self.fsm = DialogueFSM(project_key)
        self._state: Optional[ConversationState] = None

    @property
    def active(self) -> Optional[ConversationState]:
        """The conversation in progress, or None."""
        return self._state

    def progress(self) -> Progress:
        return progress(self._state)

    def _say(self, content: str, **metadata) -> ChatMessage:
        return self.transcript.record(assistant_message(content, **metadata))

    def greeting(self) -> ChatMessage:
        return self._say(
            f"Hello! I can help you manage RAID items for project {self.project_key}.\n\n"
            "You can:\n"
            "- Create a new item: \"Create a risk about ...\"\n"
            "- Edit an existing item: \"Update R-1 status to closed\"\n"
            "- List items: \"Show all risks\"\n"
            "- Move the project: \"Transition to planning\"\n\n"
            "What would you like to do?"
        )

    def _discard(self) -> None:
        """Drop the active conversation, whatever stage it reached."""
        if self.fsm.state == "complete":
            self.fsm.executed()
        elif self.fsm.has_conversation:
            self.fsm.cancel()
        self._state = None

    def cancel(self) -> Optional[ChatMessage]:
        """Abandon the active conversation. Returns None if there was none."""
        if self._state is None:
            return None
        logger.info(f"[SESSION] {self.project_key}: {self._state.kind.value} cancelled by user")
        self._discard()
        return self._say(CANCELLED_TEXT)

    async def handle_input(self, text: str) -> list[ChatMessage]:
        """Process one user turn and return the assistant messages it produced."""
        if not text.strip():
            return []

        self.transcript.record_user(text)
        replies: list[ChatMessage] = []

        try:
            if self._state is not None:
                await self._continue(text, replies)
            else:
                await self._start(text, replies)
        except Exception as e:
            logger.warning(f"[SESSION] {self.project_key}: turn failed: {e}")
            self._state = None
            if self.fsm.has_conversation:
                self.fsm.cancel()
            replies.append(self.transcript.record(format_upstream_error(str(e))))

        return replies

    async def _start(self, text: str, replies: list[ChatMessage]) -> None:
        intent = self.classifier.classify(text)

        if intent.kind == CommandKind.UNKNOWN or intent.confidence < self.config.confidence_threshold:
            logger.debug(
                f"[SESSION] {self.project_key}: unrecognised ({intent.kind.value}, {intent.confidence})"
            )
            replies.append(self._say(HELP_TEXT))
            return

        if intent.kind == CommandKind.LIST_ITEMS:
            result = await execute_list(self.project_key, intent.params.get("item_type"), self.api)
            replies.append(self.transcript.record(result.message))
            return

        if intent.kind == CommandKind.TRANSITION_WORKFLOW:
            target = intent.params.get("target_state")
            if not target:
                replies.append(self._say(ASK_TARGET_STATE_TEXT))
                return
            result = await execute_transition(
                self.project_key, target, self.api, actor=self.config.actor,
            )
            replies.append(self.transcript.record(result.message))
            return

        await self._begin(intent, replies)

    async def _begin(self, intent: Intent, replies: list[ChatMessage]) -> None:
        """Start a dialogue for intent, replacing any unfinished one."""
        start = begin_dialogue(intent, self.project_key, self.prompts)
        if start is None:
            replies.append(self._say(UNSUPPORTED_TEXT))
            return

        if self._state is not None:
            logger.info(f"[SESSION] {self.project_key}: discarding unfinished {self._state.kind.value}")
            self._discard()

        self._state = start.state
        logger.info(f"[SESSION] {self.project_key}: started {start.state.kind.value}")

        if start.state.complete:
            self.fsm.begin_complete()
            replies.append(self._say(start.prompt))
            await self._execute(replies)
            return

        self.fsm.begin()
        replies.append(self._say(self._prompt_with_progress()))

    async def _continue(self, text: str, replies: list[ChatMessage]) -> None:
        if text.strip().lower() in CANCEL_WORDS:
            replies.append(self.cancel())
            return

        result = advance(self._state, text)
        if result.error:
            replies.append(self._say(
                f"{FAILURE_MARKER} {result.error}\n\n{self._prompt_with_progress()}",
                error=result.error,
            ))
            return

        self._state = result.state
        if self._state.complete:
            self.fsm.finish_steps()
            await self._execute(replies)
        else:
            self.fsm.fill()
            replies.append(self._say(self._prompt_with_progress()))

    async def _execute(self, replies: list[ChatMessage]) -> None:
        state = self._state
        try:
            result = await execute(state, self.api)
        finally:
            # No retry with the same state, success or failure
            self._discard()
        replies.append(self.transcript.record(result.message))

    def _prompt_with_progress(self) -> str:
        prompt = current_prompt(self._state) or ""
        p = self.progress()
        if p.total > 1:
            return f"{prompt} ({p.current + 1}/{p.total})"
        return prompt
