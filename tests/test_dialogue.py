"""Tests for raidchat.chat.dialogue module."""

import pytest

from raidchat.chat.classifier import classify
from raidchat.chat.dialogue import (
    READY_PROMPT,
    STEP_TABLE,
    advance,
    begin_dialogue,
    build_steps,
    current_prompt,
    is_executable,
    progress,
)
from raidchat.chat.models import (
    CommandKind,
    CreateItemState,
    EditItemState,
    Intent,
    Progress,
    RaidPriority,
    RaidStatus,
    RaidType,
)


@pytest.fixture
def risk_start():
    """Dialogue started from 'create a risk'."""
    return begin_dialogue(classify("create a risk"), "PROJ")


@pytest.fixture
def edit_state():
    """Edit dialogue waiting for an item id."""
    return begin_dialogue(classify("edit a risk"), "PROJ").state


def _fields(state):
    return [step.field for step in state.steps]


class TestStepTable:

    def test_create_fields(self):
        assert [s.field for s in STEP_TABLE[CommandKind.CREATE_ITEM]] == [
            "type", "title", "description", "priority", "owner",
        ]

    def test_create_priority_and_owner_optional(self):
        optional = {s.field for s in STEP_TABLE[CommandKind.CREATE_ITEM] if not s.required}
        assert optional == {"priority", "owner"}

    def test_edit_fields(self):
        assert [s.field for s in STEP_TABLE[CommandKind.EDIT_ITEM]] == [
            "item_id", "status", "priority", "owner",
        ]

    def test_edit_updates_optional(self):
        optional = {s.field for s in STEP_TABLE[CommandKind.EDIT_ITEM] if not s.required}
        assert optional == {"status", "priority", "owner"}

    def test_build_steps_skips_supplied(self):
        steps = build_steps(CommandKind.CREATE_ITEM, {"type", "title"})
        assert [s.field for s in steps] == ["description", "priority", "owner"]

    def test_build_steps_applies_overrides(self):
        steps = build_steps(CommandKind.CREATE_ITEM, {"type"}, {"create": {"title": "Name it:"}})
        assert steps[0].prompt == "Name it:"
        # Table itself is untouched
        assert STEP_TABLE[CommandKind.CREATE_ITEM][1].prompt == "What is the title?"


class TestBeginDialogue:

    def test_create_with_type(self, risk_start):
        state = risk_start.state
        assert isinstance(state, CreateItemState)
        assert state.item_type == RaidType.RISK
        assert state.cursor == 0
        assert _fields(state) == ["title", "description", "priority", "owner"]
        assert risk_start.prompt == "What is the title?"

    def test_create_without_type_asks_type_first(self):
        start = begin_dialogue(classify("create a raid item"), "PROJ")
        assert _fields(start.state)[0] == "type"
        assert "type" in start.prompt

    def test_create_title_prefilled(self):
        start = begin_dialogue(classify("create a risk about vendor lock-in"), "PROJ")
        assert start.state.collected["title"] == "vendor lock-in"
        assert _fields(start.state) == ["description", "priority", "owner"]

    def test_create_priority_and_owner_prefilled(self):
        start = begin_dialogue(classify("create a high priority risk assigned to bob"), "PROJ")
        assert start.state.collected["priority"] == RaidPriority.HIGH
        assert start.state.collected["owner"] == "bob"
        assert _fields(start.state) == ["title", "description"]

    def test_edit_without_id_asks_id_first(self, edit_state):
        assert isinstance(edit_state, EditItemState)
        assert edit_state.item_id == ""
        assert _fields(edit_state)[0] == "item_id"

    def test_edit_with_id_skips_id(self):
        state = begin_dialogue(classify("update R-12"), "PROJ").state
        assert state.item_id == "R-12"
        assert _fields(state) == ["status", "priority", "owner"]

    def test_edit_fully_prefilled_has_no_steps(self):
        start = begin_dialogue(classify("update R-1 status to closed"), "PROJ")
        assert start.state.steps == ()
        assert start.state.updates == {"status": RaidStatus.CLOSED}
        assert start.prompt == READY_PROMPT
        assert is_executable(start.state)

    @pytest.mark.parametrize("text", ["show all risks", "transition to planning", "hello"])
    def test_no_dialogue_for_other_kinds(self, text):
        assert begin_dialogue(classify(text), "PROJ") is None

    def test_prompt_overrides(self):
        start = begin_dialogue(classify("create a risk"), "PROJ", {"create": {"title": "Risk name?"}})
        assert start.prompt == "Risk name?"


class TestAdvance:

    def test_no_active_conversation(self):
        result = advance(None, "anything")
        assert result.state is None
        assert result.error == "No active conversation"

    def test_accepts_reply(self, risk_start):
        result = advance(risk_start.state, "  Vendor insolvency  ")
        assert result.error is None
        assert result.state.cursor == 1
        assert result.state.collected["title"] == "Vendor insolvency"

    def test_does_not_mutate_input(self, risk_start):
        original = risk_start.state
        advance(original, "Vendor insolvency")
        assert original.cursor == 0
        assert original.collected == {}

    def test_required_empty_reply(self, risk_start):
        result = advance(risk_start.state, "   ")
        assert result.state is risk_start.state
        assert result.error == "Title is required."

    def test_invalid_choice_returns_same_state(self):
        state = begin_dialogue(classify("create a raid item"), "PROJ").state
        result = advance(state, "banana")
        assert result.state is state
        assert "not a RAID type" in result.error

    def test_invalid_choice_suggests(self):
        state = begin_dialogue(classify("create a raid item"), "PROJ").state
        result = advance(state, "rsk")
        assert "Did you mean 'risk'?" in result.error

    def test_type_reply_sets_item_type(self):
        state = begin_dialogue(classify("create a raid item"), "PROJ").state
        result = advance(state, "It's an assumption")
        assert result.state.item_type == RaidType.ASSUMPTION
        assert "type" not in result.state.collected

    def test_item_id_coerced(self, edit_state):
        result = advance(edit_state, "it's r-5")
        assert result.state.item_id == "R-5"

    def test_invalid_item_id(self, edit_state):
        result = advance(edit_state, "the vendor one")
        assert result.state is edit_state
        assert "doesn't look like an item id" in result.error

    def test_create_priority_reply_suggests(self, risk_start):
        state = advance(advance(risk_start.state, "T").state, "D").state
        result = advance(state, "hgh")
        assert result.state is state
        assert "Did you mean 'high'?" in result.error

    def test_create_priority_reply_coerced(self, risk_start):
        state = advance(advance(risk_start.state, "T").state, "D").state
        result = advance(state, "Critical!")
        assert result.state.collected["priority"] == RaidPriority.CRITICAL

    def test_optional_step_skipped(self):
        state = begin_dialogue(classify("update R-12"), "PROJ").state
        result = advance(state, "")
        assert result.error is None
        assert result.state.cursor == 1
        assert "status" not in result.state.updates

    def test_optional_step_skip_word(self):
        state = begin_dialogue(classify("update R-12"), "PROJ").state
        result = advance(state, "skip")
        assert result.state.updates == {}

    def test_optional_choice_coerced(self):
        state = begin_dialogue(classify("update R-12"), "PROJ").state
        result = advance(state, "in progress")
        assert result.state.updates == {"status": RaidStatus.IN_PROGRESS}

    def test_already_complete(self):
        state = begin_dialogue(classify("update R-1 status to closed"), "PROJ").state
        result = advance(state, "more")
        assert result.state is state
        assert result.error


class TestProgressAndPrompt:

    def test_progress_none(self):
        assert progress(None) == Progress(current=0, total=0)

    def test_progress_is_pure(self, risk_start):
        assert progress(risk_start.state) == progress(risk_start.state)
        assert progress(risk_start.state) == Progress(current=0, total=4)

    def test_progress_percent(self, risk_start):
        state = advance(risk_start.state, "Title").state
        assert progress(state).percent == 25

    def test_current_prompt_follows_cursor(self, risk_start):
        state = advance(risk_start.state, "Title").state
        assert current_prompt(state) == "Please provide a description:"

    def test_current_prompt_none_when_complete(self, risk_start):
        state = risk_start.state
        for reply in ["T", "D", "high", ""]:
            state = advance(state, reply).state
        assert current_prompt(state) is None
        assert current_prompt(None) is None


class TestIsExecutable:

    def test_none(self):
        assert is_executable(None) is False

    def test_create_scenario(self):
        intent = classify("create a risk")
        assert intent.kind == CommandKind.CREATE_ITEM
        assert intent.params["item_type"] == RaidType.RISK
        assert intent.confidence > 0.8

        start = begin_dialogue(intent, "PROJ")
        assert start.state.cursor == 0
        assert start.prompt

        state = advance(start.state, "Vendor insolvency").state
        assert is_executable(state) is False
        state = advance(state, "Key supplier may go bankrupt").state
        assert is_executable(state) is True
        # priority and owner are still open but optional
        assert state.complete is False

    def test_create_after_optional_steps(self, risk_start):
        state = risk_start.state
        for reply in ["Vendor insolvency", "Key supplier may go bankrupt", "skip", "dana"]:
            state = advance(state, reply).state
        assert state.complete
        assert state.collected["owner"] == "dana"
        assert "priority" not in state.collected
        assert is_executable(state) is True

    def test_create_missing_description(self):
        state = CreateItemState(
            project_key="PROJ",
            item_type=RaidType.RISK,
            collected={"title": "Vendor insolvency", "description": ""},
        )
        assert state.complete
        assert is_executable(state) is False

    def test_edit_without_updates(self):
        state = EditItemState(project_key="PROJ", item_id="R-1")
        assert is_executable(state) is False

    def test_edit_with_updates(self):
        state = EditItemState(project_key="PROJ", item_id="R-1", updates={"owner": "bob"})
        assert is_executable(state) is True

    def test_incomplete_edit(self, edit_state):
        assert is_executable(edit_state) is False


class TestCustomIntent:

    def test_intent_without_classifier(self):
        intent = Intent(kind=CommandKind.EDIT_ITEM, confidence=0.9, params={"item_id": "I-9", "owner": "sam"})
        start = begin_dialogue(intent, "PROJ")
        assert start.state.updates == {"owner": "sam"}
        assert start.state.complete
