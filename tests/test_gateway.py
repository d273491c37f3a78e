"""Tests for raidchat.chat.gateway module."""

from unittest.mock import AsyncMock

import pytest

from raidchat.api.models import ApiResult, RaidItem, RaidItemList, WorkflowStateInfo
from raidchat.chat.dialogue import STEP_TABLE
from raidchat.chat.gateway import (
    ERROR_INCOMPLETE,
    ERROR_MISSING_FIELDS,
    ERROR_MISSING_ID,
    ERROR_NO_UPDATES,
    FAILURE_MARKER,
    SUCCESS_MARKER,
    build_create_payload,
    execute,
    execute_list,
    execute_transition,
    format_upstream_error,
)
from raidchat.chat.models import (
    CommandKind,
    CreateItemState,
    EditItemState,
    MessageRole,
    RaidPriority,
    RaidStatus,
    RaidType,
)


def _item(**overrides) -> RaidItem:
    data = {
        "id": "R-7",
        "type": "risk",
        "title": "Vendor insolvency",
        "description": "Key supplier may go bankrupt",
        "status": "open",
        "priority": "medium",
        "owner": "",
    }
    data.update(overrides)
    return RaidItem.model_validate(data)


@pytest.fixture
def api():
    """ItemApi double; every method is awaitable."""
    return AsyncMock()


@pytest.fixture
def create_state():
    return CreateItemState(
        project_key="PROJ",
        item_type=RaidType.RISK,
        collected={"title": "Vendor insolvency", "description": "Key supplier may go bankrupt"},
    )


class TestPreconditions:

    @pytest.mark.asyncio
    async def test_incomplete(self, api):
        state = CreateItemState(
            project_key="PROJ",
            item_type=RaidType.RISK,
            steps=STEP_TABLE[CommandKind.CREATE_ITEM][1:],
        )
        result = await execute(state, api)
        assert result.success is False
        assert result.error == ERROR_INCOMPLETE
        assert "not complete" in result.message.content
        api.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_none_state(self, api):
        result = await execute(None, api)
        assert result.error == ERROR_INCOMPLETE

    @pytest.mark.asyncio
    async def test_edit_missing_id(self, api):
        state = EditItemState(project_key="PROJ", item_id="", updates={"status": RaidStatus.CLOSED})
        result = await execute(state, api)
        assert result.success is False
        assert result.error == ERROR_MISSING_ID
        assert "no item id was provided" in result.message.content
        api.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edit_no_updates(self, api):
        state = EditItemState(project_key="PROJ", item_id="R-1")
        result = await execute(state, api)
        assert result.error == ERROR_NO_UPDATES
        assert "R-1" in result.message.content

    @pytest.mark.asyncio
    async def test_create_missing_description(self, api):
        state = CreateItemState(
            project_key="PROJ",
            item_type=RaidType.RISK,
            collected={"title": "Vendor insolvency"},
        )
        result = await execute(state, api)
        assert result.error == ERROR_MISSING_FIELDS
        assert "missing required fields (description)" in result.message.content
        api.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_missing_type(self, api):
        state = CreateItemState(
            project_key="PROJ",
            item_type=None,
            collected={"title": "T", "description": "D"},
        )
        result = await execute(state, api)
        assert result.error == ERROR_MISSING_FIELDS
        assert "(type)" in result.message.content


class TestCreate:

    def test_payload_defaults(self, create_state):
        payload = build_create_payload(create_state)
        assert payload == {
            "type": "risk",
            "title": "Vendor insolvency",
            "description": "Key supplier may go bankrupt",
            "status": "open",
            "priority": "medium",
            "owner": "",
        }

    def test_payload_uses_collected_values(self):
        state = CreateItemState(
            project_key="PROJ",
            item_type=RaidType.ISSUE,
            collected={"title": "T", "description": "D", "priority": RaidPriority.HIGH, "owner": "bob"},
        )
        payload = build_create_payload(state)
        assert payload["priority"] == "high"
        assert payload["owner"] == "bob"

    @pytest.mark.asyncio
    async def test_success(self, api, create_state):
        api.create.return_value = ApiResult.ok(_item())

        result = await execute(create_state, api)

        assert result.success is True
        assert result.data.id == "R-7"
        content = result.message.content
        assert "Created risk" in content
        assert content.startswith(SUCCESS_MARKER)
        assert "R-7" in content
        assert "Vendor insolvency" in content
        assert result.message.role == MessageRole.ASSISTANT
        api.create.assert_awaited_once_with("PROJ", build_create_payload(create_state))

    @pytest.mark.asyncio
    async def test_success_shows_owner(self, api, create_state):
        api.create.return_value = ApiResult.ok(_item(owner="bob"))
        result = await execute(create_state, api)
        assert "Owner: bob" in result.message.content

    @pytest.mark.asyncio
    async def test_api_failure(self, api, create_state):
        api.create.return_value = ApiResult.fail("Database connection failed")

        result = await execute(create_state, api)

        assert result.success is False
        assert result.error == "Database connection failed"
        assert "Failed to create" in result.message.content
        assert "Database connection failed" in result.message.content
        assert api.create.await_count == 1


class TestEdit:

    @pytest.mark.asyncio
    async def test_success_sends_wire_values(self, api):
        api.update.return_value = ApiResult.ok(_item(id="R-3", status="closed"))
        state = EditItemState(project_key="PROJ", item_id="R-3", updates={"status": RaidStatus.CLOSED})

        result = await execute(state, api)

        assert result.success is True
        api.update.assert_awaited_once_with("PROJ", "R-3", {"status": "closed"})
        content = result.message.content
        assert content.startswith("✅ Updated risk R-3")
        assert "Title: Vendor insolvency" in content
        assert "Status: closed" in content
        assert "Priority: medium" in content
        assert "Changed: status" in content

    @pytest.mark.asyncio
    async def test_failure_labels_from_id_prefix(self, api):
        api.update.return_value = ApiResult.fail("Item not found")
        state = EditItemState(project_key="PROJ", item_id="I-9", updates={"owner": "sam"})

        result = await execute(state, api)

        assert result.success is False
        assert result.message.content == "Failed to update issue I-9: Item not found"

    @pytest.mark.asyncio
    async def test_failure_generic_id(self, api):
        api.update.return_value = ApiResult.fail("Item not found")
        state = EditItemState(project_key="PROJ", item_id="RAID-9", updates={"owner": "sam"})
        result = await execute(state, api)
        assert "Failed to update item RAID-9" in result.message.content


class TestList:

    @pytest.mark.asyncio
    async def test_lists_items(self, api):
        api.list_items.return_value = ApiResult.ok(
            RaidItemList(items=[_item(), _item(id="R-8", title="Key person leaves", owner="amy")], total=2)
        )

        result = await execute_list("PROJ", RaidType.RISK, api)

        api.list_items.assert_awaited_once_with("PROJ", RaidType.RISK)
        lines = result.message.content.splitlines()
        assert lines[0] == "2 risks:"
        assert lines[1] == "- R-7 [medium/open] Vendor insolvency"
        assert lines[2] == "- R-8 [medium/open] Key person leaves (amy)"

    @pytest.mark.asyncio
    async def test_empty(self, api):
        api.list_items.return_value = ApiResult.ok(RaidItemList())
        result = await execute_list("PROJ", None, api)
        assert result.message.content == "No RAID items found."

    @pytest.mark.asyncio
    async def test_failure(self, api):
        api.list_items.return_value = ApiResult.fail("Project not found")
        result = await execute_list("PROJ", None, api)
        assert result.success is False
        assert "Project not found" in result.message.content


class TestTransition:

    @pytest.mark.asyncio
    async def test_success(self, api):
        api.transition_workflow.return_value = ApiResult.ok(
            WorkflowStateInfo(current_state="planning", previous_state="initiation")
        )

        result = await execute_transition("PROJ", "planning", api, actor="chat")

        api.transition_workflow.assert_awaited_once_with("PROJ", "planning", actor="chat")
        assert result.message.content == "Moved project PROJ from initiation to planning"

    @pytest.mark.asyncio
    async def test_rejected_by_server(self, api):
        api.transition_workflow.return_value = ApiResult.fail("Invalid transition from initiation to closing")

        result = await execute_transition("PROJ", "Closing", api)

        assert result.success is False
        assert result.message.content.startswith("Failed to transition to Closing")


class TestUpstreamError:

    def test_failure_marked(self):
        message = format_upstream_error("connection refused")
        assert message.role == MessageRole.ASSISTANT
        assert message.content == f"{FAILURE_MARKER} Error: connection refused"
        assert message.metadata["failure"] is True
        assert message.metadata["error"] == "connection refused"

    def test_fresh_identity(self):
        first = format_upstream_error("boom")
        second = format_upstream_error("boom")
        assert first.id != second.id
