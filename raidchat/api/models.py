"""
Response models for the item-management API.

Field names follow the backend JSON contract (snake_case). Unknown fields are
ignored so a newer server doesn't break an older client.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from raidchat.chat.models import RaidPriority, RaidStatus, RaidType


class RaidItem(BaseModel):
    """A RAID register item as returned by the API."""
    model_config = ConfigDict(extra="ignore")

    id: str
    type: RaidType
    title: str
    description: str = ""
    status: RaidStatus = RaidStatus.OPEN
    priority: RaidPriority = RaidPriority.MEDIUM
    owner: str = ""
    mitigation_plan: str = ""
    next_actions: list[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RaidItemList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[RaidItem] = Field(default_factory=list)
    total: int = 0


class WorkflowTransition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    from_state: str
    to_state: str
    timestamp: str = ""
    actor: str = ""
    reason: Optional[str] = None


class WorkflowStateInfo(BaseModel):
    """Project workflow state after a transition."""
    model_config = ConfigDict(extra="ignore")

    current_state: str
    previous_state: Optional[str] = None
    transition_history: list[WorkflowTransition] = Field(default_factory=list)
    updated_at: str = ""
    updated_by: str = ""


T = TypeVar("T")


@dataclass
class ApiResult(Generic[T]):
    """Outcome of one API call.

    Callers must check .success before using .data.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ApiResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResult":
        return cls(success=False, error=error)
