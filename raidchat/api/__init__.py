"""Item-management API client for raidchat.

Return type conventions:
- Every call returns ApiResult: check .success before using .data.
- ApiTransportError is raised only when no HTTP response was received.
"""

from raidchat.api.client import ApiTransportError, ItemApi, RaidApiClient
from raidchat.api.models import (
    ApiResult,
    RaidItem,
    RaidItemList,
    WorkflowStateInfo,
    WorkflowTransition,
)

__all__ = [
    "ApiResult",
    "ApiTransportError",
    "ItemApi",
    "RaidApiClient",
    "RaidItem",
    "RaidItemList",
    "WorkflowStateInfo",
    "WorkflowTransition",
]
