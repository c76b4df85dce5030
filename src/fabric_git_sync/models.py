"""
Fabric resource data models.

Pydantic models for the JSON payloads returned by the Fabric REST API, plus
the enums used when building requests.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GitCredentialsSource(str, Enum):
    """Source of the Git credentials bound to a workspace for the caller."""

    CONFIGURED_CONNECTION = "ConfiguredConnection"
    AUTOMATIC = "Automatic"
    NONE = "None"


class OperationStatus(str, Enum):
    """Known long-running operation statuses."""

    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


PENDING_STATUSES = {OperationStatus.NOT_STARTED.value, OperationStatus.RUNNING.value}


class FabricModel(BaseModel):
    """Base model accepting the API's camelCase field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Workspace(FabricModel):
    """Workspace visible to the authenticated principal."""

    id: str = Field(..., description="Workspace id")
    display_name: str = Field(..., alias="displayName", description="Workspace name")
    type: Optional[str] = Field(None, description="Workspace type")
    capacity_id: Optional[str] = Field(None, alias="capacityId")


class Connection(FabricModel):
    """Stored server-side credential."""

    id: str = Field(..., description="Connection id")
    display_name: Optional[str] = Field(None, alias="displayName")
    connectivity_type: Optional[str] = Field(None, alias="connectivityType")
    connection_details: Optional[Dict[str, Any]] = Field(
        None, alias="connectionDetails"
    )


class GitStatus(FabricModel):
    """Snapshot of a workspace's Git status."""

    remote_commit_hash: Optional[str] = Field(None, alias="remoteCommitHash")
    workspace_head: Optional[str] = Field(None, alias="workspaceHead")
    changes: List[Dict[str, Any]] = Field(default_factory=list)


class GitCredentials(FabricModel):
    """Git credentials configuration of the caller for a workspace."""

    source: str
    connection_id: Optional[str] = Field(None, alias="connectionId")


class OperationState(FabricModel):
    """State of a long-running operation."""

    status: str
    percent_complete: Optional[int] = Field(None, alias="percentComplete")
    created_time_utc: Optional[str] = Field(None, alias="createdTimeUtc")
    last_updated_time_utc: Optional[str] = Field(None, alias="lastUpdatedTimeUtc")
    error: Optional[Dict[str, Any]] = None

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES

    @property
    def is_failed(self) -> bool:
        return self.status == OperationStatus.FAILED.value


@dataclass
class OperationHandle:
    """Handle returned when the server accepts a long-running operation."""

    operation_id: str
    retry_after_seconds: int
    location: Optional[str] = None
