"""
Git API Client for Fabric workspace Git integration.

Covers the caller's Git credentials binding, Git status and the
update-from-git long-running operation.
"""

import logging
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import httpx

from ..config import DEFAULT_POLL_INTERVAL
from ..exceptions import HttpError
from ..models import (
    GitCredentials,
    GitCredentialsSource,
    GitStatus,
    OperationHandle,
)
from ..polling import parse_retry_after
from .base_client import FabricAPIClient, validate_model

logger = logging.getLogger(__name__)

OPERATION_ID_HEADER = "x-ms-operation-id"


def operation_id_from_location(location: Optional[str]) -> Optional[str]:
    """Extract the operation id from an ``.../operations/{id}`` Location URL."""
    if not location:
        return None
    path = urlparse(location).path.rstrip("/")
    if "/operations/" not in path:
        return None
    return path.rsplit("/", 1)[-1] or None


def read_operation_handle(
    response: httpx.Response, fallback_interval: int = DEFAULT_POLL_INTERVAL
) -> Optional[OperationHandle]:
    """Build an OperationHandle from the headers of an accepted request.

    Returns:
        Handle, or None when the response carries no operation id
    """
    location = response.headers.get("Location")
    operation_id = response.headers.get(OPERATION_ID_HEADER) or (
        operation_id_from_location(location)
    )
    if not operation_id:
        return None

    retry_after = parse_retry_after(
        response.headers.get_list("Retry-After") or None, fallback_interval
    )
    return OperationHandle(
        operation_id=operation_id,
        retry_after_seconds=retry_after,
        location=location,
    )


class GitAPIClient(FabricAPIClient):
    """API client for workspace Git operations."""

    def get_my_git_credentials(self, workspace_id: str) -> GitCredentials:
        """Get the caller's Git credentials configuration for a workspace."""
        endpoint = f"/workspaces/{workspace_id}/git/myGitCredentials"
        return validate_model(
            GitCredentials, self.session.get_json(endpoint), endpoint
        )

    def update_my_git_credentials(
        self,
        workspace_id: str,
        source: Union[GitCredentialsSource, str],
        connection_id: Optional[str] = None,
    ) -> None:
        """Bind Git credentials to a workspace for the caller.

        Args:
            workspace_id: Workspace id
            source: ConfiguredConnection, Automatic or None
            connection_id: Connection to use (ConfiguredConnection only)

        Raises:
            ValueError: If connection_id does not fit the source
            HttpError: If the server rejects the request
        """
        source = GitCredentialsSource(source)
        payload: Dict[str, Any] = {"source": source.value}

        if source is GitCredentialsSource.CONFIGURED_CONNECTION:
            if not connection_id:
                raise ValueError("ConfiguredConnection requires a connection_id")
            payload["connectionId"] = connection_id
        elif connection_id:
            raise ValueError(
                f"connection_id is not allowed with source {source.value}"
            )

        self.session.patch(
            f"/workspaces/{workspace_id}/git/myGitCredentials", json=payload
        )
        logger.info(
            f"Git credentials of workspace {workspace_id} set to {source.value}"
        )

    def get_git_status(self, workspace_id: str) -> GitStatus:
        """Fetch the current Git status of a workspace."""
        endpoint = f"/workspaces/{workspace_id}/git/status"
        return validate_model(GitStatus, self.session.get_json(endpoint), endpoint)

    def update_from_git(
        self,
        workspace_id: str,
        remote_commit_hash: Optional[str],
        workspace_head: Optional[str],
        allow_override_items: Optional[bool] = None,
        fallback_interval: int = DEFAULT_POLL_INTERVAL,
    ) -> Optional[OperationHandle]:
        """Start updating workspace content from the connected Git branch.

        Args:
            workspace_id: Workspace id
            remote_commit_hash: Remote commit to update to
            workspace_head: Commit the workspace is currently synced to
            allow_override_items: Send options.allowOverrideItems when not None
            fallback_interval: Poll interval used without a Retry-After header

        Returns:
            Handle of the long-running operation, or None when the server
            completed the update synchronously

        Raises:
            HttpError: If the server rejects the request
        """
        payload: Dict[str, Any] = {
            "remoteCommitHash": remote_commit_hash,
            "workspaceHead": workspace_head,
        }
        if allow_override_items is not None:
            payload["options"] = {"allowOverrideItems": allow_override_items}

        endpoint = f"/workspaces/{workspace_id}/git/updateFromGit"
        response = self.session.post(endpoint, json=payload)

        handle = read_operation_handle(response, fallback_interval)
        if handle is None:
            if response.status_code == 202:
                raise HttpError(
                    "Update from Git was accepted without an operation id",
                    status_code=response.status_code,
                )
            logger.info(f"Update from Git of workspace {workspace_id} completed")
            return None

        logger.info(
            f"Update from Git of workspace {workspace_id} accepted as operation "
            f"{handle.operation_id} (retry after {handle.retry_after_seconds}s)"
        )
        return handle

