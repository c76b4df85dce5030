"""Git integration workflow.

Composes the API clients into the steps the commands run: resolve the
workspace, make sure a connection exists, bind it as the caller's Git
credentials, then update the workspace from Git and wait for the operation.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .api_clients import (
    ConnectionsAPIClient,
    FabricSession,
    GitAPIClient,
    OperationsAPIClient,
    WorkspacesAPIClient,
)
from .exceptions import NotFoundError
from .models import (
    GitCredentialsSource,
    GitStatus,
    OperationHandle,
    OperationState,
    Workspace,
)
from .polling import OperationPoller

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of an update-from-git request."""

    workspace: Workspace
    git_status: GitStatus
    handle: Optional[OperationHandle] = None
    final_state: Optional[OperationState] = None

    @property
    def completed(self) -> bool:
        """True when the update is known to have finished."""
        return self.handle is None or self.final_state is not None


@dataclass
class SetupResult:
    """Outcome of the full setup flow."""

    workspace: Workspace
    connection_id: str
    connection_created: bool
    sync: SyncResult


class GitSyncWorkflow:
    """Git integration steps sharing one authenticated session."""

    def __init__(
        self, session: FabricSession, poller: Optional[OperationPoller] = None
    ):
        self.session = session
        self.workspaces = WorkspacesAPIClient(session)
        self.connections = ConnectionsAPIClient(session)
        self.git = GitAPIClient(session)
        self.operations = OperationsAPIClient(session)
        self.poller = poller or OperationPoller(self.operations)

    def resolve_workspace(self, name: str) -> Workspace:
        """Resolve a workspace display name.

        Raises:
            NotFoundError: If no visible workspace has that name
        """
        workspace = self.workspaces.find_workspace_by_name(name)
        if workspace is None:
            raise NotFoundError(
                f"Workspace '{name}' not found",
                "check the name and that the principal has access to it",
            )
        logger.info(f"Resolved workspace '{name}' to {workspace.id}")
        return workspace

    def ensure_connection(
        self,
        display_name: str,
        key: str,
        repository_url: Optional[str] = None,
        connection_id: Optional[str] = None,
        reuse_existing: bool = False,
    ) -> Tuple[str, bool]:
        """Return a connection id, creating the connection when needed.

        Args:
            display_name: Name of the connection
            key: Personal-access key stored in a new connection
            repository_url: Repository URL for a new connection
            connection_id: Existing connection to use as is
            reuse_existing: Look for a connection named display_name first

        Returns:
            Tuple of (connection id, whether a connection was created)
        """
        if connection_id:
            logger.info(f"Using connection {connection_id}")
            return connection_id, False

        if reuse_existing:
            existing = self.connections.find_connection_by_name(display_name)
            if existing is not None:
                logger.info(f"Reusing connection {existing.id} ({display_name})")
                return existing.id, False

        connection = self.connections.create_connection(
            display_name, key, repository_url
        )
        return connection.id, True

    def bind_credentials(
        self,
        workspace: Workspace,
        source: Union[GitCredentialsSource, str],
        connection_id: Optional[str] = None,
    ) -> None:
        self.git.update_my_git_credentials(workspace.id, source, connection_id)

    def sync_from_git(
        self,
        workspace: Workspace,
        allow_override_items: Optional[bool] = None,
        wait: bool = True,
    ) -> SyncResult:
        """Update a workspace from Git using a fresh status snapshot.

        Raises:
            OperationFailedError: If the operation reports Failed
        """
        git_status = self.git.get_git_status(workspace.id)
        logger.info(
            f"Workspace {workspace.id} head {git_status.workspace_head}, "
            f"remote {git_status.remote_commit_hash}"
        )

        handle = self.git.update_from_git(
            workspace.id,
            git_status.remote_commit_hash,
            git_status.workspace_head,
            allow_override_items=allow_override_items,
            fallback_interval=self.poller.config.fallback_interval,
        )
        result = SyncResult(workspace=workspace, git_status=git_status, handle=handle)

        if handle is not None and wait:
            result.final_state = self.poller.wait(handle)
        return result

    def setup(
        self,
        workspace_name: str,
        display_name: str,
        key: str,
        repository_url: Optional[str] = None,
        connection_id: Optional[str] = None,
        reuse_existing: bool = False,
        allow_override_items: Optional[bool] = None,
        wait: bool = True,
    ) -> SetupResult:
        """Run the full flow: connection, credentials binding, update, poll."""
        workspace = self.resolve_workspace(workspace_name)
        resolved_id, created = self.ensure_connection(
            display_name,
            key,
            repository_url=repository_url,
            connection_id=connection_id,
            reuse_existing=reuse_existing,
        )
        self.bind_credentials(
            workspace, GitCredentialsSource.CONFIGURED_CONNECTION, resolved_id
        )
        sync = self.sync_from_git(
            workspace, allow_override_items=allow_override_items, wait=wait
        )
        return SetupResult(
            workspace=workspace,
            connection_id=resolved_id,
            connection_created=created,
            sync=sync,
        )
