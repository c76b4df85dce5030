"""Workspaces API client: list workspaces and resolve them by name."""

import logging
from typing import List, Optional

from ..models import Workspace
from .base_client import FabricAPIClient, validate_model

logger = logging.getLogger(__name__)


class WorkspacesAPIClient(FabricAPIClient):
    """Client for workspace lookups."""

    def list_workspaces(self) -> List[Workspace]:
        """Fetch every workspace visible to the authenticated principal."""
        workspaces: List[Workspace] = []
        for page in self.session.iter_pages("/workspaces"):
            workspaces.extend(
                validate_model(Workspace, item, "/workspaces") for item in page
            )
        logger.debug(f"Listed {len(workspaces)} workspaces")
        return workspaces

    def find_workspace_by_name(self, display_name: str) -> Optional[Workspace]:
        """Return the first workspace whose name matches, ignoring case.

        Args:
            display_name: Workspace display name to look for

        Returns:
            Matching workspace, or None when no workspace has that name
        """
        wanted = display_name.casefold()
        for workspace in self.list_workspaces():
            if workspace.display_name.casefold() == wanted:
                return workspace
        return None
