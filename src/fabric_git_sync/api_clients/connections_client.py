"""
Connections API Client.

Registers Git provider personal-access keys as shareable cloud connections
and looks up existing connections by display name.
"""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import HttpError
from ..models import Connection
from .base_client import FabricAPIClient, response_json_object, validate_model

logger = logging.getLogger(__name__)

CONNECTIVITY_TYPE = "ShareableCloud"
GITHUB_CONNECTION_TYPE = "GitHubSourceControl"
GITHUB_CREATION_METHOD = "GitHubSourceControl.Contents"
KEY_CREDENTIAL_TYPE = "Key"


def build_connection_payload(
    display_name: str, key: str, repository_url: Optional[str] = None
) -> Dict[str, Any]:
    """Build the create-connection request body for a key credential."""
    connection_details: Dict[str, Any] = {
        "type": GITHUB_CONNECTION_TYPE,
        "creationMethod": GITHUB_CREATION_METHOD,
    }
    if repository_url:
        connection_details["parameters"] = [
            {"dataType": "Text", "name": "url", "value": repository_url}
        ]

    return {
        "connectivityType": CONNECTIVITY_TYPE,
        "displayName": display_name,
        "connectionDetails": connection_details,
        "credentialDetails": {
            "credentials": {"credentialType": KEY_CREDENTIAL_TYPE, "key": key}
        },
    }


class ConnectionsAPIClient(FabricAPIClient):
    """Client for connection management operations."""

    def create_connection(
        self, display_name: str, key: str, repository_url: Optional[str] = None
    ) -> Connection:
        """Create a connection holding a personal-access key.

        Args:
            display_name: Name shown for the connection
            key: Personal-access key of the Git provider
            repository_url: Repository URL the connection is scoped to (optional)

        Returns:
            Created connection with its server-issued id

        Raises:
            ValueError: If display_name or key is empty
            HttpError: If the server rejects the request
        """
        if not display_name:
            raise ValueError("display_name cannot be empty")
        if not key:
            raise ValueError("key cannot be empty")

        payload = build_connection_payload(display_name, key, repository_url)
        response = self.session.post("/connections", json=payload)

        data = response_json_object(response, "/connections")
        if not data.get("id"):
            raise HttpError(
                "Connection created but no id returned",
                status_code=response.status_code,
                body=data,
            )

        connection = validate_model(Connection, data, "/connections")
        logger.info(f"Created connection {connection.id} ({display_name})")
        return connection

    def list_connections(self) -> List[Connection]:
        """Fetch every connection the principal can see."""
        connections: List[Connection] = []
        for page in self.session.iter_pages("/connections"):
            connections.extend(
                validate_model(Connection, item, "/connections") for item in page
            )
        return connections

    def find_connection_by_name(self, display_name: str) -> Optional[Connection]:
        """Return the first connection with this display name, ignoring case."""
        wanted = display_name.casefold()
        for connection in self.list_connections():
            if (connection.display_name or "").casefold() == wanted:
                return connection
        return None
