"""API Client Abstractions for the Fabric REST API.

All HTTP functionality is contained in FabricSession and the resource
clients built on it; business logic never issues raw HTTP calls.
"""

from .base_client import FabricAPIClient, FabricSession
from .connections_client import ConnectionsAPIClient, build_connection_payload
from .error_messages import extract_error_message, parse_error_body
from .git_client import GitAPIClient, read_operation_handle
from .operations_client import OperationsAPIClient
from .workspaces_client import WorkspacesAPIClient

__all__ = [
    # Session
    "FabricSession",
    "FabricAPIClient",
    # Error extraction
    "extract_error_message",
    "parse_error_body",
    # Resource clients
    "ConnectionsAPIClient",
    "build_connection_payload",
    "WorkspacesAPIClient",
    "GitAPIClient",
    "read_operation_handle",
    "OperationsAPIClient",
]
