"""
Fabric Git Sync - Git integration setup for Fabric workspaces.

Authenticates a user, managed identity or service principal, registers Git
provider credentials as a connection, binds them to a workspace and updates
the workspace from Git, waiting for the long-running operation to finish.
"""

__version__ = "1.0.0"
