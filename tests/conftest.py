"""
Shared pytest fixtures for Fabric Git sync tests.
"""

import pytest

from fabric_git_sync.api_clients import FabricSession

API_URL = "https://api.fabric.microsoft.com/v1"

FABRIC_ENV_VARS = [
    "FABRIC_API_URL",
    "FABRIC_TOKEN_SCOPE",
    "FABRIC_TIMEOUT",
    "FABRIC_POLL_INTERVAL",
    "FABRIC_LOG_LEVEL",
    "FABRIC_PRINCIPAL_TYPE",
    "FABRIC_TENANT_ID",
    "FABRIC_SUBSCRIPTION_ID",
    "FABRIC_CLIENT_ID",
    "FABRIC_CLIENT_SECRET",
    "FABRIC_GIT_KEY",
]


@pytest.fixture(autouse=True)
def clean_fabric_env(monkeypatch):
    """Keep FABRIC_* variables of the developer's shell out of tests."""
    for name in FABRIC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def session():
    """Session against the public API URL with a fixed token."""
    with FabricSession(API_URL, "test-token", timeout=5) as fabric_session:
        yield fabric_session
