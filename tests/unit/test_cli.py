"""Tests for the fabric-git-sync command line interface."""

from unittest.mock import Mock

import pytest
from click.testing import CliRunner

from fabric_git_sync import __version__
from fabric_git_sync.cli import cli

API_URL = "https://api.fabric.microsoft.com/v1"

SERVICE_PRINCIPAL_ARGS = [
    "--principal-type",
    "ServicePrincipal",
    "--tenant-id",
    "tenant-1",
    "--subscription-id",
    "sub-1",
    "--client-id",
    "app-1",
    "--client-secret",
    "secret-1",
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def acquire_token(monkeypatch):
    mock = Mock(return_value="test-token")
    monkeypatch.setattr("fabric_git_sync.cli.acquire_token", mock)
    return mock


@pytest.fixture
def sleep(monkeypatch):
    mock = Mock()
    monkeypatch.setattr("fabric_git_sync.polling.time.sleep", mock)
    return mock


def add_setup_responses(httpx_mock, final_operation):
    httpx_mock.add_response(
        method="GET",
        url=f"{API_URL}/workspaces",
        json={"value": [{"id": "ws-1", "displayName": "Sales"}]},
    )
    httpx_mock.add_response(
        method="POST",
        url=f"{API_URL}/connections",
        status_code=201,
        json={"id": "abc-123", "displayName": "sales-github"},
    )
    httpx_mock.add_response(
        method="PATCH", url=f"{API_URL}/workspaces/ws-1/git/myGitCredentials"
    )
    httpx_mock.add_response(
        method="GET",
        url=f"{API_URL}/workspaces/ws-1/git/status",
        json={"remoteCommitHash": "c1", "workspaceHead": "h1"},
    )
    httpx_mock.add_response(
        method="POST",
        url=f"{API_URL}/workspaces/ws-1/git/updateFromGit",
        status_code=202,
        headers={"x-ms-operation-id": "op-1", "Retry-After": "2"},
    )
    httpx_mock.add_response(
        method="GET", url=f"{API_URL}/operations/op-1", json={"status": "Running"}
    )
    httpx_mock.add_response(
        method="GET", url=f"{API_URL}/operations/op-1", json=final_operation
    )


def setup_args(*extra):
    return [
        "setup",
        "--workspace",
        "Sales",
        "--display-name",
        "sales-github",
        "--key",
        "pat-123",
        *SERVICE_PRINCIPAL_ARGS,
        *extra,
    ]


class TestSetupCommand:
    """Test the setup command end to end."""

    def test_setup_succeeds(self, runner, httpx_mock, acquire_token, sleep):
        add_setup_responses(httpx_mock, {"status": "Succeeded"})

        result = runner.invoke(cli, setup_args(), obj={})

        assert result.exit_code == 0, result.output
        assert "Created connection abc-123" in result.output
        assert "updated from Git" in result.output
        sleep.assert_called_once_with(2)
        acquire_token.assert_called_once()

    def test_failed_operation_exits_nonzero(
        self, runner, httpx_mock, acquire_token, sleep
    ):
        add_setup_responses(
            httpx_mock,
            {
                "status": "Failed",
                "error": {"errorCode": "GitSyncFailed", "message": "Conflict"},
            },
        )

        result = runner.invoke(cli, setup_args(), obj={})

        assert result.exit_code == 1
        assert "Operation op-1 failed" in result.output
        assert "GitSyncFailed" in result.output

    def test_unknown_workspace_exits_nonzero(self, runner, httpx_mock, acquire_token):
        httpx_mock.add_response(
            method="GET",
            url=f"{API_URL}/workspaces",
            json={"value": [{"id": "ws-1", "displayName": "Finance"}]},
        )

        result = runner.invoke(cli, setup_args(), obj={})

        assert result.exit_code == 1
        assert "Workspace 'Sales' not found" in result.output

    def test_service_principal_without_secret_fails_before_token(
        self, runner, acquire_token
    ):
        args = setup_args()
        secret_at = args.index("--client-secret")
        del args[secret_at : secret_at + 2]

        result = runner.invoke(cli, args, obj={})

        assert result.exit_code == 1
        assert "Authentication Error" in result.output
        acquire_token.assert_not_called()

    def test_no_wait_skips_polling(self, runner, httpx_mock, acquire_token, sleep):
        httpx_mock.add_response(
            method="GET",
            url=f"{API_URL}/workspaces",
            json={"value": [{"id": "ws-1", "displayName": "Sales"}]},
        )
        httpx_mock.add_response(
            method="PATCH", url=f"{API_URL}/workspaces/ws-1/git/myGitCredentials"
        )
        httpx_mock.add_response(
            method="GET",
            url=f"{API_URL}/workspaces/ws-1/git/status",
            json={"remoteCommitHash": "c1", "workspaceHead": "h1"},
        )
        httpx_mock.add_response(
            method="POST",
            url=f"{API_URL}/workspaces/ws-1/git/updateFromGit",
            status_code=202,
            headers={"x-ms-operation-id": "op-1"},
        )

        result = runner.invoke(
            cli, setup_args("--connection-id", "conn-9", "--no-wait"), obj={}
        )

        assert result.exit_code == 0, result.output
        assert "Using connection conn-9" in result.output
        assert "not waiting" in result.output
        sleep.assert_not_called()


class TestOtherCommands:
    """Test the single-step commands."""

    def test_create_connection(self, runner, httpx_mock, acquire_token):
        httpx_mock.add_response(
            method="POST",
            url=f"{API_URL}/connections",
            status_code=201,
            json={"id": "abc-123"},
        )

        result = runner.invoke(
            cli,
            ["create-connection", "--display-name", "gh", *SERVICE_PRINCIPAL_ARGS],
            env={"FABRIC_GIT_KEY": "pat-from-env"},
            obj={},
        )

        assert result.exit_code == 0, result.output
        assert "abc-123" in result.output
        assert b"pat-from-env" in httpx_mock.get_request().content

    def test_set_credentials_requires_connection_id(
        self, runner, httpx_mock, acquire_token
    ):
        httpx_mock.add_response(
            method="GET",
            url=f"{API_URL}/workspaces",
            json={"value": [{"id": "ws-1", "displayName": "Sales"}]},
        )

        result = runner.invoke(
            cli,
            ["set-credentials", "--workspace", "Sales", *SERVICE_PRINCIPAL_ARGS],
            obj={},
        )

        assert result.exit_code == 1
        assert "connection_id" in result.output

    def test_git_status(self, runner, httpx_mock, acquire_token):
        httpx_mock.add_response(
            method="GET",
            url=f"{API_URL}/workspaces",
            json={"value": [{"id": "ws-1", "displayName": "Sales"}]},
        )
        httpx_mock.add_response(
            method="GET",
            url=f"{API_URL}/workspaces/ws-1/git/status",
            json={"remoteCommitHash": "c1", "workspaceHead": "h1", "changes": [{}]},
        )
        httpx_mock.add_response(
            method="GET",
            url=f"{API_URL}/workspaces/ws-1/git/myGitCredentials",
            json={"source": "Automatic"},
        )

        result = runner.invoke(
            cli, ["git-status", "--workspace", "Sales", *SERVICE_PRINCIPAL_ARGS], obj={}
        )

        assert result.exit_code == 0, result.output
        assert "Automatic" in result.output
        assert "h1" in result.output

    def test_invalid_environment_config_exits_nonzero(self, runner):
        result = runner.invoke(
            cli,
            ["git-status", "--workspace", "Sales", *SERVICE_PRINCIPAL_ARGS],
            env={"FABRIC_TIMEOUT": "soon"},
            obj={},
        )

        assert result.exit_code == 1
        assert "Configuration Error" in result.output

    def test_config_file_with_wrong_type_exits_nonzero(self, runner, tmp_path):
        config_file = tmp_path / "fabric.json"
        config_file.write_text('{"log_level": 5}')

        result = runner.invoke(
            cli,
            [
                "--config",
                str(config_file),
                "git-status",
                "--workspace",
                "Sales",
                *SERVICE_PRINCIPAL_ARGS,
            ],
            obj={},
        )

        assert result.exit_code == 1
        assert "Configuration Error" in result.output
        assert "log_level" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
