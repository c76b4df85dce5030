"""Command line interface for Fabric workspace Git integration setup."""

import logging
import sys
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .api_clients import FabricSession
from .auth import PrincipalType, acquire_token, build_principal
from .cli_error_display import CLIErrorDisplay
from .config import FabricConfig, load_config
from .exceptions import ConfigurationError, FabricGitError
from .models import GitCredentialsSource, OperationState
from .polling import OperationPoller, PollingConfig
from .workflow import GitSyncWorkflow, SyncResult

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(config: FabricConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper())
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")

    # Suppress noisy third-party messages
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("azure").setLevel(logging.WARNING)


def _fail(ctx: click.Context, error: Exception) -> None:
    CLIErrorDisplay().display_error(
        error, show_technical_details=ctx.obj.get("verbose", False)
    )
    sys.exit(1)


PRINCIPAL_OPTIONS = [
    click.option(
        "--principal-type",
        type=click.Choice([p.value for p in PrincipalType]),
        required=True,
        envvar="FABRIC_PRINCIPAL_TYPE",
        help="Identity used to obtain the access token",
    ),
    click.option(
        "--tenant-id", required=True, envvar="FABRIC_TENANT_ID", help="Tenant id"
    ),
    click.option(
        "--subscription-id",
        required=True,
        envvar="FABRIC_SUBSCRIPTION_ID",
        help="Subscription id",
    ),
    click.option(
        "--client-id",
        envvar="FABRIC_CLIENT_ID",
        help="Client id (service principal or user-assigned managed identity)",
    ),
    click.option(
        "--client-secret",
        envvar="FABRIC_CLIENT_SECRET",
        help="Client secret (service principal)",
    ),
]


def principal_options(func):
    """Add the principal options shared by every command."""
    for option in reversed(PRINCIPAL_OPTIONS):
        func = option(func)
    return func


@contextmanager
def open_workflow(
    ctx: click.Context,
    principal_type: str,
    tenant_id: str,
    subscription_id: str,
    client_id: Optional[str],
    client_secret: Optional[str],
) -> Iterator[GitSyncWorkflow]:
    """Authenticate and yield a workflow bound to a fresh session."""
    config: FabricConfig = ctx.obj["config"]
    principal = build_principal(
        principal_type,
        tenant_id=tenant_id,
        subscription_id=subscription_id,
        client_id=client_id,
        client_secret=client_secret,
    )
    token = acquire_token(principal, config.token_scope)

    with FabricSession(config.api_url, token, timeout=config.timeout) as session:
        workflow = GitSyncWorkflow(session)
        workflow.poller = OperationPoller(
            workflow.operations,
            PollingConfig(fallback_interval=config.poll_fallback_interval),
            status_callback=_show_operation_progress,
        )
        yield workflow


def _show_operation_progress(state: OperationState, polls: int) -> None:
    progress = escape(state.status)
    if state.percent_complete is not None:
        progress += f" - {state.percent_complete}%"
    console.print(f"⏳ Operation {progress} (poll {polls})")


def _report_sync(result: SyncResult) -> None:
    name = escape(result.workspace.display_name)
    if result.handle is None:
        console.print(f"[green]✅ Workspace '{name}' updated from Git[/green]")
    elif result.final_state is None:
        console.print(
            f"[yellow]Update from Git started for '{name}' "
            f"(operation {escape(result.handle.operation_id)}), not waiting[/yellow]"
        )
    else:
        console.print(
            f"[green]✅ Workspace '{name}' updated from Git "
            f"({escape(result.final_state.status)})[/green]"
        )


@click.group()
@click.option("--config", "-c", type=click.Path(exists=False), help="Config file path")
@click.option("--api-url", help="Fabric REST API base URL")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="fabric-git-sync")
@click.pass_context
def cli(ctx, config: Optional[str], api_url: Optional[str], verbose: bool):
    """Set up Git integration for Fabric workspaces.

    \b
    Examples:
      fabric-git-sync setup --workspace Sales --display-name sales-github \\
          --key $GITHUB_PAT --principal-type ServicePrincipal \\
          --tenant-id $TENANT --subscription-id $SUB \\
          --client-id $APP_ID --client-secret $APP_SECRET
      fabric-git-sync update --workspace Sales --allow-override ...
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        settings = load_config(config)
        if api_url:
            settings = replace(settings, api_url=api_url)
    except ConfigurationError as e:
        _fail(ctx, e)

    _configure_logging(settings, verbose)
    ctx.obj["config"] = settings


@cli.command("create-connection")
@click.option("--display-name", required=True, help="Connection display name")
@click.option(
    "--key",
    required=True,
    envvar="FABRIC_GIT_KEY",
    help="Git provider personal-access key",
)
@click.option("--repository-url", help="Repository URL the connection is for")
@principal_options
@click.pass_context
def create_connection(ctx, display_name, key, repository_url, **principal):
    """Create a connection holding a Git personal-access key."""
    try:
        with open_workflow(ctx, **principal) as workflow:
            connection = workflow.connections.create_connection(
                display_name, key, repository_url
            )
    except (FabricGitError, ValueError) as e:
        _fail(ctx, e)

    console.print(f"[green]✅ Connection created: {escape(connection.id)}[/green]")


@cli.command("set-credentials")
@click.option("--workspace", required=True, help="Workspace display name")
@click.option(
    "--source",
    type=click.Choice([s.value for s in GitCredentialsSource]),
    default=GitCredentialsSource.CONFIGURED_CONNECTION.value,
    show_default=True,
    help="Git credentials source",
)
@click.option("--connection-id", help="Connection id (ConfiguredConnection)")
@principal_options
@click.pass_context
def set_credentials(ctx, workspace, source, connection_id, **principal):
    """Bind Git credentials to a workspace for the signed-in principal."""
    try:
        with open_workflow(ctx, **principal) as workflow:
            target = workflow.resolve_workspace(workspace)
            workflow.bind_credentials(target, source, connection_id)
    except (FabricGitError, ValueError) as e:
        _fail(ctx, e)

    console.print(
        f"[green]✅ Git credentials of '{escape(target.display_name)}' "
        f"set to {source}[/green]"
    )


@cli.command("git-status")
@click.option("--workspace", required=True, help="Workspace display name")
@principal_options
@click.pass_context
def git_status(ctx, workspace, **principal):
    """Show the Git status and credentials of a workspace."""
    try:
        with open_workflow(ctx, **principal) as workflow:
            target = workflow.resolve_workspace(workspace)
            status = workflow.git.get_git_status(target.id)
            credentials = workflow.git.get_my_git_credentials(target.id)
    except (FabricGitError, ValueError) as e:
        _fail(ctx, e)

    table = Table(title=f"Git status: {escape(target.display_name)}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Workspace id", target.id)
    table.add_row("Workspace head", status.workspace_head or "-")
    table.add_row("Remote commit", status.remote_commit_hash or "-")
    table.add_row("Pending changes", str(len(status.changes)))
    table.add_row("Credentials source", credentials.source)
    table.add_row("Connection id", credentials.connection_id or "-")
    console.print(table)


@cli.command("update")
@click.option("--workspace", required=True, help="Workspace display name")
@click.option(
    "--allow-override/--no-allow-override",
    default=None,
    help="Allow overriding workspace items with incoming changes",
)
@click.option("--no-wait", is_flag=True, help="Do not wait for the operation")
@principal_options
@click.pass_context
def update(ctx, workspace, allow_override, no_wait, **principal):
    """Update workspace content from Git and wait for completion."""
    try:
        with open_workflow(ctx, **principal) as workflow:
            target = workflow.resolve_workspace(workspace)
            result = workflow.sync_from_git(
                target, allow_override_items=allow_override, wait=not no_wait
            )
    except (FabricGitError, ValueError) as e:
        _fail(ctx, e)

    _report_sync(result)


@cli.command("setup")
@click.option("--workspace", required=True, help="Workspace display name")
@click.option("--display-name", required=True, help="Connection display name")
@click.option(
    "--key",
    required=True,
    envvar="FABRIC_GIT_KEY",
    help="Git provider personal-access key",
)
@click.option("--repository-url", help="Repository URL the connection is for")
@click.option("--connection-id", help="Use this existing connection")
@click.option(
    "--reuse-existing",
    is_flag=True,
    help="Reuse a connection with the same display name if one exists",
)
@click.option(
    "--allow-override/--no-allow-override",
    default=None,
    help="Allow overriding workspace items with incoming changes",
)
@click.option("--no-wait", is_flag=True, help="Do not wait for the operation")
@principal_options
@click.pass_context
def setup(
    ctx,
    workspace,
    display_name,
    key,
    repository_url,
    connection_id,
    reuse_existing,
    allow_override,
    no_wait,
    **principal,
):
    """Create or reuse a connection, bind it and update the workspace."""
    try:
        with open_workflow(ctx, **principal) as workflow:
            result = workflow.setup(
                workspace,
                display_name,
                key,
                repository_url=repository_url,
                connection_id=connection_id,
                reuse_existing=reuse_existing,
                allow_override_items=allow_override,
                wait=not no_wait,
            )
    except (FabricGitError, ValueError) as e:
        _fail(ctx, e)

    verb = "Created" if result.connection_created else "Using"
    console.print(f"{verb} connection {escape(result.connection_id)}")
    _report_sync(result.sync)


def main():
    """Main entry point for the fabric-git-sync command."""
    cli(obj={})


if __name__ == "__main__":
    main()
