import asyncio

import click


@click.group()
def main() -> None:
    """TabVault - crash-safe workspace snapshots and inactive-tab suspension."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from TABVAULT_HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: from TABVAULT_PORT or 8765).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the resilience service."""
    import uvicorn

    from tabvault.resilience.settings import TabvaultSettings

    settings = TabvaultSettings()

    uvicorn.run(
        "tabvault.resilience.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
        timeout_graceful_shutdown=settings.graceful_shutdown_timeout,
    )


# ---------------------------------------------------------------------------
# Offline store maintenance
# ---------------------------------------------------------------------------


def _open_stores():
    """Build the configured store scopes and set up logging for a one-off command."""
    from tabvault.resilience.log import setup_logging
    from tabvault.resilience.service import create_stores
    from tabvault.resilience.settings import TabvaultSettings

    settings = TabvaultSettings()
    setup_logging(settings)
    if settings.state_store == "memory":
        raise click.UsageError("Store maintenance needs a persistent store (TABVAULT_STATE_STORE=local).")
    return create_stores(settings)


def _snapshot_store():
    from tabvault.resilience.managers.snapshots import SnapshotStore

    local, sync = _open_stores()
    return SnapshotStore(local, sync)


@main.group()
def snapshots() -> None:
    """Inspect and maintain stored snapshots."""


@snapshots.command("list")
def list_snapshots() -> None:
    """List stored snapshots, newest first."""
    store = _snapshot_store()
    items = asyncio.run(store.list_snapshots())
    if not items:
        click.echo("No snapshots.")
        return
    for snapshot in items:
        click.echo(
            f"{snapshot.id}  {snapshot.metadata.created_at}  "
            f"{snapshot.metadata.total_tabs} tabs  {snapshot.metadata.total_workspaces} workspaces"
        )


@snapshots.command("clear")
@click.confirmation_option(prompt="Delete all recovery data?")
def clear_snapshots() -> None:
    """Delete every stored snapshot."""
    store = _snapshot_store()
    asyncio.run(store.clear())
    click.echo("Recovery data cleared.")


@snapshots.command("cleanup")
def cleanup_snapshots() -> None:
    """Evict snapshots past the age / count limits and purge orphaned temporary keys."""
    store = _snapshot_store()
    dropped = asyncio.run(store.cleanup())
    click.echo(f"Evicted {dropped} snapshots.")


@main.command()
@click.argument("snapshot_ids", nargs=-1, required=True)
def recover(snapshot_ids: tuple[str, ...]) -> None:
    """Copy the workspaces of the given snapshots back into the workspace list."""
    from tabvault.resilience.managers.snapshots import SnapshotStore
    from tabvault.resilience.managers.workspaces import WorkspaceManager
    from tabvault.resilience.services.recovery import CrashRecovery

    local, sync = _open_stores()
    store = SnapshotStore(local, sync)
    recovery = CrashRecovery(local=local, sync=sync, snapshots=store, workspaces=WorkspaceManager(local))
    recovered = asyncio.run(recovery.recover_by_ids(list(snapshot_ids)))
    click.echo(f"Recovered {recovered} workspaces.")


if __name__ == "__main__":
    main()
