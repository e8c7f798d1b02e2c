#!/usr/bin/env python3
"""
sshm CLI - Main entry point.

Run without a subcommand to open the interactive host browser.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import click
from rich.markup import escape

from sshm import __version__
from sshm.config import Config, load_config
from sshm.core.exceptions import ConfigurationError, SshmError
from sshm.discovery.merge import MergeReport
from sshm.discovery.service import DiscoveryService
from sshm.inventory.service import HostService
from sshm.persistence.store import HostStore
from sshm.ssh.command import build_ssh_command, connect
from sshm.ui.console import ConsoleUI
from sshm.utils.log_config import load_log_config
from sshm.utils.logger import logger, setup_logger

ui = ConsoleUI()


@dataclass
class App:
    """Objects shared by the commands of one invocation."""

    config: Config
    store: HostStore
    hosts: HostService
    discovery: DiscoveryService


def _fail(message: str, code: int = 1) -> None:
    ui.error(escape(message))
    sys.exit(code)


def _app(ctx: click.Context) -> App:
    """Open the store on first use; commands like ``version`` never need it."""
    obj = ctx.ensure_object(dict)
    if "app" not in obj:
        config: Config = obj["config"]
        db_path = obj.get("db_path") or config.general.db_path
        try:
            store = HostStore(db_path)
        except SshmError as e:
            _fail(f"Cannot open host store: {e.message}")
        obj["app"] = App(
            config=config,
            store=store,
            hosts=HostService(store),
            discovery=DiscoveryService(store, config),
        )
    return obj["app"]


def _show_report(report: MergeReport) -> None:
    for kind, count in report.candidates_by_source.items():
        ui.muted(f"  {kind.value}: {count} candidates")
    for warning in report.warnings:
        ui.warning(f"⚠️  {escape(warning)}")
    for error in report.errors:
        ui.error(f"❌ {escape(error)}")
    ui.success(f"✅ Discovery: {report.summary()}")


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="sshm")
@click.option(
    "--config", "config_path", type=click.Path(path_type=Path), default=None,
    help="Config file (default: $SSHM_CONFIG or ~/.sshm/config.yaml)",
)
@click.option("--db", "db_path", type=click.Path(path_type=Path), default=None, help="Host store file")
@click.option("--verbose", "-v", is_flag=True, help="Log to stderr")
@click.pass_context
def cli(ctx, config_path, db_path, verbose):
    """
    sshm - SSH host manager.

    Hosts are discovered from ~/.ssh/config, ~/.ssh/known_hosts and shell
    history. Run without arguments to browse and connect.
    """
    ctx.ensure_object(dict)
    session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:19]
    # Quiet until the log settings are known
    logger.remove()

    try:
        config = load_config(config_path)
        log_settings = load_log_config(config.logging)
    except ConfigurationError as e:
        _fail(e.message)
    setup_logger(verbose=verbose, session_id=session_id, config=log_settings)

    ctx.obj["config"] = config
    ctx.obj["db_path"] = db_path

    if ctx.invoked_subcommand is None:
        ctx.invoke(tui)


@cli.command()
@click.option("--no-refresh", is_flag=True, help="Do not run discovery on start")
@click.pass_context
def tui(ctx, no_refresh):
    """Open the interactive host browser."""
    from sshm.ui.browser import HostBrowser

    app = _app(ctx)
    browser = HostBrowser(app.hosts, app.discovery, app.config, ui=ui)
    try:
        browser.run(refresh_on_start=app.config.discovery.on_start and not no_refresh)
    except KeyboardInterrupt:
        pass
    ui.info("Goodbye!")


@cli.command("list")
@click.option("--sources", "-s", is_flag=True, help="Show where each host was seen")
@click.pass_context
def list_hosts(ctx, sources):
    """List all hosts, most recently used first."""
    records = _app(ctx).hosts.list_hosts()
    if not records:
        ui.muted("No hosts found. Use 'sshm discover' or 'sshm add' to add hosts.")
        return
    ui.hosts_table(records, show_sources=sources)
    ui.muted(f"Total: {len(records)} host(s)")


cli.add_command(list_hosts, name="ls")


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx, query):
    """Search hosts by name, address, username, description or tags."""
    records = _app(ctx).hosts.search(query)
    if not records:
        ui.muted(f"No hosts match '{escape(query)}'")
        return
    ui.hosts_table(records, title=f"Hosts matching '{escape(query)}'")
    ui.muted(f"Found: {len(records)} host(s)")


@cli.command()
@click.argument("host")
@click.pass_context
def show(ctx, host):
    """Show details and the ssh command for HOST."""
    app = _app(ctx)
    try:
        record = app.hosts.find(host)
    except SshmError as e:
        _fail(e.message)
    ui.host_details(record, build_ssh_command(record, app.config.ssh.binary, app.config.ssh.extra_args))


@cli.command()
@click.argument("address")
@click.option("--port", "-p", type=int, default=None, help="SSH port (default 22)")
@click.option("--user", "-u", "username", default="", help="Login name")
@click.option("--name", "-n", "display_name", default="", help="Display name")
@click.option("--key", "-i", "key_path", default="", help="SSH private key file")
@click.option("--description", "-d", default="", help="Free-text description")
@click.option("--tags", "-t", default="", help="Comma-separated tags")
@click.pass_context
def add(ctx, address, port, username, display_name, key_path, description, tags):
    """Add a host by hand."""
    try:
        record = _app(ctx).hosts.add_host(
            address,
            port,
            username,
            display_name,
            key_path=key_path,
            description=description,
            tags=tags,
        )
    except SshmError as e:
        _fail(e.message)
    ui.success(f"✅ Added {escape(record.display_name)} ({record.key})")


@cli.command()
@click.argument("host")
@click.option("--user", "-u", "username", default=None, help="New login name ('' clears it)")
@click.option("--name", "-n", "display_name", default=None, help="New display name")
@click.option("--port", "-p", type=int, default=None, help="New SSH port")
@click.option("--key", "-i", "key_path", default=None, help="New SSH key file ('' clears it)")
@click.option("--description", "-d", default=None, help="New description")
@click.option("--tags", "-t", default=None, help="New comma-separated tags ('' clears them)")
@click.pass_context
def edit(ctx, host, username, display_name, port, key_path, description, tags):
    """Change the fields of HOST."""
    changes = {
        "username": username,
        "display_name": display_name,
        "port": port,
        "key_path": key_path,
        "description": description,
        "tags": tags,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        _fail("Nothing to change: give --user, --name, --port, --key, --description or --tags")
    app = _app(ctx)
    try:
        record = app.hosts.find(host)
        updated = app.hosts.edit_host(record.key, **changes)
    except SshmError as e:
        _fail(e.message)
    ui.success(f"✅ Updated {escape(updated.display_name)}")


@cli.command()
@click.argument("host")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def remove(ctx, host, yes):
    """Remove HOST from the inventory."""
    app = _app(ctx)
    try:
        record = app.hosts.find(host)
    except SshmError as e:
        _fail(e.message)

    if not yes and not click.confirm(f"Remove {record.display_name} ({record.key})?", default=False):
        ui.muted("Cancelled")
        return

    try:
        app.hosts.delete_host(record.key)
    except SshmError as e:
        _fail(e.message)
    ui.success(f"🗑️  Removed {escape(record.display_name)}")


cli.add_command(remove, name="rm")


@cli.command("connect")
@click.argument("host")
@click.option("--dry-run", is_flag=True, help="Print the ssh command instead of running it")
@click.pass_context
def connect_cmd(ctx, host, dry_run):
    """Connect to HOST with ssh."""
    app = _app(ctx)
    ssh = app.config.ssh
    try:
        record = app.hosts.find(host)
    except SshmError as e:
        _fail(e.message)

    if dry_run:
        click.echo(build_ssh_command(record, ssh.binary, ssh.extra_args))
        return

    try:
        app.hosts.record_connection(record.key)
    except SshmError as e:
        # Non-fatal: connect anyway
        logger.warning(f"Failed to update usage statistics: {e}")

    ui.info(f"🔗 Connecting to {escape(record.display_name)} ({escape(record.destination)}:{record.port})...")
    try:
        code = connect(record, ssh.binary, ssh.extra_args)
    except SshmError as e:
        _fail(e.message)
    if code:
        sys.exit(code)
    ui.success(f"✅ Connection to {escape(record.display_name)} closed.")


cli.add_command(connect_cmd, name="c")


@cli.command()
@click.pass_context
def discover(ctx):
    """Scan known_hosts, shell history and ssh config now."""
    app = _app(ctx)
    with ui.console.status("Discovering hosts..."):
        report = app.discovery.run()
    _show_report(report)
    if not report.ok:
        sys.exit(1)


@cli.command()
def version():
    """Show version information."""
    ui.print(f"sshm v{__version__}")


def main():
    """Entry point for the sshm CLI."""
    cli()


if __name__ == "__main__":
    main()
