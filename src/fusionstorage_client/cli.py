"""Command-line interface for operating a FusionStorage cluster."""
from __future__ import annotations

import json
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import typer

try:  # pragma: no cover - exercised in runtime environments
    from rich import box
    from rich.console import Console
    from rich.table import Table
except ImportError as exc:  # pragma: no cover - optional dependency guard
    raise RuntimeError(
        "The CLI requires Rich for table rendering. Install the CLI extras via "
        "'pip install fusionstorage-client[cli]' to enable this command."
    ) from exc

from . import StorageControlClient
from .cli_schema import CLI_TABLE_VIEWS, TableView
from .exceptions import FusionStorageError

app = typer.Typer(help="FusionStorage control-plane CLI.", no_args_is_help=True)

pools_app = typer.Typer(help="Storage pool operations.")
volumes_app = typer.Typer(help="Volume operations.")
snapshots_app = typer.Typer(help="Snapshot operations.")
hosts_app = typer.Typer(help="iSCSI host operations.")
ports_app = typer.Typer(help="iSCSI initiator port operations.")
server_app = typer.Typer(help="Local CLI server operations.")
app.add_typer(pools_app, name="pools")
app.add_typer(volumes_app, name="volumes")
app.add_typer(snapshots_app, name="snapshots")
app.add_typer(hosts_app, name="hosts")
app.add_typer(ports_app, name="ports")
app.add_typer(server_app, name="server")


def _split_agents(agent_ips: str) -> list[str]:
    return [ip.strip() for ip in agent_ips.split(",") if ip.strip()]


def _build_client(
    base_url: str,
    username: str | None,
    password: str | None,
    manage_ip: str,
    agent_ips: str,
    verify_ssl: bool,
    cert_path: Path | None,
    timeout: float,
    cli_timeout: float,
) -> StorageControlClient:
    if not username or not password:
        raise typer.BadParameter("--username and --password are required.")
    agents = _split_agents(agent_ips)
    if not agents:
        raise typer.BadParameter("--agent-ips must list at least one agent address.")

    verify_target: bool | str
    if cert_path:
        expanded_cert = cert_path.expanduser()
        if not expanded_cert.exists():
            raise typer.BadParameter("Certificate file not found for --cert option.")
        if not verify_ssl:
            raise typer.BadParameter("Cannot combine --cert with --no-verify.")
        verify_target = str(expanded_cert)
    else:
        verify_target = verify_ssl

    return StorageControlClient(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agents,
        verify_ssl=verify_target,
        timeout=timeout,
        cli_timeout=cli_timeout,
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


console = Console(force_terminal=False, color_system=None)


def _render_rich_table(view: TableView, rows: Sequence[Mapping[str, Any]]) -> None:
    table = Table(
        title=view.title,
        box=box.SIMPLE,
        show_lines=False,
        header_style="bold cyan",
    )
    for column in view.columns:
        table.add_column(column.header, justify=column.justify)
    ordered_rows = list(rows)
    if view.sort_key:
        ordered_rows.sort(key=view.sort_key)
    for row in ordered_rows:
        table.add_row(*(column.render(row) for column in view.columns))
    console.print(table)


def _present_output(payload: Any, *, view_id: str | None, json_output: bool) -> None:
    if json_output or view_id is None:
        _echo_json(payload)
        return
    view = CLI_TABLE_VIEWS.get(view_id)
    rows = [item for item in payload if isinstance(item, Mapping)] if isinstance(payload, list) else []
    if not view or not rows:
        _echo_json(payload)
        return
    _render_rich_table(view, rows)


def _handle_error(exc: FusionStorageError) -> None:
    message = f"Request failed: {exc}"
    if exc.status_code is not None:
        message = f"Request failed (status {exc.status_code}): {exc}"
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1) from exc


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    # Accept common truthy/falsey representations (1/0, true/false, yes/no).
    env_verify = os.getenv("FUSIONSTORAGE_VERIFY_SSL")
    default_verify = True
    if env_verify is not None and env_verify.strip().lower() in {"0", "false", "no", "off"}:
        default_verify = False

    return {
        "base_url": typer.Option(
            ...,
            "--base-url",
            envvar="FUSIONSTORAGE_BASE_URL",
            help="FusionStorage manager URL, e.g. https://fm:28443.",
        ),
        "username": typer.Option(
            None,
            "--username",
            "-u",
            envvar="FUSIONSTORAGE_USERNAME",
            help="REST API username.",
        ),
        "password": typer.Option(
            None,
            "--password",
            "-p",
            envvar="FUSIONSTORAGE_PASSWORD",
            help="REST API password.",
            hide_input=True,
        ),
        "manage_ip": typer.Option(
            ...,
            "--manage-ip",
            envvar="FUSIONSTORAGE_MANAGE_IP",
            help="Coordinator (FM) address passed to the CLI agents.",
        ),
        "agent_ips": typer.Option(
            ...,
            "--agent-ips",
            envvar="FUSIONSTORAGE_AGENT_IPS",
            help="Comma-separated agent (FSA) addresses, tried in order.",
        ),
        "verify_ssl": typer.Option(
            default_verify,
            "--verify/--no-verify",
            envvar="FUSIONSTORAGE_VERIFY_SSL",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "cert_path": typer.Option(
            None,
            "--cert",
            envvar="FUSIONSTORAGE_CA_CERT",
            help="Path to a custom CA bundle for TLS verification.",
        ),
        "timeout": typer.Option(30.0, help="REST request timeout (seconds).", show_default=True),
        "cli_timeout": typer.Option(
            60.0, help="Per-agent CLI command timeout (seconds).", show_default=True
        ),
        "output_json": typer.Option(
            False,
            "--json",
            "-j",
            help="Return raw JSON instead of rendering a table.",
        ),
    }


_SHARED_OPTIONS = _shared_options()


@pools_app.command("list")
def pools_list(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List storage pools."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            pools = client.pools.list()
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _present_output(pools, view_id="pools.list", json_output=output_json)


@volumes_app.command("create")
def volumes_create(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    name: str = typer.Option(..., "--name", help="Volume name."),
    pool_id: int = typer.Option(..., "--pool-id", help="Target storage pool identifier."),
    size: int = typer.Option(..., "--size", help="Volume size in MB."),
) -> None:
    """Create a new volume within a pool."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            result = client.volumes.create(name, pool_id, size)
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _echo_json(result)


@volumes_app.command("delete")
def volumes_delete(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    name: str = typer.Option(..., "--name", help="Volume name."),
) -> None:
    """Delete a volume."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            result = client.volumes.delete(name)
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _echo_json(result)


@volumes_app.command("expand")
def volumes_expand(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    name: str = typer.Option(..., "--name", help="Volume name."),
    size: int = typer.Option(..., "--size", help="New volume size in MB."),
) -> None:
    """Expand a volume to a new size."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            result = client.volumes.expand(name, size)
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _echo_json(result)


@volumes_app.command("attach")
def volumes_attach(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    name: str = typer.Option(..., "--name", help="Volume name."),
    node_ip: str = typer.Option(..., "--node-ip", help="Management IP of the attaching node."),
) -> None:
    """Attach a volume to a node."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            result = client.volumes.attach(name, node_ip)
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _echo_json(result)


@snapshots_app.command("create")
def snapshots_create(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    name: str = typer.Option(..., "--name", help="Snapshot name."),
    volume: str = typer.Option(..., "--volume", help="Source volume name."),
) -> None:
    """Create a snapshot of a volume."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            result = client.snapshots.create(name, volume)
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _echo_json(result)


@snapshots_app.command("delete")
def snapshots_delete(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    name: str = typer.Option(..., "--name", help="Snapshot name."),
) -> None:
    """Delete a snapshot."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            result = client.snapshots.delete(name)
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _echo_json(result)


@hosts_app.command("list")
def hosts_list(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List iSCSI hosts."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.login()
            hosts = client.hosts.list()
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    _present_output(hosts, view_id="hosts.list", json_output=output_json)


@ports_app.command("portal")
def ports_portal(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
    initiator: str = typer.Option(..., "--initiator", help="Initiator IQN."),
) -> None:
    """Show the iSCSI target portal for an initiator (CLI transport)."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            portal = client.ports.iscsi_portal(initiator)
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    typer.echo(portal)


@server_app.command("start")
def server_start(
    base_url: str = _SHARED_OPTIONS["base_url"],
    username: str | None = _SHARED_OPTIONS["username"],
    password: str | None = _SHARED_OPTIONS["password"],
    manage_ip: str = _SHARED_OPTIONS["manage_ip"],
    agent_ips: str = _SHARED_OPTIONS["agent_ips"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    cli_timeout: float = _SHARED_OPTIONS["cli_timeout"],
) -> None:
    """Start the local CLI server process."""

    with _build_client(
        base_url=base_url,
        username=username,
        password=password,
        manage_ip=manage_ip,
        agent_ips=agent_ips,
        verify_ssl=verify_ssl,
        cert_path=cert_path,
        timeout=timeout,
        cli_timeout=cli_timeout,
    ) as client:
        try:
            client.start_server()
        except FusionStorageError as exc:
            _handle_error(exc)
            return
    typer.secho("FusionStorage CLI server started.", fg=typer.colors.GREEN)
