import shutil
from typing import NoReturn, Optional

import typer

from . import __version__
from .clipboard import CLIPBOARD_TOOLS
from .errors import DaemonStopped, ServiceTrayError
from .menu import project
from .models import MenuItem, PeerMachine, ServiceStatus
from .runner import run_command
from .services import SERVICE_NAMES, ServiceController, TailscaleMesh, build_controller
from .util import json_line, load_settings, setup_logging


app = typer.Typer(
    name="servicetray",
    add_completion=False,
    no_args_is_help=True,
    help=(
        "Tray toggles for Docker (systemd) and Tailscale.\n\n"
        "Usage:\n"
        "  servicetray status <service> [--json]  Show service status\n"
        "  servicetray peers [--online]           List Tailscale peers\n"
        "  servicetray start|stop|toggle <svc>    Change service state\n"
        "  servicetray menu <service>             Print the tray menu\n"
        "  servicetray tray <service>             Run the tray icon\n"
        "  servicetray dash <service>             Open Textual panel\n\n"
        f"Services: {', '.join(SERVICE_NAMES)}. Shorthand: servicetray <service> <action>."
    ),
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _root(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging on stderr"),
):
    if version:
        typer.echo(__version__)
        raise typer.Exit()
    settings = load_settings()
    setup_logging("debug" if verbose else settings.log_level)


def _fail(e: Exception, code: int = 1) -> NoReturn:
    typer.echo(str(e), err=True)
    raise typer.Exit(code=code)


def _controller(name: str) -> ServiceController:
    try:
        return build_controller(name, load_settings())
    except ValueError as e:
        _fail(e, code=2)


def _peer_row(p: PeerMachine) -> str:
    state = "online" if p.online else "offline"
    return f"{p.ip}\t{p.hostname}\t{p.user}\t{p.os}\t{state}"


def _peer_dict(p: PeerMachine) -> dict:
    return {"ip": p.ip, "hostname": p.hostname, "user": p.user, "os": p.os, "online": p.online, "details": p.details}


def _status_dict(st: ServiceStatus) -> dict:
    return {
        "active": st.is_active,
        "active_state": st.active_state,
        "loaded_state": st.loaded_state,
        "main_pid": st.main_pid,
        "memory_peak": st.memory_peak,
        "cpu_time": st.cpu_time,
    }


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def version():
    """Show CLI version (semver)."""
    typer.echo(__version__)


@app.command()
def status(
    service: str = typer.Argument(..., help="docker | tailscale"),
    as_json: bool = typer.Option(False, "--json", help="One JSON object on stdout"),
):
    """Show status for a service."""
    ctl = _controller(service)
    if isinstance(ctl, TailscaleMesh):
        try:
            enabled = ctl.is_enabled()
            peers = ctl.query_status() if enabled else []
        except DaemonStopped:
            enabled, peers = False, []
        except ServiceTrayError as e:
            _fail(e)
        if as_json:
            typer.echo(json_line({"name": ctl.name, "enabled": enabled, "peers": [_peer_dict(p) for p in peers]}))
            return
        typer.echo(f"name: {ctl.name}")
        typer.echo(f"enabled: {'yes' if enabled else 'no'}")
        for p in peers:
            typer.echo(_peer_row(p))
        return

    try:
        st = ctl.query_status()
    except ServiceTrayError as e:
        _fail(e)
    if as_json:
        typer.echo(json_line({"name": ctl.name, **_status_dict(st)}))
        return
    typer.echo(f"name: {ctl.name}")
    typer.echo(f"state: {st.active_state or 'unknown'}")
    if st.loaded_state:
        typer.echo(f"loaded: {st.loaded_state}")
    if st.main_pid is not None:
        typer.echo(f"pid: {st.main_pid}")
    if st.memory_peak is not None:
        typer.echo(f"mem peak: {st.memory_peak}")
    if st.cpu_time is not None:
        typer.echo(f"cpu: {st.cpu_time}")


@app.command()
def peers(
    online: bool = typer.Option(False, "--online", help="Only online peers"),
    as_json: bool = typer.Option(False, "--json", help="One JSON object per line"),
):
    """List Tailscale peers. Prints: ip\thostname\tuser\tos\tstate"""
    ctl = _controller(TailscaleMesh.name)
    assert isinstance(ctl, TailscaleMesh)
    try:
        rows = ctl.online_machines() if online else ctl.query_status()
    except DaemonStopped as e:
        typer.echo(str(e), err=True)
        return
    except ServiceTrayError as e:
        _fail(e)
    for p in rows:
        typer.echo(json_line(_peer_dict(p)) if as_json else _peer_row(p))


@app.command()
def start(service: str = typer.Argument(..., help="docker | tailscale")):
    """Start a service (tailscale up / systemctl start)."""
    ctl = _controller(service)
    try:
        ctl.start()
    except ServiceTrayError as e:
        _fail(e)
    typer.echo(f"started {ctl.name}")


@app.command()
def stop(service: str = typer.Argument(..., help="docker | tailscale")):
    """Stop a service (tailscale down / systemctl stop)."""
    ctl = _controller(service)
    try:
        ctl.stop()
    except ServiceTrayError as e:
        _fail(e)
    typer.echo(f"stopped {ctl.name}")


app.command("up", help="Alias for start.")(start)
app.command("down", help="Alias for stop.")(stop)


@app.command()
def toggle(service: str = typer.Argument(..., help="docker | tailscale")):
    """Stop the service if it is running, otherwise start it."""
    ctl = _controller(service)
    try:
        now_on = ctl.toggle()
    except ServiceTrayError as e:
        _fail(e)
    typer.echo(f"{'started' if now_on else 'stopped'} {ctl.name}")


@app.command()
def menu(service: str = typer.Argument(..., help="docker | tailscale")):
    """Print the menu the tray would show. Prints: id\tlabel[\t(disabled)]"""
    ctl = _controller(service)
    enabled, detail = ctl.snapshot()
    model = project(enabled, detail, title=ctl.title)
    for entry in model.entries:
        if not isinstance(entry, MenuItem):
            typer.echo("-")
            continue
        suffix = "" if entry.enabled else "\t(disabled)"
        typer.echo(f"{entry.id}\t{entry.label}{suffix}")


@app.command()
def tray(service: str = typer.Argument(..., help="docker | tailscale")):
    """Run the tray icon for a service until Quit is chosen."""
    ctl = _controller(service)
    # Lazy import: pystray picks a display backend at import time
    try:
        from .tray import run_tray
    except Exception as e:
        typer.echo(f"Failed to load tray backend: {e}", err=True)
        raise typer.Exit(code=1)
    run_tray(ctl, load_settings())


@app.command()
def dash(service: str = typer.Argument(..., help="docker | tailscale")):
    """Open the Textual panel for a service."""
    try:
        import textual  # noqa: F401
    except Exception:
        typer.echo(
            "Panel requires 'textual'. Install extras: 'pip install servicetray[dash]'.",
            err=True,
        )
        raise typer.Exit(code=1)

    # Lazy import to avoid importing Textual at module import time
    try:
        from .dash.app import run_dash
    except Exception as e:
        typer.echo(f"Failed to load panel: {e}", err=True)
        raise typer.Exit(code=1)

    ctl = _controller(service)
    run_dash(ctl, poll_interval=load_settings().poll_interval)


def _probe(program: str, args: list[str]) -> bool:
    try:
        return run_command(program, args).exit_success
    except ServiceTrayError:
        return False


@app.command()
def doctor():
    """Diagnose CLIs, passwordless sudo, clipboard and tray backends."""
    settings = load_settings()
    ok_systemctl = _probe(settings.systemctl_bin, ["--version"])
    ok_tailscale = _probe(settings.tailscale_bin, ["version"])
    if settings.sudo_bin:
        # -n: fail instead of prompting
        ok_sudo = _probe(settings.sudo_bin, ["-n", settings.systemctl_bin, "--version"])
    else:
        ok_sudo = True
    clip = [name for name, _args in CLIPBOARD_TOOLS if shutil.which(name)]

    try:
        import pystray  # noqa: F401
        ok_tray = True
    except Exception:
        ok_tray = False
    try:
        import textual  # noqa: F401
        ok_textual = True
    except Exception:
        ok_textual = False

    typer.echo(f"systemctl: {'ok' if ok_systemctl else 'FAIL'}")
    typer.echo(f"sudo -n: {'ok' if ok_sudo else 'FAIL'}{'' if settings.sudo_bin else ' (disabled)'}")
    typer.echo(f"tailscale: {'ok' if ok_tailscale else 'FAIL'}")
    typer.echo(f"clipboard: {', '.join(clip) if clip else 'FAIL'}")
    typer.echo(f"tray backend: {'ok' if ok_tray else 'FAIL'}")
    typer.echo(f"textual: {'ok' if ok_textual else 'missing (pip install servicetray[dash])'}")
