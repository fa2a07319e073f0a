import sys
from typing import List, Optional

from .cli import app
from .services import SERVICE_NAMES


# actions accepted after a service name; value is the subcommand to run
SERVICE_ACTIONS = {
    "status": "status",
    "start": "start",
    "up": "start",
    "on": "start",
    "stop": "stop",
    "down": "stop",
    "off": "stop",
    "toggle": "toggle",
    "menu": "menu",
    "tray": "tray",
    "dash": "dash",
}


def rewrite_argv(argv: List[str]) -> List[str]:
    """Map service-first shorthand onto subcommands.

    Examples:
      docker toggle        -> toggle docker
      tailscale            -> status tailscale
      tailscale status --json -> status tailscale --json
    Anything else is returned unchanged.
    """
    if not argv:
        return argv
    first = argv[0].lower()
    if first not in SERVICE_NAMES:
        return argv
    action = argv[1] if len(argv) > 1 else None
    rest = argv[2:] if len(argv) > 2 else []
    if action is None or action.startswith("-"):
        return ["status", first] + argv[1:]
    sub = SERVICE_ACTIONS.get(action.lower())
    if sub is None:
        # Unknown action; let Typer print help
        return argv
    return [sub, first] + rest


def main(argv: Optional[List[str]] = None):
    if argv is None:
        argv = sys.argv[1:]

    # Handle version early to avoid Click group error
    if argv and argv[0] in {"--version", "-V"}:
        from . import __version__
        print(__version__)
        return

    app(args=rewrite_argv(list(argv)), prog_name="servicetray")
