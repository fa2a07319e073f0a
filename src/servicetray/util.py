import json
import logging
import os
import shutil
import sys
from dataclasses import dataclass
from typing import Mapping, Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def json_line(obj: dict) -> str:
    return json.dumps(obj, separators=(",", ":"))


@dataclass(frozen=True)
class Settings:
    tailscale_bin: str = "tailscale"
    systemctl_bin: str = "systemctl"
    sudo_bin: str = "sudo"  # empty string runs systemctl without a prefix
    docker_unit: str = "docker"
    poll_ms: int = 100
    icon_path: Optional[str] = None
    log_level: str = "warning"

    @property
    def poll_interval(self) -> float:
        return self.poll_ms / 1000.0


def resolve_bin(name: str) -> str:
    """Absolute path for `name` when it is on PATH, else `name` unchanged."""
    if not name or os.path.sep in name:
        return name
    return shutil.which(name) or name


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read SERVICETRAY_* variables. Unset or invalid values keep defaults."""
    if env is None:
        env = os.environ
    defaults = Settings()
    icon = env.get("SERVICETRAY_ICON", "").strip()
    return Settings(
        tailscale_bin=resolve_bin(env.get("SERVICETRAY_TAILSCALE_BIN", defaults.tailscale_bin).strip()),
        systemctl_bin=resolve_bin(env.get("SERVICETRAY_SYSTEMCTL_BIN", defaults.systemctl_bin).strip()),
        sudo_bin=resolve_bin(env.get("SERVICETRAY_SUDO_BIN", defaults.sudo_bin).strip()),
        docker_unit=env.get("SERVICETRAY_DOCKER_UNIT", "").strip() or defaults.docker_unit,
        poll_ms=_env_int(env, "SERVICETRAY_POLL_MS", defaults.poll_ms),
        icon_path=icon or None,
        log_level=env.get("SERVICETRAY_LOG_LEVEL", "").strip().lower() or defaults.log_level,
    )


def setup_logging(level: str = "warning") -> None:
    """Configure the `servicetray` logger once; later calls only change the level."""
    logger = logging.getLogger("servicetray")
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logger.setLevel(numeric)
    if not any(getattr(h, "_servicetray", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        handler._servicetray = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
