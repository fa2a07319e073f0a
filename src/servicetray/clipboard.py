from __future__ import annotations

import logging
import shutil
from typing import Optional

from .errors import ServiceTrayError
from .runner import Runner, run_command


log = logging.getLogger(__name__)

# (binary, args) tried in order; only the ones found on PATH are used
CLIPBOARD_TOOLS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("wl-copy", ()),
    ("xclip", ("-selection", "clipboard")),
    ("xsel", ("--clipboard", "--input")),
    ("pbcopy", ()),
)

CLIPBOARD_TIMEOUT = 2.0


def copy_to_clipboard(text: str, runner: Runner = run_command) -> Optional[str]:
    """Put `text` on the system clipboard. Returns the tool used, or None."""
    value = (text or "").strip()
    if not value:
        return None
    for name, args in CLIPBOARD_TOOLS:
        binary = shutil.which(name)
        if not binary:
            continue
        try:
            result = runner(binary, list(args), input_text=value, timeout=CLIPBOARD_TIMEOUT)
        except ServiceTrayError as e:
            log.debug("clipboard via %s failed: %s", name, e)
            continue
        if result.exit_success:
            return name
        log.debug("clipboard via %s exited %d", name, result.returncode)
    return None
