"""Best-effort access to the system clipboard through platform commands."""

from __future__ import annotations

import logging
import shutil
import subprocess

LOGGER = logging.getLogger(__name__)

# (copy command, paste command), first one installed wins.
CLIPBOARD_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["pbcopy"], ["pbpaste"]),
    (["wl-copy"], ["wl-paste", "--no-newline"]),
    (["xclip", "-selection", "clipboard"], ["xclip", "-selection", "clipboard", "-o"]),
    (["xsel", "--clipboard", "--input"], ["xsel", "--clipboard", "--output"]),
    (["clip.exe"], ["powershell.exe", "-command", "Get-Clipboard"]),
]


def _available() -> tuple[list[str], list[str]] | None:
    for copy_cmd, paste_cmd in CLIPBOARD_COMMANDS:
        if shutil.which(copy_cmd[0]):
            return copy_cmd, paste_cmd
    return None


def write_clipboard(text: str) -> bool:
    """Copy text to the clipboard; return False if that was not possible."""
    commands = _available()
    if commands is None:
        LOGGER.warning("No clipboard command found, not copying %r", text)
        return False

    try:
        subprocess.run(commands[0], input=text, text=True, check=True, timeout=5)
    except (OSError, subprocess.SubprocessError) as exc:
        LOGGER.warning("Clipboard copy failed: %s", exc)
        return False
    return True


def read_clipboard() -> str | None:
    commands = _available()
    if commands is None:
        return None

    try:
        result = subprocess.run(commands[1], capture_output=True, text=True, check=True, timeout=5)
    except (OSError, subprocess.SubprocessError) as exc:
        LOGGER.warning("Clipboard read failed: %s", exc)
        return None
    return result.stdout
