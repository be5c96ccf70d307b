"""Clipboard support through the platform's clipboard commands."""

import logging
import shlex
import shutil
import subprocess
from typing import List, Optional

from ..core.errors import ClipboardError

logger = logging.getLogger(__name__)

# Tried in order when no command is configured
CLIPBOARD_COMMANDS: List[List[str]] = [
    ["pbcopy"],
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["xsel", "--clipboard", "--input"],
    ["clip"],
]


def find_clipboard_command(command: Optional[str] = None) -> List[str]:
    """Resolve the command used to copy to the clipboard.

    Args:
        command: Explicit command line, overrides detection

    Returns:
        Command as an argument list

    Raises:
        ClipboardError: If no clipboard command is available
    """
    if command:
        return shlex.split(command)
    for candidate in CLIPBOARD_COMMANDS:
        if shutil.which(candidate[0]):
            return candidate
    raise ClipboardError(
        "no clipboard command found (install pbcopy, wl-copy, xclip or xsel, "
        "or set PROMPTBANK_CLIPBOARD_COMMAND)"
    )


def copy_to_clipboard(text: str, command: Optional[str] = None, timeout: int = 10) -> None:
    """Copy text to the system clipboard.

    Raises:
        ClipboardError: If the copy command is missing or fails
    """
    args = find_clipboard_command(command)
    logger.debug(f"Copying {len(text)} characters with {args[0]}")
    try:
        result = subprocess.run(
            args,
            input=text,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ClipboardError(str(e), original_error=e)
    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise ClipboardError(
            f"{args[0]} exited with status {result.returncode}" + (f": {stderr}" if stderr else "")
        )
