"""Local command execution, used to check the browser driver before a session starts."""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys

from sitecheck.errors import TransportError

logger = logging.getLogger(__name__)

DRIVER_CHECK_COMMAND = [sys.executable, "-m", "playwright", "--version"]


def exec_command(command: str | list[str], check: bool = False) -> str:
    """Run a command synchronously and return its output.

    When the command fails, its stderr is returned if it wrote any, otherwise
    its stdout. With ``check`` a failing command raises CalledProcessError
    instead. A command that cannot be started at all raises OSError.
    """
    args = shlex.split(command) if isinstance(command, str) else command
    logger.debug("Executing: %s", " ".join(args))
    completed = subprocess.run(args, capture_output=True, text=True)
    if check:
        completed.check_returncode()
    if completed.returncode != 0 and completed.stderr.strip():
        return completed.stderr
    return completed.stdout


def ensure_driver_available(command: list[str] | None = None) -> str:
    """Verify that the browser driver can be executed; returns its version output."""
    try:
        version = exec_command(command or DRIVER_CHECK_COMMAND, check=True).strip()
    except OSError as e:
        raise TransportError(
            f"Could not initialize the browser driver. Please make sure it is installed: {e}"
        ) from e
    except subprocess.CalledProcessError as e:
        raise TransportError(
            "Could not initialize the browser driver. Please make sure it is installed:\n"
            + (e.stderr or e.stdout or "")
        ) from e
    logger.debug("Browser driver available: %s", version)
    return version
