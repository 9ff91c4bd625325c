import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from n8n_webui_stack.config import LOGGER_NAME, OPERATION_TIMEOUT
from n8n_webui_stack.errors import ExecutionError

logger = logging.getLogger(LOGGER_NAME)

T = TypeVar("T")


# ----------------------------------------------------------------
# Command Execution Utilities
# ----------------------------------------------------------------
def run_command(
    cmd: List[str],
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[int] = OPERATION_TIMEOUT,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Execute a system command and return the CompletedProcess.

    Args:
        cmd: Command to execute as an argument list
        check: Whether to raise on a non-zero exit
        capture_output: Whether to capture stdout/stderr
        timeout: Command timeout in seconds, None for no limit
        cwd: Working directory for the command
        env: Extra environment variables layered over os.environ

    Returns:
        subprocess.CompletedProcess object

    Raises:
        ExecutionError: If the command cannot be run, times out, or exits
            non-zero while check is set
    """
    cmd_str = " ".join(cmd)
    logger.debug(f"Executing: {cmd_str}")

    full_env = os.environ.copy()
    if env:
        full_env.update(env)

    try:
        result = subprocess.run(
            cmd,
            check=False,
            text=True,
            capture_output=capture_output,
            timeout=timeout,
            cwd=str(cwd) if cwd is not None else None,
            env=full_env,
        )
    except FileNotFoundError as e:
        if check:
            raise ExecutionError(cmd, message=f"Command not found: {cmd[0]}") from e
        logger.debug(f"Command not found: {cmd[0]}")
        return subprocess.CompletedProcess(cmd, 127, stdout="", stderr=str(e))
    except subprocess.TimeoutExpired as e:
        raise ExecutionError(
            cmd, message=f"Command timed out after {timeout} seconds: {cmd_str}"
        ) from e

    if check and result.returncode != 0:
        raise ExecutionError(
            cmd,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
    return result


def command_exists(cmd: str) -> bool:
    """Check if a command exists in the system path."""
    return shutil.which(cmd) is not None


def best_effort(
    description: str,
    func: Callable[..., T],
    *args: Any,
    default: Optional[T] = None,
    **kwargs: Any,
) -> Optional[T]:
    """Run a step whose failure is logged as a warning instead of aborting."""
    try:
        return func(*args, **kwargs)
    except (ExecutionError, OSError) as e:
        logger.warning(f"{description} failed, continuing: {e}")
        return default


def apt_env() -> Dict[str, str]:
    """Environment for apt commands that must never prompt."""
    return {"DEBIAN_FRONTEND": "noninteractive"}
