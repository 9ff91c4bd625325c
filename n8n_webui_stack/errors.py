# ----------------------------------------------------------------
# Custom Exceptions
# ----------------------------------------------------------------
from typing import List, Optional


class InstallerError(Exception):
    """Base exception for installer errors."""

    pass


class PreflightError(InstallerError):
    """Raised when a preflight precondition is not met."""

    pass


class ExecutionError(InstallerError):
    """Raised when command execution fails."""

    def __init__(
        self,
        cmd: List[str],
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        message: Optional[str] = None,
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        if message is None:
            message = f"Command failed: {' '.join(cmd)}"
            if returncode is not None:
                message += f" (exit code {returncode})"
            if stderr.strip():
                message += f"\nStderr: {stderr.strip()}"
        super().__init__(message)


class ConfigError(InstallerError):
    """Raised when a value cannot be written into the generated stack files."""

    pass


class RuntimeInstallError(InstallerError):
    """Raised when Docker Engine or the compose plugin is unusable."""

    pass


class LaunchError(InstallerError):
    """Raised when a service is not running after the stack is started."""

    pass


class UpdateError(InstallerError):
    """Raised when the update pipeline cannot proceed."""

    pass
