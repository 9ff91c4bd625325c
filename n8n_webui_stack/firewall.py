import logging
import re
from enum import Enum
from typing import List

from n8n_webui_stack.commands import command_exists, run_command
from n8n_webui_stack.config import LOGGER_NAME, Config
from n8n_webui_stack.errors import ExecutionError

logger = logging.getLogger(LOGGER_NAME)

ACTIVE_PATTERN = re.compile(r"Status:\s*active", re.IGNORECASE)


class FirewallState(str, Enum):
    """What the installer found when probing UFW."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ABSENT = "absent"


def probe_ufw() -> FirewallState:
    if not command_exists("ufw"):
        return FirewallState.ABSENT
    try:
        status = run_command(["ufw", "status"], check=False)
    except ExecutionError as e:
        logger.debug(f"ufw status failed: {e}")
        return FirewallState.INACTIVE
    if status.returncode == 0 and ACTIVE_PATTERN.search(status.stdout or ""):
        return FirewallState.ACTIVE
    return FirewallState.INACTIVE


def allow_port(port: int) -> bool:
    """Open a TCP port. A failed rule is reported, never fatal."""
    result = run_command(["ufw", "allow", f"{port}/tcp"], check=False)
    if result.returncode != 0:
        logger.warning(f"Could not allow {port}/tcp: {(result.stderr or '').strip()}")
        return False
    logger.info(f"Allowed TCP port {port}.")
    return True


def configure_firewall(config: Config) -> List[int]:
    """Extend an already-active UFW with the stack ports; never enable UFW."""
    state = probe_ufw()
    if state is FirewallState.ABSENT:
        logger.warning("UFW not installed; skipping firewall changes.")
        return []
    if state is FirewallState.INACTIVE:
        logger.warning("UFW is installed but not active. Skipping firewall changes.")
        return []

    ports = config.firewall_ports
    logger.info(
        f"UFW is active. Opening ports {config.N8N_PORT} (n8n) "
        f"and {config.OWUI_PORT} (Open WebUI)..."
    )
    return [port for port in ports if allow_port(port)]
