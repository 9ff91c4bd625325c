"""
Preflight checks and host detection.

Only the privilege check is fatal. Codename, address and timezone
detection always fall back to a configured default.
"""

import logging
import os
from typing import Optional

from n8n_webui_stack.commands import apt_env, best_effort, command_exists, run_command
from n8n_webui_stack.config import LOGGER_NAME, Config, HostFacts
from n8n_webui_stack.errors import ExecutionError, PreflightError

logger = logging.getLogger(LOGGER_NAME)


def check_root() -> None:
    """Verify the script is running with root privileges."""
    if os.geteuid() != 0:
        raise PreflightError("Run this script as root (use sudo).")


def _install_lsb_release() -> None:
    run_command(["apt-get", "update", "-y"], env=apt_env())
    run_command(["apt-get", "install", "-y", "lsb-release"], env=apt_env())


def detect_codename(config: Config) -> str:
    """Return the distribution codename, or the configured default."""
    if not command_exists("lsb_release"):
        logger.info("lsb_release not found, installing lsb-release...")
        best_effort("Installing lsb-release", _install_lsb_release)

    codename = ""
    try:
        result = run_command(["lsb_release", "-cs"])
        codename = result.stdout.strip()
    except ExecutionError as e:
        logger.debug(f"Codename detection failed: {e}")

    if not codename:
        codename = config.DEFAULT_CODENAME
        logger.debug(f"Falling back to codename '{codename}'")

    if codename not in config.SUPPORTED_CODENAMES:
        targets = ", ".join(config.SUPPORTED_CODENAMES)
        logger.warning(
            f"This installer targets Ubuntu {targets}. "
            f"Detected '{codename}'. Proceeding anyway..."
        )
    return codename


def parse_first_global_ipv4(output: str) -> Optional[str]:
    """Pick the first address out of `ip -4 -o addr show scope global` output."""
    for line in output.splitlines():
        fields = line.split()
        # 2: eth0    inet 10.0.0.5/24 brd 10.0.0.255 scope global eth0
        if len(fields) >= 4 and fields[2] == "inet":
            return fields[3].split("/", 1)[0]
    return None


def detect_server_ip(config: Config) -> str:
    """Return the address the stack is reachable on."""
    if config.SERVER_IP_OVERRIDE:
        return config.SERVER_IP_OVERRIDE

    if command_exists("ip"):
        try:
            result = run_command(["ip", "-4", "-o", "addr", "show", "scope", "global"])
            address = parse_first_global_ipv4(result.stdout)
            if address:
                return address
        except ExecutionError as e:
            logger.debug(f"Address detection failed: {e}")

    return config.DEFAULT_SERVER_IP


def detect_timezone(config: Config) -> str:
    """Return the system timezone, or the configured default."""
    try:
        result = run_command(
            ["timedatectl", "show", "-p", "Timezone", "--value"], check=False
        )
        timezone = result.stdout.strip() if result.returncode == 0 else ""
    except ExecutionError as e:
        logger.debug(f"Timezone detection failed: {e}")
        timezone = ""
    return timezone or config.DEFAULT_TIMEZONE


def detect_host(config: Config) -> HostFacts:
    """Run every detection and log the values that will be used."""
    facts = HostFacts(
        codename=detect_codename(config),
        server_ip=detect_server_ip(config),
        timezone=detect_timezone(config),
    )
    logger.info(f"Using timezone: {facts.timezone}")
    logger.info(f"Detected server IP: {facts.server_ip}")
    return facts
