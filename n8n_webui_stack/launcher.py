import logging
import time
from typing import Dict, List

from n8n_webui_stack.commands import run_command
from n8n_webui_stack.config import LOGGER_NAME, Config
from n8n_webui_stack.errors import LaunchError
from n8n_webui_stack.ui import console

logger = logging.getLogger(LOGGER_NAME)

PS_TABLE_FORMAT = "table {{.Names}}\t{{.Image}}\t{{.Status}}"
PS_STATUS_FORMAT = "{{.Names}} {{.Status}}"


def compose(config: Config, *args: str) -> None:
    """Run `docker compose` against the generated stack directory."""
    run_command(
        ["docker", "compose"] + list(args),
        cwd=config.STACK_DIR,
        timeout=None,
    )


def start_stack(config: Config) -> None:
    logger.info("Pulling images and starting containers...")
    compose(config, "pull")
    compose(config, "up", "-d")


def parse_container_statuses(output: str) -> Dict[str, str]:
    """Map container name to its `docker ps` status text."""
    statuses: Dict[str, str] = {}
    for line in output.splitlines():
        name, _, status = line.strip().partition(" ")
        if name:
            statuses[name] = status.strip()
    return statuses


def container_statuses() -> Dict[str, str]:
    result = run_command(["docker", "ps", "--format", PS_STATUS_FORMAT])
    return parse_container_statuses(result.stdout)


def not_running(config: Config, statuses: Dict[str, str]) -> List[str]:
    """Display names of services whose container is missing or not Up."""
    return [
        spec.display_name
        for spec in config.services
        if "Up" not in statuses.get(spec.container_name, "")
    ]


def verify_stack(config: Config) -> None:
    """Wait briefly, show running containers, then fail if a service is down."""
    logger.info("Verifying containers are running...")
    time.sleep(config.STARTUP_WAIT_SECONDS)

    table = run_command(["docker", "ps", "--format", PS_TABLE_FORMAT], check=False)
    if table.stdout:
        console.print(table.stdout.rstrip(), markup=False, highlight=False)

    down = not_running(config, container_statuses())
    if down:
        raise LaunchError(f"{down[0]} container is not running as expected.")
    logger.info("All containers are up.")


def launch_stack(config: Config) -> None:
    start_stack(config)
    verify_stack(config)
