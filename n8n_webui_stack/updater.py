"""
Container updates.

``write_updater_script`` drops a standalone bash script on the host so the
operator can update without this tool installed. ``run_update`` is the same
pipeline driven from Python for the ``update`` subcommand.
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from rich.prompt import Confirm

from n8n_webui_stack.commands import command_exists, run_command
from n8n_webui_stack.config import LOGGER_NAME, Config
from n8n_webui_stack.errors import ExecutionError, UpdateError
from n8n_webui_stack.launcher import compose

logger = logging.getLogger(LOGGER_NAME)

REBOOT_PROMPT = "Do you want to reboot the server now?"

UPDATER_TEMPLATE = """\
#!/usr/bin/env bash
set -euo pipefail

STACK_DIR="{stack_dir}"

echo "[+] Updating containers in $STACK_DIR ..."
cd "$STACK_DIR"

if ! command -v docker >/dev/null 2>&1; then
  echo "[!] Docker not found."
  exit 1
fi
if ! docker compose version >/dev/null 2>&1; then
  echo "[!] Docker Compose plugin not found."
  exit 1
fi

echo "[+] Pulling latest images..."
docker compose pull

echo "[+] Recreating with latest images..."
docker compose up -d

echo "[+] Cleanup old images..."
docker image prune -f

echo
read -rp "{prompt} [y/N]: " REBOOT_ANS
case "${{REBOOT_ANS:-N}}" in
  y|Y) echo "[+] Rebooting..."; sleep 1; reboot ;;
  *) echo "[+] Skipping reboot." ;;
esac
"""


def render_updater_script(config: Config) -> str:
    return UPDATER_TEMPLATE.format(stack_dir=config.STACK_DIR, prompt=REBOOT_PROMPT)


def write_updater_script(config: Config) -> Path:
    path = config.UPDATER_PATH
    logger.info(f"Creating updater script: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_updater_script(config))
    os.chmod(path, 0o755)
    return path


# ----------------------------------------------------------------
# In-process update
# ----------------------------------------------------------------
def check_update_prerequisites() -> None:
    if not command_exists("docker"):
        raise UpdateError("Docker not found.")
    try:
        run_command(["docker", "compose", "version"])
    except ExecutionError as e:
        raise UpdateError("Docker Compose plugin not found.") from e


def run_update(
    config: Config,
    confirm: Optional[Callable[[str], bool]] = None,
) -> bool:
    """
    Pull newer images, recreate the containers and prune dangling images.

    Args:
        config: Installer configuration pointing at the stack directory
        confirm: Yes/no prompt, defaults to a Rich confirm answering No

    Returns:
        True if a reboot was requested and the reboot command succeeded
    """
    if not config.compose_file.is_file():
        raise UpdateError(f"No Compose stack found at {config.compose_file}")

    logger.info(f"Updating containers in {config.STACK_DIR} ...")
    check_update_prerequisites()

    logger.info("Pulling latest images...")
    compose(config, "pull")
    logger.info("Recreating with latest images...")
    compose(config, "up", "-d")
    logger.info("Cleanup old images...")
    run_command(["docker", "image", "prune", "-f"])

    if confirm is None:
        confirm = lambda question: Confirm.ask(question, default=False)  # noqa: E731
    if confirm(REBOOT_PROMPT):
        logger.info("Rebooting...")
        time.sleep(1)
        result = run_command(["reboot"], check=False)
        if result.returncode != 0:
            logger.warning(
                f"Reboot failed (exit code {result.returncode}): {(result.stderr or '').strip()}"
            )
            return False
        return True
    logger.info("Skipping reboot.")
    return False
