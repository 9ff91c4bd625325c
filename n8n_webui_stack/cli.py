#!/usr/bin/env python3
"""
n8n + Open WebUI Stack Installer

Provisions an Ubuntu 22.04/24.04 host with:
  • Docker Engine and the Compose plugin from the upstream apt repository
  • Persistent data directories and a generated Compose stack in /opt/stack
  • UFW rules for ports 5678 (n8n) and 8080 (Open WebUI) if UFW is active
  • /root/update_containers.sh for pulling newer images later

Run with root privileges. With no subcommand the installer runs.
"""

import logging
import signal
import sys
from typing import Any, Optional

import click

from n8n_webui_stack import __version__
from n8n_webui_stack.config import APP_NAME, LOGGER_NAME, Config
from n8n_webui_stack.errors import InstallerError
from n8n_webui_stack.installer import StackInstaller
from n8n_webui_stack.log import setup_logger
from n8n_webui_stack.preflight import check_root
from n8n_webui_stack.ui import (
    console,
    create_header,
    print_error,
    print_status_report,
    print_success,
    print_warning,
)
from n8n_webui_stack.updater import run_update

logger = logging.getLogger(LOGGER_NAME)


# ----------------------------------------------------------------
# Signal Handling
# ----------------------------------------------------------------
def signal_handler(sig: int, frame: Any) -> None:
    sig_name = signal.Signals(sig).name
    print_warning(f"Process interrupted by {sig_name}. Partially created state is left in place.")
    sys.exit(128 + sig)


def _prepare(config: Config, debug: bool) -> None:
    """Root check first, so a non-root run never touches the log directory."""
    signal.signal(signal.SIGTERM, signal_handler)
    try:
        check_root()
    except InstallerError as e:
        print_error(str(e))
        sys.exit(1)
    setup_logger(config.LOG_FILE, debug=debug)
    logger.debug(f"Logging to {config.LOG_FILE}")


# ----------------------------------------------------------------
# Main CLI Entry Point with Click
# ----------------------------------------------------------------
@click.group(invoke_without_command=True)
@click.version_option(__version__, prog_name=APP_NAME)
@click.option(
    "--server-ip",
    envvar="SERVER_IP",
    default=None,
    help="Address written into the n8n URLs instead of the detected one.",
)
@click.option(
    "--log-file",
    envvar="STACK_INSTALLER_LOG",
    default=Config.LOG_FILE,
    show_default=True,
    help="Debug log destination.",
)
@click.option("--debug", is_flag=True, help="Enable debug logging on the console.")
@click.pass_context
def main(ctx: click.Context, server_ip: Optional[str], log_file: str, debug: bool) -> None:
    """Install and update an n8n + Open WebUI Docker stack."""
    ctx.obj = {
        "config": Config().with_overrides(
            SERVER_IP_OVERRIDE=server_ip or None, LOG_FILE=log_file
        ),
        "debug": debug,
    }
    if ctx.invoked_subcommand is None:
        ctx.invoke(install)


@main.command()
@click.pass_context
def install(ctx: click.Context) -> None:
    """Install Docker, write the stack and start both services."""
    config: Config = ctx.obj["config"]
    console.print(create_header())
    _prepare(config, ctx.obj["debug"])

    installer = StackInstaller(config)
    try:
        installer.run()
    except KeyboardInterrupt:
        print_warning("Installation interrupted by user.")
        sys.exit(130)
    except (InstallerError, OSError) as e:
        logger.error(str(e))
        print_error(str(e))
        print_status_report(installer.status)
        sys.exit(1)


@main.command()
@click.pass_context
def update(ctx: click.Context) -> None:
    """Pull newer images, recreate containers and prune old images."""
    config: Config = ctx.obj["config"]
    _prepare(config, ctx.obj["debug"])
    try:
        run_update(config)
    except KeyboardInterrupt:
        print_warning("Update interrupted by user.")
        sys.exit(130)
    except InstallerError as e:
        logger.error(str(e))
        print_error(str(e))
        sys.exit(1)
    print_success("Containers updated.")


if __name__ == "__main__":
    main()
