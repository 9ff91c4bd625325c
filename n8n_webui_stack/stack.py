"""
Stack materialization: data directories, env file, Compose manifest and
the external Docker network.

The env file and manifest are rewritten in full on every run.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from n8n_webui_stack.commands import run_command
from n8n_webui_stack.config import LOGGER_NAME, Config, HostFacts
from n8n_webui_stack.errors import ConfigError

logger = logging.getLogger(LOGGER_NAME)


# ----------------------------------------------------------------
# Directories
# ----------------------------------------------------------------
def chown_tree(path: Path, uid: int, gid: int) -> None:
    """Recursive chown, the equivalent of `chown -R uid:gid path`."""
    os.chown(path, uid, gid)
    for root, dirs, files in os.walk(path):
        for name in dirs + files:
            os.chown(os.path.join(root, name), uid, gid, follow_symlinks=False)


def create_directories(config: Config) -> List[Path]:
    logger.info("Creating directories for persistent data...")
    for directory in config.data_dirs:
        directory.mkdir(parents=True, exist_ok=True)
        os.chmod(directory, config.DIR_MODE)
    chown_tree(config.N8N_DATA_DIR, config.N8N_UID, config.N8N_GID)
    return config.data_dirs


# ----------------------------------------------------------------
# Environment File
# ----------------------------------------------------------------
def _flag(value: bool) -> str:
    return "true" if value else "false"


def env_sections(config: Config, facts: HostFacts) -> List[Tuple[str, Dict[str, str]]]:
    """Env file contents as (comment header, key/value) groups, in file order."""
    base_url = f"{config.N8N_PROTOCOL}://{facts.server_ip}:{config.N8N_PORT}"
    return [
        ("Global", {"TZ": facts.timezone}),
        (
            "n8n",
            {
                "N8N_PORT": str(config.N8N_PORT),
                "N8N_BASIC_AUTH_ACTIVE": _flag(config.N8N_BASIC_AUTH_ACTIVE),
                "N8N_HOST": facts.server_ip,
                "N8N_PROTOCOL": config.N8N_PROTOCOL,
                "N8N_EDITOR_BASE_URL": base_url,
                "WEBHOOK_URL": f"{base_url}/",
                "N8N_SECURE_COOKIE": _flag(config.N8N_SECURE_COOKIE),
            },
        ),
    ]


def render_env_file(config: Config, facts: HostFacts) -> str:
    lines: List[str] = []
    for header, values in env_sections(config, facts):
        if lines:
            lines.append("")
        lines.append(f"# {header}")
        for key, value in values.items():
            if "\n" in value:
                raise ConfigError(f"Env value for {key} must be a single line")
            if key == "N8N_SECURE_COOKIE":
                lines.append(
                    "# Allow HTTP access without HTTPS by default "
                    "(you can switch to true after enabling HTTPS)"
                )
            lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


# ----------------------------------------------------------------
# Compose Manifest
# ----------------------------------------------------------------
def build_compose_manifest(config: Config) -> Dict[str, Any]:
    """The Compose document as plain data, ready for YAML serialization."""
    services: Dict[str, Any] = {}
    for spec in config.services:
        service: Dict[str, Any] = {
            "image": spec.image,
            "container_name": spec.container_name,
        }
        if spec.user:
            service["user"] = spec.user
        service["restart"] = config.RESTART_POLICY
        if spec.use_env_file:
            service["env_file"] = [f"./{config.env_file.name}"]
        service["environment"] = list(spec.environment)
        service["ports"] = [spec.port_mapping]
        service["volumes"] = [spec.volume]
        service["networks"] = [config.NETWORK_NAME]
        services[spec.key] = service

    return {
        "services": services,
        "networks": {config.NETWORK_NAME: {"external": True}},
    }


def render_compose_manifest(config: Config) -> str:
    return yaml.safe_dump(
        build_compose_manifest(config), sort_keys=False, default_flow_style=False
    )


def write_config_files(config: Config, facts: HostFacts) -> Tuple[Path, Path]:
    """Overwrite the env file and Compose manifest."""
    config.STACK_DIR.mkdir(parents=True, exist_ok=True)

    logger.info(f"Writing environment file: {config.env_file}")
    config.env_file.write_text(render_env_file(config, facts))

    logger.info(f"Writing Docker Compose file: {config.compose_file}")
    config.compose_file.write_text(render_compose_manifest(config))
    return config.env_file, config.compose_file


# ----------------------------------------------------------------
# Network
# ----------------------------------------------------------------
def ensure_network(config: Config) -> bool:
    """Create the shared network unless it exists. Returns True if created."""
    logger.info(f"Creating Docker network (if not exists): {config.NETWORK_NAME}")
    result = run_command(["docker", "network", "inspect", config.NETWORK_NAME], check=False)
    if result.returncode == 0:
        logger.debug(f"Network {config.NETWORK_NAME} already exists")
        return False
    run_command(["docker", "network", "create", config.NETWORK_NAME])
    return True


def materialize_stack(config: Config, facts: HostFacts) -> None:
    create_directories(config)
    write_config_files(config, facts)
    ensure_network(config)
