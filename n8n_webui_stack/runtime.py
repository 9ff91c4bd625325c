"""Docker Engine and compose plugin installation from the upstream apt repository."""

import logging
import os
from pathlib import Path

from n8n_webui_stack.commands import apt_env, run_command
from n8n_webui_stack.config import LOGGER_NAME, Config
from n8n_webui_stack.errors import ExecutionError, RuntimeInstallError

logger = logging.getLogger(LOGGER_NAME)


def install_prerequisites(config: Config) -> None:
    logger.info("Installing prerequisites...")
    run_command(["apt-get", "update", "-y"], env=apt_env())
    run_command(["apt-get", "install", "-y"] + config.PREREQ_PACKAGES, env=apt_env())


def ensure_docker_key(config: Config) -> bool:
    """Fetch and dearmor the Docker signing key unless it is already present."""
    config.KEYRING_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(config.KEYRING_DIR, 0o755)

    key_file = config.docker_key_file
    if key_file.is_file() and key_file.stat().st_size > 0:
        logger.info(f"Docker signing key already present: {key_file}")
        return False

    try:
        run_command(
            [
                "sh",
                "-c",
                f"curl -fsSL {config.DOCKER_REPO_URL}/gpg | gpg --dearmor --yes -o {key_file}",
            ]
        )
    except ExecutionError:
        # gpg leaves an empty key file behind when the download fails
        key_file.unlink(missing_ok=True)
        raise
    os.chmod(key_file, 0o644)
    return True


def docker_repo_line(config: Config, arch: str, codename: str) -> str:
    return (
        f"deb [arch={arch} signed-by={config.docker_key_file}] "
        f"{config.DOCKER_REPO_URL} {codename} stable\n"
    )


def write_docker_sources(config: Config, codename: str) -> Path:
    """Point apt at the Docker repository for this architecture and codename."""
    arch = run_command(["dpkg", "--print-architecture"]).stdout.strip()
    sources = config.DOCKER_SOURCES_LIST
    sources.parent.mkdir(parents=True, exist_ok=True)
    sources.write_text(docker_repo_line(config, arch, codename))
    logger.info(f"Wrote Docker repository entry: {sources}")
    return sources


def install_docker_packages(config: Config) -> None:
    run_command(["apt-get", "update", "-y"], env=apt_env())
    logger.info("Installing Docker Engine and Compose plugin...")
    run_command(
        ["apt-get", "install", "-y"] + config.DOCKER_PACKAGES,
        env=apt_env(),
        timeout=None,
    )


def enable_docker_service() -> None:
    logger.info("Enabling and starting Docker service...")
    run_command(["systemctl", "enable", "--now", "docker"])


def verify_docker() -> None:
    """Fail unless both the docker CLI and the compose plugin answer."""
    try:
        run_command(["docker", "--version"])
    except ExecutionError as e:
        raise RuntimeInstallError("Docker not installed correctly.") from e
    try:
        run_command(["docker", "compose", "version"])
    except ExecutionError as e:
        raise RuntimeInstallError("Docker Compose plugin not found.") from e


def install_runtime(config: Config, codename: str) -> None:
    """Install Docker Engine end to end."""
    install_prerequisites(config)
    logger.info("Setting up Docker repository...")
    ensure_docker_key(config)
    write_docker_sources(config, codename)
    install_docker_packages(config)
    enable_docker_service()
    verify_docker()
