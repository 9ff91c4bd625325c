"""
Installer configuration.

Every path, port, image and package list the installer touches lives on
``Config`` so a run can be pointed somewhere other than the real host.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Optional

# ----------------------------------------------------------------
# Global Configuration
# ----------------------------------------------------------------
APP_NAME: str = "n8n + Open WebUI"
APP_SUBTITLE: str = "Docker Stack Installer"
LOGGER_NAME: str = "n8n_webui_stack"
OPERATION_TIMEOUT: int = 300  # 5 minutes default timeout for operations


# ----------------------------------------------------------------
# Data Structures
# ----------------------------------------------------------------
@dataclass
class ServiceSpec:
    """A single service of the Compose stack."""

    key: str
    display_name: str
    image: str
    container_name: str
    host_port: str
    container_port: int
    data_dir: Path
    mount_target: str
    environment: List[str] = field(default_factory=list)
    user: Optional[str] = None
    use_env_file: bool = False

    @property
    def port_mapping(self) -> str:
        return f"{self.host_port}:{self.container_port}"

    @property
    def volume(self) -> str:
        return f"{self.data_dir}:{self.mount_target}"


@dataclass
class HostFacts:
    """Values detected on the host during preflight."""

    codename: str
    server_ip: str
    timezone: str


@dataclass
class Config:
    """Configuration for the stack installation."""

    LOG_FILE: str = "/var/log/n8n_webui_stack.log"

    # Detection fallbacks
    DEFAULT_CODENAME: str = "jammy"
    SUPPORTED_CODENAMES: List[str] = field(default_factory=lambda: ["jammy", "noble"])
    DEFAULT_SERVER_IP: str = "localhost"
    DEFAULT_TIMEZONE: str = "Europe/Amsterdam"
    SERVER_IP_OVERRIDE: Optional[str] = None

    PREREQ_PACKAGES: List[str] = field(
        default_factory=lambda: [
            "ca-certificates",
            "curl",
            "gnupg",
            "apt-transport-https",
            "software-properties-common",
        ]
    )
    DOCKER_PACKAGES: List[str] = field(
        default_factory=lambda: [
            "docker-ce",
            "docker-ce-cli",
            "containerd.io",
            "docker-buildx-plugin",
            "docker-compose-plugin",
        ]
    )

    # Docker apt repository
    DOCKER_REPO_URL: str = "https://download.docker.com/linux/ubuntu"
    KEYRING_DIR: Path = field(default_factory=lambda: Path("/etc/apt/keyrings"))
    DOCKER_SOURCES_LIST: Path = field(
        default_factory=lambda: Path("/etc/apt/sources.list.d/docker.list")
    )

    # Stack layout
    STACK_DIR: Path = field(default_factory=lambda: Path("/opt/stack"))
    N8N_DATA_DIR: Path = field(default_factory=lambda: Path("/opt/n8n"))
    OWUI_DATA_DIR: Path = field(default_factory=lambda: Path("/opt/open-webui"))
    DIR_MODE: int = 0o755
    NETWORK_NAME: str = "app_net"
    RESTART_POLICY: str = "unless-stopped"

    # n8n runs as the "node" user inside its image
    N8N_UID: int = 1000
    N8N_GID: int = 1000

    N8N_PORT: int = 5678
    OWUI_PORT: int = 8080
    N8N_PROTOCOL: str = "http"
    N8N_BASIC_AUTH_ACTIVE: bool = False
    N8N_SECURE_COOKIE: bool = False

    N8N_IMAGE: str = "docker.io/n8nio/n8n:latest"
    OWUI_IMAGE: str = "ghcr.io/open-webui/open-webui:main"

    # Launch verification
    STARTUP_WAIT_SECONDS: float = 3.0

    UPDATER_PATH: Path = field(default_factory=lambda: Path("/root/update_containers.sh"))

    @property
    def docker_key_file(self) -> Path:
        return self.KEYRING_DIR / "docker.gpg"

    @property
    def env_file(self) -> Path:
        return self.STACK_DIR / ".env"

    @property
    def compose_file(self) -> Path:
        return self.STACK_DIR / "docker-compose.yml"

    @property
    def data_dirs(self) -> List[Path]:
        return [self.STACK_DIR, self.N8N_DATA_DIR, self.OWUI_DATA_DIR]

    @property
    def firewall_ports(self) -> List[int]:
        return [self.N8N_PORT, self.OWUI_PORT]

    @property
    def services(self) -> List[ServiceSpec]:
        """The two services of the stack, in start order."""
        return [
            ServiceSpec(
                key="n8n",
                display_name="n8n",
                image=self.N8N_IMAGE,
                container_name="n8n",
                host_port="${N8N_PORT}",
                container_port=5678,
                data_dir=self.N8N_DATA_DIR,
                mount_target="/home/node/.n8n",
                user=f"{self.N8N_UID}:{self.N8N_GID}",
                use_env_file=True,
                environment=[
                    "TZ=${TZ}",
                    "N8N_PORT=${N8N_PORT}",
                    "N8N_HOST=${N8N_HOST}",
                    "N8N_PROTOCOL=${N8N_PROTOCOL}",
                    "N8N_EDITOR_BASE_URL=${N8N_EDITOR_BASE_URL}",
                    "WEBHOOK_URL=${WEBHOOK_URL}",
                    "DB_TYPE=sqlite",
                    "GENERIC_TIMEZONE=${TZ}",
                    "N8N_SECURE_COOKIE=${N8N_SECURE_COOKIE}",
                ],
            ),
            ServiceSpec(
                key="open-webui",
                display_name="Open WebUI",
                image=self.OWUI_IMAGE,
                container_name="open-webui",
                host_port=str(self.OWUI_PORT),
                container_port=8080,
                data_dir=self.OWUI_DATA_DIR,
                mount_target="/app/backend/data",
                environment=["TZ=${TZ}"],
            ),
        ]

    def with_overrides(self, **overrides: Any) -> "Config":
        """Return a copy with the given fields replaced, ignoring None values."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
