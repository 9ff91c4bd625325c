import logging
import time
from typing import Any, Callable, Dict, List, Optional

from n8n_webui_stack.config import LOGGER_NAME, Config, HostFacts
from n8n_webui_stack.errors import InstallerError
from n8n_webui_stack.firewall import configure_firewall
from n8n_webui_stack.launcher import launch_stack
from n8n_webui_stack.preflight import detect_host
from n8n_webui_stack.runtime import install_runtime
from n8n_webui_stack.stack import materialize_stack
from n8n_webui_stack.ui import (
    NordColors,
    display_panel,
    print_section,
    print_status_report,
    run_with_progress,
)
from n8n_webui_stack.updater import write_updater_script

logger = logging.getLogger(LOGGER_NAME)

PHASES: List[str] = [
    "preflight",
    "docker_setup",
    "stack_files",
    "firewall",
    "launch",
    "updater",
]


class StackInstaller:
    """Runs the installation phases in order, stopping at the first hard failure."""

    def __init__(self, config: Config):
        self.config = config
        self.facts: Optional[HostFacts] = None
        self.opened_ports: List[int] = []
        self.start_time = time.time()
        self.status: Dict[str, Dict[str, str]] = {
            name: {"status": "pending", "message": ""} for name in PHASES
        }

    def _run_phase(
        self, name: str, title: str, func: Callable[..., Any], *args: Any
    ) -> Any:
        print_section(title)
        self.status[name] = {"status": "in_progress", "message": f"{title} in progress..."}
        try:
            result = run_with_progress(title, func, *args)
        except (InstallerError, OSError) as e:
            self.status[name] = {"status": "failed", "message": str(e)}
            raise
        self.status[name] = {"status": "success", "message": f"{title} completed"}
        return result

    # ----------------------------------------------------------------
    # Phases
    # ----------------------------------------------------------------
    def phase_preflight(self) -> HostFacts:
        self.facts = self._run_phase(
            "preflight", "Pre-flight Checks", detect_host, self.config
        )
        return self.facts

    def phase_docker_setup(self) -> None:
        self._run_phase(
            "docker_setup",
            "Docker Installation",
            install_runtime,
            self.config,
            self.facts.codename,
        )

    def phase_stack_files(self) -> None:
        self._run_phase(
            "stack_files", "Stack Files", materialize_stack, self.config, self.facts
        )

    def phase_firewall(self) -> None:
        self.opened_ports = self._run_phase(
            "firewall", "Firewall Rules", configure_firewall, self.config
        )
        if not self.opened_ports:
            self.status["firewall"] = {"status": "skipped", "message": "No ports opened"}

    def phase_launch(self) -> None:
        self._run_phase("launch", "Starting Stack", launch_stack, self.config)

    def phase_updater(self) -> None:
        self._run_phase("updater", "Updater Script", write_updater_script, self.config)

    def run(self) -> None:
        self.phase_preflight()
        self.phase_docker_setup()
        self.phase_stack_files()
        self.phase_firewall()
        self.phase_launch()
        self.phase_updater()
        logger.info("Installation complete.")
        self.print_summary()

    # ----------------------------------------------------------------
    # Final Summary
    # ----------------------------------------------------------------
    def summary_text(self) -> str:
        config = self.config
        ip = self.facts.server_ip
        return f"""\
n8n        : http://{ip}:{config.N8N_PORT}
Open WebUI : http://{ip}:{config.OWUI_PORT}
Timezone   : {self.facts.timezone}
Data dirs  :
  - n8n        -> {config.N8N_DATA_DIR}
  - Open WebUI -> {config.OWUI_DATA_DIR}
Compose    : {config.compose_file}
Updater    : {config.UPDATER_PATH}"""

    def https_notes(self) -> str:
        config = self.config
        return f"""\
N8N_SECURE_COOKIE=false lets you reach n8n over plain HTTP immediately.
When you enable HTTPS behind a reverse proxy:
  1) Edit {config.env_file} and set:
       N8N_SECURE_COOKIE=true
       N8N_PROTOCOL=https
       N8N_HOST=<your-n8n-domain>
       N8N_EDITOR_BASE_URL=https://<your-n8n-domain>
       WEBHOOK_URL=https://<your-n8n-domain>/
  2) (Optional) remove the host port publish for n8n and let your proxy handle 443.
  3) Apply changes:
       cd {config.STACK_DIR} && docker compose up -d
Re-running the installer rewrites {config.env_file.name} and {config.compose_file.name}."""

    def print_summary(self) -> None:
        elapsed = time.time() - self.start_time
        minutes, seconds = divmod(elapsed, 60)
        display_panel(
            self.summary_text(),
            style=NordColors.GREEN,
            title=f"Installed in {int(minutes)}m {int(seconds)}s",
        )
        display_panel(self.https_notes(), style=NordColors.FROST_2, title="Note")
        print_status_report(self.status)
