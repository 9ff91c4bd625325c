import subprocess
from typing import Callable, Dict, List, Set, Tuple, Union

import pytest

from n8n_webui_stack.config import Config, HostFacts
from n8n_webui_stack.errors import ExecutionError

RUNNER_MODULES = [
    "n8n_webui_stack.preflight",
    "n8n_webui_stack.runtime",
    "n8n_webui_stack.stack",
    "n8n_webui_stack.firewall",
    "n8n_webui_stack.launcher",
    "n8n_webui_stack.updater",
]

Response = Union[Tuple[int, str], Tuple[int, str, str], Callable[[List[str]], Tuple[int, str]]]


class FakeRunner:
    """Stands in for run_command; answers by longest matching command prefix."""

    def __init__(self):
        self.responses: Dict[Tuple[str, ...], Response] = {}
        self.calls: List[List[str]] = []
        self.kwargs: List[dict] = []

    def on(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = ""):
        self.responses[prefix] = (returncode, stdout, stderr)

    def on_call(self, *prefix: str, func: Callable[[List[str]], Tuple[int, str]]):
        self.responses[prefix] = func

    def _lookup(self, cmd: List[str]) -> Tuple[int, str, str]:
        best = None
        for prefix in self.responses:
            if tuple(cmd[: len(prefix)]) == prefix:
                if best is None or len(prefix) > len(best):
                    best = prefix
        if best is None:
            return 0, "", ""
        response = self.responses[best]
        if callable(response):
            returncode, stdout = response(cmd)
            return returncode, stdout, ""
        return response

    def __call__(self, cmd, check=True, **kwargs):
        self.calls.append(list(cmd))
        self.kwargs.append(kwargs)
        returncode, stdout, stderr = self._lookup(list(cmd))
        if check and returncode != 0:
            raise ExecutionError(list(cmd), returncode=returncode, stdout=stdout, stderr=stderr)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    def called(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


@pytest.fixture
def fake_run(monkeypatch):
    """Replace run_command in every module that shells out."""
    runner = FakeRunner()
    for module in RUNNER_MODULES:
        monkeypatch.setattr(f"{module}.run_command", runner)
    return runner


@pytest.fixture
def available_commands(monkeypatch) -> Set[str]:
    """Commands reported as installed; tests add to the returned set."""
    present: Set[str] = set()

    def exists(cmd: str) -> bool:
        return cmd in present

    for module in ("preflight", "firewall", "updater"):
        monkeypatch.setattr(f"n8n_webui_stack.{module}.command_exists", exists)
    return present


@pytest.fixture
def config(tmp_path) -> Config:
    """Config with every host path moved under tmp_path."""
    return Config(
        LOG_FILE=str(tmp_path / "log" / "installer.log"),
        KEYRING_DIR=tmp_path / "etc" / "apt" / "keyrings",
        DOCKER_SOURCES_LIST=tmp_path / "etc" / "apt" / "sources.list.d" / "docker.list",
        STACK_DIR=tmp_path / "opt" / "stack",
        N8N_DATA_DIR=tmp_path / "opt" / "n8n",
        OWUI_DATA_DIR=tmp_path / "opt" / "open-webui",
        UPDATER_PATH=tmp_path / "root" / "update_containers.sh",
        STARTUP_WAIT_SECONDS=0,
    )


@pytest.fixture
def facts() -> HostFacts:
    return HostFacts(codename="noble", server_ip="10.0.0.5", timezone="Europe/Berlin")
