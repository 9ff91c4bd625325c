"""Tests for the phase sequencing of StackInstaller."""

from unittest.mock import MagicMock

import pytest

from n8n_webui_stack.errors import LaunchError
from n8n_webui_stack.installer import PHASES, StackInstaller


@pytest.fixture
def steps(monkeypatch, facts):
    """Replace every phase body with a mock sharing one call log."""
    manager = MagicMock()
    manager.detect_host.return_value = facts
    manager.configure_firewall.return_value = [5678, 8080]
    for name in (
        "detect_host",
        "install_runtime",
        "materialize_stack",
        "configure_firewall",
        "launch_stack",
        "write_updater_script",
    ):
        monkeypatch.setattr(f"n8n_webui_stack.installer.{name}", getattr(manager, name))
    return manager


def test_runs_phases_in_order(config, facts, steps):
    installer = StackInstaller(config)

    installer.run()

    assert [name for name, _, _ in steps.mock_calls] == [
        "detect_host",
        "install_runtime",
        "materialize_stack",
        "configure_firewall",
        "launch_stack",
        "write_updater_script",
    ]
    steps.install_runtime.assert_called_once_with(config, "noble")
    steps.materialize_stack.assert_called_once_with(config, facts)
    assert all(installer.status[name]["status"] == "success" for name in PHASES)


def test_firewall_skipped_when_no_ports_opened(config, steps):
    steps.configure_firewall.return_value = []
    installer = StackInstaller(config)

    installer.run()

    assert installer.status["firewall"]["status"] == "skipped"


def test_stops_at_first_hard_failure(config, steps):
    steps.launch_stack.side_effect = LaunchError("n8n container is not running as expected.")
    installer = StackInstaller(config)

    with pytest.raises(LaunchError):
        installer.run()

    assert installer.status["launch"] == {
        "status": "failed",
        "message": "n8n container is not running as expected.",
    }
    assert installer.status["updater"]["status"] == "pending"
    steps.write_updater_script.assert_not_called()


def test_summary_lists_urls_and_paths(config, steps):
    installer = StackInstaller(config)
    installer.run()

    summary = installer.summary_text()

    assert "http://10.0.0.5:5678" in summary
    assert "http://10.0.0.5:8080" in summary
    assert str(config.compose_file) in summary
    assert str(config.UPDATER_PATH) in summary
