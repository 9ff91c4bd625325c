"""Tests for the UFW configurator."""

from n8n_webui_stack.firewall import FirewallState, configure_firewall, probe_ufw

ACTIVE_STATUS = "Status: active\n\nTo                         Action      From\n22/tcp                     ALLOW       Anywhere\n"


class TestProbe:
    def test_absent(self, fake_run, available_commands):
        assert probe_ufw() is FirewallState.ABSENT
        assert fake_run.calls == []

    def test_active(self, fake_run, available_commands):
        available_commands.add("ufw")
        fake_run.on("ufw", "status", stdout=ACTIVE_STATUS)

        assert probe_ufw() is FirewallState.ACTIVE

    def test_inactive(self, fake_run, available_commands):
        """'Status: inactive' must not be mistaken for an active firewall."""
        available_commands.add("ufw")
        fake_run.on("ufw", "status", stdout="Status: inactive\n")

        assert probe_ufw() is FirewallState.INACTIVE


class TestConfigureFirewall:
    def test_active_opens_both_ports(self, config, fake_run, available_commands):
        available_commands.add("ufw")
        fake_run.on("ufw", "status", stdout=ACTIVE_STATUS)

        opened = configure_firewall(config)

        assert opened == [5678, 8080]
        assert fake_run.called("ufw", "allow") == [
            ["ufw", "allow", "5678/tcp"],
            ["ufw", "allow", "8080/tcp"],
        ]

    def test_inactive_leaves_rules_unchanged(self, config, fake_run, available_commands, caplog):
        available_commands.add("ufw")
        fake_run.on("ufw", "status", stdout="Status: inactive\n")

        assert configure_firewall(config) == []
        assert fake_run.called("ufw", "allow") == []
        assert fake_run.called("ufw", "enable") == []
        assert "not active" in caplog.text

    def test_absent_is_a_no_op(self, config, fake_run, available_commands, caplog):
        assert configure_firewall(config) == []
        assert fake_run.calls == []
        assert "UFW not installed" in caplog.text

    def test_failed_rule_does_not_abort(self, config, fake_run, available_commands):
        available_commands.add("ufw")
        fake_run.on("ufw", "status", stdout=ACTIVE_STATUS)
        fake_run.on("ufw", "allow", "5678/tcp", returncode=1, stderr="ERROR: problem running")

        assert configure_firewall(config) == [8080]
        assert len(fake_run.called("ufw", "allow")) == 2
