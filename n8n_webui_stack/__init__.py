"""n8n + Open WebUI stack installer for Ubuntu 22.04/24.04."""

__version__ = "1.0.0"
