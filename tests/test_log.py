"""Tests for logger setup."""

import logging
import stat

from rich.logging import RichHandler

from n8n_webui_stack.log import setup_logger


def test_setup_logger_writes_private_debug_file(tmp_path):
    log_file = tmp_path / "logs" / "installer.log"

    logger = setup_logger(log_file)
    logger.debug("Executing: docker compose pull")
    for handler in logger.handlers:
        handler.flush()

    assert "Executing: docker compose pull" in log_file.read_text()
    assert stat.S_IMODE(log_file.stat().st_mode) == 0o600

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


def test_setup_logger_replaces_handlers(tmp_path):
    setup_logger(tmp_path / "first.log")
    logger = setup_logger(tmp_path / "second.log", debug=True)

    assert len(logger.handlers) == 2
    rich_handler = next(h for h in logger.handlers if isinstance(h, RichHandler))
    assert rich_handler.level == logging.DEBUG

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
