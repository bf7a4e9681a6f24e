import logging

from melbank.log import close_logging, setup_logging


def test_file_handler_receives_info_not_debug(tmp_path):
    log_file = tmp_path / "melbank.log"
    handler = setup_logging(str(log_file), console_level=logging.DEBUG)
    try:
        logging.getLogger("melbank.test").debug("hidden")
        logging.getLogger("melbank.test").info("bank ready")
    finally:
        close_logging(handler)

    text = log_file.read_text(encoding="utf-8")
    assert "INFO - bank ready" in text
    assert "hidden" not in text
    assert handler not in logging.getLogger().handlers


def test_without_file():
    assert setup_logging() is None
    close_logging(None)
