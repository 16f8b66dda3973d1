import logging

from logging_config import LOGGER_NAME, setup_logging


def test_setup_logging_is_idempotent():
    setup_logging(logging.DEBUG)
    logger = setup_logging(logging.DEBUG)
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert logging.getLogger("werkzeug").level == logging.WARNING


def test_module_loggers_share_the_namespace(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging(logging.INFO, str(log_file))
    assert len(logger.handlers) == 2

    logging.getLogger("gridcutter.extract").info("hello from a backend")
    for h in logger.handlers:
        h.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "Logging initialized." in text
    assert "gridcutter.extract - INFO - hello from a backend" in text

    for h in list(logger.handlers):
        h.close()
        logger.removeHandler(h)
