import logging

from context_doctor.logging import configure_logging


def test_configure_logging_levels() -> None:
    assert configure_logging(verbose=True).level == logging.DEBUG
    assert configure_logging().level == logging.WARNING


def test_configure_logging_is_idempotent() -> None:
    configure_logging()
    logger = configure_logging()
    assert len(logger.handlers) == 1
    assert logger.name == "context_doctor"
    assert not logger.propagate
