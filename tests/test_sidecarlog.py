import logging

import pytest

from ai_sidecar.sidecarlog import LOG, SidecarLogger


def test_get_logger_attaches_a_single_handler() -> None:
    logger = SidecarLogger.get_logger()
    SidecarLogger.get_logger()

    assert logger is LOG
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_set_level_applies_to_logger_and_handlers() -> None:
    try:
        SidecarLogger.set_level("debug")
        assert LOG.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in LOG.handlers)
    finally:
        SidecarLogger.set_level(logging.INFO)


def test_set_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        SidecarLogger.set_level("chatty")
