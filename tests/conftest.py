import logging

import pytest

from noderun.actions.engine import RecordingEngine


@pytest.fixture
def engine():
    return RecordingEngine()


@pytest.fixture(autouse=True)
def _fresh_cli_logger():
    # the CLI handler binds to whatever stderr is current when first attached
    logger = logging.getLogger("noderun")
    saved = list(logger.handlers)
    for h in saved:
        logger.removeHandler(h)
    yield
    for h in list(logger.handlers):
        logger.removeHandler(h)
    for h in saved:
        logger.addHandler(h)
