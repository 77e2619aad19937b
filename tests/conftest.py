import logging

import pytest

from simplecrawl.utils.logger import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_crawler_logger():
    """setup_logging stops propagation; undo it so caplog keeps working."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
