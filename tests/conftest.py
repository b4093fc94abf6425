"""
Shared test fixtures
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers installed by setup_logging() during a test."""
    yield
    for name in ('src', 'sitnikov'):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
