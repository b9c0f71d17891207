import logging
import os
from contextlib import contextmanager

logger = logging.getLogger(__name__)


@contextmanager
def working_directory(path):
    """Change into ``path`` for the duration of the block, then always change back."""
    original = os.getcwd()
    os.chdir(path)
    logger.debug("Changed directory to %s", path)
    try:
        yield path
    finally:
        os.chdir(original)
        logger.debug("Restored directory to %s", original)
