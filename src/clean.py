"""The clean command."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def clean(output_dir: Path) -> bool:
    """Delete output_dir and everything below it.

    Returns False when there was nothing to delete.
    """
    if not output_dir.exists():
        logger.info("%s does not exist, nothing to clean", output_dir)
        return False
    logger.info("deleting %s", output_dir)
    shutil.rmtree(output_dir)
    return True
