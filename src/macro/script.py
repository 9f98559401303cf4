"""Initialization script discovery."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def find_script(paths: list[str]) -> Path | None:
    """Return the first readable script among ``paths``.

    Paths are tried in order after ``~`` expansion. Missing files are
    skipped quietly; files that exist but cannot be read are logged and
    skipped. Returns None when nothing usable is found.
    """
    for raw in paths:
        path = Path(raw).expanduser()
        if not path.exists():
            continue
        if not path.is_file() or not os.access(path, os.R_OK):
            logger.warning("Not using ini: '%s'", path)
            continue
        logger.info("Using ini: '%s'", path)
        return path
    return None
