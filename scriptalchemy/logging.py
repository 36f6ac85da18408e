"""
scriptalchemy.logging - The "scriptalchemy" logger.

Parsing, batch labeling and score validation report dropped subtitle
blocks, batch fallbacks and clamped scores here rather than on the
console. `scriptalchemy -v` turns on DEBUG output; otherwise only
warnings reach stderr.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("scriptalchemy")


def configure_logging(verbose: bool = False) -> None:
    """Set the level for analysis diagnostics.

    Args:
        verbose: DEBUG when True (per-block and per-request detail), else WARNING
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    logger.setLevel(level)
