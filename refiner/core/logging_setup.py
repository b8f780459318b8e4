"""Process-level logging configuration.

Called once by process entry points (`refiner.api.http_api.create_app` and
`refiner.api.cli.main`). Library modules only ever use
`logging.getLogger(__name__)`.
"""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Apply the shared log format at `level` (name or number)."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("refiner").setLevel(level)
