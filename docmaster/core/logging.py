from __future__ import annotations

import logging

from docmaster.core.config import get_settings


_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    # Install a single root handler; repeated app creation must not duplicate output.
    resolved = (level or get_settings().log_level).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=_LOG_FORMAT)
    root.setLevel(resolved)
    # Uvicorn's access log duplicates the request middleware line.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
