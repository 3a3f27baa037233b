from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Attach one stream handler to the root logger (idempotent).

    Pipeline modules only create `logging.getLogger(__name__)` loggers;
    handlers and levels are decided here, by the process entry point.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(getattr(h, "_bbox_service", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._bbox_service = True  # type: ignore[attr-defined]
    root.addHandler(handler)
