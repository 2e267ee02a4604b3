from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from backend.app.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
LOG_FILE_NAME = "warehouse.log"


def setup_logging(settings: Settings) -> Path | None:
    """
    Configure root logging once: console always, rotating file under
    LOG_DIR when configured. Returns the log file path (or None).
    """
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    fmt = logging.Formatter(LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)

    if not any(getattr(h, "_warehouse", False) for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        console._warehouse = True  # marker against duplicate handlers
        root.addHandler(console)

    log_path = None
    if settings.LOG_DIR is not None:
        log_dir = Path(settings.LOG_DIR).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / LOG_FILE_NAME

        has_file = any(
            isinstance(h, logging.handlers.RotatingFileHandler)
            and getattr(h, "baseFilename", "").endswith(LOG_FILE_NAME)
            for h in root.handlers
        )
        if not has_file:
            handler = logging.handlers.RotatingFileHandler(
                log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(fmt)
            handler.setLevel(level)
            root.addHandler(handler)

    # uvicorn / fastapi propagate to root
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True

    return log_path
