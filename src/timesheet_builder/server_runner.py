"""Launch the timesheet API with uvicorn."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import TimesheetSettings
from .paths import get_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
    settings: Optional[TimesheetSettings] = None,
    open_browser: bool = True,
    log_level: str = "info",
) -> None:
    """Serve the API until interrupted, optionally opening its docs page."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_db_path.parent.mkdir(parents=True, exist_ok=True)
    app = create_app(
        db_path=resolved_db_path,
        settings=settings or TimesheetSettings(),
    )
    logger.info("Serving timesheets from %s on %s:%d", resolved_db_path, host, port)

    if open_browser:
        threading.Thread(
            target=_open_docs, args=(f"http://{host}:{port}/docs",), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _open_docs(url: str, delay: float = 1.0) -> None:
    # uvicorn needs a moment to bind before the page can load.
    time.sleep(delay)
    try:
        webbrowser.open(url)
    except Exception:
        logger.exception("Failed to launch browser for %s", url)
