"""Logging setup for the command line.

Modules log under ``sound_trigger.*``: triggers, recorded samples and
microphone acquire/release at INFO, onsets, recorder transitions and ticker
start/stop at DEBUG, denied or busy microphones at ERROR.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path


_DEFAULT_LOG = Path.home() / ".sound_trigger.log"


def setup(level: int = logging.INFO, log_file: str | Path | None = None) -> None:
    """Send ``sound_trigger`` records to the console and a log file.

    Parameters
    ----------
    level:
        Minimum severity level for log messages.
    log_file:
        Optional path to the log file.  Defaults to ``~/.sound_trigger.log``.
    """

    log_file = _DEFAULT_LOG if log_file is None else Path(log_file)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    except OSError:
        # Fall back to console-only logging if the file can't be opened.
        pass

    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,
    )

    def _excepthook(exc_type, exc, tb) -> None:
        logging.getLogger("sound_trigger").critical(
            "Unhandled exception", exc_info=(exc_type, exc, tb)
        )

    sys.excepthook = _excepthook
