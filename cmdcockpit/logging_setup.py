#===============================================================================
#  CMD_Cockpit | logging_setup.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Root logger wiring: compact rich console output plus a rotating log file
#  under <workspace>/.cmdcockpit/logs/.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .constants import LOG_FILE_NAME

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_installed: list = []


def setup_logging(
    log_dir: Optional[Path],
    level: str = "INFO",
    console_level: str = "WARNING",
    console: Optional[Console] = None,
) -> None:
    """Install console + file handlers on the root logger (idempotent)."""
    root = logging.getLogger()
    for h in _installed:
        root.removeHandler(h)
        h.close()
    _installed.clear()

    root.setLevel(logging.DEBUG)

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    # Keep the console compact; full logs are written to file.
    rich_handler.setLevel(console_level.upper())
    root.addHandler(rich_handler)
    _installed.append(rich_handler)

    if log_dir is None:
        return
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
    except OSError as e:
        logging.getLogger(__name__).warning("File logging disabled (%s): %s", log_dir, e)
        return
    file_handler.setLevel(level.upper())
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root.addHandler(file_handler)
    _installed.append(file_handler)
