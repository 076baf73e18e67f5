#===============================================================================
#  CMD_Cockpit | config.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Resolves where the cockpit keeps its files (persistence target, view
#  state, settings, logs) and loads the optional per-workspace settings.json.
#
#  Resolution order for the commands document:
#    1) explicit path (--config)
#    2) $CMDCOCKPIT_CONFIG
#    3) <workspace>/.cmdcockpit/commands.json
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .constants import (
    COMMANDS_FILE_NAME,
    CONFIG_DIR_NAME,
    CONFIG_ENV_VAR,
    LOGS_DIR_NAME,
    SETTINGS_FILE_NAME,
    URL_OPEN_DELAY_MS,
    VIEW_STATE_FILE_NAME,
    WORKSPACE_ENV_VAR,
)
from .errors import NoPersistenceTargetError

logger = logging.getLogger(__name__)


def default_settings() -> Dict[str, Any]:
    return {
        "url_delay_ms": URL_OPEN_DELAY_MS,
        "default_terminal_profile": None,   # profile name used when an action names none
        "log_level": "INFO",
        "internal_shell": None,             # e.g. "/bin/zsh" or "pwsh"
    }


@dataclass
class Settings:
    workspace: Path
    config_path: Path
    state_path: Path
    settings_path: Path
    log_dir: Path
    url_delay_ms: int = URL_OPEN_DELAY_MS
    default_terminal_profile: Optional[str] = None
    log_level: str = "INFO"
    internal_shell: Optional[str] = None

    @property
    def url_delay(self) -> float:
        return max(0, int(self.url_delay_ms)) / 1000.0


def load_settings_file(settings_path: Path) -> Dict[str, Any]:
    """Load settings.json (or defaults). Missing keys fall back to defaults."""
    d = default_settings()
    if not settings_path.exists():
        return d
    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("top-level value must be an object")
        for k in d:
            if k in data:
                d[k] = data[k]
        return d
    except Exception as e:
        logger.warning("Ignoring malformed settings file %s: %s", settings_path, e)
        return default_settings()


def resolve_settings(
    workspace: Union[str, Path, None] = None,
    config_path: Union[str, Path, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Work out every path the cockpit needs.

    Raises NoPersistenceTargetError when neither an explicit config file nor a
    usable workspace directory is available.
    """
    env = os.environ if environ is None else environ

    if workspace is None:
        workspace = env.get(WORKSPACE_ENV_VAR) or os.getcwd()
    ws = Path(workspace).expanduser()

    if config_path is None and env.get(CONFIG_ENV_VAR):
        config_path = env[CONFIG_ENV_VAR]

    if config_path is not None:
        cfg = Path(config_path).expanduser()
        base = cfg.parent
    else:
        if not ws.is_dir():
            raise NoPersistenceTargetError(f"No workspace folder open: {ws}")
        base = ws / CONFIG_DIR_NAME
        cfg = base / COMMANDS_FILE_NAME

    settings_path = base / SETTINGS_FILE_NAME
    raw = load_settings_file(settings_path)
    known = {f.name for f in fields(Settings)}

    return Settings(
        workspace=ws,
        config_path=cfg,
        state_path=base / VIEW_STATE_FILE_NAME,
        settings_path=settings_path,
        log_dir=base / LOGS_DIR_NAME,
        **{k: v for k, v in raw.items() if k in known},
    )
