#===============================================================================
#  CMD_Cockpit | constants.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Central place for file/folder naming conventions, dispatcher timings and
#  the UI theme.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

APP_TITLE = "CMD Cockpit"

# Workspace layout: <workspace>/.cmdcockpit/...
CONFIG_DIR_NAME = ".cmdcockpit"
COMMANDS_FILE_NAME = "commands.json"
VIEW_STATE_FILE_NAME = "view_state.json"
SETTINGS_FILE_NAME = "settings.json"
LOGS_DIR_NAME = "logs"
LOG_FILE_NAME = "cockpit.log"

CONFIG_ENV_VAR = "CMDCOCKPIT_CONFIG"
WORKSPACE_ENV_VAR = "CMDCOCKPIT_WORKSPACE"

# Gap between successive URL opens of one run
URL_OPEN_DELAY_MS = 100

# GUI timers
CONFIG_RELOAD_DEBOUNCE_MS = 200
EXIT_POLL_MS = 250

POSIX_SEPARATOR = " && "
POWERSHELL_SEPARATOR = "; "

# Exit codes of the CLI
EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_NO_TARGET = 3
EXIT_REJECTED = 4

# --- Metro / Windows Phone style theme ---
METRO_BG = "#101010"
METRO_PANEL = "#1a1a1a"
METRO_BORDER = "#2a2a2a"
METRO_ACCENT = "#0078D7"   # blue, used for group folders
METRO_TEXT = "white"
