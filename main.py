#===============================================================================
#  CMD_Cockpit  |  Personal Command Launcher
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  A launcher for named "commands": each one runs shell commands (internal
#  or external terminal), opens URLs and/or starts programs. Commands live
#  in one flat ordered list; "Group/Sub" paths show them as a tree that can
#  be reordered and regrouped with drag & drop.
#  Supports:
#    - Internal terminal tabs or external terminal profiles (cmd, PowerShell,
#      PowerShell 7, Git Bash, Windows Terminal, Terminal/iTerm2, GNOME
#      Terminal, Konsole, xterm, xfce4-terminal), optional elevation
#    - {{VAR}} env references and ${input:Label} prompts
#    - Import / export (merge or replace) of the commands document
#
#  Folder Conventions
#  ------------------
#    <workspace>/.cmdcockpit/
#      - commands.json      -> { "commands": [ ... ] }
#      - view_state.json    -> expanded groups + search filter
#      - settings.json      -> optional overrides (url delay, default profile)
#      - logs/cockpit.log
#
#  Copyright & License Notes
#  -------------------------
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#
#  This source code is provided "AS IS", without warranty of any kind, express
#  or implied, including but not limited to the warranties of merchantability,
#  fitness for a particular purpose, and noninfringement.
#
#  Permission Notice (Personal/Internal Use)
#  -----------------------------------------
#  You may use, copy, and modify this software for personal or internal use.
#  Redistribution or public release should include this header and credit the
#  author. If you plan to open-source this project, consider replacing this
#  section with an OSI-approved license (e.g., MIT) for clarity.
#
#  Third-Party Components
#  ----------------------
#  This project uses third-party libraries (PySide6, click, rich) which are
#  licensed separately by their respective authors. Ensure compliance with
#  their license terms when distributing this software.
#===============================================================================

import sys

from cmdcockpit.main_window import main


if __name__ == "__main__":
    sys.exit(main())
