#===============================================================================
#  CMD_Cockpit | __init__.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  CMD Cockpit: a personal command launcher. Named actions (shell commands,
#  URLs, programs) kept in one flat ordered list, shown as a group tree.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

__version__ = "0.3.0"
