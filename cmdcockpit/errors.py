#===============================================================================
#  CMD_Cockpit | errors.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Exception types raised inside the cockpit core. All of them are caught at
#  the boundary where they occur and surfaced through a Notifier.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union


class CockpitError(Exception):
    """Base class for every error the cockpit reports to the user."""


class ConfigReadError(CockpitError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Error reading {self.path.name}: {reason}")


class ConfigWriteError(CockpitError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Error saving {self.path.name}: {reason}")


class ImportValidationError(CockpitError):
    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Invalid config file {self.path.name}: {reason}")


class NoPersistenceTargetError(CockpitError):
    """No workspace / config file is available to load from or save to."""


class ActionNotFoundError(CockpitError):
    def __init__(self, name: str, group: Optional[str] = None):
        self.name = name
        self.group = group
        where = f" in group '{group}'" if group else ""
        super().__init__(f"Action '{name}' not found{where}")


class TerminalResolutionError(CockpitError):
    def __init__(self, profile_name: str, fallback: Optional[str] = None, fallback_profile: Any = None):
        self.profile_name = profile_name
        self.fallback = fallback
        self.fallback_profile = fallback_profile
        msg = f"Terminal profile '{profile_name}' is not available on this system"
        if fallback:
            msg += f"; using '{fallback}'"
        super().__init__(msg)


class LaunchError(CockpitError):
    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Failed to launch {target}: {reason}")


class ElevationError(LaunchError):
    def __init__(self, target: str, reason: str):
        super().__init__(target, reason)
        self.args = (f"Failed to run {target} as administrator: {reason}",)


class ReorderError(CockpitError):
    """A drag & drop intent that cannot be applied (store left untouched)."""


class InputCancelled(CockpitError):
    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Input '{label}' was cancelled")
