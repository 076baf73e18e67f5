#===============================================================================
#  CMD_Cockpit | terminal_profiles.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Enumerates the terminal profiles available on this machine (probing the
#  usual install locations) and resolves an action's requested profile by
#  name. Enumeration runs once per process.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import functools
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Tuple

from .errors import TerminalResolutionError

# Shell families (drive joining, quoting and argument conventions)
FAMILY_CMD = "cmd"
FAMILY_POWERSHELL = "powershell"
FAMILY_BASH = "bash"
FAMILY_WINDOWS_TERMINAL = "windows-terminal"
FAMILY_MACOS_TERMINAL = "macos-terminal"
FAMILY_ITERM = "iterm"
FAMILY_LINUX_TERMINAL = "linux-terminal"


@dataclass(frozen=True)
class TerminalProfile:
    name: str
    path: str
    args: Tuple[str, ...] = field(default_factory=tuple)
    family: str = FAMILY_CMD

    @property
    def uses_powershell_syntax(self) -> bool:
        return self.family == FAMILY_POWERSHELL


def platform_key(platform: Optional[str] = None) -> str:
    """'windows', 'macos' or 'linux'."""
    p = platform or sys.platform
    if p.startswith("win") or p == "windows":
        return "windows"
    if p == "darwin" or p == "macos":
        return "macos"
    return "linux"


def family_for_path(path: str) -> str:
    """Guess the shell family of a Windows terminal executable."""
    p = path.lower()
    if p == "wt" or p.endswith("wt.exe"):
        return FAMILY_WINDOWS_TERMINAL
    if "powershell" in p or "pwsh" in p:
        return FAMILY_POWERSHELL
    if "bash" in p:
        return FAMILY_BASH
    return FAMILY_CMD


def _first_existing(candidates: List[str], exists: Callable[[str], bool]) -> Optional[str]:
    for c in candidates:
        if c and exists(c):
            return c
    return None


def probe_profiles(
    platform: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    exists: Callable[[str], bool] = os.path.exists,
) -> List[TerminalProfile]:
    """Uncached enumeration (injectable for tests). The first entry is the default."""
    env = os.environ if environ is None else environ
    key = platform_key(platform)
    profiles: List[TerminalProfile] = []

    if key == "windows":
        program_files = env.get("ProgramFiles", "")
        program_files_x86 = env.get("ProgramFiles(x86)", "")
        local_app_data = env.get("LOCALAPPDATA", "")
        join = _win_join

        profiles.append(TerminalProfile("Command Prompt", "cmd.exe", ("/k",), FAMILY_CMD))
        profiles.append(TerminalProfile("PowerShell", "powershell.exe", ("-NoExit", "-Command"), FAMILY_POWERSHELL))

        pwsh = _first_existing([
            join(program_files, "PowerShell", "7", "pwsh.exe"),
            join(program_files_x86, "PowerShell", "7", "pwsh.exe"),
            join(local_app_data, "Microsoft", "WindowsApps", "pwsh.exe"),
        ], exists)
        if pwsh:
            profiles.append(TerminalProfile("PowerShell 7", pwsh, ("-NoExit", "-Command"), FAMILY_POWERSHELL))

        git_bash = _first_existing([
            join(program_files, "Git", "bin", "bash.exe"),
            join(program_files_x86, "Git", "bin", "bash.exe"),
            "C:\\Program Files\\Git\\bin\\bash.exe",
            "C:\\Program Files (x86)\\Git\\bin\\bash.exe",
        ], exists)
        if git_bash:
            profiles.append(TerminalProfile("Git Bash", git_bash, ("-c",), FAMILY_BASH))

        if _first_existing([join(local_app_data, "Microsoft", "WindowsApps", "wt.exe")], exists):
            profiles.append(TerminalProfile("Windows Terminal", "wt", ("-d", ".", "cmd", "/k"), FAMILY_WINDOWS_TERMINAL))

    elif key == "macos":
        profiles.append(TerminalProfile("Terminal", "Terminal.app", (), FAMILY_MACOS_TERMINAL))
        profiles.append(TerminalProfile("iTerm2", "iTerm.app", (), FAMILY_ITERM))

    else:
        profiles.append(TerminalProfile("GNOME Terminal", "gnome-terminal", ("--",), FAMILY_LINUX_TERMINAL))
        profiles.append(TerminalProfile("Konsole", "konsole", ("-e",), FAMILY_LINUX_TERMINAL))
        profiles.append(TerminalProfile("xterm", "xterm", ("-e",), FAMILY_LINUX_TERMINAL))
        profiles.append(TerminalProfile("xfce4-terminal", "xfce4-terminal", ("-e",), FAMILY_LINUX_TERMINAL))

    return profiles


def _win_join(base: str, *parts: str) -> str:
    # only meaningful when the env var is set
    if not base:
        return ""
    return "\\".join([base.rstrip("\\/")] + list(parts))


@functools.lru_cache(maxsize=None)
def get_terminal_profiles() -> Tuple[TerminalProfile, ...]:
    """Profiles for the running platform, enumerated once per process."""
    return tuple(probe_profiles())


def resolve_profile(
    name: Optional[str],
    profiles: Optional[Tuple[TerminalProfile, ...]] = None,
    default_name: Optional[str] = None,
) -> TerminalProfile:
    """Find a profile by name. No name = default profile.

    Raises TerminalResolutionError (carrying the fallback) when ``name`` is
    unknown; callers report it and continue with ``error.fallback_profile``.
    """
    available = tuple(profiles) if profiles is not None else get_terminal_profiles()
    if not available:
        raise TerminalResolutionError(name or "<default>")

    default = available[0]
    if default_name:
        default = next((p for p in available if p.name == default_name), default)

    if not name:
        return default
    for p in available:
        if p.name == name:
            return p

    raise TerminalResolutionError(name, fallback=default.name, fallback_profile=default)
