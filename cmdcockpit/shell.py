#===============================================================================
#  CMD_Cockpit | shell.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Invocation builders: turn a list of shell commands plus a terminal
#  profile into the exact process to spawn. One builder per shell family so
#  every quoting rule can be tested without spawning anything.
#
#  Quoting layers:
#    - argv lists are used wherever possible (no extra parser in between)
#    - elevation goes through `powershell -Command "Start-Process ..."`
#      as a single string: ' -> ''  and  " -> `"
#    - AppleScript via /bin/sh: \ -> \\ , " -> \" , ' -> '\''
#    - xfce4-terminal re-parses its -e string: shlex.quote
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import re
import shlex
import shutil
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Union

from .constants import POSIX_SEPARATOR, POWERSHELL_SEPARATOR
from .models import ProgramItem
from .terminal_profiles import (
    FAMILY_BASH,
    FAMILY_ITERM,
    FAMILY_POWERSHELL,
    FAMILY_WINDOWS_TERMINAL,
    TerminalProfile,
    platform_key,
)

# Env reference syntax per family: {{VAR}} in stored commands
SYNTAX_CMD = "cmd"
SYNTAX_POWERSHELL = "powershell"
SYNTAX_POSIX = "posix"

ENV_REF = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")

GIT_BASH_HOLD = "read -p 'Press Enter to close...'"
KEEP_OPEN = "exec bash"


@dataclass
class Invocation:
    """One process to spawn.

    ``argv`` is a list (no shell) unless ``shell`` is True, in which case it
    is the full command string handed to the platform shell.
    """
    argv: Union[List[str], str]
    shell: bool = False
    detached: bool = True
    elevated: bool = False
    fallback: bool = False
    env: Optional[Dict[str, str]] = field(default=None, repr=False)

    def display(self) -> str:
        if isinstance(self.argv, str):
            return self.argv
        return " ".join(shlex.quote(a) for a in self.argv)


# ----------------------------
# Joining / env references
# ----------------------------
def syntax_for_profile(profile: TerminalProfile, platform: Optional[str] = None) -> str:
    if platform_key(platform) != "windows":
        return SYNTAX_POSIX
    if profile.family == FAMILY_POWERSHELL:
        return SYNTAX_POWERSHELL
    if profile.family == FAMILY_BASH:
        return SYNTAX_POSIX
    return SYNTAX_CMD


def has_env_refs(commands: Sequence[str]) -> bool:
    return any(ENV_REF.search(c) for c in commands)


def rewrite_env_refs(command: str, syntax: str) -> str:
    """{{VAR}} -> !VAR! (cmd), $env:VAR (PowerShell) or $VAR (POSIX)."""
    if syntax == SYNTAX_CMD:
        return ENV_REF.sub(lambda m: f"!{m.group(1)}!", command)
    if syntax == SYNTAX_POWERSHELL:
        return ENV_REF.sub(lambda m: f"$env:{m.group(1)}", command)
    return ENV_REF.sub(lambda m: f"${m.group(1)}", command)


def join_commands(commands: Sequence[str], powershell: bool = False) -> str:
    sep = POWERSHELL_SEPARATOR if powershell else POSIX_SEPARATOR
    return sep.join(commands)


def prepare(commands: Sequence[str], syntax: str) -> str:
    return join_commands([rewrite_env_refs(c, syntax) for c in commands], syntax == SYNTAX_POWERSHELL)


# ----------------------------
# Escaping
# ----------------------------
def escape_for_elevation(text: str) -> str:
    return text.replace("'", "''").replace('"', '`"')


def escape_bash_single(text: str) -> str:
    return text.replace("'", "'\\''")


def escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("'", "'\\''")


def _ps_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


# ----------------------------
# Internal terminal
# ----------------------------
def build_internal_text(commands: Sequence[str], auto_close: bool, powershell: bool) -> str:
    """Text typed into the internal terminal."""
    syntax = SYNTAX_POWERSHELL if powershell else SYNTAX_POSIX
    joined = prepare(commands, syntax)
    if not auto_close:
        return joined
    if powershell:
        # finally also runs on Ctrl+C
        return f"try {{ {joined} }} finally {{ exit }}"
    return f"trap 'exit' INT; {joined}; exit"


# ----------------------------
# Windows
# ----------------------------
def _cmd_switch(auto_close: bool, delayed_expansion: bool) -> List[str]:
    switch = ["/c" if auto_close else "/k"]
    if delayed_expansion:
        return ["/V:ON"] + switch
    return switch


def build_windows_invocation(
    profile: TerminalProfile,
    commands: Sequence[str],
    auto_close: bool = False,
    run_as_admin: bool = False,
) -> Invocation:
    family = profile.family
    syntax = syntax_for_profile(profile, "windows")
    joined = prepare(commands, syntax)
    delayed = syntax == SYNTAX_CMD and has_env_refs(commands)
    switch = _cmd_switch(auto_close, delayed)

    if run_as_admin:
        return _build_windows_elevated(profile, joined, auto_close, switch)

    if family == FAMILY_WINDOWS_TERMINAL:
        return Invocation(["wt", "cmd"] + switch + [joined])
    if family == FAMILY_POWERSHELL:
        ps_args = ["-Command"] if auto_close else ["-NoExit", "-Command"]
        return Invocation(["cmd", "/c", "start", "", profile.path] + ps_args + [joined])
    if family == FAMILY_BASH:
        script = joined if auto_close else f"{joined}; {GIT_BASH_HOLD}"
        return Invocation(["cmd", "/c", "start", "", profile.path, "-c", script])
    return Invocation(["cmd", "/c", "start", "", "cmd"] + switch + [joined])


def _build_windows_elevated(profile: TerminalProfile, joined: str, auto_close: bool, switch: List[str]) -> Invocation:
    family = profile.family
    if family == FAMILY_WINDOWS_TERMINAL:
        target = "wt"
        arg_list = _ps_quote_args("cmd " + " ".join(switch) + " " + joined)
    elif family == FAMILY_POWERSHELL:
        target = _ps_literal(profile.path)
        prefix = "-Command" if auto_close else "-NoExit -Command"
        arg_list = _ps_quote_args(f"{prefix} {joined}")
    elif family == FAMILY_BASH:
        target = _ps_literal(profile.path)
        script = escape_bash_single(joined if auto_close else f"{joined}; read")
        arg_list = f"'-c','{script}'"
    else:
        target = "cmd"
        arg_list = _ps_quote_args(" ".join(switch) + " " + joined)

    command = f'powershell -Command "Start-Process {target} -ArgumentList {arg_list} -Verb RunAs"'
    # not detached: the launcher watches the helper's exit code
    return Invocation(command, shell=True, detached=False, elevated=True)


def _ps_quote_args(text: str) -> str:
    return "'" + escape_for_elevation(text) + "'"


# ----------------------------
# macOS
# ----------------------------
def build_macos_invocation(profile: TerminalProfile, commands: Sequence[str]) -> Invocation:
    escaped = escape_applescript(prepare(commands, SYNTAX_POSIX))
    if profile.family == FAMILY_ITERM:
        script = f'tell app "iTerm" to create window with default profile command "{escaped}"'
    else:
        script = f'tell app "Terminal" to do script "{escaped}"'
    return Invocation(f"osascript -e '{script}'", shell=True)


# ----------------------------
# Linux / other POSIX
# ----------------------------
def build_linux_invocation(
    profile: TerminalProfile,
    commands: Sequence[str],
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Invocation:
    script = f"{prepare(commands, SYNTAX_POSIX)}; {KEEP_OPEN}"
    term = profile.path

    if not which(term):
        # no terminal emulator: keep-open bash attached to our own console
        return Invocation(["bash", "-c", script], detached=False, fallback=True)

    name = term.rsplit("/", 1)[-1]
    if name == "gnome-terminal":
        return Invocation([term, "--", "bash", "-c", script])
    if name == "xfce4-terminal":
        # -e takes one string that the terminal splits again
        return Invocation([term, "-e", "bash -c " + shlex.quote(script)])
    return Invocation([term, "-e", "bash", "-c", script])


def build_external_invocation(
    profile: TerminalProfile,
    commands: Sequence[str],
    auto_close: bool = False,
    run_as_admin: bool = False,
    platform: Optional[str] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Invocation:
    """Dispatch to the builder for (platform, family)."""
    key = platform_key(platform)
    if key == "windows":
        return build_windows_invocation(profile, commands, auto_close, run_as_admin)
    if key == "macos":
        return build_macos_invocation(profile, commands)
    return build_linux_invocation(profile, commands, which)


# ----------------------------
# URLs / programs
# ----------------------------
def build_url_invocation(url: str, platform: Optional[str] = None) -> Invocation:
    key = platform_key(platform)
    if key == "windows":
        # one preformatted line so cmd sees the url inside quotes (& and spaces stay literal)
        quoted = url.replace('"', "%22")
        return Invocation(f'cmd /c start "" "{quoted}"')
    if key == "macos":
        return Invocation(["open", url])
    return Invocation(["xdg-open", url])


def build_program_invocation(program: ProgramItem, platform: Optional[str] = None) -> Invocation:
    """Program path (quoted if it has whitespace) plus the user's args verbatim."""
    line = program.command_line()
    if platform_key(platform) == "windows":
        # CreateProcess does its own splitting
        return Invocation(line)
    return Invocation(shlex.split(line))
