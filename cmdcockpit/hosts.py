#===============================================================================
#  CMD_Cockpit | hosts.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Narrow collaborator interfaces used by the core (notifications, internal
#  terminal, embedded browser, input prompt) and their console
#  implementations. The GUI provides Qt-backed versions of the same classes.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import webbrowser
from typing import Dict, List, Optional

import click
from rich.console import Console

logger = logging.getLogger(__name__)


# ----------------------------
# Notifications
# ----------------------------
class Notifier:
    """User-visible notifications. The base class only logs."""

    def info(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)


LogNotifier = Notifier


class ConsoleNotifier(Notifier):
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def info(self, message: str) -> None:
        logger.info(message)
        self.console.print(f"ℹ️  {message}")

    def warning(self, message: str) -> None:
        logger.warning(message)
        self.console.print(f"⚠️  [yellow]{message}[/yellow]")

    def error(self, message: str) -> None:
        logger.error(message)
        self.console.print(f"❌ [red]{message}[/red]")


# ----------------------------
# Internal terminal
# ----------------------------
class Terminal:
    def __init__(self, name: str, env: Optional[Dict[str, str]] = None):
        self.name = name
        self.env = dict(env or {})

    def send_text(self, text: str) -> None:
        raise NotImplementedError


class TerminalHost:
    # True when the host's shell is PowerShell (semicolon-joined commands)
    uses_powershell = sys.platform.startswith("win")

    def create_terminal(self, name: str, env: Optional[Dict[str, str]] = None) -> Terminal:
        raise NotImplementedError


# shells that understand the sh syntax commands are written in
POSIX_SHELLS = {"sh", "bash", "zsh", "dash", "ksh", "mksh", "ash", "yash"}


def posix_shell(exe: Optional[str]) -> str:
    """``exe`` when it is a POSIX shell, else bash (or /bin/sh)."""
    if exe and os.path.basename(exe) in POSIX_SHELLS:
        return exe
    return shutil.which("bash") or "/bin/sh"


def default_console_shell() -> List[str]:
    """Interactive shell used for internal terminals on this platform."""
    if sys.platform.startswith("win"):
        return ["powershell", "-NoLogo"]
    return [posix_shell(os.environ.get("SHELL"))]


class ConsoleTerminal(Terminal):
    """Runs text in a child shell sharing the launcher's console.

    The shell stays interactive after the text ran, the same way text typed
    into an open terminal would. Text that ends in ``exit`` closes it.
    """

    def __init__(self, name: str, env: Optional[Dict[str, str]] = None, shell: Optional[List[str]] = None):
        super().__init__(name, env)
        self.shell = shell or default_console_shell()
        self.process: Optional[subprocess.Popen] = None

    def argv_for(self, text: str) -> List[str]:
        exe = self.shell[0]
        name = os.path.basename(exe).lower()
        if "powershell" in name or "pwsh" in name:
            return self.shell + ["-NoExit", "-Command", text]
        exe = posix_shell(exe)
        return [exe, "-c", f"{text}\nexec {exe} -i"]

    def send_text(self, text: str) -> None:
        argv = self.argv_for(text)
        logger.info("Internal terminal '%s': %s", self.name, argv)
        self.process = subprocess.Popen(argv, env={**os.environ, **self.env})

    def wait(self) -> Optional[int]:
        if self.process is None:
            return None
        return self.process.wait()


class ConsoleTerminalHost(TerminalHost):
    def __init__(self, shell: Optional[List[str]] = None):
        self.shell = shell
        self.terminals: List[ConsoleTerminal] = []
        if shell:
            name = os.path.basename(shell[0]).lower()
            self.uses_powershell = "powershell" in name or "pwsh" in name

    def create_terminal(self, name: str, env: Optional[Dict[str, str]] = None) -> Terminal:
        term = ConsoleTerminal(name, env, self.shell)
        self.terminals.append(term)
        return term

    def wait_all(self) -> None:
        for term in self.terminals:
            term.wait()


# ----------------------------
# Embedded browser
# ----------------------------
class BrowserHost:
    """Opens non-external URLs. Without a GUI the default browser is used."""

    def open(self, url: str) -> None:
        logger.info("Opening %s", url)
        webbrowser.open(url)


# ----------------------------
# ${input:Label} prompts
# ----------------------------
class InputPrompt:
    def ask(self, label: str) -> Optional[str]:
        """Return the user's answer, or None if the prompt was cancelled."""
        raise NotImplementedError


class ConsoleInputPrompt(InputPrompt):
    def ask(self, label: str) -> Optional[str]:
        try:
            return click.prompt(label, default="", show_default=False)
        except click.Abort:
            return None
