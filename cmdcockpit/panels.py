#===============================================================================
#  CMD_Cockpit | panels.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Tabs shown next to the action tree: internal terminals (a shell run
#  through QProcess, output shown as it arrives, one input line) and the
#  embedded browser (QWebEngineView). Both are exposed to the dispatcher
#  through the TerminalHost / BrowserHost interfaces.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from PySide6.QtCore import QProcess, QProcessEnvironment, QUrl
from PySide6.QtGui import QFont, QTextCursor
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QLineEdit, QPlainTextEdit, QTabWidget, QVBoxLayout, QWidget

from .hosts import BrowserHost, Terminal, TerminalHost, default_console_shell

logger = logging.getLogger(__name__)

MAX_TERMINAL_LINES = 5000


def shell_program(shell: Optional[List[str]] = None):
    """(program, args) for a shell that reads its commands from stdin."""
    argv = shell or default_console_shell()
    program = argv[0]
    name = program.lower()
    if "powershell" in name or "pwsh" in name:
        return program, argv[1:] + ["-NoLogo", "-NoProfile", "-Command", "-"]
    return program, argv[1:] + ["-s"]


class TerminalPanel(QWidget):
    """One internal terminal tab: output pane + input line."""

    def __init__(self, name: str, env: Optional[Dict[str, str]] = None, shell: Optional[List[str]] = None, parent=None):
        super().__init__(parent)
        self.name = name
        self.proc: Optional[QProcess] = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        self.output = QPlainTextEdit(self)
        self.output.setReadOnly(True)
        self.output.document().setMaximumBlockCount(MAX_TERMINAL_LINES)
        self.output.setFont(QFont("Consolas", 10))
        layout.addWidget(self.output)

        self.input = QLineEdit(self)
        self.input.setPlaceholderText("Type a command and press Enter")
        self.input.returnPressed.connect(self._send_input_line)
        layout.addWidget(self.input)

        self._start(env or {}, shell)

    def _start(self, env: Dict[str, str], shell: Optional[List[str]]) -> None:
        program, args = shell_program(shell)
        environment = QProcessEnvironment.systemEnvironment()
        for k, v in env.items():
            environment.insert(k, v)

        self.proc = QProcess(self)
        self.proc.setProcessEnvironment(environment)
        self.proc.setProcessChannelMode(QProcess.MergedChannels)
        self.proc.readyReadStandardOutput.connect(self._on_output)
        self.proc.finished.connect(self._on_finished)
        self.proc.errorOccurred.connect(self._on_error)
        logger.info("Internal terminal '%s': %s %s", self.name, program, args)
        self.proc.start(program, args)

    def send_text(self, text: str) -> None:
        if self.proc is None:
            raise OSError(f"no shell for '{self.name}'")
        if self.proc.state() != QProcess.Running and not self.proc.waitForStarted(3000):
            raise OSError(f"shell for '{self.name}' is not running")
        self.append(f"$ {text}\n")
        self.proc.write((text + "\n").encode("utf-8"))

    def append(self, text: str) -> None:
        self.output.moveCursor(QTextCursor.End)
        self.output.insertPlainText(text)
        self.output.moveCursor(QTextCursor.End)

    def _send_input_line(self) -> None:
        line = self.input.text()
        self.input.clear()
        if self.proc is not None and self.proc.state() != QProcess.NotRunning:
            self.send_text(line)

    def _on_output(self) -> None:
        data = bytes(self.proc.readAllStandardOutput()).decode("utf-8", errors="ignore")
        if data:
            self.append(data)

    def _on_finished(self, code: int, _status) -> None:
        self.append(f"\n[Exit {code}]\n")
        self.input.setEnabled(False)

    def _on_error(self, error) -> None:
        self.append(f"\n[Error] {error}\n")

    def stop(self) -> None:
        if self.proc is not None and self.proc.state() != QProcess.NotRunning:
            self.proc.kill()
            self.proc.waitForFinished(1000)


class QtTerminal(Terminal):
    def __init__(self, panel: TerminalPanel, env: Optional[Dict[str, str]] = None):
        super().__init__(panel.name, env)
        self.panel = panel

    def send_text(self, text: str) -> None:
        self.panel.send_text(text)


class QtTerminalHost(TerminalHost):
    """Opens every internal terminal as a new tab."""

    def __init__(self, tabs: QTabWidget, shell: Optional[List[str]] = None):
        self.tabs = tabs
        self.shell = shell
        program = (shell or default_console_shell())[0].lower()
        self.uses_powershell = "powershell" in program or "pwsh" in program

    def create_terminal(self, name: str, env: Optional[Dict[str, str]] = None) -> Terminal:
        panel = TerminalPanel(name, env, self.shell)
        index = self.tabs.addTab(panel, f">_ {name}")
        self.tabs.setCurrentIndex(index)
        return QtTerminal(panel, env)


class TabBrowserHost(BrowserHost):
    """Embedded browser: each URL opens in its own QWebEngineView tab."""

    def __init__(self, tabs: QTabWidget):
        self.tabs = tabs

    def open(self, url: str) -> None:
        logger.info("Embedded browser: %s", url)
        view = QWebEngineView(self.tabs)
        view.titleChanged.connect(lambda title, v=view: self._retitle(v, title))
        view.load(QUrl.fromUserInput(url))
        index = self.tabs.addTab(view, url)
        self.tabs.setCurrentIndex(index)

    def _retitle(self, view: QWebEngineView, title: str) -> None:
        index = self.tabs.indexOf(view)
        if index >= 0 and title:
            self.tabs.setTabText(index, title[:40])


def close_tab(tabs: QTabWidget, index: int) -> None:
    widget = tabs.widget(index)
    if isinstance(widget, TerminalPanel):
        widget.stop()
    tabs.removeTab(index)
    if widget is not None:
        widget.deleteLater()