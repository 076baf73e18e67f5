#===============================================================================
#  CMD_Cockpit | action_form.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Structured editor for one Action. Returns a new Action (create) or the
#  replacement for an existing one (edit); the caller decides where it goes.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QComboBox,
    QCompleter,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from .models import Action, ProgramItem, TerminalMode, UrlItem
from .terminal_profiles import TerminalProfile

INTERNAL_TERMINAL_LABEL = "(internal terminal)"

FORM_STYLE = (
    "QDialog{background:#1a1a1a;color:white;}"
    " QLabel, QCheckBox{color:white;}"
    " QLineEdit, QPlainTextEdit, QComboBox, QTableWidget{background:#101010;color:white;border:1px solid #2a2a2a;}"
    " QPushButton{color:white;background:#222;border:1px solid #2a2a2a;padding:6px;}"
)


def _lines(text: str) -> List[str]:
    return [ln.strip() for ln in text.splitlines() if ln.strip()]


def parse_env_lines(text: str) -> Dict[str, str]:
    """KEY=VALUE per line; lines without '=' are ignored."""
    env: Dict[str, str] = {}
    for line in _lines(text):
        if "=" in line:
            k, v = line.split("=", 1)
            if k.strip():
                env[k.strip()] = v.strip()
    return env


class _ItemTable(QWidget):
    """Two-column table with Add/Remove buttons (URLs, programs)."""

    def __init__(self, headers: Sequence[str], checkable_second: bool = False, parent=None):
        super().__init__(parent)
        self.checkable_second = checkable_second

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget(0, 2, self)
        self.table.setHorizontalHeaderLabels(list(headers))
        self.table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        self.table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeToContents)
        self.table.verticalHeader().setVisible(False)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        layout.addWidget(self.table)

        buttons = QHBoxLayout()
        add = QPushButton("Add")
        add.clicked.connect(lambda: self.add_row())
        remove = QPushButton("Remove")
        remove.clicked.connect(self.remove_selected)
        buttons.addWidget(add)
        buttons.addWidget(remove)
        buttons.addStretch(1)
        layout.addLayout(buttons)

    def add_row(self, first: str = "", second=None) -> None:
        row = self.table.rowCount()
        self.table.insertRow(row)
        self.table.setItem(row, 0, QTableWidgetItem(first))
        item = QTableWidgetItem()
        if self.checkable_second:
            item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
            item.setCheckState(Qt.Checked if second else Qt.Unchecked)
        else:
            item.setText(second or "")
        self.table.setItem(row, 1, item)

    def remove_selected(self) -> None:
        rows = sorted({i.row() for i in self.table.selectedIndexes()}, reverse=True)
        for r in rows:
            self.table.removeRow(r)

    def rows(self):
        for r in range(self.table.rowCount()):
            first = (self.table.item(r, 0).text() if self.table.item(r, 0) else "").strip()
            second_item = self.table.item(r, 1)
            if self.checkable_second:
                second = bool(second_item and second_item.checkState() == Qt.Checked)
            else:
                second = (second_item.text() if second_item else "").strip()
            if first:
                yield first, second


class ActionForm(QDialog):
    def __init__(
        self,
        action: Optional[Action] = None,
        groups: Sequence[str] = (),
        profiles: Sequence[TerminalProfile] = (),
        default_group: Optional[str] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.setWindowTitle("Edit command" if action else "Add command")
        self.setStyleSheet(FORM_STYLE)
        self.resize(640, 620)
        self._result: Optional[Action] = None

        layout = QVBoxLayout(self)
        form = QFormLayout()
        layout.addLayout(form)

        self.name_edit = QLineEdit()
        form.addRow("Name", self.name_edit)

        self.group_edit = QLineEdit()
        self.group_edit.setPlaceholderText("e.g. Server/Build (empty = root)")
        completer = QCompleter(list(groups), self)
        completer.setCaseSensitivity(Qt.CaseInsensitive)
        self.group_edit.setCompleter(completer)
        form.addRow("Group", self.group_edit)

        self.commands_edit = QPlainTextEdit()
        self.commands_edit.setPlaceholderText("One command per line, run in order")
        form.addRow("Commands", self.commands_edit)
        hint = QLabel("Use <code>{{VAR}}</code> for env variables and <code>${input:Label}</code> to ask when run.")
        form.addRow("", hint)

        self.profile_combo = QComboBox()
        self.profile_combo.addItem(INTERNAL_TERMINAL_LABEL, None)
        for p in profiles:
            self.profile_combo.addItem(p.name, p.name)
        form.addRow("Terminal", self.profile_combo)

        self.auto_close = QCheckBox("Close terminal when done")
        self.run_as_admin = QCheckBox("Run as administrator (external terminal)")
        form.addRow("", self.auto_close)
        form.addRow("", self.run_as_admin)

        self.env_edit = QPlainTextEdit()
        self.env_edit.setPlaceholderText("KEY=VALUE per line")
        self.env_edit.setFixedHeight(70)
        form.addRow("Environment", self.env_edit)

        self.urls = _ItemTable(["URL", "External"], checkable_second=True)
        form.addRow("URLs", self.urls)

        self.programs = _ItemTable(["Program path", "Arguments"])
        form.addRow("Programs", self.programs)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._on_save)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        if action:
            self._load(action)
        elif default_group:
            self.group_edit.setText(default_group)

    def _load(self, a: Action) -> None:
        self.name_edit.setText(a.name)
        self.group_edit.setText(a.group_path or "")
        self.commands_edit.setPlainText("\n".join(a.shell_commands))
        if a.is_external:
            name = a.terminal_profile_name
            if name:
                idx = self.profile_combo.findData(name)
                if idx < 0:
                    # keep the stored name even if this machine lacks it
                    self.profile_combo.addItem(f"{name} (not available)", name)
                    idx = self.profile_combo.count() - 1
            else:
                idx = 1 if self.profile_combo.count() > 1 else 0
            self.profile_combo.setCurrentIndex(idx)
        self.auto_close.setChecked(a.auto_close)
        self.run_as_admin.setChecked(a.run_as_admin)
        self.env_edit.setPlainText("\n".join(f"{k}={v}" for k, v in a.env.items()))
        for u in a.urls:
            self.urls.add_row(u.url, u.external)
        for p in a.programs:
            self.programs.add_row(p.path, p.args or "")

    def build_action(self) -> Action:
        profile = self.profile_combo.currentData()
        return Action(
            name=self.name_edit.text().strip(),
            group_path=self.group_edit.text(),
            shell_commands=_lines(self.commands_edit.toPlainText()),
            terminal_mode=TerminalMode.EXTERNAL if profile else TerminalMode.INTERNAL,
            auto_close=self.auto_close.isChecked(),
            terminal_profile_name=profile,
            run_as_admin=self.run_as_admin.isChecked(),
            env=parse_env_lines(self.env_edit.toPlainText()),
            urls=[UrlItem(url, external) for url, external in self.urls.rows()],
            programs=[ProgramItem(path, args or None) for path, args in self.programs.rows()],
        )

    def _on_save(self) -> None:
        action = self.build_action()
        if not action.name:
            QMessageBox.warning(self, "Missing name", "Please enter a name.")
            return
        if not (action.shell_commands or action.urls or action.programs):
            QMessageBox.warning(self, "Nothing to run", "Add at least one command, URL or program.")
            return
        self._result = action
        self.accept()

    @staticmethod
    def ask(parent, action: Optional[Action] = None, groups: Sequence[str] = (),
            profiles: Sequence[TerminalProfile] = (), default_group: Optional[str] = None) -> Optional[Action]:
        """Show the form modally. None when cancelled."""
        dlg = ActionForm(action, groups, profiles, default_group, parent)
        if dlg.exec() == QDialog.Accepted:
            return dlg._result
        return None
