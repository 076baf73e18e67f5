#===============================================================================
#  CMD_Cockpit | cmdcockpit/main_window.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Main Metro-style window of the cockpit:
#    - Action tree (groups from "Group/Sub" paths), lazy per level
#    - Drag & drop reorder / regroup (persisted through the store)
#    - Search filter and expand/collapse state (persisted)
#    - Internal terminals and embedded browser as tabs on the right
#    - Right-click actions: run, edit, duplicate, delete, add to group
#    - Import / export / open config
#    - Reload when the commands file changes on disk
#===============================================================================

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QFileSystemWatcher, Qt, QTimer
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QSplitter,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from .action_form import ActionForm
from .config import Settings, resolve_settings
from .constants import (
    APP_TITLE,
    CONFIG_RELOAD_DEBOUNCE_MS,
    EXIT_NO_TARGET,
    EXIT_POLL_MS,
    METRO_BG,
    METRO_BORDER,
    METRO_PANEL,
    METRO_TEXT,
)
from .errors import NoPersistenceTargetError
from .hosts import InputPrompt, Notifier
from .launcher import Dispatcher
from .logging_setup import setup_logging
from .panels import QtTerminalHost, TabBrowserHost, close_tab
from .reorder import ReorderEngine
from .state import ViewState
from .store import IMPORT_MERGE, IMPORT_REPLACE, ActionStore
from .terminal_profiles import get_terminal_profiles
from .tree import GroupTreeBuilder, group_paths_by_depth
from .ui_widgets import KIND_ACTION, KIND_GROUP, ROLE_KEY, ROLE_KIND, ActionTree

logger = logging.getLogger(__name__)

WINDOW_STYLE = f"""
QMainWindow {{ background: {METRO_BG}; }}
QLabel {{ color: {METRO_TEXT}; font-family: "Segoe UI"; }}
QToolButton, QPushButton {{
    font-family: "Segoe UI";
    color: {METRO_TEXT};
    background: {METRO_PANEL};
    border: 1px solid {METRO_BORDER};
    padding: 6px 10px;
}}
QToolButton:hover, QPushButton:hover {{ background: #222; }}
QToolButton:pressed, QPushButton:pressed {{ background: {METRO_BORDER}; }}
QLineEdit, QTreeWidget, QPlainTextEdit {{
    background: {METRO_PANEL};
    color: {METRO_TEXT};
    border: 1px solid {METRO_BORDER};
}}
QTabWidget::pane {{ border: 1px solid {METRO_BORDER}; }}
QTabBar::tab {{ background: {METRO_PANEL}; color: {METRO_TEXT}; padding: 6px 10px; }}
QTabBar::tab:selected {{ background: {METRO_BORDER}; }}
"""


class QtNotifier(Notifier):
    """Info goes to the status bar; warnings and errors pop up."""

    def __init__(self, window: QMainWindow):
        self.window = window

    def info(self, message: str) -> None:
        super().info(message)
        self.window.statusBar().showMessage(message, 6000)

    def warning(self, message: str) -> None:
        super().warning(message)
        QMessageBox.warning(self.window, APP_TITLE, message)

    def error(self, message: str) -> None:
        super().error(message)
        QMessageBox.critical(self.window, APP_TITLE, message)


class QtInputPrompt(InputPrompt):
    def __init__(self, parent: QWidget):
        self.parent = parent

    def ask(self, label: str) -> Optional[str]:
        text, ok = QInputDialog.getText(self.parent, "Input", f"{label}:")
        return text if ok else None


async def qt_sleep(seconds: float) -> None:
    """Cooperative delay that keeps the window painting."""
    end = time.monotonic() + seconds
    while True:
        QApplication.processEvents()
        remaining = end - time.monotonic()
        if remaining <= 0:
            return
        await asyncio.sleep(min(0.02, remaining))


class MainWindow(QMainWindow):
    def __init__(self, settings: Settings):
        super().__init__()
        self.setWindowTitle(APP_TITLE)
        self.setStyleSheet(WINDOW_STYLE)
        self.settings = settings

        self.notifier = QtNotifier(self)
        self.store = ActionStore(settings.config_path, self.notifier)
        self.view_state = ViewState(settings.state_path)
        self.builder = GroupTreeBuilder(lambda: self.store.actions, self.view_state)
        self.reorder = ReorderEngine(self.store, notifier=self.notifier)

        root = QWidget()
        self.setCentralWidget(root)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(14, 14, 14, 14)
        layout.setSpacing(10)

        header = QHBoxLayout()
        title = QLabel(f"<b>{APP_TITLE}</b>")
        header.addWidget(title)

        self.search = QLineEdit()
        self.search.setPlaceholderText("Filter commands…")
        self.search.setClearButtonEnabled(True)
        self.search.setText(self.view_state.search_filter)
        self.search.textChanged.connect(self.on_search_changed)
        header.addWidget(self.search, 1)

        for label, slot in (
            ("Add", lambda: self.add_action()),
            ("Expand all", self.expand_all),
            ("Collapse all", self.collapse_all),
            ("Import", self.import_config),
            ("Export", self.export_config),
            ("Open config", self.open_config),
            ("Refresh", self.refresh),
        ):
            btn = QPushButton(label)
            btn.clicked.connect(slot)
            header.addWidget(btn)
        layout.addLayout(header)

        self.tree = ActionTree(self.builder)
        self.tree.setContextMenuPolicy(Qt.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self.open_context_menu)
        self.tree.actionActivated.connect(self.run_action)
        self.tree.expansionChanged.connect(self.view_state.set_group_expanded)
        self.tree.dropRequested.connect(self.reorder.drop)

        self.tabs = QTabWidget()
        self.tabs.setTabsClosable(True)
        self.tabs.tabCloseRequested.connect(lambda i: close_tab(self.tabs, i))

        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self.tree)
        splitter.addWidget(self.tabs)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 3)
        layout.addWidget(splitter)

        shell = [settings.internal_shell] if settings.internal_shell else None
        self.dispatcher = Dispatcher(
            terminal_host=QtTerminalHost(self.tabs, shell),
            browser=TabBrowserHost(self.tabs),
            prompt=QtInputPrompt(self),
            notifier=self.notifier,
            default_profile=settings.default_terminal_profile,
            url_delay=settings.url_delay,
            sleep=qt_sleep,
            exit_watcher=self.watch_exit,
        )

        # reload when the commands file is edited, created or deleted outside the app
        self.config_watcher = QFileSystemWatcher(self)
        self.config_watcher.fileChanged.connect(self.on_config_changed)
        self.config_watcher.directoryChanged.connect(self.on_config_changed)
        self._reload_timer = QTimer(self)
        self._reload_timer.setSingleShot(True)
        self._reload_timer.setInterval(CONFIG_RELOAD_DEBOUNCE_MS)
        self._reload_timer.timeout.connect(self.reload_if_changed)

        self.store.subscribe(self.refresh_view)
        self.store.load()

    # ----------------------------
    # View
    # ----------------------------
    def refresh(self):
        self.store.load()

    def refresh_view(self):
        self.tree.rebuild()
        self.statusBar().showMessage(f"{len(self.store)} commands • {self.settings.config_path}")
        self.watch_config()

    def watch_config(self):
        """(Re)arm the watcher. Atomic saves replace the file, which drops the file watch."""
        path = self.store.config_path
        watched = set(self.config_watcher.files()) | set(self.config_watcher.directories())
        for p in (path.parent, path):
            if p.exists() and str(p) not in watched:
                self.config_watcher.addPath(str(p))

    def on_config_changed(self, _path: str):
        self._reload_timer.start()

    def reload_if_changed(self):
        self.watch_config()
        if self.store.reload_if_changed():
            self.statusBar().showMessage("Commands reloaded from disk", 4000)

    def watch_exit(self, process, on_exit):
        """Poll ``process`` on the GUI thread and call ``on_exit(code)`` once it ends."""
        timer = QTimer(self)

        def check():
            code = process.poll()
            if code is None:
                return
            timer.stop()
            timer.deleteLater()
            on_exit(code)

        timer.timeout.connect(check)
        timer.start(EXIT_POLL_MS)

    def on_search_changed(self, text: str):
        self.view_state.set_search_filter(text)
        self.tree.rebuild()

    def expand_all(self):
        self.view_state.expand_all(group_paths_by_depth(self.store.actions))
        self.tree.rebuild()

    def collapse_all(self):
        self.view_state.collapse_all()
        self.tree.rebuild()

    # ----------------------------
    # Run / edit
    # ----------------------------
    def run_action(self, index: int):
        action = self.store[index]
        report = asyncio.run(self.dispatcher.run(action))
        if report.events:
            self.statusBar().showMessage(f"Ran '{action.name}' ({len(report.events)} launched)", 6000)

    def add_action(self, default_group: Optional[str] = None):
        action = ActionForm.ask(
            self,
            groups=self.store.all_groups(),
            profiles=get_terminal_profiles(),
            default_group=default_group,
        )
        if action:
            self.store.append(action)

    def edit_action(self, index: int):
        updated = ActionForm.ask(
            self,
            action=self.store[index],
            groups=self.store.all_groups(),
            profiles=get_terminal_profiles(),
        )
        if updated:
            self.store.update_at(index, updated)

    def delete_action(self, index: int):
        name = self.store[index].name
        res = QMessageBox.question(self, "Delete", f"Delete '{name}'?", QMessageBox.Yes | QMessageBox.No)
        if res == QMessageBox.Yes:
            self.store.remove_at(index)

    # ----------------------------
    # Context menu
    # ----------------------------
    def open_context_menu(self, pos):
        item = self.tree.itemAt(pos)
        if not item:
            menu = QMenu(self)
            act_add = menu.addAction("Add command…")
            if menu.exec(self.tree.viewport().mapToGlobal(pos)) == act_add:
                self.add_action()
            return

        kind = item.data(0, ROLE_KIND)
        key = item.data(0, ROLE_KEY)
        menu = QMenu(self)

        if kind == KIND_ACTION:
            index = int(key)
            act_run = QAction("Run", self)
            act_edit = QAction("Edit…", self)
            act_dup = QAction("Duplicate", self)
            act_delete = QAction("Delete…", self)
            menu.addAction(act_run)
            menu.addSeparator()
            menu.addAction(act_edit)
            menu.addAction(act_dup)
            menu.addSeparator()
            menu.addAction(act_delete)

            chosen = menu.exec(self.tree.viewport().mapToGlobal(pos))
            if chosen == act_run:
                self.run_action(index)
            elif chosen == act_edit:
                self.edit_action(index)
            elif chosen == act_dup:
                self.store.duplicate_at(index)
            elif chosen == act_delete:
                self.delete_action(index)

        elif kind == KIND_GROUP:
            expanded = item.isExpanded()
            act_add = QAction("Add command to group…", self)
            act_toggle = QAction("Collapse" if expanded else "Expand", self)
            menu.addAction(act_add)
            menu.addAction(act_toggle)

            chosen = menu.exec(self.tree.viewport().mapToGlobal(pos))
            if chosen == act_add:
                self.add_action(default_group=key)
            elif chosen == act_toggle:
                item.setExpanded(not expanded)

    # ----------------------------
    # Import / export
    # ----------------------------
    def export_config(self):
        path, _ = QFileDialog.getSaveFileName(self, "Export commands", str(self.settings.workspace / "commands.json"), "JSON (*.json)")
        if path:
            self.store.export_to(path)

    def import_config(self):
        path, _ = QFileDialog.getOpenFileName(self, "Import commands", str(self.settings.workspace), "JSON (*.json)")
        if not path:
            return
        box = QMessageBox(self)
        box.setWindowTitle("Import")
        box.setText("Merge with the existing commands or replace them?")
        btn_merge = box.addButton("Merge", QMessageBox.AcceptRole)
        btn_replace = box.addButton("Replace", QMessageBox.DestructiveRole)
        box.addButton(QMessageBox.Cancel)
        box.exec()
        clicked = box.clickedButton()
        if clicked == btn_merge:
            self.store.import_from(path, IMPORT_MERGE)
        elif clicked == btn_replace:
            self.store.import_from(path, IMPORT_REPLACE)

    def open_config(self):
        path = self.store.config_path
        if not path.exists():
            self.store.write_example()
        self.open_with_system(path)

    def open_with_system(self, path: Path):
        try:
            if sys.platform.startswith("win"):
                subprocess.Popen(["explorer", str(path)])
            elif sys.platform == "darwin":
                subprocess.Popen(["open", str(path)])
            else:
                subprocess.Popen(["xdg-open", str(path)])
        except Exception as e:
            QMessageBox.warning(self, "Open failed", str(e))


def run_gui(settings: Settings) -> int:
    app = QApplication.instance() or QApplication(sys.argv)
    setup_logging(settings.log_dir, settings.log_level)
    w = MainWindow(settings)
    w.resize(1200, 760)
    w.show()
    return app.exec()


def main() -> int:
    try:
        settings = resolve_settings()
    except NoPersistenceTargetError as e:
        print(f"{APP_TITLE}: {e}", file=sys.stderr)
        return EXIT_NO_TARGET
    return run_gui(settings)
