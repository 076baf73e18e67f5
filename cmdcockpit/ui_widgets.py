#===============================================================================
#  CMD_Cockpit | ui_widgets.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Reusable UI widgets: the action tree. Keeps the main window/controller
#  smaller. The tree never owns data: every level is pulled from the
#  GroupTreeBuilder, and drops are handed back as (payload, target) for the
#  reorder engine instead of letting Qt move items around.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

from typing import List, Optional

from PySide6.QtCore import QSize, Qt, QTimer, Signal
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import QAbstractItemView, QStyle, QTreeWidget, QTreeWidgetItem

from .constants import METRO_ACCENT
from .reorder import DragPayload, DropTarget
from .tree import ActionNode, GroupNode, GroupTreeBuilder, Node

ICON_SIZE = QSize(18, 18)

ROLE_KIND = Qt.UserRole          # "group" | "action"
ROLE_KEY = Qt.UserRole + 1       # group path or store index
ROLE_LOADED = Qt.UserRole + 2    # children already pulled

KIND_GROUP = "group"
KIND_ACTION = "action"


class ActionTree(QTreeWidget):
    """Group tree over the flat action list, with drag & drop regrouping."""

    dropRequested = Signal(object, object)   # DragPayload, DropTarget
    expansionChanged = Signal(str, bool)     # group path, expanded
    actionActivated = Signal(int)            # store index

    def __init__(self, builder: GroupTreeBuilder, parent=None):
        super().__init__(parent)
        self.builder = builder
        self._rebuilding = False

        self.setHeaderHidden(True)
        self.setIconSize(ICON_SIZE)
        self.setUniformRowHeights(True)
        self.setAnimated(True)
        self.setIndentation(16)

        self.setDragEnabled(True)
        self.setAcceptDrops(True)
        self.setDropIndicatorShown(True)
        self.setDragDropMode(QAbstractItemView.InternalMove)
        self.setSelectionMode(QAbstractItemView.ExtendedSelection)

        self.itemExpanded.connect(self._on_expanded)
        self.itemCollapsed.connect(self._on_collapsed)
        self.itemDoubleClicked.connect(self._on_double_clicked)

    # ----------------------------
    # Population
    # ----------------------------
    def rebuild(self) -> None:
        """Throw away every item and pull the visible levels again."""
        self._rebuilding = True
        try:
            self.clear()
            self._populate(self.invisibleRootItem(), None)
        finally:
            self._rebuilding = False

    def _populate(self, parent_item: QTreeWidgetItem, group_path: Optional[str]) -> None:
        for node in self.builder.children(group_path):
            item = self._make_item(node)
            parent_item.addChild(item)
            if isinstance(node, GroupNode) and node.expanded:
                self._populate(item, node.path)
                item.setData(0, ROLE_LOADED, True)
                item.setExpanded(True)

    def _make_item(self, node: Node) -> QTreeWidgetItem:
        item = QTreeWidgetItem()
        if isinstance(node, GroupNode):
            item.setText(0, f"{node.display_name}  ({node.descendant_action_count})")
            item.setIcon(0, self.style().standardIcon(QStyle.SP_DirIcon))
            item.setForeground(0, QBrush(QColor(METRO_ACCENT)))
            item.setData(0, ROLE_KIND, KIND_GROUP)
            item.setData(0, ROLE_KEY, node.path)
            item.setData(0, ROLE_LOADED, False)
            item.setChildIndicatorPolicy(QTreeWidgetItem.ShowIndicator)
            item.setToolTip(0, node.path)
        else:
            a = node.action
            item.setText(0, a.name)
            item.setIcon(0, self._icon_for_kind(a.kind()))
            item.setData(0, ROLE_KIND, KIND_ACTION)
            item.setData(0, ROLE_KEY, node.store_index)
            item.setToolTip(0, a.describe() or a.name)
        return item

    def _icon_for_kind(self, kind: str):
        icons = {
            "terminal": QStyle.SP_ComputerIcon,
            "link": QStyle.SP_DriveNetIcon,
            "mixed": QStyle.SP_DriveNetIcon,
            "program": QStyle.SP_FileIcon,
        }
        return self.style().standardIcon(icons.get(kind, QStyle.SP_FileIcon))

    # ----------------------------
    # Expand / collapse
    # ----------------------------
    def _on_expanded(self, item: QTreeWidgetItem) -> None:
        if item.data(0, ROLE_KIND) != KIND_GROUP:
            return
        if not item.data(0, ROLE_LOADED):
            self._populate(item, item.data(0, ROLE_KEY))
            item.setData(0, ROLE_LOADED, True)
        if not self._rebuilding:
            self.expansionChanged.emit(item.data(0, ROLE_KEY), True)

    def _on_collapsed(self, item: QTreeWidgetItem) -> None:
        if item.data(0, ROLE_KIND) == KIND_GROUP and not self._rebuilding:
            self.expansionChanged.emit(item.data(0, ROLE_KEY), False)

    def _on_double_clicked(self, item: QTreeWidgetItem, _column: int) -> None:
        if item.data(0, ROLE_KIND) == KIND_ACTION:
            self.actionActivated.emit(int(item.data(0, ROLE_KEY)))

    # ----------------------------
    # Selection helpers
    # ----------------------------
    def selected_action_indices(self) -> List[int]:
        return sorted(
            int(i.data(0, ROLE_KEY)) for i in self.selectedItems() if i.data(0, ROLE_KIND) == KIND_ACTION
        )

    def selected_group_path(self) -> Optional[str]:
        for i in self.selectedItems():
            if i.data(0, ROLE_KIND) == KIND_GROUP:
                return i.data(0, ROLE_KEY)
        return None

    def payload_for_selection(self) -> Optional[DragPayload]:
        current = self.currentItem()
        if current is not None and current.data(0, ROLE_KIND) == KIND_GROUP:
            return DragPayload.for_group(current.data(0, ROLE_KEY))
        indices = self.selected_action_indices()
        if indices:
            return DragPayload.for_actions(indices)
        group = self.selected_group_path()
        return DragPayload.for_group(group) if group else None

    @staticmethod
    def target_for_item(item: Optional[QTreeWidgetItem]) -> DropTarget:
        if item is None:
            return DropTarget.root()
        if item.data(0, ROLE_KIND) == KIND_GROUP:
            return DropTarget.on_group(item.data(0, ROLE_KEY))
        return DropTarget.on_action(int(item.data(0, ROLE_KEY)))

    # ----------------------------
    # Drag & drop
    # ----------------------------
    def dropEvent(self, event):
        # the store decides the new order; Qt must not move the items itself
        if event.source() is not self:
            event.ignore()
            return
        payload = self.payload_for_selection()
        target_item = self.itemAt(event.position().toPoint())
        event.setDropAction(Qt.IgnoreAction)
        event.accept()
        if payload is not None:
            target = self.target_for_item(target_item)
            # rebuilding clears the items Qt is still dragging: wait for the drag to end
            QTimer.singleShot(0, lambda: self.dropRequested.emit(payload, target))
