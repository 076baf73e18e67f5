#===============================================================================
#  CMD_Cockpit | reorder.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Reorder/Regroup Engine: applies drag & drop intents to the flat action
#  list. Two intents exist:
#    - move action(s): optional regroup + stable splice to the drop position
#    - move group: the group and all its descendants move as one block, group
#      paths untouched, only sibling order changes
#  The list functions are pure (they return a new list); ReorderEngine
#  applies the result to the store, which persists and notifies.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import ReorderError
from .hosts import Notifier
from .models import Action, normalize_group_path
from .store import ActionStore

logger = logging.getLogger(__name__)

DROP_ON_ACTION = "action"
DROP_ON_GROUP = "group"
DROP_ON_ROOT = "root"


@dataclass(frozen=True)
class DropTarget:
    """Where something was dropped: an action node, a group node, or empty space."""
    kind: str
    index: Optional[int] = None
    group_path: Optional[str] = None

    @staticmethod
    def on_action(index: int) -> "DropTarget":
        return DropTarget(DROP_ON_ACTION, index=index)

    @staticmethod
    def on_group(group_path: str) -> "DropTarget":
        return DropTarget(DROP_ON_GROUP, group_path=normalize_group_path(group_path))

    @staticmethod
    def root() -> "DropTarget":
        return DropTarget(DROP_ON_ROOT)


@dataclass(frozen=True)
class DragPayload:
    type: str  # "action" | "group"
    source_indices: Tuple[int, ...] = ()
    source_group_path: Optional[str] = None

    @staticmethod
    def for_actions(indices: Sequence[int]) -> "DragPayload":
        return DragPayload("action", source_indices=tuple(indices))

    @staticmethod
    def for_group(group_path: str) -> "DragPayload":
        return DragPayload("group", source_group_path=normalize_group_path(group_path))

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "DragPayload":
        kind = d.get("type")
        if kind in ("action", "commands"):
            indices = d.get("sourceIndices", d.get("indices")) or []
            return DragPayload.for_actions([int(i) for i in indices])
        if kind == "group":
            path = d.get("sourceGroupPath", d.get("groupPath"))
            if not path:
                raise ReorderError("group payload without sourceGroupPath")
            return DragPayload.for_group(path)
        raise ReorderError(f"unknown drag payload type: {kind!r}")

    def to_dict(self) -> Dict[str, Any]:
        if self.type == "group":
            return {"type": "group", "sourceGroupPath": self.source_group_path}
        return {"type": "action", "sourceIndices": list(self.source_indices)}


# ----------------------------
# Index resolution
# ----------------------------
def first_member_index(actions: Sequence[Action], group_path: str) -> int:
    for i, a in enumerate(actions):
        if a.in_group(group_path):
            return i
    return -1


def root_insert_index(actions: Sequence[Action]) -> int:
    """Slot right after the last ungrouped action, or the end if there is none."""
    last = -1
    for i, a in enumerate(actions):
        if not a.group_path:
            last = i
    return last + 1 if last >= 0 else len(actions)


def _target_group(target: DropTarget) -> str:
    if not target.group_path:
        raise ReorderError("drop target names no group (use the root target to ungroup)")
    return target.group_path


def _check_index(actions: Sequence[Action], index: Optional[int]) -> int:
    if index is None or not 0 <= index < len(actions):
        raise ReorderError(f"no action at index {index}")
    return index


# ----------------------------
# Move action(s)
# ----------------------------
def move_action(actions: Sequence[Action], source_index: int, target: DropTarget) -> List[Action]:
    """Move one action onto ``target``; returns the new list.

    Dropping on an action takes that action's place (insertion after it when
    dragging downward, before it when dragging upward). Dropping on a group
    makes the action the group's first member. Dropping on empty space
    ungroups the action and puts it after the last ungrouped action.
    """
    items = list(actions)
    _check_index(items, source_index)

    if target.kind == DROP_ON_GROUP:
        target_group = _target_group(target)
        insert = first_member_index(items, target_group)
        if insert == -1:
            insert = len(items)
    elif target.kind == DROP_ON_ACTION:
        t = _check_index(items, target.index)
        target_group = items[t].group_path
        insert = t + 1 if source_index < t else t
    else:
        target_group = None
        insert = root_insert_index(items)

    moved = items[source_index]
    if moved.group_path != target_group:
        moved = replace(moved, group_path=target_group)

    del items[source_index]
    # removing first shifts every later index down by one
    adjusted = insert - 1 if source_index < insert else insert
    items.insert(adjusted, moved)
    return items


def move_actions(actions: Sequence[Action], source_indices: Sequence[int], target: DropTarget) -> List[Action]:
    """Move several actions as one block (store order kept among them)."""
    indices = sorted(set(source_indices))
    if not indices:
        raise ReorderError("nothing to move")
    if len(indices) == 1:
        return move_action(actions, indices[0], target)

    items = list(actions)
    for i in indices:
        _check_index(items, i)

    if target.kind == DROP_ON_GROUP:
        target_group = _target_group(target)
        insert = first_member_index(items, target_group)
        if insert == -1:
            insert = len(items)
    elif target.kind == DROP_ON_ACTION:
        t = _check_index(items, target.index)
        if t in indices:
            raise ReorderError("actions dropped onto themselves")
        target_group = items[t].group_path
        insert = t + 1 if indices[0] < t else t
    else:
        target_group = None
        insert = root_insert_index(items)

    block = [
        a if a.group_path == target_group else replace(a, group_path=target_group)
        for a in (items[i] for i in indices)
    ]
    return _splice_block(items, indices, block, insert)


# ----------------------------
# Move group
# ----------------------------
def move_group(actions: Sequence[Action], source_group: str, target: DropTarget) -> List[Action]:
    """Move a whole group (with subgroups) as one block; group paths unchanged."""
    items = list(actions)
    source_group = normalize_group_path(source_group) or ""
    indices = [i for i, a in enumerate(items) if a.in_group(source_group)]
    if not indices:
        raise ReorderError(f"group '{source_group}' has no actions")

    if target.kind == DROP_ON_GROUP:
        tg = _target_group(target)
        if tg == source_group or tg.startswith(source_group + "/"):
            raise ReorderError(f"cannot drop group '{source_group}' onto itself or its own subgroup '{tg}'")
        insert = first_member_index(items, tg)
        if insert == -1:
            insert = len(items)
    elif target.kind == DROP_ON_ACTION:
        t = _check_index(items, target.index)
        if items[t].in_group(source_group):
            raise ReorderError(f"cannot drop group '{source_group}' onto one of its own actions")
        insert = t
    else:
        insert = root_insert_index(items)

    block = [items[i] for i in indices]
    return _splice_block(items, indices, block, insert)


def _splice_block(items: List[Action], indices: Sequence[int], block: List[Action], insert: int) -> List[Action]:
    # delete in descending order so pending indices stay valid
    for i in sorted(indices, reverse=True):
        del items[i]
    adjusted = insert - sum(1 for i in indices if i < insert)
    items[adjusted:adjusted] = block
    return items


# ----------------------------
# Store-facing engine
# ----------------------------
class ReorderEngine:
    """Applies drop intents to the store; persist + refresh after each success."""

    def __init__(
        self,
        store: ActionStore,
        refresh: Optional[Callable[[], None]] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.refresh = refresh
        self.notifier = notifier or store.notifier

    def drop(self, payload: DragPayload, target: DropTarget) -> bool:
        try:
            if payload.type == "group":
                new_order = move_group(self.store.actions, payload.source_group_path or "", target)
            else:
                new_order = move_actions(self.store.actions, payload.source_indices, target)
        except ReorderError as e:
            self.notifier.warning(f"Move rejected: {e}")
            return False

        logger.info("Applied %s drop onto %s", payload.type, target)
        self.store.replace_all(new_order)
        if self.refresh:
            self.refresh()
        return True

    def move_action(self, source_index: int, target: DropTarget) -> bool:
        return self.drop(DragPayload.for_actions([source_index]), target)

    def move_group(self, group_path: str, target: DropTarget) -> bool:
        return self.drop(DragPayload.for_group(group_path), target)
