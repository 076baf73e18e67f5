#===============================================================================
#  CMD_Cockpit | store.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  The Action Store: single owner of the ordered action list. Order of the
#  list is the only notion of "position" (including order among group
#  siblings). Every mutation is followed by persist() + listener notify.
#
#  Load and persist fail soft: problems are reported through the Notifier
#  and never raised to the rest of the application.
#
#  Document shape: { "commands": [ {Action}, ... ] }
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .errors import (
    ActionNotFoundError,
    ConfigReadError,
    ConfigWriteError,
    ImportValidationError,
)
from .hosts import Notifier
from .models import Action

logger = logging.getLogger(__name__)

IMPORT_MERGE = "merge"
IMPORT_REPLACE = "replace"


def example_actions() -> List[Action]:
    return [
        Action(name="Build", group_path="Server", shell_commands=["dotnet build"]),
        Action(name="Run", group_path="Server", shell_commands=["dotnet run"]),
        Action(name="Install", group_path="Client", shell_commands=["npm install"]),
        Action(name="Hello", shell_commands=["echo Hello World"]),
    ]


def parse_document(data: Any, path: Union[str, Path]) -> List[Action]:
    """Turn a decoded JSON document into actions (strict)."""
    if not isinstance(data, dict):
        raise ImportValidationError(path, "top-level value must be an object")
    commands = data.get("commands")
    if not isinstance(commands, list):
        raise ImportValidationError(path, "missing commands array")
    try:
        return [Action.from_dict(item) for item in commands]
    except (ValueError, TypeError, AttributeError) as e:
        raise ImportValidationError(path, str(e))


def read_document(path: Path) -> List[Action]:
    """Read and validate a commands document. Raises ImportValidationError."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ImportValidationError(path, str(e))
    return parse_document(data, path)


def write_document(path: Path, actions: Sequence[Action], extra_entries: Sequence[Any] = ()) -> None:
    """Write the whole document atomically (temp file + rename).

    ``extra_entries`` are raw JSON entries appended after the actions as-is.
    """
    path = Path(path)
    doc = {"commands": [a.to_dict() for a in actions] + list(extra_entries)}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
    except OSError as e:
        raise ConfigWriteError(path, str(e))


class ActionStore:
    """Ordered, in-memory list of actions backed by one JSON document."""

    def __init__(self, config_path: Path, notifier: Optional[Notifier] = None):
        self.config_path = Path(config_path)
        self.notifier = notifier or Notifier()
        self._actions: List[Action] = []
        self._unparsed: List[Any] = []
        self._unreadable = False
        self._signature: Optional[Tuple[int, int]] = None
        self._listeners: List[Callable[[], None]] = []

    # ----------------------------
    # Read access
    # ----------------------------
    @property
    def actions(self) -> List[Action]:
        """Snapshot of the current order (callers may not mutate the store through it)."""
        return list(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __getitem__(self, index: int) -> Action:
        return self._actions[index]

    def find(self, name: str, group: Optional[str] = None) -> int:
        """Index of the first action called ``name`` (optionally in exactly ``group``)."""
        name = name.strip()
        for i, a in enumerate(self._actions):
            if a.name != name:
                continue
            if group is not None and (a.group_path or "") != group.strip("/"):
                continue
            return i
        raise ActionNotFoundError(name, group)

    def all_groups(self) -> List[str]:
        """Every group path in use, including all ancestor paths."""
        groups = set()
        for a in self._actions:
            if a.group_path:
                parts = a.group_path.split("/")
                for i in range(1, len(parts) + 1):
                    groups.add("/".join(parts[:i]))
        return sorted(groups)

    # ----------------------------
    # Listeners
    # ----------------------------
    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def _notify(self) -> None:
        for cb in list(self._listeners):
            cb()

    # ----------------------------
    # Load / persist
    # ----------------------------
    def load(self) -> List[Action]:
        """Load from disk. A missing source yields an empty store.

        Entries that do not parse are reported one by one and kept aside so
        the next save writes them back untouched. A document that cannot be
        read at all empties the store and blocks saving until it is fixed,
        reloaded, or replaced by an import.
        """
        try:
            self._actions, self._unparsed = self._read()
            self._unreadable = False
        except ConfigReadError as e:
            self.notifier.warning(f"{e}. Changes will not be saved until the file is fixed.")
            self._actions, self._unparsed = [], []
            self._unreadable = True
        self._signature = self.disk_signature()
        logger.info("Loaded %d actions from %s", len(self._actions), self.config_path)
        self._notify()
        return self.actions

    def _read(self) -> Tuple[List[Action], List[Any]]:
        if not self.config_path.exists():
            return [], []
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigReadError(self.config_path, str(e))
        if not isinstance(data, dict):
            raise ConfigReadError(self.config_path, "top-level value must be an object")
        if "commands" not in data:
            return [], []
        commands = data["commands"]
        if not isinstance(commands, list):
            raise ConfigReadError(self.config_path, "commands must be an array")

        actions: List[Action] = []
        unparsed: List[Any] = []
        for number, item in enumerate(commands, 1):
            try:
                actions.append(Action.from_dict(item))
            except (ValueError, TypeError, AttributeError) as e:
                unparsed.append(item)
                self.notifier.warning(str(ConfigReadError(self.config_path, f"entry {number} skipped: {e}")))
        return actions, unparsed

    def disk_signature(self) -> Optional[Tuple[int, int]]:
        """(mtime_ns, size) of the backing file, or None when it does not exist."""
        try:
            st = self.config_path.stat()
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def reload_if_changed(self) -> bool:
        """Reload when the file differs from what was last loaded or saved here.

        A deleted file clears the store.
        """
        if self.disk_signature() == self._signature:
            return False
        logger.info("%s changed on disk, reloading", self.config_path)
        self.load()
        return True

    def persist(self) -> bool:
        """Write the full ordered list. Reports failures, never raises."""
        if self._unreadable:
            self.notifier.error(
                f"Not saving: {self.config_path} could not be read. "
                "Fix or reload it, or import a replacement."
            )
            return False
        try:
            write_document(self.config_path, self._actions, self._unparsed)
        except ConfigWriteError as e:
            self.notifier.error(str(e))
            return False
        self._signature = self.disk_signature()
        logger.info("Saved %d actions to %s", len(self._actions), self.config_path)
        return True

    def _commit(self) -> bool:
        ok = self.persist()
        self._notify()
        return ok

    # ----------------------------
    # Mutations
    # ----------------------------
    def replace_all(self, actions: Sequence[Action]) -> bool:
        self._actions = list(actions)
        return self._commit()

    def append(self, action: Action) -> bool:
        self._actions.append(action)
        return self._commit()

    def insert_at(self, index: int, action: Action) -> bool:
        self._actions.insert(index, action)
        return self._commit()

    def update_at(self, index: int, action: Action) -> bool:
        self._check_index(index)
        self._actions[index] = action
        return self._commit()

    def remove_at(self, index: int) -> Action:
        self._check_index(index)
        removed = self._actions.pop(index)
        self._commit()
        return removed

    def duplicate_at(self, index: int) -> Action:
        """Deep copy of the action, inserted right after the original."""
        self._check_index(index)
        copied = self._actions[index].duplicate()
        self._actions.insert(index + 1, copied)
        self._commit()
        return copied

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._actions):
            raise IndexError(f"no action at index {index}")

    # ----------------------------
    # Example / import / export
    # ----------------------------
    def write_example(self) -> bool:
        """Create a starter document if none exists yet."""
        if self.config_path.exists():
            return False
        self._actions = example_actions()
        return self._commit()

    def export_to(self, path: Union[str, Path]) -> bool:
        if not self._actions:
            self.notifier.warning("No commands to export")
            return False
        try:
            write_document(Path(path), self._actions)
        except ConfigWriteError as e:
            self.notifier.error(f"Failed to export config: {e}")
            return False
        self.notifier.info(f"Exported {len(self._actions)} commands to {Path(path).name}")
        return True

    def import_from(self, path: Union[str, Path], mode: str = IMPORT_MERGE) -> Optional[Tuple[int, int]]:
        """Import another document. Returns (added, skipped) or None when rejected.

        merge   : append actions whose (group, name) is new; existing ones win
        replace : the imported list becomes the store
        """
        if mode not in (IMPORT_MERGE, IMPORT_REPLACE):
            raise ValueError(f"unknown import mode: {mode}")
        try:
            imported = read_document(Path(path))
        except ImportValidationError as e:
            self.notifier.error(str(e))
            return None

        if mode == IMPORT_REPLACE:
            self._actions = imported
            self._unparsed = []
            self._unreadable = False
            self._commit()
            self.notifier.info(f"Replaced with {len(imported)} commands")
            return len(imported), 0

        existing = {a.key() for a in self._actions}
        added = 0
        for action in imported:
            if action.key() in existing:
                continue
            self._actions.append(action)
            existing.add(action.key())
            added += 1
        skipped = len(imported) - added
        self._commit()
        self.notifier.info(f"Added {added} new commands ({skipped} duplicates skipped)")
        return added, skipped

    def to_document(self) -> Dict[str, Any]:
        return {"commands": [a.to_dict() for a in self._actions]}
