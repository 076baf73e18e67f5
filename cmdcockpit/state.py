#===============================================================================
#  CMD_Cockpit | state.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Load/save of persistent view state: which group paths are expanded and
#  the active search filter. Keyed by group path string and independent of
#  the action list, so a renamed group simply starts collapsed again.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)


def default_state() -> Dict[str, Any]:
    return {
        "expanded_groups": [],  # list of group paths (sorted on save)
        "search_filter": "",    # lower-cased filter text, "" = no filter
    }


def load_state(state_path: Path) -> Dict[str, Any]:
    """Load state from disk (or create defaults)."""
    d = default_state()
    if not state_path.exists():
        return d
    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
        for k in d:
            if k not in data:
                data[k] = d[k]
        return data
    except Exception as e:
        logger.warning("Ignoring unreadable view state %s: %s", state_path, e)
        return d


def save_state(state_path: Path, state: Dict[str, Any]) -> None:
    """Persist state to disk."""
    state_path.parent.mkdir(parents=True, exist_ok=True)
    state_path.write_text(json.dumps(state, indent=2), encoding="utf-8")


class ViewState:
    """Process-wide expansion + filter state, saved on every change."""

    def __init__(self, state_path: Optional[Path] = None):
        self.state_path = Path(state_path) if state_path else None
        raw = load_state(self.state_path) if self.state_path else default_state()
        self.expanded_groups = set(str(p) for p in raw.get("expanded_groups") or [])
        self.search_filter = _clean_filter(raw.get("search_filter"))

    def save(self) -> None:
        if self.state_path is None:
            return
        state = {
            "expanded_groups": sorted(self.expanded_groups),
            "search_filter": self.search_filter,
        }
        try:
            save_state(self.state_path, state)
        except OSError as e:
            logger.error("Could not save view state %s: %s", self.state_path, e)

    # ----------------------------
    # Expansion
    # ----------------------------
    def is_group_expanded(self, group_path: str) -> bool:
        return group_path in self.expanded_groups

    def set_group_expanded(self, group_path: str, expanded: bool) -> None:
        if expanded:
            self.expanded_groups.add(group_path)
        else:
            self.expanded_groups.discard(group_path)
        self.save()

    def expand_all(self, group_paths: Iterable[str]) -> None:
        self.expanded_groups.update(group_paths)
        self.save()

    def collapse_all(self) -> None:
        self.expanded_groups.clear()
        self.save()

    # ----------------------------
    # Search filter
    # ----------------------------
    def set_search_filter(self, text: Optional[str]) -> None:
        self.search_filter = _clean_filter(text)
        self.save()

    def clear_search(self) -> None:
        self.set_search_filter("")


def _clean_filter(text: Any) -> str:
    return str(text or "").strip().lower()
