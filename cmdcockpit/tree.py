#===============================================================================
#  CMD_Cockpit | tree.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Group Tree Builder. Derives one level of the group hierarchy (root, or
#  the children of one group path) from the flat, ordered action list.
#  Nothing here is stored: every call is a pure projection of the list.
#
#  Ordering rules:
#    - groups appear in order of first appearance in the store, never sorted
#    - at the root, group nodes come first, then ungrouped actions
#    - inside a group, subgroup nodes come first, then direct actions
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from .models import Action
from .state import ViewState


@dataclass(frozen=True)
class GroupNode:
    path: str
    expanded: bool = False
    descendant_action_count: int = 0

    @property
    def display_name(self) -> str:
        return self.path.split("/")[-1]


@dataclass(frozen=True)
class ActionNode:
    action: Action
    store_index: int


Node = Union[GroupNode, ActionNode]


def matches_filter(action: Action, needle: Optional[str]) -> bool:
    """Case-insensitive substring match on name, group, commands, URLs, program paths."""
    if not needle:
        return True
    needle = needle.lower()
    return any(needle in text.lower() for text in action.search_text())


def descendant_action_count(actions: Sequence[Action], group_path: str, needle: Optional[str] = None) -> int:
    return sum(1 for a in actions if a.in_group(group_path) and matches_filter(a, needle))


def children(
    actions: Sequence[Action],
    group_path: Optional[str] = None,
    is_expanded: Optional[Callable[[str], bool]] = None,
    search: Optional[str] = None,
) -> List[Node]:
    """One level of the tree: the root (group_path=None) or one group's children."""
    needle = (search or "").strip().lower()
    expanded_lookup = is_expanded or (lambda _p: False)

    def group_node(path: str) -> GroupNode:
        # while filtering, every visited group is shown expanded
        expanded = True if needle else bool(expanded_lookup(path))
        return GroupNode(path, expanded, descendant_action_count(actions, path, needle))

    seen: List[str] = []
    leaves: List[ActionNode] = []

    if not group_path:
        for index, a in enumerate(actions):
            if not matches_filter(a, needle):
                continue
            if a.group_path:
                top = a.group_path.split("/")[0]
                if top not in seen:
                    seen.append(top)
            else:
                leaves.append(ActionNode(a, index))
        return [group_node(p) for p in seen] + leaves

    prefix = group_path + "/"
    for index, a in enumerate(actions):
        if not a.group_path or not matches_filter(a, needle):
            continue
        if a.group_path == group_path:
            leaves.append(ActionNode(a, index))
        elif a.group_path.startswith(prefix):
            sub = prefix + a.group_path[len(prefix):].split("/")[0]
            if sub not in seen:
                seen.append(sub)
    return [group_node(p) for p in seen] + leaves


def parent_of(node: Node) -> Optional[str]:
    """Group path containing ``node`` (None = root)."""
    if isinstance(node, GroupNode):
        parts = node.path.split("/")
        return "/".join(parts[:-1]) or None
    return node.action.group_path


def walk(
    actions: Sequence[Action],
    is_expanded: Optional[Callable[[str], bool]] = None,
    search: Optional[str] = None,
    expand_all: bool = False,
) -> Iterator[Tuple[int, Node]]:
    """Depth-first (depth, node) pairs, descending only into expanded groups."""

    def visit(path: Optional[str], depth: int) -> Iterator[Tuple[int, Node]]:
        for node in children(actions, path, is_expanded, search):
            yield depth, node
            if isinstance(node, GroupNode) and (expand_all or node.expanded):
                yield from visit(node.path, depth + 1)

    return visit(None, 0)


def group_paths_by_depth(actions: Sequence[Action]) -> List[str]:
    """All group paths (with ancestors), shallow first."""
    paths: List[str] = []
    for a in actions:
        if not a.group_path:
            continue
        parts = a.group_path.split("/")
        for i in range(1, len(parts) + 1):
            p = "/".join(parts[:i])
            if p not in paths:
                paths.append(p)
    return sorted(paths, key=lambda p: p.count("/"))


class GroupTreeBuilder:
    """Binds the pure functions above to a live action source and view state."""

    def __init__(self, get_actions: Callable[[], Sequence[Action]], view_state: ViewState):
        self.get_actions = get_actions
        self.view_state = view_state

    def children(self, group_path: Optional[str] = None) -> List[Node]:
        return children(
            self.get_actions(),
            group_path,
            self.view_state.is_group_expanded,
            self.view_state.search_filter,
        )

    def walk(self, expand_all: bool = False) -> Iterator[Tuple[int, Node]]:
        return walk(
            self.get_actions(),
            self.view_state.is_group_expanded,
            self.view_state.search_filter,
            expand_all=expand_all,
        )
