#===============================================================================
#  CMD_Cockpit | models.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Shared data models: Action (one launchable entry) with its URL and program
#  items, plus the JSON mapping used by the persistence layer. Documents
#  written by older launchers (single url/program/args fields, group/commands
#  key names) are normalized here at load time.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TerminalMode(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


# Old key -> current key. Read-only aliases, never written back.
KEY_ALIASES = {
    "group": "groupPath",
    "commands": "shellCommands",
    "terminalProfile": "terminalProfileName",
}


def normalize_group_path(value: Optional[str]) -> Optional[str]:
    """Trim each segment and drop empty ones. Empty result means root level."""
    if not value:
        return None
    parts = [p.strip() for p in str(value).split("/")]
    parts = [p for p in parts if p]
    return "/".join(parts) if parts else None


@dataclass
class UrlItem:
    url: str
    external: bool = False  # True = system browser, False = embedded browser

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"url": self.url}
        if self.external:
            d["external"] = True
        return d

    @staticmethod
    def from_dict(d: Any) -> "UrlItem":
        if isinstance(d, str):
            return UrlItem(url=d)
        return UrlItem(url=str(d.get("url", "")), external=bool(d.get("external", False)))


@dataclass
class ProgramItem:
    path: str
    args: Optional[str] = None  # already shell-tokenized by the user

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"path": self.path}
        if self.args:
            d["args"] = self.args
        return d

    @staticmethod
    def from_dict(d: Any) -> "ProgramItem":
        if isinstance(d, str):
            return ProgramItem(path=d)
        return ProgramItem(path=str(d.get("path", "")), args=_flatten_args(d.get("args")))

    def command_line(self) -> str:
        """Path quoted only if it contains whitespace, args appended verbatim."""
        path = f'"{self.path}"' if any(ch.isspace() for ch in self.path) else self.path
        return f"{path} {self.args}" if self.args else path


def _flatten_args(args: Any) -> Optional[str]:
    if args is None:
        return None
    if isinstance(args, (list, tuple)):
        joined = " ".join(str(a) for a in args)
    else:
        joined = str(args)
    return joined or None


def normalize_legacy_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fold deprecated single-value fields into their array equivalents.

    - ``url`` becomes a one-element ``urls`` list
    - ``program`` / ``args`` become a one-element ``programs`` list, with
      ``args`` flattened from a token list to one space-joined string
    - old key names (``group``, ``commands``, ``terminalProfile``,
      ``externalTerminal``) are renamed

    Idempotent: a document that already uses the current shape is returned
    unchanged (as a copy).
    """
    d = dict(data)

    for old, new in KEY_ALIASES.items():
        if old in d:
            value = d.pop(old)
            d.setdefault(new, value)

    if "externalTerminal" in d:
        external = bool(d.pop("externalTerminal"))
        d.setdefault("terminalMode", TerminalMode.EXTERNAL.value if external else TerminalMode.INTERNAL.value)

    url = d.pop("url", None)
    if "urls" not in d and url:
        d["urls"] = [{"url": url}]

    program = d.pop("program", None)
    legacy_args = d.pop("args", None)
    if "programs" not in d and program:
        prog: Dict[str, Any] = {"path": program}
        flat = _flatten_args(legacy_args)
        if flat:
            prog["args"] = flat
        d["programs"] = [prog]

    return d


@dataclass
class Action:
    """One user-defined launchable entry (shell commands + URLs + programs)."""
    name: str
    group_path: Optional[str] = None
    shell_commands: List[str] = field(default_factory=list)
    terminal_mode: TerminalMode = TerminalMode.INTERNAL
    auto_close: bool = False
    terminal_profile_name: Optional[str] = None
    run_as_admin: bool = False
    env: Dict[str, str] = field(default_factory=dict)
    urls: List[UrlItem] = field(default_factory=list)
    programs: List[ProgramItem] = field(default_factory=list)

    def __post_init__(self):
        self.name = str(self.name).strip()
        self.group_path = normalize_group_path(self.group_path)
        if not isinstance(self.terminal_mode, TerminalMode):
            self.terminal_mode = TerminalMode(self.terminal_mode)

    # ----------------------------
    # Group membership
    # ----------------------------
    def in_group(self, group_path: str) -> bool:
        """True if the action sits in ``group_path`` or anywhere below it."""
        g = self.group_path
        return bool(g) and (g == group_path or g.startswith(group_path + "/"))

    @property
    def is_external(self) -> bool:
        return self.terminal_mode == TerminalMode.EXTERNAL

    def key(self) -> str:
        # merge identity used by import
        return f"{self.group_path or ''}::{self.name}"

    # ----------------------------
    # Display helpers
    # ----------------------------
    def search_text(self) -> List[str]:
        fields = [self.name, self.group_path or ""]
        fields += self.shell_commands
        fields += [u.url for u in self.urls]
        fields += [p.path for p in self.programs]
        return fields

    def kind(self) -> str:
        if self.urls and not self.shell_commands:
            return "link"
        if self.shell_commands and self.urls:
            return "mixed"
        if self.programs and not self.shell_commands:
            return "program"
        return "terminal"

    def describe(self) -> str:
        lines = list(self.shell_commands)
        for u in self.urls:
            lines.append(f"🔗 {u.url}" + (" (external)" if u.external else ""))
        for p in self.programs:
            lines.append(f"⚙️ {p.path}" + (f" {p.args}" if p.args else ""))
        return "\n".join(lines)

    def duplicate(self) -> "Action":
        copied = copy.deepcopy(self)
        copied.name = f"{self.name} (copy)"
        return copied

    # ----------------------------
    # JSON mapping
    # ----------------------------
    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name}
        if self.group_path:
            d["groupPath"] = self.group_path
        if self.shell_commands:
            d["shellCommands"] = list(self.shell_commands)
        if self.terminal_mode != TerminalMode.INTERNAL:
            d["terminalMode"] = self.terminal_mode.value
        if self.auto_close:
            d["autoClose"] = True
        if self.terminal_profile_name:
            d["terminalProfileName"] = self.terminal_profile_name
        if self.run_as_admin:
            d["runAsAdmin"] = True
        if self.env:
            d["env"] = dict(self.env)
        if self.urls:
            d["urls"] = [u.to_dict() for u in self.urls]
        if self.programs:
            d["programs"] = [p.to_dict() for p in self.programs]
        return d

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Action":
        if not isinstance(data, dict):
            raise ValueError(f"action entry must be an object, got {type(data).__name__}")
        d = normalize_legacy_fields(data)
        name = str(d.get("name") or "")
        if not name.strip():
            raise ValueError("action entry is missing 'name'")

        mode = d.get("terminalMode") or TerminalMode.INTERNAL.value
        try:
            terminal_mode = TerminalMode(str(mode).lower())
        except ValueError:
            raise ValueError(f"unknown terminalMode '{mode}' for action '{name}'")

        return Action(
            name=name,
            group_path=d.get("groupPath"),
            shell_commands=[str(c) for c in d.get("shellCommands") or [] if str(c).strip()],
            terminal_mode=terminal_mode,
            auto_close=bool(d.get("autoClose", False)),
            terminal_profile_name=d.get("terminalProfileName") or None,
            run_as_admin=bool(d.get("runAsAdmin", False)),
            env={str(k): str(v) for k, v in (d.get("env") or {}).items()},
            urls=[UrlItem.from_dict(u) for u in d.get("urls") or []],
            programs=[ProgramItem.from_dict(p) for p in d.get("programs") or []],
        )
