#===============================================================================
#  CMD_Cockpit | launcher.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Execution Dispatcher. Runs one action as a fan-out in fixed order:
#    1) shell commands (internal terminal, or an external terminal profile)
#    2) URLs, one after the other with a short delay in between
#    3) programs, all launched at once and never awaited
#  Every failure is reported per item and the run carries on. Nothing is
#  retried and nothing already launched is rolled back.
#  Elevated runs are the one exception to "never awaited": the helper's exit
#  code is watched in the background so a declined prompt gets reported.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .constants import URL_OPEN_DELAY_MS
from .errors import (
    CockpitError,
    ElevationError,
    InputCancelled,
    LaunchError,
    TerminalResolutionError,
)
from .hosts import BrowserHost, InputPrompt, Notifier, TerminalHost
from .inputs import InputResolver
from .models import Action, ProgramItem
from .shell import (
    Invocation,
    build_external_invocation,
    build_internal_text,
    build_program_invocation,
    build_url_invocation,
)
from .terminal_profiles import TerminalProfile, get_terminal_profiles, resolve_profile

logger = logging.getLogger(__name__)

EFFECT_TERMINAL = "terminal"
EFFECT_URL = "url"
EFFECT_PROGRAM = "program"

Spawner = Callable[[Invocation], Any]
ExitWatcher = Callable[[Any, Callable[[int], None]], Any]


def popen_spawner(invocation: Invocation) -> subprocess.Popen:
    """Start the process and return at once (never waits)."""
    kwargs: dict = {"shell": invocation.shell}
    if invocation.env is not None:
        kwargs["env"] = invocation.env
    if invocation.detached:
        kwargs.update(stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        if sys.platform.startswith("win"):
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True
    logger.info("Spawning: %s", invocation.display())
    return subprocess.Popen(invocation.argv, **kwargs)


def thread_exit_watcher(process: Any, on_exit: Callable[[int], None]) -> threading.Thread:
    """Wait for ``process`` on a daemon thread, then call ``on_exit(returncode)``."""
    thread = threading.Thread(target=lambda: on_exit(process.wait()), name="exit-watcher", daemon=True)
    thread.start()
    return thread


@dataclass
class LaunchEvent:
    kind: str       # terminal | url | program
    target: str     # what the user configured (command line, URL, program path)
    detail: str = ""


@dataclass
class RunReport:
    """What one run issued, in order, plus everything that went wrong."""
    action_name: str
    events: List[LaunchEvent] = field(default_factory=list)
    errors: List[CockpitError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors and not self.cancelled

    def kinds(self) -> List[str]:
        return [e.kind for e in self.events]


class Dispatcher:
    """Turns one Action into terminal, browser and program launches."""

    def __init__(
        self,
        terminal_host: Optional[TerminalHost] = None,
        browser: Optional[BrowserHost] = None,
        prompt: Optional[InputPrompt] = None,
        notifier: Optional[Notifier] = None,
        profiles: Optional[Sequence[TerminalProfile]] = None,
        default_profile: Optional[str] = None,
        url_delay: float = URL_OPEN_DELAY_MS / 1000.0,
        platform: Optional[str] = None,
        spawner: Optional[Spawner] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        exit_watcher: Optional[ExitWatcher] = None,
    ):
        self.terminal_host = terminal_host
        self.browser = browser or BrowserHost()
        self.prompt = prompt
        self.notifier = notifier or Notifier()
        self._profiles = tuple(profiles) if profiles is not None else None
        self.default_profile = default_profile
        self.url_delay = url_delay
        self.platform = platform or sys.platform
        self.spawner = spawner or popen_spawner
        self.sleep = sleep
        self.exit_watcher = exit_watcher or thread_exit_watcher
        self._watching: List[Any] = []

    @property
    def profiles(self):
        if self._profiles is None:
            self._profiles = get_terminal_profiles()
        return self._profiles

    # ----------------------------
    # Entry points
    # ----------------------------
    async def run(self, action: Action) -> RunReport:
        report = RunReport(action.name)
        resolver = InputResolver(self.prompt)
        logger.info("Running '%s'", action.name)
        try:
            if action.shell_commands:
                self._run_shell(action, resolver, report)
            await self._open_urls(action, resolver, report)
            self._launch_programs(action.programs, resolver, report)
        except InputCancelled as e:
            report.cancelled = True
            self.notifier.warning(f"Run of '{action.name}' stopped: input '{e.label}' was cancelled")
        return report

    def run_sync(self, action: Action) -> RunReport:
        return asyncio.run(self.run(action))

    # ----------------------------
    # Shell commands
    # ----------------------------
    def _run_shell(self, action: Action, resolver: InputResolver, report: RunReport) -> None:
        commands = resolver.resolve_all(action.shell_commands)
        if action.is_external:
            self._run_external(action, commands, report)
        else:
            self._run_internal(action, commands, report)

    def _run_internal(self, action: Action, commands: List[str], report: RunReport) -> None:
        host = self.terminal_host
        if host is None:
            self._fail(report, LaunchError(action.name, "no internal terminal available"))
            return
        text = build_internal_text(commands, action.auto_close, host.uses_powershell)
        try:
            terminal = host.create_terminal(action.name, action.env)
            terminal.send_text(text)
        except OSError as e:
            self._fail(report, LaunchError(action.name, str(e)))
            return
        report.events.append(LaunchEvent(EFFECT_TERMINAL, text, "internal"))

    def _run_external(self, action: Action, commands: List[str], report: RunReport) -> None:
        try:
            profile = resolve_profile(action.terminal_profile_name, self.profiles, self.default_profile)
        except TerminalResolutionError as e:
            self.notifier.warning(str(e))
            report.errors.append(e)
            profile = e.fallback_profile
            if profile is None:
                return

        invocation = build_external_invocation(
            profile,
            commands,
            auto_close=action.auto_close,
            run_as_admin=action.run_as_admin,
            platform=self.platform,
        )
        if not invocation.elevated and action.env:
            invocation.env = {**os.environ, **action.env}
        if invocation.fallback:
            self.notifier.warning(f"{profile.name} is not installed; running in bash instead")

        try:
            process = self.spawner(invocation)
        except (OSError, ValueError) as e:
            if invocation.elevated:
                self._fail(report, ElevationError(profile.name, str(e)))
            else:
                self._fail(report, LaunchError(profile.name, str(e)))
            return
        report.events.append(LaunchEvent(EFFECT_TERMINAL, invocation.display(), profile.name))
        if invocation.elevated and process is not None:
            self._watch_elevation(process, profile.name, report)

    def _watch_elevation(self, process: Any, profile_name: str, report: RunReport) -> None:
        # the helper exits non-zero when the UAC prompt is declined
        def finished(code: int) -> None:
            if code:
                self._fail(report, ElevationError(profile_name, f"elevation helper exited with code {code}"))

        watcher = self.exit_watcher(process, finished)
        if watcher is not None:
            self._watching.append(watcher)

    def wait_pending(self, timeout: Optional[float] = None) -> None:
        """Block until threaded exit watchers have reported."""
        for watcher in self._watching:
            join = getattr(watcher, "join", None)
            if join is not None:
                join(timeout)
        self._watching = []

    # ----------------------------
    # URLs
    # ----------------------------
    async def _open_urls(self, action: Action, resolver: InputResolver, report: RunReport) -> None:
        for i, item in enumerate(action.urls):
            if i > 0:
                await self.sleep(self.url_delay)
            url = resolver.resolve(item.url) or ""
            try:
                if item.external:
                    self.spawner(build_url_invocation(url, self.platform))
                else:
                    self.browser.open(url)
            except Exception as e:
                self._fail(report, LaunchError(url, str(e)))
                continue
            report.events.append(LaunchEvent(EFFECT_URL, url, "external" if item.external else "embedded"))

    # ----------------------------
    # Programs
    # ----------------------------
    def _launch_programs(self, programs: Sequence[ProgramItem], resolver: InputResolver, report: RunReport) -> None:
        # resolve every placeholder first: a cancelled prompt stops before any program starts
        resolved = [ProgramItem(p.path, resolver.resolve(p.args)) for p in programs]
        for program in resolved:
            try:
                invocation = build_program_invocation(program, self.platform)
                self.spawner(invocation)
            except (OSError, ValueError) as e:
                self._fail(report, LaunchError(program.path, str(e)))
                continue
            report.events.append(LaunchEvent(EFFECT_PROGRAM, program.path, program.args or ""))

    def _fail(self, report: RunReport, error: CockpitError) -> None:
        self.notifier.error(str(error))
        report.errors.append(error)