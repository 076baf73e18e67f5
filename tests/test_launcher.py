"""
Tests for the run dispatcher: order of effects, per-item failures, fallbacks.
Run with: python -m pytest tests/test_launcher.py -v
"""
import asyncio

import pytest

from conftest import FakeBrowser, FakePrompt, FakeTerminalHost
from cmdcockpit.errors import ElevationError, LaunchError, TerminalResolutionError
from cmdcockpit.launcher import EFFECT_PROGRAM, EFFECT_TERMINAL, EFFECT_URL, Dispatcher
from cmdcockpit.models import Action, ProgramItem, TerminalMode, UrlItem
from cmdcockpit.terminal_profiles import probe_profiles

WINDOWS_PROFILES = probe_profiles("win32", {}, lambda p: False)


class FakeProcess:
    def __init__(self, returncode):
        self.returncode = returncode

    def wait(self):
        return self.returncode

    def poll(self):
        return self.returncode


class ProcessSpawner:
    """Records invocations and hands back a finished process with ``returncode``."""

    def __init__(self, returncode):
        self.returncode = returncode
        self.invocations = []

    def __call__(self, invocation):
        self.invocations.append(invocation)
        return FakeProcess(self.returncode)


class FakeSpawner:
    def __init__(self, timeline, fail_on=()):
        self.timeline = timeline
        self.fail_on = fail_on
        self.invocations = []

    def __call__(self, invocation):
        text = invocation.display()
        if any(f in text for f in self.fail_on):
            raise OSError(f"cannot start {text}")
        self.invocations.append(invocation)
        self.timeline.append(("spawn", text))


@pytest.fixture
def spawner(timeline):
    return FakeSpawner(timeline)


@pytest.fixture
def dispatcher_for(timeline, notifier, spawner):
    def _make(prompt=None, spawn=None, **kwargs):
        async def fake_sleep(seconds):
            timeline.append(("sleep", seconds))

        return Dispatcher(
            terminal_host=FakeTerminalHost(timeline),
            browser=FakeBrowser(timeline),
            prompt=prompt,
            notifier=notifier,
            profiles=WINDOWS_PROFILES,
            url_delay=0.1,
            platform="win32",
            spawner=spawn or spawner,
            sleep=fake_sleep,
            **kwargs,
        )
    return _make


def run(dispatcher, action):
    return asyncio.run(dispatcher.run(action))


class TestOrder:
    def test_shell_then_urls_then_programs(self, dispatcher_for, timeline):
        action = Action(
            "Everything",
            shell_commands=["a", "b"],
            terminal_mode=TerminalMode.EXTERNAL,
            urls=[UrlItem("https://one"), UrlItem("https://two", external=True)],
            programs=[ProgramItem("C:\\tools\\app.exe", "-v")],
        )
        report = run(dispatcher_for(), action)

        assert report.ok
        assert report.kinds() == [EFFECT_TERMINAL, EFFECT_URL, EFFECT_URL, EFFECT_PROGRAM]
        assert [step for step, _ in timeline] == ["spawn", "browser", "sleep", "spawn", "spawn"]
        assert "a && b" in timeline[0][1]
        assert timeline[1] == ("browser", "https://one")
        assert timeline[2] == ("sleep", 0.1)
        assert "https://two" in timeline[3][1]

    def test_internal_terminal(self, dispatcher_for, timeline):
        dispatcher = dispatcher_for()
        action = Action("Inner", shell_commands=["a", "b"], env={"K": "1"}, auto_close=True)
        report = run(dispatcher, action)
        term = dispatcher.terminal_host.terminals[0]
        assert term.name == "Inner"
        assert term.env == {"K": "1"}
        assert term.sent == ["trap 'exit' INT; a && b; exit"]
        assert report.events[0].detail == "internal"

    def test_single_url_no_delay(self, dispatcher_for, timeline):
        run(dispatcher_for(), Action("Link", urls=[UrlItem("https://one")]))
        assert timeline == [("browser", "https://one")]

    def test_nothing_configured(self, dispatcher_for, timeline):
        report = run(dispatcher_for(), Action("Empty"))
        assert report.events == [] and report.ok
        assert timeline == []

    def test_run_sync(self, dispatcher_for):
        report = dispatcher_for().run_sync(Action("Link", urls=[UrlItem("https://one")]))
        assert report.kinds() == [EFFECT_URL]


class TestExternal:
    def test_env_merged_into_child(self, dispatcher_for, spawner, monkeypatch):
        monkeypatch.setenv("COCKPIT_PARENT_VAR", "inherited")
        action = Action("Env", shell_commands=["echo {{K}}"], terminal_mode=TerminalMode.EXTERNAL, env={"K": "v"})
        run(dispatcher_for(), action)
        inv = spawner.invocations[0]
        assert inv.env["K"] == "v"
        assert inv.env["COCKPIT_PARENT_VAR"] == "inherited"
        assert inv.argv[-1] == "echo !K!"

    def test_named_profile(self, dispatcher_for, spawner):
        action = Action("PS", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL,
                        terminal_profile_name="PowerShell")
        run(dispatcher_for(), action)
        assert "powershell.exe" in spawner.invocations[0].argv

    def test_unknown_profile_falls_back(self, dispatcher_for, spawner, notifier):
        action = Action("Bash", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL,
                        terminal_profile_name="Git Bash")
        report = run(dispatcher_for(), action)
        assert isinstance(report.errors[0], TerminalResolutionError)
        assert spawner.invocations[0].argv[:5] == ["cmd", "/c", "start", "", "cmd"]
        assert report.kinds() == [EFFECT_TERMINAL]
        assert any("Git Bash" in m for m in notifier.of("warning"))

    def test_elevation_failure_reported(self, dispatcher_for, timeline, notifier):
        spawn = FakeSpawner(timeline, fail_on=("RunAs",))
        action = Action("Admin", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL,
                        run_as_admin=True, urls=[UrlItem("https://one")])
        report = run(dispatcher_for(spawn=spawn), action)
        assert isinstance(report.errors[0], ElevationError)
        assert report.kinds() == [EFFECT_URL]
        assert notifier.of("error")

    def test_elevated_run_gets_no_env(self, dispatcher_for, spawner):
        action = Action("Admin", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL,
                        run_as_admin=True, env={"K": "v"})
        run(dispatcher_for(), action)
        assert spawner.invocations[0].elevated
        assert spawner.invocations[0].env is None


    def test_declined_elevation_reported(self, dispatcher_for, notifier):
        spawn = ProcessSpawner(returncode=1)
        action = Action("Admin", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL, run_as_admin=True)
        dispatcher = dispatcher_for(spawn=spawn, exit_watcher=lambda proc, on_exit: on_exit(proc.wait()))
        report = run(dispatcher, action)
        assert report.kinds() == [EFFECT_TERMINAL]
        assert isinstance(report.errors[0], ElevationError)
        assert "exit code 1" in notifier.of("error")[0]

    def test_accepted_elevation_is_quiet(self, dispatcher_for, notifier):
        spawn = ProcessSpawner(returncode=0)
        action = Action("Admin", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL, run_as_admin=True)
        report = run(dispatcher_for(spawn=spawn, exit_watcher=lambda proc, on_exit: on_exit(proc.wait())), action)
        assert report.ok
        assert notifier.of("error") == []

    def test_elevation_watched_on_thread(self, dispatcher_for, notifier):
        spawn = ProcessSpawner(returncode=5)
        action = Action("Admin", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL, run_as_admin=True)
        dispatcher = dispatcher_for(spawn=spawn)
        report = run(dispatcher, action)
        dispatcher.wait_pending(timeout=5)
        assert isinstance(report.errors[0], ElevationError)
        assert any("exit code 5" in m for m in notifier.of("error"))

    def test_plain_external_run_not_watched(self, dispatcher_for):
        watched = []
        spawn = ProcessSpawner(returncode=1)
        action = Action("Ext", shell_commands=["a"], terminal_mode=TerminalMode.EXTERNAL)
        report = run(dispatcher_for(spawn=spawn, exit_watcher=lambda proc, on_exit: watched.append(proc)), action)
        assert report.ok
        assert watched == []


class TestFailures:
    def test_program_failure_does_not_stop_others(self, dispatcher_for, timeline):
        spawn = FakeSpawner(timeline, fail_on=("broken.exe",))
        action = Action("Programs", programs=[ProgramItem("C:\\broken.exe"), ProgramItem("C:\\ok.exe")])
        report = run(dispatcher_for(spawn=spawn), action)
        assert len(report.errors) == 1
        assert isinstance(report.errors[0], LaunchError)
        assert [e.target for e in report.events] == ["C:\\ok.exe"]

    def test_browser_failure_reported(self, dispatcher_for, notifier):
        dispatcher = dispatcher_for()

        def explode(url):
            raise RuntimeError("no browser")

        dispatcher.browser.open = explode
        report = run(dispatcher, Action("Link", urls=[UrlItem("https://one")], programs=[ProgramItem("C:\\ok.exe")]))
        assert report.kinds() == [EFFECT_PROGRAM]
        assert any("https://one" in m for m in notifier.of("error"))

    def test_no_internal_host(self, notifier, spawner):
        dispatcher = Dispatcher(notifier=notifier, spawner=spawner, platform="win32", profiles=WINDOWS_PROFILES)
        report = run(dispatcher, Action("Inner", shell_commands=["a"]))
        assert isinstance(report.errors[0], LaunchError)


class TestInputs:
    def test_placeholders_resolved_everywhere(self, dispatcher_for, timeline, spawner):
        prompt = FakePrompt({"Branch": "main"})
        action = Action(
            "Inputs",
            shell_commands=["git checkout ${input:Branch}"],
            urls=[UrlItem("https://ci/${input:Branch}")],
            programs=[ProgramItem("C:\\app.exe", "--branch ${input:Branch}")],
        )
        dispatcher = dispatcher_for(prompt=prompt)
        report = run(dispatcher, action)
        assert prompt.asked == ["Branch"]
        assert dispatcher.terminal_host.terminals[0].sent == ["git checkout main"]
        assert ("browser", "https://ci/main") in timeline
        assert report.events[-1].detail == "--branch main"

    def test_cancel_keeps_earlier_effects(self, dispatcher_for, timeline, notifier):
        prompt = FakePrompt({})
        action = Action(
            "Cancel",
            shell_commands=["echo start"],
            urls=[UrlItem("https://one"), UrlItem("https://two/${input:Id}")],
            programs=[ProgramItem("C:\\app.exe")],
        )
        report = run(dispatcher_for(prompt=prompt), action)
        assert report.cancelled
        assert report.kinds() == [EFFECT_TERMINAL, EFFECT_URL]
        assert not any(step == "spawn" for step, _ in timeline)
        assert any("Id" in m for m in notifier.of("warning"))
