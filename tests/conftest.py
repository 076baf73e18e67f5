"""
Shared fixtures for the cockpit test suite.
Run with: python -m pytest tests/ -v
"""
from typing import List, Optional

import pytest

from cmdcockpit.hosts import BrowserHost, InputPrompt, Notifier, Terminal, TerminalHost


class RecordingNotifier(Notifier):
    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(("info", message))

    def warning(self, message):
        self.messages.append(("warning", message))

    def error(self, message):
        self.messages.append(("error", message))

    def of(self, level) -> List[str]:
        return [m for lvl, m in self.messages if lvl == level]


class FakeTerminal(Terminal):
    def __init__(self, name, env, timeline):
        super().__init__(name, env)
        self.sent = []
        self.timeline = timeline

    def send_text(self, text):
        self.sent.append(text)
        self.timeline.append(("terminal", text))


class FakeTerminalHost(TerminalHost):
    def __init__(self, timeline, uses_powershell=False):
        self.timeline = timeline
        self.uses_powershell = uses_powershell
        self.terminals = []

    def create_terminal(self, name, env=None):
        term = FakeTerminal(name, env, self.timeline)
        self.terminals.append(term)
        return term


class FakeBrowser(BrowserHost):
    def __init__(self, timeline):
        self.timeline = timeline

    def open(self, url):
        self.timeline.append(("browser", url))


class FakePrompt(InputPrompt):
    def __init__(self, answers):
        self.answers = answers
        self.asked = []

    def ask(self, label) -> Optional[str]:
        self.asked.append(label)
        return self.answers.get(label)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def timeline():
    return []


def names(actions):
    return [a.name for a in actions]


@pytest.fixture
def as_names():
    return names
