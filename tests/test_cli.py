"""
Tests for the cmdcockpit command line.
Run with: python -m pytest tests/test_cli.py -v
"""
import json

import pytest
from click.testing import CliRunner

from cmdcockpit.cli import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("CMDCOCKPIT_CONFIG", raising=False)
    monkeypatch.delenv("CMDCOCKPIT_WORKSPACE", raising=False)


@pytest.fixture
def invoke(tmp_path):
    runner = CliRunner()

    def _invoke(*args, input=None):
        return runner.invoke(cli, ["-w", str(tmp_path)] + list(args), input=input)
    return _invoke


@pytest.fixture
def doc(tmp_path):
    def _doc():
        path = tmp_path / ".cmdcockpit" / "commands.json"
        return json.loads(path.read_text(encoding="utf-8"))["commands"]
    return _doc


def order(commands):
    return [(c["name"], c.get("groupPath")) for c in commands]


def test_init_and_list(invoke):
    result = invoke("init")
    assert result.exit_code == 0
    assert "Created" in result.output

    result = invoke("list", "--all")
    assert result.exit_code == 0
    for name in ("Server", "Build", "Client", "Hello"):
        assert name in result.output

    assert "already exists" in invoke("init").output


def test_list_empty(invoke):
    result = invoke("list")
    assert result.exit_code == 0
    assert "No commands yet" in result.output


def test_add_edit_delete(invoke, doc):
    result = invoke("add", "--name", "Deploy", "-g", "Ops/Prod", "--cmd", "make", "--cmd", "make deploy",
                    "--external-url", "https://ci", "--program", "/usr/bin/code::--new-window",
                    "--terminal", "external", "--env", "STAGE=prod")
    assert result.exit_code == 0, result.output
    assert doc() == [{
        "name": "Deploy",
        "groupPath": "Ops/Prod",
        "shellCommands": ["make", "make deploy"],
        "terminalMode": "external",
        "env": {"STAGE": "prod"},
        "urls": [{"url": "https://ci", "external": True}],
        "programs": [{"path": "/usr/bin/code", "args": "--new-window"}],
    }]

    result = invoke("edit", "Deploy", "--rename", "Ship", "--set-group", "", "--auto-close")
    assert result.exit_code == 0, result.output
    entry = doc()[0]
    assert entry["name"] == "Ship"
    assert "groupPath" not in entry
    assert entry["autoClose"] is True

    assert "Nothing to change" in invoke("edit", "Ship").output

    result = invoke("delete", "Ship", "-y")
    assert result.exit_code == 0
    assert doc() == []


def test_delete_asks(invoke, doc):
    invoke("add", "--name", "Keep", "--cmd", "ls")
    result = invoke("delete", "Keep", input="n\n")
    assert result.exit_code == 1
    assert len(doc()) == 1


def test_blank_name_rejected(invoke, doc):
    invoke("init")
    assert invoke("add", "--name", "  ", "--cmd", "a").exit_code == 2
    result = invoke("add", "--name", " Padded ", "--cmd", "a")
    assert result.exit_code == 0, result.output
    assert doc()[-1]["name"] == "Padded"
    assert invoke("duplicate", " Padded ").exit_code == 0


def test_bad_env_pair(invoke):
    result = invoke("add", "--name", "X", "--env", "NOEQUALS")
    assert result.exit_code == 2


def test_duplicate_and_groups(invoke, doc):
    invoke("add", "--name", "A", "-g", "G/Sub", "--cmd", "ls")
    invoke("add", "--name", "B", "--cmd", "ls")
    assert invoke("duplicate", "A").exit_code == 0
    assert [c["name"] for c in doc()] == ["A", "A (copy)", "B"]

    result = invoke("groups")
    assert result.output.split() == ["G", "G/Sub"]


def test_not_found_exit_code(invoke):
    assert invoke("run", "Nope").exit_code == 1
    assert invoke("edit", "Nope", "--rename", "x").exit_code == 1
    assert invoke("move", "Nope", "--root").exit_code == 1


def test_group_scoped_lookup(invoke, doc):
    invoke("add", "--name", "Run", "-g", "Server", "--cmd", "a")
    invoke("add", "--name", "Run", "-g", "Client", "--cmd", "b")
    invoke("delete", "Run", "-g", "Client", "-y")
    assert order(doc()) == [("Run", "Server")]


def test_no_workspace_exit_code(tmp_path):
    result = CliRunner().invoke(cli, ["-w", str(tmp_path / "missing"), "list"])
    assert result.exit_code == 3


def test_move_onto_action(invoke, doc):
    invoke("add", "--name", "A", "--cmd", "a")
    invoke("add", "--name", "B", "-g", "X", "--cmd", "b")
    invoke("add", "--name", "C", "-g", "X", "--cmd", "c")
    result = invoke("move", "A", "--before", "B")
    assert result.exit_code == 0, result.output
    assert order(doc()) == [("B", "X"), ("A", "X"), ("C", "X")]


def test_move_group_to_root(invoke, doc):
    invoke("add", "--name", "A", "-g", "G", "--cmd", "a")
    invoke("add", "--name", "B", "-g", "G/Sub", "--cmd", "b")
    invoke("add", "--name", "C", "--cmd", "c")
    assert invoke("move-group", "G", "--root").exit_code == 0
    assert order(doc()) == [("C", None), ("A", "G"), ("B", "G/Sub")]


def test_move_group_into_itself_rejected(invoke, doc):
    invoke("add", "--name", "A", "-g", "G", "--cmd", "a")
    invoke("add", "--name", "B", "-g", "G/Sub", "--cmd", "b")
    result = invoke("move-group", "G", "--into", "G/Sub")
    assert result.exit_code == 4
    assert order(doc()) == [("A", "G"), ("B", "G/Sub")]


def test_move_into_blank_group_rejected(invoke, doc):
    invoke("add", "--name", "A", "--cmd", "a")
    invoke("add", "--name", "B", "-g", "G", "--cmd", "b")
    result = invoke("move", "A", "--into", "/")
    assert result.exit_code == 4
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert invoke("move-group", "G", "--into", " ").exit_code == 4
    assert order(doc()) == [("A", None), ("B", "G")]


def test_move_needs_one_target(invoke):
    invoke("add", "--name", "A", "--cmd", "a")
    assert invoke("move", "A").exit_code == 2
    assert invoke("move", "A", "--root", "--into", "G").exit_code == 2


def test_export_import(invoke, doc, tmp_path):
    invoke("init")
    out = tmp_path / "export.json"
    assert invoke("export", str(out)).exit_code == 0

    invoke("delete", "Hello", "-y")
    invoke("add", "--name", "Extra", "--cmd", "x")
    assert invoke("import", str(out)).exit_code == 0
    assert [c["name"] for c in doc()] == ["Build", "Run", "Install", "Extra", "Hello"]

    assert invoke("import", str(out), "--replace").exit_code == 0
    assert [c["name"] for c in doc()] == ["Build", "Run", "Install", "Hello"]


def test_search_and_expansion_saved(invoke, tmp_path):
    invoke("init")
    assert "deploy" in invoke("search", "Deploy").output
    invoke("expand", "Server")
    state = json.loads((tmp_path / ".cmdcockpit" / "view_state.json").read_text())
    assert state == {"expanded_groups": ["Server"], "search_filter": "deploy"}

    invoke("search", "--clear")
    invoke("expand-all")
    state = json.loads((tmp_path / ".cmdcockpit" / "view_state.json").read_text())
    assert state == {"expanded_groups": ["Client", "Server"], "search_filter": ""}

    invoke("collapse-all")
    state = json.loads((tmp_path / ".cmdcockpit" / "view_state.json").read_text())
    assert state["expanded_groups"] == []


def test_list_uses_filter(invoke):
    invoke("init")
    result = invoke("list", "--filter", "npm")
    assert "Install" in result.output
    assert "Hello" not in result.output


def test_profiles_table():
    result = CliRunner().invoke(cli, ["profiles"])
    assert result.exit_code == 0
    assert "Terminal Profiles" in result.output
