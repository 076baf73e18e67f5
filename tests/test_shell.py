"""
Tests for command joining, env references and per-platform invocations.
Run with: python -m pytest tests/test_shell.py -v
"""
import pytest

from cmdcockpit.models import ProgramItem
from cmdcockpit.shell import (
    GIT_BASH_HOLD,
    SYNTAX_CMD,
    SYNTAX_POSIX,
    SYNTAX_POWERSHELL,
    build_external_invocation,
    build_internal_text,
    build_linux_invocation,
    build_macos_invocation,
    build_program_invocation,
    build_url_invocation,
    build_windows_invocation,
    escape_applescript,
    escape_for_elevation,
    join_commands,
    rewrite_env_refs,
    syntax_for_profile,
)
from cmdcockpit.terminal_profiles import (
    FAMILY_BASH,
    FAMILY_CMD,
    FAMILY_ITERM,
    FAMILY_LINUX_TERMINAL,
    FAMILY_MACOS_TERMINAL,
    FAMILY_POWERSHELL,
    FAMILY_WINDOWS_TERMINAL,
    TerminalProfile,
)

CMD = TerminalProfile("Command Prompt", "cmd.exe", ("/k",), FAMILY_CMD)
PS = TerminalProfile("PowerShell", "powershell.exe", ("-NoExit", "-Command"), FAMILY_POWERSHELL)
GIT_BASH = TerminalProfile("Git Bash", "C:\\Program Files\\Git\\bin\\bash.exe", ("-c",), FAMILY_BASH)
WT = TerminalProfile("Windows Terminal", "wt", ("-d", ".", "cmd", "/k"), FAMILY_WINDOWS_TERMINAL)
MAC = TerminalProfile("Terminal", "Terminal.app", (), FAMILY_MACOS_TERMINAL)
ITERM = TerminalProfile("iTerm2", "iTerm.app", (), FAMILY_ITERM)


def linux(path):
    return TerminalProfile(path, path, ("-e",), FAMILY_LINUX_TERMINAL)


def installed(name):
    return "/usr/bin/" + name


def missing(name):
    return None


class TestJoining:
    def test_posix_and_powershell_separators(self):
        assert join_commands(["a", "b", "c"]) == "a && b && c"
        assert join_commands(["a", "b"], powershell=True) == "a; b"

    @pytest.mark.parametrize("syntax,expected", [
        (SYNTAX_CMD, "echo !HOME! !USER_1!"),
        (SYNTAX_POWERSHELL, "echo $env:HOME $env:USER_1"),
        (SYNTAX_POSIX, "echo $HOME $USER_1"),
    ])
    def test_env_refs(self, syntax, expected):
        assert rewrite_env_refs("echo {{HOME}} {{ USER_1 }}", syntax) == expected

    def test_non_identifier_left_alone(self):
        assert rewrite_env_refs("echo {{1abc}}", SYNTAX_POSIX) == "echo {{1abc}}"

    def test_syntax_for_profile(self):
        assert syntax_for_profile(CMD, "windows") == SYNTAX_CMD
        assert syntax_for_profile(PS, "windows") == SYNTAX_POWERSHELL
        assert syntax_for_profile(GIT_BASH, "windows") == SYNTAX_POSIX
        assert syntax_for_profile(CMD, "linux") == SYNTAX_POSIX


class TestInternalText:
    def test_posix(self):
        assert build_internal_text(["a", "b"], False, False) == "a && b"

    def test_posix_auto_close(self):
        assert build_internal_text(["a", "b"], True, False) == "trap 'exit' INT; a && b; exit"

    def test_powershell_auto_close(self):
        assert build_internal_text(["a", "b"], True, True) == "try { a; b } finally { exit }"

    def test_env_refs_rewritten(self):
        assert build_internal_text(["echo {{NAME}}"], False, True) == "echo $env:NAME"


class TestWindows:
    def test_cmd_keep_open(self):
        inv = build_windows_invocation(CMD, ["a", "b"])
        assert inv.argv == ["cmd", "/c", "start", "", "cmd", "/k", "a && b"]
        assert not inv.shell

    def test_cmd_auto_close_with_env_refs(self):
        inv = build_windows_invocation(CMD, ["echo {{X}}"], auto_close=True)
        assert inv.argv == ["cmd", "/c", "start", "", "cmd", "/V:ON", "/c", "echo !X!"]

    def test_powershell(self):
        inv = build_windows_invocation(PS, ["a", "echo {{X}}"])
        assert inv.argv == ["cmd", "/c", "start", "", "powershell.exe", "-NoExit", "-Command", "a; echo $env:X"]

    def test_powershell_auto_close(self):
        inv = build_windows_invocation(PS, ["a"], auto_close=True)
        assert inv.argv[-2:] == ["-Command", "a"]
        assert "-NoExit" not in inv.argv

    def test_git_bash_holds_window(self):
        inv = build_windows_invocation(GIT_BASH, ["make"])
        assert inv.argv == ["cmd", "/c", "start", "", GIT_BASH.path, "-c", f"make; {GIT_BASH_HOLD}"]

    def test_windows_terminal(self):
        inv = build_windows_invocation(WT, ["a", "b"], auto_close=True)
        assert inv.argv == ["wt", "cmd", "/c", "a && b"]

    def test_elevated_cmd_escaping(self):
        inv = build_windows_invocation(CMD, ["echo 'hi'", 'echo "x"'], run_as_admin=True)
        assert inv.shell and inv.elevated
        assert not inv.detached
        assert inv.argv == (
            'powershell -Command "Start-Process cmd -ArgumentList '
            "'/k echo ''hi'' && echo `\"x`\"' -Verb RunAs\""
        )

    def test_elevated_powershell(self):
        inv = build_windows_invocation(PS, ["a"], run_as_admin=True)
        assert inv.argv == (
            "powershell -Command \"Start-Process 'powershell.exe' "
            "-ArgumentList '-NoExit -Command a' -Verb RunAs\""
        )

    def test_elevated_git_bash(self):
        inv = build_windows_invocation(GIT_BASH, ["echo 'x'"], run_as_admin=True, auto_close=True)
        assert "-ArgumentList '-c','echo '\\''x'\\''' -Verb RunAs" in inv.argv

    def test_escape_for_elevation(self):
        assert escape_for_elevation("it's \"q\"") == "it''s `\"q`\""


class TestMacOS:
    def test_applescript_escaping(self):
        raw = 'a\\b"c' + "'d"
        expected = "a" + "\\\\" + "b" + '\\"' + "c" + "'\\''" + "d"
        assert escape_applescript(raw) == expected

    def test_terminal_app(self):
        inv = build_macos_invocation(MAC, ["cd ~", "ls"])
        assert inv.shell
        assert inv.argv == "osascript -e 'tell app \"Terminal\" to do script \"cd ~ && ls\"'"

    def test_iterm(self):
        inv = build_macos_invocation(ITERM, ["ls"])
        assert 'tell app "iTerm" to create window with default profile command "ls"' in inv.argv

    def test_env_refs_posix(self):
        inv = build_macos_invocation(MAC, ["echo {{HOME}}"])
        assert "echo $HOME" in inv.argv


class TestLinux:
    def test_gnome_terminal(self):
        inv = build_linux_invocation(linux("gnome-terminal"), ["a", "b"], which=installed)
        assert inv.argv == ["gnome-terminal", "--", "bash", "-c", "a && b; exec bash"]
        assert inv.detached and not inv.fallback

    def test_konsole_and_xterm(self):
        for term in ("konsole", "xterm"):
            inv = build_linux_invocation(linux(term), ["a"], which=installed)
            assert inv.argv == [term, "-e", "bash", "-c", "a; exec bash"]

    def test_xfce_single_string(self):
        inv = build_linux_invocation(linux("xfce4-terminal"), ["echo 'hi'"], which=installed)
        assert inv.argv[:2] == ["xfce4-terminal", "-e"]
        assert inv.argv[2] == "bash -c 'echo '\"'\"'hi'\"'\"'; exec bash'"

    def test_missing_terminal_falls_back_to_bash(self):
        inv = build_linux_invocation(linux("konsole"), ["a"], which=missing)
        assert inv.argv == ["bash", "-c", "a; exec bash"]
        assert inv.fallback
        assert not inv.detached

    def test_dispatch_by_platform(self):
        assert build_external_invocation(CMD, ["a"], platform="win32").argv[0] == "cmd"
        assert build_external_invocation(MAC, ["a"], platform="darwin").argv.startswith("osascript")
        assert build_external_invocation(linux("xterm"), ["a"], platform="linux", which=installed).argv[0] == "xterm"


class TestUrlsAndPrograms:
    def test_windows_url_quoted_whole(self):
        inv = build_url_invocation("https://x/?a=1&b=2", "win32")
        assert inv.argv == 'cmd /c start "" "https://x/?a=1&b=2"'
        assert not inv.shell

    def test_windows_url_with_space_and_quote(self):
        inv = build_url_invocation('https://x/my page?q="a b"&n=1', "win32")
        assert inv.argv == 'cmd /c start "" "https://x/my page?q=%22a b%22&n=1"'

    def test_macos_and_linux_urls(self):
        assert build_url_invocation("https://x", "darwin").argv == ["open", "https://x"]
        assert build_url_invocation("https://x", "linux").argv == ["xdg-open", "https://x"]

    def test_posix_program_split(self):
        inv = build_program_invocation(ProgramItem("/opt/My App/run", "--port 8080 --name 'x y'"), "linux")
        assert inv.argv == ["/opt/My App/run", "--port", "8080", "--name", "x y"]

    def test_windows_program_string(self):
        inv = build_program_invocation(ProgramItem("C:\\Program Files\\App\\app.exe", "-v"), "win32")
        assert inv.argv == '"C:\\Program Files\\App\\app.exe" -v'

    def test_display(self):
        assert build_url_invocation("https://x", "linux").display() == "xdg-open https://x"
