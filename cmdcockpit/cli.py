#===============================================================================
#  CMD_Cockpit | cli.py
#===============================================================================
#  Author      : Edwin A. Rodriguez
#  Role/Team   : SAP COE / SAP SRE (GRM-Testing-Automation & Governance)
#  Created     : 2026-10-18
#  Last Update : 2026-10-18
#
#  Summary
#  -------
#  Command line surface of the cockpit (click + rich). Same store, tree,
#  reorder engine and dispatcher as the window, driven from a terminal.
#
#  Exit codes: 0 ok, 1 action not found, 3 no persistence target,
#  4 move rejected.
#
#  Copyright (c) 2026 Edwin A. Rodriguez. All rights reserved.
#  Provided "AS IS", without warranty of any kind.
#===============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .config import Settings, resolve_settings
from .constants import (
    APP_TITLE,
    EXIT_NO_TARGET,
    EXIT_NOT_FOUND,
    EXIT_REJECTED,
)
from .errors import ActionNotFoundError, NoPersistenceTargetError
from .hosts import BrowserHost, ConsoleInputPrompt, ConsoleNotifier, ConsoleTerminalHost
from .launcher import Dispatcher, RunReport
from .logging_setup import setup_logging
from .models import Action, ProgramItem, TerminalMode, UrlItem
from .reorder import DropTarget, ReorderEngine
from .state import ViewState
from .store import IMPORT_MERGE, IMPORT_REPLACE, ActionStore
from .terminal_profiles import get_terminal_profiles
from .tree import GroupNode, group_paths_by_depth, walk

logger = logging.getLogger(__name__)

console = Console()

PROGRAM_ARGS_SEP = "::"


@dataclass
class Session:
    settings: Settings
    store: ActionStore
    view_state: ViewState
    notifier: ConsoleNotifier


def _session(ctx: click.Context) -> Session:
    """Resolve paths, wire logging and load the store (once per invocation)."""
    obj = ctx.ensure_object(dict)
    if "session" in obj:
        return obj["session"]
    try:
        settings = resolve_settings(obj.get("workspace"), obj.get("config"))
    except NoPersistenceTargetError as e:
        console.print(f"❌ [red]{escape(str(e))}[/red]")
        ctx.exit(EXIT_NO_TARGET)

    setup_logging(
        settings.log_dir,
        level=settings.log_level,
        console_level="DEBUG" if obj.get("verbose") else "WARNING",
    )
    notifier = ConsoleNotifier()
    store = ActionStore(settings.config_path, notifier)
    store.load()
    session = Session(settings, store, ViewState(settings.state_path), notifier)
    obj["session"] = session
    return session


def _find(ctx: click.Context, session: Session, name: str, group: Optional[str]) -> int:
    try:
        return session.store.find(name, group)
    except ActionNotFoundError as e:
        console.print(f"❌ [red]{escape(str(e))}[/red]")
        ctx.exit(EXIT_NOT_FOUND)


# ----------------------------
# Option parsing helpers
# ----------------------------
def _parse_env(pairs: Tuple[str, ...]) -> Dict[str, str]:
    env: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--env")
        key, value = pair.split("=", 1)
        env[key.strip()] = value
    return env


def _parse_programs(values: Tuple[str, ...]) -> List[ProgramItem]:
    programs = []
    for value in values:
        path, _, args = value.partition(PROGRAM_ARGS_SEP)
        programs.append(ProgramItem(path.strip(), args.strip() or None))
    return programs


def _parse_urls(urls: Tuple[str, ...], external_urls: Tuple[str, ...]) -> List[UrlItem]:
    return [UrlItem(u) for u in urls] + [UrlItem(u, external=True) for u in external_urls]


def action_options(f):
    """Field options shared by add and edit."""
    options = [
        click.option("--cmd", "cmds", multiple=True, help="Shell command (repeatable, run in order)"),
        click.option("--url", "urls", multiple=True, help="URL opened in the embedded browser (repeatable)"),
        click.option("--external-url", "external_urls", multiple=True, help="URL opened in the system browser (repeatable)"),
        click.option("--program", "programs", multiple=True, help=f"Program to launch: PATH or PATH{PROGRAM_ARGS_SEP}ARGS (repeatable)"),
        click.option("--terminal", type=click.Choice([m.value for m in TerminalMode]), default=None, help="Where shell commands run"),
        click.option("--profile", default=None, help="External terminal profile name (see `profiles`)"),
        click.option("--auto-close/--no-auto-close", default=None, help="Close the terminal after the last command"),
        click.option("--admin/--no-admin", default=None, help="Run the external terminal elevated (Windows)"),
        click.option("--env", "env_pairs", multiple=True, help="Environment variable KEY=VALUE (repeatable)"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _print_report(report: RunReport) -> None:
    for event in report.events:
        console.print(f"✅ {event.kind}: [green]{escape(event.target)}[/green] [dim]{escape(event.detail)}[/dim]")
    if report.cancelled:
        console.print(f"⚠️  [yellow]Run of '{escape(report.action_name)}' was cancelled[/yellow]")


def _drop_target(ctx: click.Context, session: Session, before: Optional[str], into: Optional[str], root: bool) -> DropTarget:
    chosen = [x for x in (before, into, root or None) if x]
    if len(chosen) != 1:
        raise click.UsageError("Give exactly one of --before, --into or --root")
    if before:
        return DropTarget.on_action(_find(ctx, session, before, None))
    if into:
        return DropTarget.on_group(into)
    return DropTarget.root()


# ----------------------------
# Group
# ----------------------------
@click.group()
@click.version_option(version=__version__, prog_name="cmdcockpit")
@click.option("--workspace", "-w", type=click.Path(file_okay=False), default=None, help="Workspace folder (default: current directory)")
@click.option("--config", "-c", type=click.Path(dir_okay=False), default=None, help="Commands document to use instead of the workspace one")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging on the console")
@click.pass_context
def cli(ctx, workspace, config, verbose):
    """CMD Cockpit - run named shell commands, URLs and programs."""
    ctx.ensure_object(dict)
    ctx.obj.update(workspace=workspace, config=config, verbose=verbose)


# ----------------------------
# Run
# ----------------------------
@cli.command(name="run")
@click.argument("name")
@click.option("--group", "-g", default=None, help="Only match the action in this exact group")
@click.option("--no-wait", is_flag=True, help="Do not hand the console to the internal terminal")
@click.pass_context
def run_cmd(ctx, name, group, no_wait):
    """Run an action"""
    session = _session(ctx)
    action = session.store[_find(ctx, session, name, group)]
    settings = session.settings

    host = ConsoleTerminalHost([settings.internal_shell] if settings.internal_shell else None)
    dispatcher = Dispatcher(
        terminal_host=host,
        browser=BrowserHost(),
        prompt=ConsoleInputPrompt(),
        notifier=session.notifier,
        default_profile=settings.default_terminal_profile,
        url_delay=settings.url_delay,
    )
    report = dispatcher.run_sync(action)
    dispatcher.wait_pending()
    _print_report(report)
    if not no_wait:
        host.wait_all()


# ----------------------------
# Listing / search
# ----------------------------
def render_tree(session: Session, needle: Optional[str], expand_all: bool) -> Tree:
    root = Tree(f"[bold]{APP_TITLE}[/bold]")
    stack = [root]
    view = session.view_state
    for depth, node in walk(session.store.actions, view.is_group_expanded, needle, expand_all=expand_all):
        del stack[depth + 1:]
        parent = stack[depth]
        if isinstance(node, GroupNode):
            marker = "▾" if (expand_all or node.expanded) else "▸"
            stack.append(parent.add(
                f"{marker} [bold blue]{escape(node.display_name)}[/bold blue] [dim]({node.descendant_action_count})[/dim]"
            ))
        else:
            a = node.action
            parent.add(f"{escape(a.name)} [dim]{a.kind()} #{node.store_index}[/dim]")
    return root


@cli.command(name="list")
@click.option("--filter", "-f", "filter_text", default=None, help="Only show actions matching TEXT (not saved)")
@click.option("--all", "-a", "show_all", is_flag=True, help="Expand every group")
@click.pass_context
def list_cmd(ctx, filter_text, show_all):
    """Show the action tree"""
    session = _session(ctx)
    if not len(session.store):
        console.print("ℹ️  No commands yet. Try `cmdcockpit init` or `cmdcockpit add`.")
        return
    needle = filter_text if filter_text is not None else session.view_state.search_filter
    console.print(render_tree(session, needle, show_all))


@cli.command(name="search")
@click.argument("text", required=False)
@click.option("--clear", is_flag=True, help="Remove the saved filter")
@click.pass_context
def search_cmd(ctx, text, clear):
    """Set, clear or show the saved search filter"""
    session = _session(ctx)
    view = session.view_state
    if clear:
        view.clear_search()
        console.print("✅ Filter cleared")
    elif text is not None:
        view.set_search_filter(text)
        console.print(f"✅ Filter set: [green]{escape(view.search_filter)}[/green]")
    else:
        console.print(f"Filter: {escape(view.search_filter) or '(none)'}")


@cli.command(name="groups")
@click.pass_context
def groups_cmd(ctx):
    """List every group path"""
    session = _session(ctx)
    for path in session.store.all_groups():
        console.print(escape(path))


@cli.command(name="profiles")
def profiles_cmd():
    """List the terminal profiles available on this machine"""
    table = Table(title="Terminal Profiles")
    table.add_column("Name", style="cyan")
    table.add_column("Path", style="green")
    table.add_column("Family", style="yellow")
    for p in get_terminal_profiles():
        table.add_row(p.name, p.path, p.family)
    console.print(table)


# ----------------------------
# Create / edit / delete
# ----------------------------
@cli.command(name="add")
@click.option("--name", "-n", required=True, help="Action name")
@click.option("--group", "-g", default=None, help="Group path, e.g. Server/Build")
@action_options
@click.pass_context
def add_cmd(ctx, name, group, cmds, urls, external_urls, programs, terminal, profile, auto_close, admin, env_pairs):
    """Add an action at the end of the list"""
    if not name.strip():
        raise click.BadParameter("must not be blank", param_hint="--name")
    session = _session(ctx)
    action = Action(
        name=name,
        group_path=group,
        shell_commands=[c for c in cmds if c.strip()],
        terminal_mode=terminal or TerminalMode.INTERNAL,
        auto_close=bool(auto_close),
        terminal_profile_name=profile or None,
        run_as_admin=bool(admin),
        env=_parse_env(env_pairs),
        urls=_parse_urls(urls, external_urls),
        programs=_parse_programs(programs),
    )
    if session.store.append(action):
        console.print(f"✅ Added [green]{escape(action.name)}[/green]")


@cli.command(name="edit")
@click.argument("name")
@click.option("--group", "-g", default=None, help="Only match the action in this exact group")
@click.option("--rename", default=None, help="New name")
@click.option("--set-group", default=None, help="New group path ('' = root)")
@action_options
@click.pass_context
def edit_cmd(ctx, name, group, rename, set_group, cmds, urls, external_urls, programs, terminal, profile, auto_close, admin, env_pairs):
    """Change fields of an action (only the options given)"""
    session = _session(ctx)
    index = _find(ctx, session, name, group)
    a = session.store[index]
    changes = {}
    if rename:
        changes["name"] = rename
    if set_group is not None:
        changes["group_path"] = set_group
    if cmds:
        changes["shell_commands"] = [c for c in cmds if c.strip()]
    if urls or external_urls:
        changes["urls"] = _parse_urls(urls, external_urls)
    if programs:
        changes["programs"] = _parse_programs(programs)
    if terminal:
        changes["terminal_mode"] = terminal
    if profile is not None:
        changes["terminal_profile_name"] = profile or None
    if auto_close is not None:
        changes["auto_close"] = auto_close
    if admin is not None:
        changes["run_as_admin"] = admin
    if env_pairs:
        changes["env"] = _parse_env(env_pairs)
    if not changes:
        console.print("ℹ️  Nothing to change")
        return

    updated = replace(a, **changes)
    if session.store.update_at(index, updated):
        console.print(f"✅ Updated [green]{escape(updated.name)}[/green]")


@cli.command(name="delete")
@click.argument("name")
@click.option("--group", "-g", default=None, help="Only match the action in this exact group")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_cmd(ctx, name, group, yes):
    """Delete an action"""
    session = _session(ctx)
    index = _find(ctx, session, name, group)
    if not yes:
        click.confirm(f"Delete '{name}'?", abort=True)
    session.store.remove_at(index)
    console.print(f"✅ Deleted [green]{escape(name)}[/green]")


@cli.command(name="duplicate")
@click.argument("name")
@click.option("--group", "-g", default=None, help="Only match the action in this exact group")
@click.pass_context
def duplicate_cmd(ctx, name, group):
    """Copy an action right below the original"""
    session = _session(ctx)
    copied = session.store.duplicate_at(_find(ctx, session, name, group))
    console.print(f"✅ Created [green]{escape(copied.name)}[/green]")


# ----------------------------
# Import / export / init
# ----------------------------
@cli.command(name="export")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def export_cmd(ctx, path):
    """Write every action to PATH"""
    _session(ctx).store.export_to(path)


@cli.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--merge", "mode", flag_value=IMPORT_MERGE, default=True, help="Add only new actions (default)")
@click.option("--replace", "mode", flag_value=IMPORT_REPLACE, help="Replace every action")
@click.pass_context
def import_cmd(ctx, path, mode):
    """Import actions from PATH"""
    _session(ctx).store.import_from(path, mode)


@cli.command(name="init")
@click.pass_context
def init_cmd(ctx):
    """Create an example commands document"""
    session = _session(ctx)
    if session.store.write_example():
        console.print(f"✅ Created [green]{escape(str(session.settings.config_path))}[/green]")
    else:
        console.print(f"ℹ️  {escape(str(session.settings.config_path))} already exists")


# ----------------------------
# Reorder
# ----------------------------
@cli.command(name="move")
@click.argument("name")
@click.option("--group", "-g", default=None, help="Only match the action in this exact group")
@click.option("--before", default=None, help="Drop onto action NAME2 (takes its position and group)")
@click.option("--into", default=None, help="Drop onto group GROUP (becomes its first action)")
@click.option("--root", is_flag=True, help="Drop on empty space (ungrouped, after the last ungrouped action)")
@click.pass_context
def move_cmd(ctx, name, group, before, into, root):
    """Move an action"""
    session = _session(ctx)
    index = _find(ctx, session, name, group)
    target = _drop_target(ctx, session, before, into, root)
    if not ReorderEngine(session.store).move_action(index, target):
        ctx.exit(EXIT_REJECTED)
    console.print(f"✅ Moved [green]{escape(name)}[/green]")


@cli.command(name="move-group")
@click.argument("group_path")
@click.option("--before", default=None, help="Drop onto action NAME2")
@click.option("--into", default=None, help="Drop onto group GROUP")
@click.option("--root", is_flag=True, help="Drop on empty space")
@click.pass_context
def move_group_cmd(ctx, group_path, before, into, root):
    """Move a whole group (with subgroups)"""
    session = _session(ctx)
    target = _drop_target(ctx, session, before, into, root)
    if not ReorderEngine(session.store).move_group(group_path, target):
        ctx.exit(EXIT_REJECTED)
    console.print(f"✅ Moved group [green]{escape(group_path)}[/green]")


# ----------------------------
# Expansion state
# ----------------------------
@cli.command(name="expand")
@click.argument("group_path")
@click.pass_context
def expand_cmd(ctx, group_path):
    """Expand a group"""
    _session(ctx).view_state.set_group_expanded(group_path.strip("/"), True)


@cli.command(name="collapse")
@click.argument("group_path")
@click.pass_context
def collapse_cmd(ctx, group_path):
    """Collapse a group"""
    _session(ctx).view_state.set_group_expanded(group_path.strip("/"), False)


@cli.command(name="expand-all")
@click.pass_context
def expand_all_cmd(ctx):
    """Expand every group"""
    session = _session(ctx)
    session.view_state.expand_all(group_paths_by_depth(session.store.actions))


@cli.command(name="collapse-all")
@click.pass_context
def collapse_all_cmd(ctx):
    """Collapse every group"""
    _session(ctx).view_state.collapse_all()


# ----------------------------
# Window
# ----------------------------
@cli.command(name="gui")
@click.pass_context
def gui_cmd(ctx):
    """Open the cockpit window"""
    session = _session(ctx)
    from .main_window import run_gui

    ctx.exit(run_gui(session.settings))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
