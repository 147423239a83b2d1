"""Working-build CLI commands: edit the current draft, manage saved builds.

Each invocation opens a BuildStore on the --data-dir file store, which
recovers the most recent draft.  Mutations are autosaved; the pending draft
is flushed before the command returns.
"""

from __future__ import annotations

import sys
from datetime import datetime

import click

from core.build_store import BuildStore
from core.categories import CATEGORIES, CATEGORY_KEYS
from core.formatting import format_currency, format_flight_time, format_twr, format_weight
from core.kv_store import JsonFileStore
from core.loader import find_preset, load_build_file, save_build_file
from core.models import BuildFormatError, Severity
from core.persistence import SavedBuildStore


def _severity_style(severity: Severity, text: str) -> str:
    """Apply Click ANSI styling based on severity level."""
    if severity == Severity.ERROR:
        return click.style(text, fg="red", bold=True)
    if severity == Severity.WARNING:
        return click.style(text, fg="yellow")
    return click.style(text, fg="cyan")


_STATUS_COLORS = {"ok": "green", "warning": "yellow", "error": "red"}


def _open_store(ctx: click.Context) -> BuildStore:
    return BuildStore(storage=JsonFileStore(ctx.obj["data_dir"]))


def _format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _print_build(store: BuildStore) -> None:
    click.echo()
    click.echo(click.style(f"  {store.name}", bold=True)
               + f"  ({store.filled_count} / {len(CATEGORIES)} parts)")
    click.echo(click.style(f"  {'=' * 56}", dim=True))

    for cat in CATEGORIES:
        comp = store.components.get(cat.key)
        status = store.category_status(cat.key)
        if comp is None:
            click.echo(click.style(f"  {cat.label:>18}: (empty)", dim=True))
            continue
        marker = click.style("●", fg=_STATUS_COLORS.get(status, "white"))
        click.echo(f"  {cat.label:>18}: {marker} {comp.name}")

    click.echo(click.style(f"  {'-' * 56}", dim=True))
    click.echo(f"  Cost: {format_currency(store.total_cost)}  |  "
               f"Weight: {format_weight(store.total_weight)}  |  "
               f"TWR: {format_twr(store.thrust_to_weight_ratio)}  |  "
               f"Flight: {format_flight_time(store.estimated_flight_time)}")
    click.echo(f"  Compatibility: {click.style(f'{store.compatibility_score}%', bold=True)}")

    for alert in store.alerts:
        tag = _severity_style(alert.severity, f"[{alert.severity.value.upper()}]")
        click.echo(f"  {tag} {alert.name}")
        click.echo(f"         {alert.message}")
    click.echo()


# ---------------------------------------------------------------------------
# build command group
# ---------------------------------------------------------------------------

@click.group("build")
def build_group():
    """Edit the current working build."""


@build_group.command("show")
@click.pass_context
def build_show(ctx: click.Context):
    """Show the current build, its metrics and compatibility alerts."""
    _print_build(_open_store(ctx))


@build_group.command("set")
@click.argument("category", type=click.Choice(CATEGORY_KEYS))
@click.argument("preset_id")
@click.pass_context
def build_set(ctx: click.Context, category: str, preset_id: str):
    """Put a preset component into a slot."""
    preset = find_preset(category, preset_id)
    if preset is None:
        click.echo(click.style(f"Error: no {category} preset with id '{preset_id}'", fg="red"))
        sys.exit(1)

    store = _open_store(ctx)
    result = store.set_component(category, preset)
    store.flush_autosave()
    click.echo(click.style(result.message, fg="green" if result.ok else "red"))
    for alert in store.alerts:
        if category in alert.categories:
            click.echo(f"  {_severity_style(alert.severity, alert.name)}: {alert.message}")


@build_group.command("clear")
@click.argument("category", required=False, type=click.Choice(CATEGORY_KEYS))
@click.pass_context
def build_clear(ctx: click.Context, category: str | None):
    """Empty one slot, or every slot when no category is given."""
    store = _open_store(ctx)
    if category:
        click.echo(store.clear_component(category).message)
    else:
        store.clear_all()
        click.echo("Cleared all slots.")
    store.flush_autosave()


@build_group.command("rename")
@click.argument("name")
@click.pass_context
def build_rename(ctx: click.Context, name: str):
    """Rename the current build."""
    store = _open_store(ctx)
    store.rename(name)
    store.flush_autosave()
    click.echo(f"Renamed build to {name}.")


@build_group.command("export")
@click.argument("output", type=click.Path(dir_okay=False))
@click.pass_context
def build_export(ctx: click.Context, output: str):
    """Write the current build as a JSON document."""
    store = _open_store(ctx)
    path = save_build_file(store.export_build(), output)
    click.echo(f"Exported {store.name} to {path}")


@build_group.command("import")
@click.argument("build_json_file", type=click.Path(exists=True))
@click.pass_context
def build_import(ctx: click.Context, build_json_file: str):
    """Replace the current build with an exported JSON document."""
    try:
        build = load_build_file(build_json_file)
    except BuildFormatError as exc:
        click.echo(click.style(f"Error: {exc}", fg="red"))
        sys.exit(1)
    store = _open_store(ctx)
    store.load_build(build)
    store.flush_autosave()
    click.echo(f"Imported {store.name} ({store.filled_count} parts).")


# ---------------------------------------------------------------------------
# saved command group
# ---------------------------------------------------------------------------

@click.group("saved")
def saved_group():
    """Manage explicitly saved builds."""


@saved_group.command("list")
@click.pass_context
def saved_list(ctx: click.Context):
    """List saved builds, oldest first."""
    saved = SavedBuildStore(JsonFileStore(ctx.obj["data_dir"])).list()
    if not saved:
        click.echo(click.style("  No saved builds.", fg="yellow"))
        return
    click.echo()
    for entry in saved:
        filled = sum(1 for c in entry.build.components.values() if c is not None)
        click.echo(f"  {entry.id}  {entry.build.name:<30}  {filled:>2} parts  "
                   f"{_format_timestamp(entry.build.timestamp)}")
    click.echo()


@saved_group.command("save")
@click.option("--name", "-n", default=None, help="Name to save the build under.")
@click.pass_context
def saved_save(ctx: click.Context, name: str | None):
    """Save the current build under a new id."""
    store = _open_store(ctx)
    saved = SavedBuildStore(store.storage).save(store, name)
    store.flush_autosave()
    if saved is None:
        click.echo(click.style("Error: could not save build (storage unavailable or full).", fg="red"))
        sys.exit(1)
    click.echo(f"Saved {saved.build.name} as {click.style(saved.id, bold=True)}")


@saved_group.command("load")
@click.argument("build_id")
@click.pass_context
def saved_load(ctx: click.Context, build_id: str):
    """Load a saved build into the working build."""
    store = _open_store(ctx)
    if not SavedBuildStore(store.storage).load_into(store, build_id):
        click.echo(click.style(f"Error: no saved build with id '{build_id}'", fg="red"))
        sys.exit(1)
    store.flush_autosave()
    click.echo(f"Loaded {store.name}.")


@saved_group.command("delete")
@click.argument("build_id")
@click.pass_context
def saved_delete(ctx: click.Context, build_id: str):
    """Delete a saved build."""
    if not SavedBuildStore(JsonFileStore(ctx.obj["data_dir"])).delete(build_id):
        click.echo(click.style(f"Error: no saved build with id '{build_id}'", fg="red"))
        sys.exit(1)
    click.echo(f"Deleted {build_id}.")


# ---------------------------------------------------------------------------
# drafts
# ---------------------------------------------------------------------------

@click.command("drafts")
@click.pass_context
def drafts_cmd(ctx: click.Context):
    """List autosaved drafts, newest last."""
    store = _open_store(ctx)
    drafts = store.drafts.list()
    if not drafts:
        click.echo(click.style("  No drafts.", fg="yellow"))
        return
    for i, draft in enumerate(drafts, 1):
        filled = sum(1 for c in draft.components.values() if c is not None)
        click.echo(f"  {i}. {draft.name:<30}  {filled:>2} parts  {_format_timestamp(draft.timestamp)}")
