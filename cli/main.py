"""QuadCalc CLI -- Click-based command-line interface.

Usage:
    quadcalc categories
    quadcalc presets [<category>]
    quadcalc check <build_json>
    quadcalc calc <build_json>
    quadcalc context <build_json>
    quadcalc build show|set|clear|rename|export|import
    quadcalc saved list|save|load|delete
    quadcalc drafts
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from core.build_store import BuildStore
from core.categories import CATEGORIES, CATEGORY_KEYS
from core.formatting import format_currency, format_weight
from core.kv_store import DATA_DIR
from core.loader import load_build_file, load_presets
from core.models import BuildFormatError
from engines.context import build_context
from cli.workspace import build_group, drafts_cmd, saved_group

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _truncate(text: str, width: int) -> str:
    """Truncate text to *width* characters, adding ellipsis if needed."""
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"


def _store_for_file(filepath: str) -> BuildStore:
    """Load an exported build JSON file into a throwaway in-memory store.

    The --data-dir store is not opened: no draft is restored or written.
    """
    try:
        build = load_build_file(filepath)
    except BuildFormatError as exc:
        click.echo(click.style(f"Error: {exc}", fg="red"))
        sys.exit(1)
    store = BuildStore(restore_draft=False)
    store.load_build(build)
    return store


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(version="1.0.0", prog_name="quadcalc")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DATA_DIR,
    show_default=True,
    help=(
        "Directory holding drafts and saved builds. Used by build, saved and "
        "drafts; check, calc and context read only their file."
    ),
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path, verbose: bool):
    """QuadCalc -- FPV quadcopter build planner and compatibility checker."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir


# ---------------------------------------------------------------------------
# categories
# ---------------------------------------------------------------------------

@cli.command("categories")
def list_categories():
    """List the fourteen build slots."""
    click.echo()
    click.echo(click.style(f"  Build slots ({len(CATEGORIES)})", bold=True))
    click.echo(click.style(f"  {'=' * 36}", dim=True))
    for cat in CATEGORIES:
        click.echo(f"  {cat.key:<12}  {cat.label}")
    click.echo()


# ---------------------------------------------------------------------------
# presets
# ---------------------------------------------------------------------------

@cli.command("presets")
@click.argument("category", required=False, type=click.Choice(CATEGORY_KEYS))
def list_presets(category: str | None):
    """List preset components, optionally for a single slot."""
    presets = load_presets(category)
    if not presets:
        click.echo(click.style("No presets found", fg="yellow")
                   + (f" for '{category}'." if category else "."))
        return

    for key, comps in presets.items():
        id_w = min(max(max(len(c.id) for c in comps), 4), 32)
        name_w = min(max(max(len(c.name) for c in comps), 4), 40)
        header = f"{'ID':<{id_w}}  {'Name':<{name_w}}  {'Weight':>9}  {'Cost':>8}"

        click.echo()
        click.echo(click.style(f"  {key}", bold=True) + f"  ({len(comps)} found)")
        click.echo(f"  {click.style(header, bold=True)}")
        click.echo(click.style(f"  {'-' * len(header)}", dim=True))
        for c in comps:
            click.echo(
                f"  {_truncate(c.id, id_w):<{id_w}}  "
                f"{_truncate(c.name, name_w):<{name_w}}  "
                f"{format_weight(c.weight):>9}  "
                f"{format_currency(c.cost):>8}"
            )
    click.echo()


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

@cli.command("check")
@click.argument("build_json_file", type=click.Path(exists=True))
def check_build_cmd(build_json_file: str):
    """Check compatibility of an exported build. Exits 1 on errors.

    Works on the file alone; drafts and saved builds are not touched.
    """
    store = _store_for_file(build_json_file)
    report = store.report()

    click.echo()
    click.echo(report.summary())
    click.echo()
    if not report.passed:
        sys.exit(1)


# ---------------------------------------------------------------------------
# calc
# ---------------------------------------------------------------------------

@cli.command("calc")
@click.argument("build_json_file", type=click.Path(exists=True))
def calc_metrics(build_json_file: str):
    """Show cost, weight, thrust-to-weight and flight time for a build file."""
    store = _store_for_file(build_json_file)
    build_metrics = store.metrics()

    click.echo()
    click.echo(click.style("  Build: ", bold=True) + store.name)
    click.echo(click.style(f"  {'=' * 40}", dim=True))
    for key, grams in build_metrics.weight_breakdown.items():
        if key == "total":
            continue
        click.echo(f"  {key:<12}: {format_weight(grams)}")
    click.echo()
    click.echo(build_metrics.summary())
    click.echo()


# ---------------------------------------------------------------------------
# context
# ---------------------------------------------------------------------------

@cli.command("context")
@click.argument("build_json_file", type=click.Path(exists=True))
def show_context(build_json_file: str):
    """Print the plain-text summary the chat assistant sees for a build file."""
    store = _store_for_file(build_json_file)
    click.echo(build_context(store))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

cli.add_command(build_group)
cli.add_command(saved_group)
cli.add_command(drafts_cmd)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
