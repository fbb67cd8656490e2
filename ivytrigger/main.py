"""
Ivy Trigger — CLI entrypoint.

Usage:
    ivytrigger --help
    ivytrigger -c trigger.yml evaluate
    ivytrigger evaluate --json --output snapshot.json
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from ivytrigger import __version__
from ivytrigger.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="ivytrigger")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only report errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging, including Ivy's own output.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to trigger.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Ivy Trigger — snapshot resolved Ivy dependencies for change detection."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("IVYTRIGGER_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("IVYTRIGGER_LOG_FILE"),
        log_file_level=os.environ.get("IVYTRIGGER_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write the snapshot to this file.",
)
@click.option(
    "--download/--no-download",
    default=None,
    help="Fetch artifacts while resolving (default: from config).",
)
@click.pass_context
def evaluate(
    ctx: click.Context,
    as_json: bool,
    output_path: str | None,
    download: bool | None,
) -> None:
    """Resolve the descriptor once and print the dependency snapshot."""
    from ivytrigger.adapters.ivy.cli import IvyCliEngine
    from ivytrigger.core.config.loader import ConfigError, config_dir, find_config_file, load_config
    from ivytrigger.core.models.dependency import Snapshot
    from ivytrigger.core.persistence.snapshot_file import save_snapshot
    from ivytrigger.core.use_cases.evaluate import evaluate as run_evaluation

    config_path: Path | None = ctx.obj.get("config_path") or find_config_file()
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    assert config_path is not None  # load_config raised otherwise

    env_vars = dict(os.environ) if config.inherit_environment else {}
    request = config.to_request(config_dir(config_path), env_vars)

    overrides: dict = {}
    if download is not None:
        overrides["download_artifacts"] = download
    if ctx.obj.get("debug"):
        overrides["debug"] = True
    if overrides:
        request = request.model_copy(update=overrides)

    result = run_evaluation(request, engine_factory=IvyCliEngine.factory(config.ivy))
    if result is None:
        click.secho("❌ Could not determine dependency state (see log)", fg="red", err=True)
        sys.exit(1)

    snapshot = Snapshot(namespace=config.namespace, dependencies=result)
    if output_path:
        save_snapshot(snapshot, Path(output_path))

    if as_json:
        click.echo(json.dumps(snapshot.model_dump(mode="json"), indent=2, sort_keys=True))
        return

    click.secho(f"\n📦 {config.namespace}: {len(result)} dependencies", fg="cyan", bold=True)
    for dep_id in sorted(result):
        value = result[dep_id]
        fetched = f"  ({len(value.artifacts)} artifact(s) fetched)" if value.artifacts else ""
        click.echo(f"   {dep_id} → {value.revision}{fetched}")
    if output_path:
        click.echo(f"\n   Snapshot written to {output_path}")
    click.echo()


def main() -> None:
    """Entry point for ``python -m ivytrigger.main``."""
    cli(obj={})


if __name__ == "__main__":
    main()
