"""CLI entry point: depsentinel.

Subcommands:
    depsentinel generate --output deps-manifest.json   # build-time manifest (+ background audit)
    depsentinel check --manifest deps-manifest.json    # one-off audit of an existing manifest
    depsentinel serve --manifest deps-manifest.json    # run the health endpoint
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from depsentinel.core.config import Settings
from depsentinel.core.logging import setup_logging
from depsentinel.exceptions import AdvisoryQueryError, DepSentinelError


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except DepSentinelError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """DepSentinel: npm dependency manifests and critical-advisory health checks."""
    setup_logging("DEBUG" if verbose else None)


@main.command("generate")
@click.option("-o", "--output", default=None, help="Manifest output path (relative to --cwd)")
@click.option(
    "--cwd",
    default=".",
    type=click.Path(exists=True, file_okay=False),
    help="Project root containing the lockfile",
)
@click.option("--check/--no-check", default=True, help="Audit the new manifest in the background")
def generate(output: str | None, cwd: str, check: bool) -> None:
    """Write the dependency manifest, at most once per build."""
    from depsentinel.build.pipeline import prepare_build

    settings = _load_settings()
    project = Path(cwd).resolve()
    output_path = project / (output or settings.manifest_path)

    try:
        outcome = prepare_build(output_path, project, settings=settings, check=check)
    except DepSentinelError as e:
        click.echo(f"depsentinel: failed to generate dependency manifest: {e}", err=True)
        sys.exit(1)

    if outcome.skipped:
        return
    click.echo(f"deps-manifest: {len(outcome.graph)} packages written → {output_path}")
    if outcome.audit is not None:
        outcome.audit.wait(outcome.audit.budget)


@main.command("check")
@click.option("-m", "--manifest", default=None, help="Manifest file to audit")
@click.option("--strict", is_flag=True, help="Exit with status 2 when criticals are found")
def check(manifest: str | None, strict: bool) -> None:
    """Audit a manifest against the advisory feed and print the result."""
    from depsentinel.engines.advisory.client import AdvisoryClient
    from depsentinel.engines.advisory.report import audit, format_report
    from depsentinel.engines.dependency_graph.writer import load_manifest

    settings = _load_settings()
    try:
        graph = load_manifest(Path(manifest or settings.manifest_path))
    except DepSentinelError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    client = AdvisoryClient(settings.advisory_url, settings.advisory_timeout)
    try:
        report = asyncio.run(audit(graph, client))
    except AdvisoryQueryError as e:
        click.echo(f"Warning: {e}. Vulnerability status unknown.", err=True)
        return

    click.echo(format_report(report))
    if strict and not report.ok:
        sys.exit(2)


@main.command("serve")
@click.option("-m", "--manifest", default=None, help="Manifest file to serve")
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(manifest: str | None, host: str, port: int) -> None:
    """Serve GET /api/health for an uptime monitor."""
    import uvicorn

    from depsentinel.api import create_app

    settings = _load_settings()
    try:
        app = create_app(Path(manifest) if manifest else None, settings)
    except DepSentinelError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
