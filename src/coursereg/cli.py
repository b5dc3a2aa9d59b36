"""CLI entry point for coursereg."""

from __future__ import annotations

import json
import sys
from dataclasses import replace
from pathlib import Path

import click
import uvicorn

from coursereg import __version__
from coursereg.config import ConfigError, get_settings
from coursereg.logging import setup_logging
from coursereg.registry import STORAGE_BACKENDS, RecordKind, Registry, create_storage


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """coursereg - student, course and enrollment records over HTTP."""
    pass


@main.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to coursereg.yaml (auto-detected if not specified)",
)
@click.option("--host", default=None, help="Interface to bind")
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.option(
    "--storage",
    type=click.Choice(STORAGE_BACKENDS, case_sensitive=False),
    default=None,
    help="Storage backend",
)
@click.option("--seed/--no-seed", default=None, help="Load the starter dataset on startup")
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    storage: str | None,
    seed: bool | None,
) -> None:
    """Run the HTTP API."""
    overrides = {
        key: value
        for key, value in {
            "host": host,
            "port": port,
            "storage": storage.lower() if storage else None,
            "seed": seed,
        }.items()
        if value is not None
    }
    try:
        from coursereg.api.app import create_app  # noqa: PLC0415

        settings = replace(get_settings(config_path), **overrides)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(settings)
    app = create_app(settings)
    # log_config=None leaves uvicorn's loggers on the handlers set up above
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


@main.command("seed-dump")
@click.option(
    "--storage",
    type=click.Choice(STORAGE_BACKENDS, case_sensitive=False),
    default="memory",
    help="Storage backend",
)
def seed_dump(storage: str) -> None:
    """Print the starter dataset as JSON."""
    registry = Registry(create_storage(storage.lower()))
    try:
        registry.seed()
        data = {
            "students": [s.to_dict() for s in registry.list(RecordKind.STUDENTS)],
            "courses": [c.to_dict() for c in registry.list(RecordKind.COURSES)],
            "enrollments": [e.to_dict() for e in registry.enrollments()],
        }
    finally:
        registry.close()
    click.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    main()
