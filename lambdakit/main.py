from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from lambdakit import __version__
from lambdakit.models.function import FunctionSpec
from lambdakit.services.config import SUPPORTED_REGIONS
from lambdakit.services.dependencies import get_function_runtime, get_project_setup_service
from lambdakit.services.errors import LambdaKitError
from lambdakit.services.packaging import write_archive

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _ensure_logging(level: str) -> None:
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    else:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(formatter)
    # botocore is chatty at DEBUG.
    if level != "DEBUG":
        logging.getLogger("botocore").setLevel(logging.WARNING)


def _fail(exc: Exception) -> None:
    click.secho(f"✗ {exc}", fg="red", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="lambdakit")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """lambdakit: bootstrap and package server-less AWS projects."""
    level = "DEBUG" if verbose else os.environ.get("LAMBDAKIT_LOG_LEVEL", "WARNING").strip().upper()
    if level not in LOG_LEVELS:
        _fail(ValueError(f"Invalid LAMBDAKIT_LOG_LEVEL {level!r}; expected one of: {', '.join(LOG_LEVELS)}"))
    _ensure_logging(level)


@cli.command()
@click.option("--name", "-n", "project_name", default=None, help="Project name (max 20 chars, alphanumeric and -).")
@click.option("--stage", "-s", default=None, help="First stage to create, e.g. dev.")
@click.option("--bucket", "-b", default=None, help="S3 bucket holding per-stage env var files.")
@click.option("--region", "-r", type=click.Choice(SUPPORTED_REGIONS), default=None, help="AWS region.")
@click.option("--email", "-e", "notification_email", default=None, help="Email for AWS alarms.")
@click.option("--profile", "-p", "credential_profile", default=None, help="AWS profile for the admin user.")
@click.option("--no-exec-cf", "skip_stack", is_flag=True, help="Don't create the CloudFormation stack.")
@click.option(
    "--dir",
    "base_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to create the project in (default: CWD).",
)
def create(
    project_name: Optional[str],
    stage: Optional[str],
    bucket: Optional[str],
    region: Optional[str],
    notification_email: Optional[str],
    credential_profile: Optional[str],
    skip_stack: bool,
    base_dir: Optional[Path],
) -> None:
    """Create a new project, its env var bucket and its first stage."""
    try:
        service = get_project_setup_service(base_dir=base_dir)
        manifest = asyncio.run(
            service.create(
                project_name=project_name,
                stage=stage,
                bucket=bucket,
                region=region,
                notification_email=notification_email,
                credential_profile=credential_profile,
                skip_stack_execution=skip_stack,
            )
        )
    except (LambdaKitError, ValueError) as exc:
        _fail(exc)
        return

    click.secho(f"✓ {manifest.name} ready", fg="green")


@cli.command()
@click.argument("function_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--stage", "-s", required=True, help="Stage to package for.")
@click.option("--region", "-r", type=click.Choice(SUPPORTED_REGIONS), required=True, help="AWS region.")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root holding _meta/_tmp (default: CWD).",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write a zip here.")
def package(
    function_dir: Path,
    stage: str,
    region: str,
    project_root: Optional[Path],
    output: Optional[Path],
) -> None:
    """Build a function's deployable package."""
    try:
        function = FunctionSpec.load(function_dir)
        runtime = get_function_runtime(function.runtime, project_root=project_root)
        manifest = asyncio.run(runtime.build(function, stage, region))
        if output is not None:
            write_archive(manifest, output)
    except (LambdaKitError, OSError, ValueError) as exc:
        _fail(exc)
        return

    if output is not None:
        click.secho(f"✓ Wrote {len(manifest)} file(s) to {output}", fg="green")
        return
    for entry in manifest.entries:
        click.echo(f"{entry.archive_name}\t{entry.source_path}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
