"""
cloudsweep CLI

Main entry point for the command-line interface.
"""

import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import click
from rich.console import Console
from rich.panel import Panel

from . import __version__
from .core.confirmation import confirm_nuke
from .core.exceptions import CloudSweepError, ConfigurationError
from .core.filters import Config, load_config_file
from .core.logging import LogContext, setup_logging
from .core.orchestrator import DEFAULT_MAX_WORKERS, Orchestrator, defaults_query
from .core.query import Query, Scope
from .core.region_manager import RegionManager
from .core.timeutil import duration_to_cutoff, parse_duration
from .reporting import CLIRenderer, Collector, CSVRenderer, JSONRenderer, open_output
from .reporting.renderers.base import Renderer
from .resources.registry import (
    RESOURCE_ORDER,
    get_all_gcp_resources,
    get_all_registered_resources,
    list_gcp_resource_types,
    list_resource_types,
)

console = Console()
err_console = Console(stderr=True)

# Seconds between nuke batches, keeps large runs under API rate limits
BATCH_PAUSE_SECONDS = 10

OUTPUT_FORMATS = ["table", "json", "csv"]


# =============================================================================
# Option parsing
# =============================================================================


def split_values(ctx, param, value: Sequence[str]) -> List[str]:
    """Flatten repeated and comma-separated option values."""
    result = []
    for item in value or ():
        result.extend(v.strip() for v in item.split(",") if v.strip())
    return result


def validate_duration(ctx, param, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        parse_duration(value)
    except ConfigurationError as e:
        raise click.BadParameter(e.message)
    return value


def _options(options: Sequence[Callable]) -> Callable:
    def decorator(f):
        for option in reversed(options):
            f = option(f)
        return f

    return decorator


region_options = _options(
    [
        click.option(
            "--region",
            "regions",
            multiple=True,
            callback=split_values,
            help="Region to target, repeatable or comma-separated (default: all enabled regions)",
        ),
        click.option(
            "--exclude-region",
            "exclude_regions",
            multiple=True,
            callback=split_values,
            help="Region to skip, repeatable or comma-separated",
        ),
    ]
)

resource_type_options = _options(
    [
        click.option(
            "--resource-type",
            "resource_types",
            multiple=True,
            callback=split_values,
            help="Resource type to target, repeatable or comma-separated (default: all)",
        ),
        click.option(
            "--exclude-resource-type",
            "exclude_resource_types",
            multiple=True,
            callback=split_values,
            help="Resource type to skip, repeatable or comma-separated",
        ),
        click.option(
            "--list-resource-types",
            is_flag=True,
            help="Print the supported resource types and exit",
        ),
    ]
)

filter_options = _options(
    [
        click.option(
            "--older-than",
            callback=validate_duration,
            help="Only target resources created at least this long ago (e.g. 24h, 7d)",
        ),
        click.option(
            "--newer-than",
            callback=validate_duration,
            help="Only target resources created within this duration (e.g. 30m)",
        ),
        click.option(
            "--timeout",
            callback=validate_duration,
            help="Deadline per resource type for listing and deleting (e.g. 5m)",
        ),
        click.option(
            "--exclude-first-seen",
            is_flag=True,
            help="Do not read or write the first-seen tag",
        ),
        click.option(
            "--config",
            "config_path",
            type=click.Path(exists=True, dir_okay=False),
            help="YAML file with per-resource-type filter rules",
        ),
    ]
)

nuke_options = _options(
    [
        click.option(
            "--dry-run",
            is_flag=True,
            help="List what would be nuked without deleting anything",
        ),
        click.option(
            "--force",
            is_flag=True,
            help="Skip the confirmation prompt (a short countdown still runs)",
        ),
    ]
)

output_options = _options(
    [
        click.option(
            "--output-format",
            type=click.Choice(OUTPUT_FORMATS),
            default="table",
            help="Output format (default: table)",
        ),
        click.option(
            "--output-file",
            default=None,
            help="Write output to this file (format auto-detected from .json/.csv)",
        ),
        click.option(
            "--log-level",
            type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
            default="INFO",
            help="Log level (default: INFO)",
        ),
    ]
)

aws_options = _options(
    [
        click.option(
            "--profile",
            "-p",
            default=None,
            help="AWS profile name from ~/.aws/credentials",
        ),
        click.option(
            "--max-workers",
            default=DEFAULT_MAX_WORKERS,
            type=click.IntRange(min=1),
            help=f"Maximum parallel discovery calls (default: {DEFAULT_MAX_WORKERS})",
        ),
    ]
)


# =============================================================================
# Helpers
# =============================================================================


def resolve_output_format(output_format: str, output_file: Optional[str]) -> str:
    """An explicit format wins; a table request with a .json/.csv file follows the extension."""
    if output_format == "table" and output_file:
        suffix = Path(output_file).suffix.lower().lstrip(".")
        if suffix in ("json", "csv"):
            return suffix
    return output_format


def build_renderers(output_format: str, stream, command: str, query: Query) -> List[Renderer]:
    if output_format == "json":
        return [JSONRenderer(stream, command=command, query=query.to_dict())]
    if output_format == "csv":
        return [CSVRenderer(stream, command=command)]
    target = console if stream is sys.stdout else Console(file=stream)
    return [CLIRenderer(target)]


def build_query(
    regions: Sequence[str] = (),
    exclude_regions: Sequence[str] = (),
    resource_types: Sequence[str] = (),
    exclude_resource_types: Sequence[str] = (),
    older_than: Optional[str] = None,
    newer_than: Optional[str] = None,
    exclude_first_seen: bool = False,
) -> Query:
    """Turn CLI flags into a :class:`Query`, durations becoming absolute cutoffs."""
    return Query(
        regions=list(regions),
        exclude_regions=list(exclude_regions),
        resource_types=list(resource_types),
        exclude_resource_types=list(exclude_resource_types),
        exclude_after=duration_to_cutoff(older_than),
        include_after=duration_to_cutoff(newer_than),
        exclude_first_seen=exclude_first_seen,
    )


def build_config(config_path: Optional[str], timeout: Optional[str]) -> Config:
    config = load_config_file(config_path) if config_path else Config()
    if timeout:
        config.apply_timeout(timeout)
    return config


def print_resource_types(resource_types: Sequence[str]) -> None:
    console.print(f"\n[bold]Supported resource types ({len(resource_types)} total):[/bold]\n")
    for name in resource_types:
        console.print(f"  • {name}")
    console.print()


def print_mode(dry_run: bool, force: bool) -> None:
    if dry_run:
        err_console.print(
            Panel(
                "[yellow bold]DRY-RUN MODE[/yellow bold]\n"
                "Resources will be listed but nothing will be deleted.",
                border_style="yellow",
            )
        )
    elif force:
        err_console.print(
            Panel(
                "[red bold]FORCE MODE[/red bold]\n"
                "Resources will be deleted WITHOUT a confirmation prompt!",
                border_style="red",
            )
        )


def execute(
    command: str,
    query: Query,
    scopes: Sequence[Scope],
    config: Config,
    resource_factory: Callable,
    scope_config: Callable,
    output_format: str,
    output_file: Optional[str],
    inspect_only: bool = False,
    dry_run: bool = False,
    force: bool = False,
    max_workers: int = DEFAULT_MAX_WORKERS,
    resource_order: Optional[Sequence[str]] = None,
) -> None:
    """Run one inspection or nuke and render it."""
    output_format = resolve_output_format(output_format, output_file)
    log_level = logging.NOTSET if output_format == "table" else logging.WARNING
    with open_output(output_file) as stream, LogContext(logging.getLogger("cloudsweep"), log_level):
        collector = Collector(build_renderers(output_format, stream, command, query))
        orchestrator = Orchestrator(
            collector,
            resource_factory=resource_factory,
            scope_config=scope_config,
            max_workers=max_workers,
            resource_order=resource_order,
            batch_pause=BATCH_PAUSE_SECONDS,
            confirm=lambda has, dry, frc: confirm_nuke(has, dry, frc, console=err_console),
        )
        if inspect_only:
            orchestrator.inspect(query, scopes, config)
        else:
            orchestrator.run(query, scopes, config, dry_run=dry_run, force=force)


def handle_errors(action: str, f: Callable[[], None]) -> None:
    try:
        f()
    except CloudSweepError as e:
        err_console.print(f"\n[red bold]Error:[/red bold] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        err_console.print(f"\n[yellow]{action} cancelled by user.[/yellow]")
        sys.exit(130)


# =============================================================================
# Commands
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="cloudsweep")
def cli():
    """
    cloudsweep: discover and destroy cloud resources.

    Tears down throwaway AWS accounts and GCP projects, with filtering,
    confirmation and partial-failure tolerance.
    """
    pass


def _run_aws(
    command: str,
    inspect_only: bool,
    regions,
    exclude_regions,
    resource_types,
    exclude_resource_types,
    list_resource_types_flag: bool,
    older_than,
    newer_than,
    timeout,
    exclude_first_seen: bool,
    config_path,
    output_format: str,
    output_file,
    log_level: str,
    profile,
    max_workers: int,
    dry_run: bool = False,
    force: bool = False,
) -> None:
    if list_resource_types_flag:
        print_resource_types(list_resource_types())
        return
    setup_logging(level=log_level.upper())

    def run() -> None:
        query = build_query(
            regions,
            exclude_regions,
            resource_types,
            exclude_resource_types,
            older_than,
            newer_than,
            exclude_first_seen,
        ).validate(known_resource_types=list_resource_types())
        config = build_config(config_path, timeout)

        manager = RegionManager(profile=profile)
        manager.base_client.validate_credentials()
        scopes = manager.resolve_scopes(query)
        if not inspect_only:
            print_mode(dry_run, force)
        execute(
            command,
            query,
            scopes,
            config,
            resource_factory=get_all_registered_resources,
            scope_config=manager.config_for_scope,
            output_format=output_format,
            output_file=output_file,
            inspect_only=inspect_only,
            dry_run=dry_run,
            force=force,
            max_workers=max_workers,
            resource_order=RESOURCE_ORDER,
        )

    handle_errors("Inspection" if inspect_only else "Nuke", run)


@cli.command("aws")
@region_options
@resource_type_options
@filter_options
@nuke_options
@output_options
@aws_options
def nuke_aws(
    regions,
    exclude_regions,
    resource_types,
    exclude_resource_types,
    list_resource_types,
    older_than,
    newer_than,
    timeout,
    exclude_first_seen,
    config_path,
    dry_run,
    force,
    output_format,
    output_file,
    log_level,
    profile,
    max_workers,
):
    """
    Nuke AWS resources.

    Lists every matching resource, asks for confirmation, then deletes.

    Examples:

        # Preview what would be deleted (safe)
        cloudsweep aws --dry-run

        # Key pairs and volumes older than a week in two regions
        cloudsweep aws --region us-east-1,eu-west-1 \\
            --resource-type ec2-keypairs --resource-type ebs --older-than 7d

        # Everything except S3, no prompt
        cloudsweep aws --exclude-resource-type s3 --force
    """
    _run_aws(
        "aws",
        False,
        regions,
        exclude_regions,
        resource_types,
        exclude_resource_types,
        list_resource_types,
        older_than,
        newer_than,
        timeout,
        exclude_first_seen,
        config_path,
        output_format,
        output_file,
        log_level,
        profile,
        max_workers,
        dry_run=dry_run,
        force=force,
    )


@cli.command("inspect-aws")
@region_options
@resource_type_options
@filter_options
@output_options
@aws_options
def inspect_aws(
    regions,
    exclude_regions,
    resource_types,
    exclude_resource_types,
    list_resource_types,
    older_than,
    newer_than,
    timeout,
    exclude_first_seen,
    config_path,
    output_format,
    output_file,
    log_level,
    profile,
    max_workers,
):
    """
    List AWS resources that would be nuked, without deleting anything.

    Examples:

        cloudsweep inspect-aws --region us-east-1

        cloudsweep inspect-aws --output-format json --output-file found.json
    """
    _run_aws(
        "inspect-aws",
        True,
        regions,
        exclude_regions,
        resource_types,
        exclude_resource_types,
        list_resource_types,
        older_than,
        newer_than,
        timeout,
        exclude_first_seen,
        config_path,
        output_format,
        output_file,
        log_level,
        profile,
        max_workers,
    )


@cli.command("defaults-aws")
@region_options
@click.option(
    "--sg-only",
    is_flag=True,
    help="Only strip the rules of default security groups",
)
@nuke_options
@output_options
@aws_options
def defaults_aws(
    regions,
    exclude_regions,
    sg_only,
    dry_run,
    force,
    output_format,
    output_file,
    log_level,
    profile,
    max_workers,
):
    """
    Tear down default VPCs and their components.

    With --sg-only the default VPCs stay and only the rules of their
    default security groups are revoked.
    """
    setup_logging(level=log_level.upper())

    def run() -> None:
        query = defaults_query(regions, exclude_regions, security_groups_only=sg_only)
        query.validate(known_resource_types=list_resource_types())
        manager = RegionManager(profile=profile)
        manager.base_client.validate_credentials()
        scopes = manager.resolve_scopes(query, include_global=False)
        print_mode(dry_run, force)
        execute(
            "defaults-aws",
            query,
            scopes,
            Config(),
            resource_factory=get_all_registered_resources,
            scope_config=manager.config_for_scope,
            output_format=output_format,
            output_file=output_file,
            dry_run=dry_run,
            force=force,
            max_workers=max_workers,
            resource_order=query.resource_types,
        )

    handle_errors("Nuke", run)


def _run_gcp(
    command: str,
    inspect_only: bool,
    project_id,
    resource_types,
    exclude_resource_types,
    list_resource_types_flag: bool,
    older_than,
    newer_than,
    timeout,
    exclude_first_seen: bool,
    config_path,
    output_format: str,
    output_file,
    log_level: str,
    dry_run: bool = False,
    force: bool = False,
) -> None:
    if list_resource_types_flag:
        print_resource_types(list_gcp_resource_types())
        return
    if not project_id:
        raise click.UsageError("Missing option '--project-id'.")
    setup_logging(level=log_level.upper())

    def run() -> None:
        query = build_query(
            resource_types=resource_types,
            exclude_resource_types=exclude_resource_types,
            older_than=older_than,
            newer_than=newer_than,
            exclude_first_seen=exclude_first_seen,
        ).validate(known_resource_types=list_gcp_resource_types())
        config = build_config(config_path, timeout)
        if not inspect_only:
            print_mode(dry_run, force)
        execute(
            command,
            query,
            [Scope(project_id=project_id)],
            config,
            resource_factory=get_all_gcp_resources,
            scope_config=lambda scope: scope.project_id,
            output_format=output_format,
            output_file=output_file,
            inspect_only=inspect_only,
            dry_run=dry_run,
            force=force,
        )

    handle_errors("Inspection" if inspect_only else "Nuke", run)


project_option = click.option(
    "--project-id",
    default=None,
    help="GCP project to target",
)


@cli.command("gcp")
@project_option
@resource_type_options
@filter_options
@nuke_options
@output_options
def nuke_gcp(
    project_id,
    resource_types,
    exclude_resource_types,
    list_resource_types,
    older_than,
    newer_than,
    timeout,
    exclude_first_seen,
    config_path,
    dry_run,
    force,
    output_format,
    output_file,
    log_level,
):
    """
    Nuke GCP resources in one project.

    Example:

        cloudsweep gcp --project-id my-sandbox --older-than 24h
    """
    _run_gcp(
        "gcp",
        False,
        project_id,
        resource_types,
        exclude_resource_types,
        list_resource_types,
        older_than,
        newer_than,
        timeout,
        exclude_first_seen,
        config_path,
        output_format,
        output_file,
        log_level,
        dry_run=dry_run,
        force=force,
    )


@cli.command("inspect-gcp")
@project_option
@resource_type_options
@filter_options
@output_options
def inspect_gcp(
    project_id,
    resource_types,
    exclude_resource_types,
    list_resource_types,
    older_than,
    newer_than,
    timeout,
    exclude_first_seen,
    config_path,
    output_format,
    output_file,
    log_level,
):
    """List GCP resources that would be nuked, without deleting anything."""
    _run_gcp(
        "inspect-gcp",
        True,
        project_id,
        resource_types,
        exclude_resource_types,
        list_resource_types,
        older_than,
        newer_than,
        timeout,
        exclude_first_seen,
        config_path,
        output_format,
        output_file,
        log_level,
    )


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
