"""
ecs_discoverer.cli
───────────────────
Command surface. Prints one comma-separated line of peer private IPs on
success; on failure prints the reason to stderr and exits non-zero.

Usage:
    ecs-discoverer -s consul                         # this host's cluster
    ecs-discoverer -s consul -c prod -r eu-west-1    # any cluster
    ecs-discoverer -s consul -d                      # explain every drop
"""
from __future__ import annotations

from typing import Optional

import typer

from ecs_discoverer import __version__
from ecs_discoverer.tier0_core.errors import DiscovererError
from ecs_discoverer.tier0_core.logging import get_logger
from ecs_discoverer.tier3_platform.discovery import discover_peers, format_join_line

app = typer.Typer(
    add_completion=False,
    help="Find the private IPs of the other hosts running an ECS service.",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ecs-discoverer {__version__}")
        raise typer.Exit()


@app.command()
def discover(
    service: str = typer.Option(
        ..., "--service", "-s", help="ECS service name to discover peers for."
    ),
    cluster: Optional[str] = typer.Option(
        None, "--cluster", "-c", help="ECS cluster to search (default: this host's). Requires --region."
    ),
    region: Optional[str] = typer.Option(
        None, "--region", "-r", help="AWS region of --cluster. Requires --cluster."
    ),
    debug: bool = typer.Option(
        False, "--debug", "-d", help="Log every candidate that was excluded, and why."
    ),
    dedupe: bool = typer.Option(
        False, "--dedupe", help="Drop repeated identifiers at every stage."
    ),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Resolve SERVICE to a join list of peer private IPs."""
    if cluster is not None and not cluster.strip():
        raise typer.BadParameter("must not be empty.", param_hint="'--cluster'")
    if region is not None and not region.strip():
        raise typer.BadParameter("must not be empty.", param_hint="'--region'")
    if cluster is not None and region is None:
        raise typer.BadParameter("--cluster requires --region.", param_hint="'--region'")
    if region is not None and cluster is None:
        raise typer.BadParameter("--region requires --cluster.", param_hint="'--cluster'")

    try:
        addresses = discover_peers(
            service,
            cluster=cluster,
            region=region,
            debug=debug,
            # unset falls back to ECS_DISCOVERER_DEDUPE
            dedupe=True if dedupe else None,
        )
    except DiscovererError as exc:
        get_logger(__name__).debug("discovery.failed", code=exc.code, detail=exc.detail)
        typer.echo(exc.user_message, err=True)
        raise typer.Exit(exc.exit_code) from exc

    typer.echo(format_join_line(addresses))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
