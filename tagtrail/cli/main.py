"""``tagtrail`` console script.

Every option falls back to its TAGTRAIL_* environment variable when omitted.
"""

from __future__ import annotations

import asyncio

import click

from tagtrail import __version__
from tagtrail.app import main


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--image-host",
    "image_pattern",
    metavar="REGEX",
    help="Regexp selecting the image references to watch, e.g. '.*example\\.com.*'. Required.",
)
@click.option(
    "--no-ns",
    "excluded_namespaces",
    metavar="NS|NS",
    help="Pipe-delimited namespaces not watched. [default: kube-system|kube-public|kube-node-lease]",
)
@click.option(
    "--record-path",
    metavar="PATH",
    help="File the records are appended to; empty string disables. [default: ~/.deploy_image_record.log]",
)
@click.option("--stdout/--no-stdout", "stdout", default=None, help="Also write records to stdout. [default: on]")
@click.option(
    "--kinds",
    metavar="KIND|KIND",
    help="Pipe-delimited workload kinds: Deployment, StatefulSet, DaemonSet. [default: Deployment]",
)
@click.option("--resync-seconds", type=int, help="Watch window / resync period. [default: 60]")
@click.option(
    "--report-all-changes/--first-change-only",
    "report_all_changes",
    default=None,
    help="Emit every changed container of an update instead of the first one.",
)
@click.option(
    "--report-image-swaps/--ignore-image-swaps",
    "report_image_swaps",
    default=None,
    help="Also emit records when a container's image name (not just its tag) changes.",
)
@click.option("--api/--no-api", "api_enabled", default=None, help="Serve the status API. [default: off]")
@click.option("--port", "api_port", type=int, help="Status API port. [default: 8080]")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    help="Diagnostic log level (logs go to stderr). [default: info]",
)
@click.version_option(__version__, prog_name="tagtrail")
def cli(**options: object) -> None:
    """Record every container image tag change of the cluster's workloads."""
    asyncio.run(main(options))
