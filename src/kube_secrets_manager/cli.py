#!/usr/bin/env python
"""Command-line interface for kube-secrets-manager.

This module provides a CLI that initializes a secrets manager against a
cluster and reports the rotation epoch recovered for every logical secret,
including the secrets flagged for automatic renewal and the rotations
requested on the command line.
"""

import sys
from datetime import datetime

import click
from icecream import ic

from kube_secrets_manager import __version__, console
from kube_secrets_manager.clock import Clock, RealClock
from kube_secrets_manager.cluster import Cluster
from kube_secrets_manager.exceptions import (
    ClusterConnectionError,
    MalformedLabelError,
    RotationFileError,
)
from kube_secrets_manager.labels import LABEL_KEY_LAST_ROTATION_INITIATION_TIME
from kube_secrets_manager.manager import SecretsManager
from kube_secrets_manager.policy import parse_unix_time
from kube_secrets_manager.rotations import parse_rotation_file


def collect_rotations(clock: Clock, rotate: tuple[str, ...], rotations_file: str | None) -> dict[str, datetime]:
    """Merge rotation requests from the override file and the command line.

    Names given with ``--rotate`` win over the file and rotate as of now.

    Args:
        clock: Time source for ``--rotate`` requests.
        rotate: Logical names to rotate now.
        rotations_file: Optional path to a rotation override file.

    Returns:
        Logical secret names mapped to their rotation epoch.

    Raises:
        RotationFileError: If the override file cannot be parsed.

    """
    rotations: dict[str, datetime] = {}
    if rotations_file:
        rotations.update(parse_rotation_file(rotations_file))
    now = clock.now()
    for name in rotate:
        rotations[name] = now
    return rotations


def render_epoch(epoch: str) -> str:
    """Render a rotation epoch label for display."""
    if not epoch:
        return "-"
    try:
        return parse_unix_time(epoch, LABEL_KEY_LAST_ROTATION_INITIATION_TIME).isoformat()
    except MalformedLabelError:
        return "[error]invalid[/error]"


def show_rotation_state(manager: SecretsManager) -> None:
    """Print the rotation epochs recovered by the manager."""
    times = manager.last_rotation_initiation_times
    if not times:
        console.warning(f"No secrets managed by {console.highlight(manager.identity)} found")
        return

    console.rotation_table(
        f"{manager.namespace} / {manager.identity}",
        [(name, times[name], render_epoch(times[name])) for name in sorted(times)],
    )


@click.command(help="Recover and report the rotation state of managed secrets")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option("--namespace", "-n", envvar="SECRETS_MANAGER_NAMESPACE", help="namespace of the managed secrets")
@click.option("--identity", "-i", envvar="SECRETS_MANAGER_IDENTITY", help="identity of the secrets manager")
@click.option("--context", envvar="SECRETS_MANAGER_CONTEXT", help="kube context to use instead of the current one")
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option("--rotate", multiple=True, help="logical secret name to rotate now (repeatable)")
@click.option(
    "--rotations",
    required=False,
    type=click.Path(dir_okay=False),
    help="YAML file mapping secret names to rotation times",
)
@click.option("--timeout", type=float, default=30.0, show_default=True, help="list request timeout in seconds")
def cli(
    version: bool,
    debug: bool,
    namespace: str | None,
    identity: str | None,
    context: str | None,
    select: bool,
    rotate: tuple[str, ...],
    rotations: str | None,
    timeout: float,
) -> None:
    """Process CLI arguments and report the rotation state.

    Args:
        version: Print version and exit.
        debug: Enable debug output.
        namespace: Namespace of the managed secrets.
        identity: Identity of the secrets manager instance.
        context: Kube context to use.
        select: Prompt for Kubernetes context selection.
        rotate: Logical secret names to rotate now.
        rotations: Path to a rotation override file.
        timeout: Timeout of the list request in seconds.

    """
    if debug:
        ic.enable()

    if version:
        click.echo(__version__)
        return

    if not namespace:
        raise click.UsageError("Missing option '--namespace' / '-n'.")
    if not identity:
        raise click.UsageError("Missing option '--identity' / '-i'.")

    clock = RealClock()
    try:
        overrides = collect_rotations(clock, rotate, rotations)
    except RotationFileError as e:
        raise click.ClickException(str(e)) from None
    ic(overrides)

    try:
        cluster = Cluster(select_context=select, context=context)
        with console.spinner("Listing managed secrets..."):
            manager = SecretsManager(
                cluster.core_v1_api,
                namespace,
                identity,
                clock,
                overrides,
                request_timeout=timeout,
            )
    except ClusterConnectionError as e:
        console.error(f"Cluster connection failed: {e}")
        sys.exit(1)
    except MalformedLabelError as e:
        raise click.ClickException(str(e)) from None

    show_rotation_state(manager)


if __name__ == "__main__":
    cli()
