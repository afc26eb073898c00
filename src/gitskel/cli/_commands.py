"""The init, update, branch, tag, and clean commands."""

from __future__ import annotations

import click

from .. import sync as _sync
from ..exceptions import GitSkelError
from ..record import Selector
from ._helpers import (
    main,
    _fail,
    _force_option,
    _open_target,
    _report_done,
    _status,
    _target_option,
)


def _run(ctx, flow, *args, force: bool):
    target = _open_target(ctx)
    try:
        record, result = flow(target, *args, force=force, progress=click.echo)
    except (GitSkelError, OSError) as exc:
        _fail(exc)
    _report_done(ctx, record, result)


@main.command()
@_target_option
@click.argument("url")
@click.option("--branch", "-b", default=None, help="Track this upstream branch.")
@click.option("--tag", "-t", default=None, help="Track this upstream tag.")
@_force_option
@click.pass_context
def init(ctx, url, branch, tag, force):
    """Install the skeleton at URL and start tracking it.

    Without --branch or --tag the upstream default branch is tracked.
    """
    if branch is not None and tag is not None:
        raise click.UsageError("--branch and --tag are mutually exclusive")
    selector = Selector.from_options(branch, tag)
    _status(ctx, f"Cloning {url} ({selector})")
    _run(ctx, _sync.init, url, selector, force=force)


@main.command()
@_target_option
@_force_option
@click.pass_context
def update(ctx, force):
    """Update to the latest revision of the upstream repository."""
    _run(ctx, _sync.update, force=force)


@main.command()
@_target_option
@click.argument("branch")
@_force_option
@click.pass_context
def branch(ctx, branch, force):
    """Track upstream BRANCH and update to its tip."""
    _run(ctx, _sync.switch_branch, branch, force=force)


@main.command()
@_target_option
@click.argument("tag")
@_force_option
@click.pass_context
def tag(ctx, tag, force):
    """Track upstream TAG and update to it."""
    _run(ctx, _sync.switch_tag, tag, force=force)


@main.command()
@_target_option
@_force_option
@click.pass_context
def clean(ctx, force):
    """Remove skeleton files and the tracking record."""
    _run(ctx, _sync.clean, force=force)
