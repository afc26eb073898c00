"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import click

from .._status import TargetRepo
from ..exceptions import GitSkelError
from ..reconcile import SyncResult
from ..record import TrackingRecord


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ChainedError(click.ClickException):
    """A ClickException that prints the full ``__cause__`` chain."""

    def __init__(self, exc: BaseException):
        super().__init__(str(exc))
        self.exc = exc

    def causes(self) -> list[BaseException]:
        result: list[BaseException] = []
        seen = {id(self.exc)}
        cause = self.exc.__cause__ or self.exc.__context__
        while cause is not None and id(cause) not in seen:
            seen.add(id(cause))
            result.append(cause)
            cause = cause.__cause__ or cause.__context__
        return result

    def show(self, file=None) -> None:
        click.echo(
            f"{click.style('Error:', fg='red', bold=True)} {self.format_message()}",
            file=file, err=True,
        )
        for cause in self.causes():
            text = str(cause) or type(cause).__name__
            click.echo(
                f"  {click.style('Caused by:', fg='white', bold=True)} {text}",
                file=file, err=True,
            )


def _fail(exc: BaseException):
    """Re-raise a library error as a CLI error with its cause chain."""
    raise ChainedError(exc) from exc


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _store_target(ctx, param, value):
    """Click callback: store --target value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["target_path"] = value
    return value


def _target_option(f):
    """Shared --target/-C option decorator for all commands."""
    return click.option(
        "--target", "-C", type=click.Path(file_okay=False), envvar="GITSKEL_TARGET",
        help="Directory inside the target repository (or set GITSKEL_TARGET).",
        expose_value=False, callback=_store_target, is_eager=True,
    )(f)


def _force_option(f):
    """Shared --force/-f flag."""
    return click.option(
        "--force", "-f", is_flag=True, default=False,
        help="Apply changes even if local files would be overwritten.",
    )(f)


def _open_target(ctx) -> TargetRepo:
    """Discover the target repository from --target (default: cwd)."""
    start = ctx.obj.get("target_path") or "."
    try:
        target = TargetRepo.discover(start)
    except GitSkelError as exc:
        _fail(exc)
    _status(ctx, f"Target repository: {target.root}")
    return target


def _report_done(ctx, record: TrackingRecord, result: SyncResult):
    _status(ctx, f"Applied {result.applied} change(s)")
    _status(ctx, f"Tracking {record.url} ({record.selector}) at {record.revision}")


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@_target_option
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, verbose):
    """gitskel: keep a repository in sync with a skeleton repository.

    Files from an upstream "skeleton" repository (CI configs, license
    files, shared tooling) are copied into the current repository and
    kept up to date at a branch, tag, or the upstream default branch.

    \b
    Quick start:
      gitskel init https://example.com/skeleton.git
      gitskel update
      gitskel branch develop
      gitskel clean

    \b
    Every command first prints what it would do ("Detect changes"):
      " copy  " / " delete"   safe to apply
      "!copy  " / "!delete"   would overwrite local changes
      " ignore"               skipped by .gitskelignore
      "missing"               already removed
    Commands abort before touching anything when a '!' line is shown,
    unless --force is given.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
