"""Invoke tasks for stepmigrator development."""

from invoke import task
from invoke.context import Context


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False) -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
    """
    cmd = "uv run pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=stepmigrator --cov-report=term-missing"
    ctx.run(cmd, pty=True)


@task(name="new-migration")
def new_migration(ctx: Context, name: str) -> None:
    """Create the next migration file.

    Args:
        ctx: Invoke context
        name: Migration name, e.g. add_users_table
    """
    ctx.run(f"uv run stepmigrator create {name}")


@task
def migrate(ctx: Context, target: str | None = None, dry_run: bool = False) -> None:
    """Apply pending migrations.

    Args:
        ctx: Invoke context
        target: Version to migrate to (default: latest)
        dry_run: Show the steps without applying them
    """
    cmd = "uv run stepmigrator up"
    if target is not None:
        cmd += f" {target}"
    if dry_run:
        cmd += " --dry-run"
    ctx.run(cmd, pty=True)


@task
def status(ctx: Context) -> None:
    """Show applied and pending migrations."""
    ctx.run("uv run stepmigrator status")


@task
def clean(ctx: Context) -> None:
    """Clean up temporary files."""
    # Clean Python cache
    for pattern in ["__pycache__", "*.pyc", "*.pyo", ".pytest_cache"]:
        ctx.run(f"find . -name '{pattern}' -exec rm -rf {{}} + 2>/dev/null || true", warn=True)

    # Clean build artifacts
    for path in ["build", "dist", "*.egg-info", ".eggs"]:
        ctx.run(f"rm -rf {path} 2>/dev/null || true", warn=True)

    print("Cleanup complete")
