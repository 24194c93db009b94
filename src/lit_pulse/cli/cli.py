"""Command-line interface for lit-pulse."""

import asyncio
import logging
from pathlib import Path

import click

from lit_pulse.config import get_settings
from lit_pulse.models.model_refresh import RunStatus
from lit_pulse.services.dashboard import LiteratureDashboard


def _dashboard(ctx: click.Context) -> LiteratureDashboard:
    settings = get_settings()
    if ctx.obj.get("profile"):
        settings = settings.model_copy(update={"profile_path": ctx.obj["profile"]})
    return LiteratureDashboard.from_settings(settings)


@click.group()
@click.version_option(package_name="lit-pulse")
@click.option(
    "-p",
    "--profile",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Domain profile JSON (defaults to the built-in radiology-AI profile)",
)
@click.pass_context
def main(ctx: click.Context, profile: Path | None):
    """lit-pulse: track, classify and chart recent literature."""
    settings = get_settings()
    logging.basicConfig(
        level="DEBUG" if settings.debug else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile


async def _run_refresh(dashboard: LiteratureDashboard, force: bool) -> RunStatus | None:
    try:
        if force:
            return await dashboard.refresh()
        return await dashboard.maybe_refresh()
    finally:
        await dashboard.close()


@main.command()
@click.option("-f", "--force", is_flag=True, help="Refresh even if the cache is fresh")
@click.pass_context
def refresh(ctx: click.Context, force: bool):
    """Fetch, filter and classify new articles into the cache."""
    dashboard = _dashboard(ctx)
    status = asyncio.run(_run_refresh(dashboard, force))

    if status is None:
        click.echo(
            f"Cache is fresh (last refresh: {dashboard.last_refresh_timestamp()})"
        )
        return

    for notice in dashboard.notices:
        click.echo(f"{notice.level.upper()}: {notice.message}", err=True)
    click.echo(
        f"Refresh {status.value}: {len(dashboard.current_articles())} articles cached"
    )
    if status is RunStatus.FAILURE:
        ctx.exit(1)


async def _run_watch(dashboard: LiteratureDashboard) -> None:
    dashboard.subscribe(
        lambda notice: click.echo(f"{notice.level.upper()}: {notice.message}", err=True)
    )
    try:
        await dashboard.run_periodic()
    finally:
        await dashboard.close()


@main.command()
@click.pass_context
def watch(ctx: click.Context):
    """Keep the cache fresh, checking staleness periodically until interrupted."""
    dashboard = _dashboard(ctx)
    click.echo(
        f"Checking every {dashboard.check_interval_seconds / 60:.0f} min; Ctrl-C to stop"
    )
    try:
        asyncio.run(_run_watch(dashboard))
    except KeyboardInterrupt:
        click.echo("Stopped")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print the raw stats as JSON")
@click.pass_context
def stats(ctx: click.Context, as_json: bool):
    """Show bucket counts, weekly trend and leaderboard from the cache."""
    dashboard = _dashboard(ctx)
    result = dashboard.stats()

    if as_json:
        click.echo(result.model_dump_json(indent=2))
        return

    board = result.leaderboard
    click.echo(f"Last refresh: {dashboard.last_refresh_timestamp() or 'never'}")
    click.echo(f"Articles: {board.total_articles}")
    click.echo(f"Top journal: {board.top_journal}")
    click.echo(f"Top bucket: {board.top_bucket}")
    click.echo(f"Top author: {board.top_author}")
    click.echo(f"Avg authors: {board.avg_authors:.1f}")

    click.echo("\nBy bucket:")
    for label, count in result.bucket_counts.items():
        click.echo(f"  {label:<20} {count}")

    click.echo("\nBy week:")
    for point in result.weekly:
        click.echo(f"  {point.week}  {point.count}")


@main.command()
@click.option("-b", "--bucket", help="Only articles in this bucket")
@click.option("-s", "--search", help="Case-insensitive title search")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), help="Earliest date")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), help="Latest date")
@click.option("-n", "--limit", default=20, show_default=True, help="Max rows")
@click.pass_context
def articles(ctx: click.Context, bucket, search, start, end, limit: int):
    """List cached articles, newest first."""
    dashboard = _dashboard(ctx)
    selected = dashboard.query_articles(
        search=search,
        bucket=bucket,
        start=start.date() if start else None,
        end=end.date() if end else None,
    )
    click.echo(f"{len(selected)} matching articles")
    for article in selected[:limit]:
        click.echo(
            f"{article.publication_date:%Y-%m-%d}  [{article.bucket}]  "
            f"{article.title} ({article.journal or 'unknown journal'})"
        )


if __name__ == "__main__":
    main()
