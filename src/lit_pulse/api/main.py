"""FastAPI application."""

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import date

from fastapi import Depends, FastAPI, HTTPException, Request

from lit_pulse import __version__
from lit_pulse.config import get_settings
from lit_pulse.models.model_article import Article
from lit_pulse.models.model_refresh import RunStatus
from lit_pulse.models.model_stats import DashboardStats
from lit_pulse.services.dashboard import LiteratureDashboard


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the dashboard unless one was injected, and keep it fresh."""
    periodic = None
    if getattr(app.state, "dashboard", None) is None:
        app.state.dashboard = LiteratureDashboard.from_settings(get_settings())
        periodic = asyncio.create_task(app.state.dashboard.run_periodic())
    yield
    if periodic is not None:
        periodic.cancel()
        with suppress(asyncio.CancelledError):
            await periodic
    await app.state.dashboard.close()


app = FastAPI(
    title="lit-pulse API",
    description="Classified literature feed and trend statistics",
    version=__version__,
    lifespan=lifespan,
)


def get_dashboard(request: Request) -> LiteratureDashboard:
    return request.app.state.dashboard


@app.get("/health")
async def health_check(
    dashboard: LiteratureDashboard = Depends(get_dashboard),
) -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "dashboard": dashboard.status().value,
    }


@app.get("/articles")
async def list_articles(
    search: str | None = None,
    bucket: str | None = None,
    start: date | None = None,
    end: date | None = None,
    limit: int = 50,
    dashboard: LiteratureDashboard = Depends(get_dashboard),
) -> list[Article]:
    """Cached articles, newest first."""
    selected = dashboard.query_articles(
        search=search, bucket=bucket, start=start, end=end
    )
    return selected[:limit]


@app.get("/stats")
async def get_stats(
    dashboard: LiteratureDashboard = Depends(get_dashboard),
) -> DashboardStats:
    return dashboard.stats()


@app.post("/refresh")
async def trigger_refresh(
    force: bool = True,
    dashboard: LiteratureDashboard = Depends(get_dashboard),
) -> dict:
    status = await (dashboard.refresh() if force else dashboard.maybe_refresh())
    if status is RunStatus.FAILURE and not dashboard.current_articles():
        raise HTTPException(status_code=502, detail="Refresh failed; no cached data")
    return {
        "status": status.value if status else "fresh",
        "last_refresh": dashboard.last_refresh_timestamp(),
        "articles": len(dashboard.current_articles()),
    }
