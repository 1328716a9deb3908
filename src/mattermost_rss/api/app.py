"""HTTP endpoints for the feed service.

Routes:
- GET /          static API description
- GET /rss       RSS feed of the newest channel posts
- GET /rss.xml   same as /rss
- GET /posts     raw posts as JSON, ``?limit=N`` (default 50)
- GET /health    upstream connectivity probe

The app receives its PostSource from the caller, so tests can swap the
Mattermost adapter for an in-memory double.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Annotated, Any

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from mattermost_rss._version import __version__
from mattermost_rss.adapters.mattermost import MattermostAdapter, MattermostError
from mattermost_rss.config.schema import AppConfig
from mattermost_rss.core.feed_builder import FEED_POST_LIMIT, FeedBuilder, FeedGenerationError
from mattermost_rss.interfaces.source import PostSource
from mattermost_rss.utils.clock import Clock
from mattermost_rss.utils.health import HealthChecker
from mattermost_rss.utils.logging import bind_context, clear_context

log = structlog.get_logger()

RSS_MEDIA_TYPE = "application/rss+xml"

API_DESCRIPTION: dict[str, Any] = {
    "name": "Mattermost RSS API",
    "version": __version__,
    "description": "Converts posts from Mattermost news channel to RSS feed",
    "endpoints": {
        "GET /rss": "Get RSS feed of news channel posts",
        "GET /rss.xml": "Get RSS feed of news posts (alternative endpoint)",
        "GET /posts": "Get raw news posts as JSON (?limit=N, default 50)",
        "GET /health": "Health check endpoint",
    },
}


def parse_limit(raw: str | None) -> int:
    """Parse the ``limit`` query parameter.

    Missing, non-numeric and non-positive values fall back to the default.
    """
    try:
        value = int(raw) if raw is not None else 0
    except ValueError:
        value = 0
    return value if value > 0 else FEED_POST_LIMIT


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


def get_builder(request: Request) -> FeedBuilder:
    return request.app.state.builder  # type: ignore[no-any-return]


def get_health_checker(request: Request) -> HealthChecker:
    return request.app.state.health_checker  # type: ignore[no-any-return]


def create_app(
    config: AppConfig,
    source: PostSource | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: Application configuration.
        source: Post source to serve from. When omitted, a MattermostAdapter
            is created from ``config`` and closed on shutdown.
        clock: Optional time source for feed and health timestamps.

    Returns:
        Configured FastAPI app.
    """
    owned_adapter: MattermostAdapter | None = None
    if source is None:
        owned_adapter = MattermostAdapter(config.mattermost)
        source = owned_adapter

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info(
            "server_ready",
            feed_url=config.feed_url,
            health_url=f"{config.base_url}/health",
            news_channel=config.mattermost_news_channel_id or config.mattermost_news_channel,
        )
        yield
        if owned_adapter is not None:
            await owned_adapter.aclose()
        log.info("server_stopped")

    app = FastAPI(
        title="Mattermost RSS API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.builder = FeedBuilder(source, config, clock=clock)
    app.state.health_checker = HealthChecker(source, clock=clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        clear_context()
        bind_context(request_id=uuid.uuid4().hex[:12], path=request.url.path)
        try:
            return await call_next(request)
        finally:
            clear_context()

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        log.exception("unhandled_error", path=request.url.path, error=str(exc))
        return error_response(500, "Internal server error", str(exc))

    @app.get("/")
    async def index() -> dict[str, Any]:
        return API_DESCRIPTION

    async def rss_feed(builder: Annotated[FeedBuilder, Depends(get_builder)]) -> Response:
        try:
            xml = await builder.build_feed()
        except FeedGenerationError as e:
            return error_response(500, "Failed to generate RSS feed", str(e))
        return Response(content=xml, media_type=RSS_MEDIA_TYPE)

    app.add_api_route("/rss", rss_feed, methods=["GET"])
    app.add_api_route("/rss.xml", rss_feed, methods=["GET"])

    @app.get("/posts")
    async def posts(
        builder: Annotated[FeedBuilder, Depends(get_builder)],
        limit: Annotated[str | None, Query()] = None,
    ) -> JSONResponse:
        try:
            payload = await builder.build_posts_payload(parse_limit(limit))
        except MattermostError as e:
            return error_response(500, "Failed to fetch news posts", str(e))
        return JSONResponse(content=payload)

    @app.get("/health")
    async def health(
        checker: Annotated[HealthChecker, Depends(get_health_checker)],
    ) -> JSONResponse:
        report = await checker.check()
        return JSONResponse(
            status_code=200 if report.healthy else 503,
            content=report.to_dict(),
        )

    return app
