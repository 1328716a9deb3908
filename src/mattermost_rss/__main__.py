"""Entry point for running the Mattermost RSS service.

This module handles:
- Configuration loading from the environment
- Logging setup with secret sanitization
- One-shot health checks
- Serving the HTTP app with uvicorn
"""

import argparse
import asyncio
import sys

import structlog
import uvicorn
from pydantic import ValidationError

from mattermost_rss._version import __version__
from mattermost_rss.config.schema import AppConfig

log = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="mattermost-rss",
        description="Mattermost RSS - serve a Mattermost channel as an RSS feed",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--host",
        default=None,
        help="Interface to bind (default: HOST or 0.0.0.0)",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: PORT or 3000)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default=None,
        help="Log output format (default: LOG_FORMAT or json)",
    )

    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Probe the Mattermost connection once and exit",
    )

    return parser.parse_args(argv)


async def run_health_check(config: AppConfig) -> int:
    """Run a single health check against the configured server.

    Returns:
        Exit code (0 if healthy, 1 otherwise)
    """
    from mattermost_rss.adapters.mattermost import MattermostAdapter
    from mattermost_rss.utils.health import HealthChecker

    async with MattermostAdapter(config.mattermost) as adapter:
        report = await HealthChecker(adapter).check()

    if report.healthy:
        log.info("health_check_passed", **report.to_dict())
        return 0
    log.error("health_check_failed", **report.to_dict())
    return 1


def serve(config: AppConfig, host: str, port: int) -> int:
    """Serve the HTTP app until interrupted.

    Returns:
        Exit code
    """
    from mattermost_rss.api.app import create_app

    app = create_app(config)
    log.info("starting_server", host=host, port=port, version=__version__)
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    from mattermost_rss.config.loader import load_config, warn_missing_settings
    from mattermost_rss.utils.logging import configure_logging
    from mattermost_rss.utils.security import mask_config_value

    try:
        config = load_config()
    except ValidationError as e:
        configure_logging(level="INFO", log_format=args.format or "console")
        log.error("configuration_invalid", error=str(e))
        return 1

    configure_logging(
        level="DEBUG" if args.debug else config.log_level,
        log_format=args.format or config.log_format,
    )
    log.debug(
        "configuration_loaded",
        mattermost_url=config.mattermost_url,
        bot_token=mask_config_value("bot_token", config.mattermost_bot_token),
        team_id=config.mattermost_team_id,
    )
    warn_missing_settings(config)

    if args.health_check:
        return asyncio.run(run_health_check(config))

    try:
        return serve(config, args.host or config.host, args.port or config.port)
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


if __name__ == "__main__":
    sys.exit(main())
