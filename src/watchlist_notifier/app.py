"""
Flask Application Factory.

Creates and configures the Flask application for Cloud Run.
"""

import os
import signal
import sys
from typing import Optional

import click
from flask import Flask

from watchlist_notifier.api import api_bp
from watchlist_notifier.config import settings
from watchlist_notifier.infrastructure.logging import log_request_context, logger
from watchlist_notifier.infrastructure.metrics import setup_metrics_middleware


def _handle_sigterm(signum: int, frame) -> None:
    """
    Handle SIGTERM for graceful shutdown on Cloud Run.

    Cloud Run sends SIGTERM before stopping the container.
    """
    logger.info(
        "Received SIGTERM, shutting down gracefully",
        extra={"extra_fields": {"signal": signum}}
    )
    sys.exit(0)


# Register SIGTERM handler for Cloud Run graceful shutdown
signal.signal(signal.SIGTERM, _handle_sigterm)


@click.command("check-completion-api")
def check_completion_api_command() -> None:
    """Send a test prompt to the completion API and report the result."""
    from watchlist_notifier.services import check_completion_api

    click.echo("Testing completion API...")
    result = check_completion_api()

    if not result.ok:
        click.echo(f"FAILED (status: {result.status_code or 'n/a'})", err=True)
        if result.error:
            click.echo(f"  Error: {result.error}", err=True)
        click.echo(f"  Hint: {result.hint}", err=True)
        sys.exit(1)

    click.echo("Success! Generated text:")
    click.echo("-" * 70)
    click.echo(result.text)
    click.echo("-" * 70)
    click.echo(
        f"Tokens: prompt={result.prompt_tokens} "
        f"completion={result.completion_tokens} total={result.total_tokens}"
    )
    click.echo(f"Estimated cost: ${result.estimated_cost_usd:.6f}")


def create_app(config: Optional[dict] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Optional configuration dictionary.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    app.json.sort_keys = False

    if config:
        app.config.update(config)

    log_request_context(app)
    setup_metrics_middleware(app)

    app.register_blueprint(api_bp)
    app.cli.add_command(check_completion_api_command)

    logger.info(
        "Application initialized",
        extra={"extra_fields": {
            "environment": os.environ.get("ENVIRONMENT", "development"),
        }}
    )

    return app


app = create_app()


if __name__ == "__main__":
    app.run(
        host="0.0.0.0",
        port=settings.port,
        debug=settings.debug,
    )
