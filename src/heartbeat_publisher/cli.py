"""Command line entry point for cron-driven heartbeats and the HTTP service."""

from __future__ import annotations

import asyncio
import socket

import typer
from pydantic import ValidationError

from .core.config import get_settings
from .core.errors import HeartbeatError
from .core.logging import configure_logging
from .core.retry import ExponentialBackoffRetry
from .services.heartbeat import HeartbeatHandler

app = typer.Typer(help="Heartbeat publisher entrypoint", no_args_is_help=True)


@app.command()
def publish(
    max_attempts: int = typer.Option(None, help="Attempts before giving up (default HEARTBEAT_MAX_ATTEMPTS)"),
    backoff_base: float = typer.Option(
        None, help="Backoff base in seconds; attempt n waits base**n (default HEARTBEAT_BACKOFF_BASE_SECONDS)"
    ),
) -> None:
    """Publish one heartbeat, retrying the whole attempt with exponential backoff."""

    try:
        settings = get_settings()
    except ValidationError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    configure_logging(settings.log_level)

    retry = ExponentialBackoffRetry(
        max_attempts if max_attempts is not None else settings.heartbeat_max_attempts,
        base_seconds=backoff_base if backoff_base is not None else settings.heartbeat_backoff_base_seconds,
    )
    handler = HeartbeatHandler.from_settings(
        settings,
        retry_policy=retry,
        metadata={"host": socket.gethostname(), "region": settings.aws_region or "unknown"},
    )

    try:
        receipt = asyncio.run(handler.invoke())
    except HeartbeatError as exc:
        typer.echo(f"Heartbeat failed ({exc.stage}): {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Published heartbeat to {receipt.log_group}/{receipt.log_stream}")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
) -> None:
    """Run the HTTP service with the in-process heartbeat scheduler."""

    import uvicorn

    settings = get_settings()
    uvicorn.run("heartbeat_publisher.main:app", host=host, port=port, log_level=settings.log_level.lower())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
