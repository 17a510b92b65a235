"""Logfire setup for the application."""

import logfire

from fastapi import FastAPI

from utils.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure logfire. Nothing is sent unless a write token is set."""
    logfire.configure(
        token=settings.logfire_token,
        send_to_logfire="if-token-present",
        service_name="blog-api",
        environment=settings.environment,
    )


def instrument_libraries(app: FastAPI, settings: Settings) -> None:
    """Instrument FastAPI and PyMongo for better observability."""
    if not settings.logfire_token:
        return
    logfire.instrument_fastapi(app)
    logfire.instrument_pymongo()
