"""
app.py

Responsibility: Creates the FastAPI application, wires long-lived workers in
the lifespan (HTTP client, DNS provider, reconciliation queue, template
renderer, notifier, availability monitor) and registers the routers.
Does NOT: contain business logic or route handlers beyond /health.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from sqlmodel import Session

from db.database import engine, init_db, make_session_factory
from dns_queue import ReconciliationQueue
from exceptions import ProviderConfigError
from monitor import AvailabilityMonitor
from providers.factory import create_dns_provider
from repositories.config_repository import ConfigRepository
from routes import config_routes, dns_routes, host_routes
from services.config_service import ConfigService
from services.dns_service import DnsService
from services.notification_service import TelegramNotifier
from services.template_service import TemplateRenderer

APP_VERSION = "1.0.0"

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Starts and stops every long-lived collaborator.

    All workers are explicit instances on app.state; route handlers reach
    them through dependencies.py. A DNS provider configuration error does
    not stop the API: DNS endpoints answer 503 with the reason instead.
    """
    init_db()

    with Session(engine) as session:
        config_service = ConfigService(ConfigRepository(session))
        dns_settings = await config_service.get_dns_settings()
        queue_settings = await config_service.get_queue_settings()
        notification_settings = await config_service.get_notification_settings()
        monitor_settings = await config_service.get_monitor_settings()
        template_dir = await config_service.get_template_dir()

    http_client = httpx.AsyncClient()
    session_factory = make_session_factory()

    notifier = TelegramNotifier(
        http_client,
        bot_token=notification_settings.bot_token,
        chat_id=notification_settings.chat_id,
    )
    app.state.http_client = http_client
    app.state.notifier = notifier
    app.state.renderer = TemplateRenderer(template_dir)
    app.state.dns_service = None
    app.state.dns_queue = None
    app.state.dns_config_error = None

    try:
        provider = create_dns_provider(
            dns_settings.provider,
            http_client,
            api_token=dns_settings.api_token,
            api_secret=dns_settings.api_secret,
            zone_id=dns_settings.zone_id,
        )
    except ProviderConfigError as exc:
        logger.error("DNS reconciliation disabled: %s", exc)
        app.state.dns_config_error = str(exc)
    else:
        dns_service = DnsService(provider, session_factory, notifier=notifier)
        app.state.dns_service = dns_service
        app.state.dns_queue = ReconciliationQueue(
            dns_service.apply_update,
            concurrency=queue_settings.concurrency,
            interval=queue_settings.interval,
        )

    monitor = AvailabilityMonitor(session_factory, monitor_settings, notifier=notifier)
    app.state.monitor = monitor
    monitor.start()

    logger.info("NodeHub reconciliation service started (v%s).", APP_VERSION)
    try:
        yield
    finally:
        monitor.stop()
        if app.state.dns_queue is not None:
            await app.state.dns_queue.shutdown(timeout=30)
        await http_client.aclose()
        logger.info("NodeHub reconciliation service stopped.")


app = FastAPI(title="NodeHub", version=APP_VERSION, lifespan=lifespan)
app.include_router(host_routes.router)
app.include_router(dns_routes.router)
app.include_router(config_routes.router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "3000")))
