from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (middleware, handlers, routers, and the
stateful collaborators owned by the app) so tests can build isolated
instances with their own limiter and mail relay.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contact_api.adapters.mail.base import AbstractMailRelay
from contact_api.adapters.mail.factory import create_mail_relay
from contact_api.adapters.rate_limit.base import AbstractRateLimiter
from contact_api.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from contact_api.api.routes import contact_router, health_router
from contact_api.core.client_ip import parse_trusted_proxies
from contact_api.core.config import settings
from contact_api.core.exception_handlers import setup_exception_handlers
from contact_api.core.logging import configure_logging
from contact_api.core.middleware import request_id_middleware
from contact_api.services.contact_service import ContactService

CORS_ALLOWED_METHODS = ["POST"]
CORS_ALLOWED_HEADERS = ["Origin", "Content-Length", "Content-Type"]


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    mail_relay: AbstractMailRelay | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter owning per-client request history; a fresh
            24h/5-request sliding-window limiter when omitted.
        mail_relay: Outbound relay; built from mail settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Contact Relay API",
        description=(
            "Accepts contact form submissions, rate limits them per client "
            "address and relays them by email."
        ),
        version="0.1.0",
        debug=settings.server.debug,
    )

    app.state.rate_limiter = rate_limiter or InMemorySlidingWindowRateLimiter()
    app.state.trusted_proxies = parse_trusted_proxies(settings.server.trusted_proxies_list)
    app.state.contact_service = ContactService(
        mail_relay or create_mail_relay(settings.mail),
        sender=settings.mail.from_address,
        recipient=settings.mail.to_address,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins_list,
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(contact_router, prefix="/api")
    app.include_router(health_router)

    return app
