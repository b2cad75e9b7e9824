import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from legalsite.api.routes import health, pages
from legalsite.api.v1 import captcha, contact
from legalsite.core.config import settings
from legalsite.core.email import connect_mail_transport
from legalsite.core.errors import register_exception_handlers
from legalsite.core.logging import setup_logging
from legalsite.core.middleware import NoCacheMiddleware, RequestLoggingMiddleware
from legalsite.core.rate_limiter import RateLimitMiddleware
from legalsite.core.security_headers import SecurityHeadersMiddleware
from legalsite.db.session import init_db

# Setup logging
setup_logging()
logger = logging.getLogger("legalsite.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting %s v%s", settings.PROJECT_NAME, settings.VERSION)
    logger.info("Environment: %s", settings.ENVIRONMENT)

    await asyncio.to_thread(init_db)

    # Built once; None keeps notifications off until the next restart.
    app.state.mail_transport = await connect_mail_transport(settings)

    base_url = f"http://localhost:{settings.PORT}"
    logger.info("%s server running on port %s", settings.PROJECT_NAME, settings.PORT)
    logger.info("API: %s%s/contact", base_url, settings.API_V1_PREFIX)
    logger.info("Website: %s (clean URLs, no .html extension)", base_url)
    logger.info(
        "Email: %s",
        "Configured" if app.state.mail_transport is not None else "Not configured",
    )

    yield

    logger.info("Shutting down...")


def create_app(site_root: Path | None = None) -> FastAPI:
    site_root = (site_root or settings.site_root).resolve()

    app = FastAPI(
        title=f"{settings.PROJECT_NAME} API",
        version=settings.VERSION,
        description="Marketing site pages, captcha challenges and the contact form.",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url=None,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    )
    app.state.mail_transport = None

    # Innermost first: the session must be loaded before any handler runs.
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        same_site="lax",
        https_only=settings.is_production,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(NoCacheMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        enabled=settings.is_production,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(captcha.router, prefix=settings.API_V1_PREFIX, tags=["captcha"])
    app.include_router(contact.router, prefix=settings.API_V1_PREFIX, tags=["contact"])

    # Raises PageConfigError when a listed page is missing.
    app.include_router(pages.build_pages_router(site_root))

    # Everything else under the site root (assets, *.html); unmatched -> 404 JSON
    app.mount("/", pages.SiteFiles(directory=site_root), name="site")

    return app


app = create_app()
