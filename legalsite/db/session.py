import logging
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from legalsite.core.config import settings
from legalsite.db.base import Base

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
        "echo": settings.DEBUG,  # Log SQL queries in debug mode
    }
    if make_url(url).get_backend_name() == "sqlite":
        # the session is handed to a worker thread by the contact handler
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    return options


def build_engine(url: str) -> Engine:
    if not url:
        raise RuntimeError(
            "DATABASE_URL is empty. Set DATABASE_URL or DB_HOST/DB_USER/DB_PASSWORD/DB_NAME."
        )
    return create_engine(url, **_engine_options(url))


# Create engine with connection pooling
engine = build_engine(settings.DATABASE_URL or "")

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints.

    Usage:
        @router.post("/contact")
        async def submit(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> bool:
    """Create the contacts table if it does not exist yet.

    Failure is logged and reported, not raised: the static site keeps
    serving even when the database is unreachable at boot.
    """
    import legalsite.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=bind or engine)
    except SQLAlchemyError:
        logger.exception("Database initialization error")
        return False

    logger.info("Database initialized")
    return True
