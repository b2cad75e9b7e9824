import uvicorn

from legalsite.core.config import settings


def main() -> None:
    uvicorn.run(
        "legalsite.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,  # keep the structlog setup from legalsite.core.logging
    )


if __name__ == "__main__":
    main()
