from . import health, pages

__all__ = ["health", "pages"]
