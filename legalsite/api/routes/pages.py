"""
Clean-URL routes for the static site pages.

``PAGE_DOCUMENTS`` is the whole routing table: each path serves exactly one
document from the site root. The table is checked when the app is built so a
missing page fails startup instead of surfacing as a 404 in production.
Anything not listed here falls through to the static mount in ``main``.
"""
from pathlib import Path
from typing import Dict, Mapping

from fastapi import APIRouter
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException
from starlette.types import Scope

PAGE_DOCUMENTS: Dict[str, str] = {
    "/": "index.html",
    "/about": "about.html",
    "/contact": "contact.html",
    "/attorney-details": "attorney-details.html",
    "/our-attorneys": "our-attorneys.html",
    "/our-history": "our-history.html",
    "/our-pricing": "our-pricing.html",
    "/testimonial": "testimonial.html",
    "/faq": "faq.html",
    "/accordion": "accordion.html",
    "/achievements": "achievements.html",
    "/corporate-commercial-law": "corporate-commercial-law.html",
    "/dispute-resolution-litigation": "dispute-resolution-litigation.html",
    "/private-client-family": "private-client-family.html",
    "/property-real-estate": "property-real-estate.html",
    "/specialist-advisory-compliance": "specialist-advisory-compliance.html",
    "/case-study-details": "case-study-details.html",
    "/404-page": "404-page.html",
}


class PageConfigError(RuntimeError):
    """The page table references documents that are not on disk."""


def resolve_pages(site_root: Path, pages: Mapping[str, str] = PAGE_DOCUMENTS) -> Dict[str, Path]:
    root = site_root.resolve()
    if not root.is_dir():
        raise PageConfigError(f"Site root {root} does not exist")

    resolved: Dict[str, Path] = {}
    missing = []
    for path, document in pages.items():
        target = (root / document).resolve()
        if root not in target.parents or not target.is_file():
            missing.append(f"{path} -> {document}")
            continue
        resolved[path] = target

    if missing:
        raise PageConfigError(
            f"Missing page documents under {root}: {', '.join(missing)}"
        )
    return resolved


def _page_endpoint(document: Path):
    async def serve_page() -> FileResponse:
        return FileResponse(document, media_type="text/html")

    return serve_page


def build_pages_router(site_root: Path, pages: Mapping[str, str] = PAGE_DOCUMENTS) -> APIRouter:
    router = APIRouter(tags=["pages"])
    for path, document in resolve_pages(site_root, pages).items():
        router.add_api_route(
            path,
            _page_endpoint(document),
            methods=["GET"],
            include_in_schema=False,
            name=f"page:{path}",
        )
    return router


class SiteFiles(StaticFiles):
    """Static assets under the site root; other methods are unknown routes."""

    async def get_response(self, path: str, scope: Scope):
        if scope["method"] not in ("GET", "HEAD"):
            raise HTTPException(status_code=404)
        return await super().get_response(path, scope)
