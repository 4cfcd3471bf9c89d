"""
StreetPaws Backend — App Shell & Fallback Routes
==================================================

What:  The HTML shell documents for the client's top-level pages, the web
       app manifest, and the catch-all that sends unknown /api/* paths back
       to the root document.
Who:   Browsers, and the offline client's precache manifest
       ("/", "/manifest.json", "/api/health").

This router must be included after every /api router.
"""

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from streetpaws.templating import templates

router = APIRouter(tags=["App Shell"])

SHELL_PAGES = {
    "/": ("dashboard", "Dashboard"),
    "/register": ("register", "Register Animal"),
    "/search": ("search", "Search Animals"),
    "/helplines": ("helplines", "Emergency Helplines"),
}

WEB_MANIFEST = {
    "name": "StreetPaws - Stray Animal Management",
    "short_name": "StreetPaws",
    "description": "Register, track and care for stray animals in your area",
    "start_url": "/",
    "display": "standalone",
    "background_color": "#ffffff",
    "theme_color": "#2563eb",
    "icons": [
        {"src": "/icon-192.svg", "sizes": "192x192", "type": "image/svg+xml"},
        {"src": "/icon-512.svg", "sizes": "512x512", "type": "image/svg+xml"},
    ],
}


def _render_shell(request: Request, page: str, title: str, animal_id: str = "") -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "shell.html",
        {"page": page, "title": title, "animal_id": animal_id},
    )


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard_page(request: Request) -> HTMLResponse:
    return _render_shell(request, *SHELL_PAGES["/"])


@router.get("/register", response_class=HTMLResponse, include_in_schema=False)
async def register_page(request: Request) -> HTMLResponse:
    return _render_shell(request, *SHELL_PAGES["/register"])


@router.get("/search", response_class=HTMLResponse, include_in_schema=False)
async def search_page(request: Request) -> HTMLResponse:
    return _render_shell(request, *SHELL_PAGES["/search"])


@router.get("/helplines", response_class=HTMLResponse, include_in_schema=False)
async def helplines_page(request: Request) -> HTMLResponse:
    return _render_shell(request, *SHELL_PAGES["/helplines"])


@router.get("/animal/{animal_id}", response_class=HTMLResponse, include_in_schema=False)
async def animal_profile_page(request: Request, animal_id: str) -> HTMLResponse:
    """Target of every QR code; the page loads /api/animals/lookup/{animal_id}."""
    return _render_shell(request, "animal-profile", f"Animal {animal_id}", animal_id)


@router.get("/manifest.json", include_in_schema=False)
async def web_manifest() -> JSONResponse:
    return JSONResponse(WEB_MANIFEST, media_type="application/manifest+json")


@router.api_route(
    "/api/{rest:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def unknown_api_path(rest: str) -> RedirectResponse:
    """Unrecognized API paths go back to the main page instead of a JSON 404."""
    return RedirectResponse(url="/", status_code=302)
