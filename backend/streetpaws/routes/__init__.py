"""
StreetPaws Backend — API Routes Package
=========================================

Route Inventory:
    - animals.py:    /api/animals[...]       (CRUD, search, lookup, QR, vaccinations)
    - helplines.py:  GET /api/helplines, GET /api/stats
    - uploads.py:    POST /api/upload
    - health.py:     GET /api/health
    - shell.py:      app-shell pages, /manifest.json, /api/* catch-all

Design Principle:
    Routes are thin. They read the request, call a service with the
    storage instance from get_storage(), and shape the response.

Ordering:
    shell.router must be included last: its /api/{rest:path} catch-all
    would otherwise shadow the real API routes.
"""
