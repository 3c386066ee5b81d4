# Routes package init
"""
Brewprint Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - recipes.py:  /api/recipes            create, list/filter, edit, branch, results, lifecycle, chain
    - backup.py:   /api/backup             export, import, stored files, CSV, stats, reset
    - library.py:  /api/library            defaults, folder filing, recipe tags
    - health.py:   GET /health             service health check

Every /api route reads the caller from the X-Owner-ID header
(dependencies.get_owner_id) and the store from get_record_store, which
tests override with an in-memory implementation.

Routes stay thin: extract request data, call a service, shape the response.
"""
