# Middleware package init
"""
Brewprint Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs before logging so every access log line carries the
    correlation id. Responses travel the chain in reverse, which is where
    the X-Request-ID header and the request duration are added.
"""
