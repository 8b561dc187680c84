# Middleware package init
"""
Akademi Backend — Middleware Package
======================================

Middleware Chain (request direction):
    Request → [CORS] → [Request ID] → [Logging] → [Readiness] → [GZip] → Route Handler

    1. CORS: preflight handling and CORS headers, including on 503s
    2. Request ID: correlation ID for every log line and error body
    3. Logging: access log with status, duration and any gate rejection reason
    4. Readiness: connects the store on demand, answers 503 while it is down

Role checks are not middleware: they are FastAPI dependencies
(akademi.dependencies) attached to the privileged routes.
"""
