# Middleware package init
"""
Notely Backend - Middleware Package
====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Distributed Rate Limit] → [Local Rate Limit] → [CORS]
            → [Request ID] → [Logging] → Route Handler

    1. Distributed limit FIRST: per-client quota in Redis, rejects abusive
       clients before anything else runs
    2. Local limit: process-wide backstop, counts only admitted requests
    3. CORS: FastAPI's CORSMiddleware (handles preflight)
    4. Request ID: correlation ID for logs and error bodies
    5. Logging: one access line with status and duration

    Responses travel back through the same stages in reverse order.
"""
