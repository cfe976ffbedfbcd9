# Middleware package init
"""
Vroom Route API — Middleware Package
=====================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: Generate correlation ID for logging and tracing
    2. Logging: Log request details with the generated request ID
    3. GZip: Compress large VROOM documents (geometry output can be big)
    4. CORS: Applied by FastAPI's CORSMiddleware (handles preflight)
"""
