# Middleware package init
"""
Jotter Backend — Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: Generate or accept the correlation ID
    2. Logging: Log method, path, status, duration with that ID
    3. GZip / CORS: FastAPI's built-in middleware
"""
