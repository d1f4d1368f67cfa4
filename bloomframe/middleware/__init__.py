# Middleware package init
"""
BloomFrame Backend — Middleware Package
========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

The request ID is set before the logging middleware reads it, so every
access log line carries the same ID the client sees in X-Request-ID.
"""
