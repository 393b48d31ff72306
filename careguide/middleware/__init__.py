"""
Care Guide Notes API — Middleware Package
===========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    Request ID runs first so the access log line and every handler log
    share the same correlation ID.
"""
