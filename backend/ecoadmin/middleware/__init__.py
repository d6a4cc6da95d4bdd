# Middleware package init
"""
EcoAdmin Backend: Middleware Package
=====================================

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any work is done
    2. Request ID: correlation id for every log line of the request
    3. Logging: method, path, status and duration, tagged with the request id
"""
