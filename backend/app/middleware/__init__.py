# Middleware package init
"""
DevCamper Backend — Middleware Package
========================================

Middleware Chain (execution order):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [Security Headers]
            → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: abusive clients are rejected before any work
    2. Request ID: every later log line can carry the correlation id
    3. Access Log: sees the final status and total duration
    4. Security Headers / GZip / CORS: response shaping
"""
