# Routes package init
"""
DevCamper Backend — API Routes Package
========================================

Route Inventory:
    - bootcamps.py:  /api/v1/bootcamps (+ radius search, photo upload)
    - courses.py:    /api/v1/courses, /api/v1/bootcamps/{id}/courses
    - reviews.py:    /api/v1/reviews, /api/v1/bootcamps/{id}/reviews
    - auth.py:       /api/v1/auth/*
    - users.py:      /api/v1/users (admin)
    - uploads.py:    /uploads/{path}
    - health.py:     /health

Routes stay thin: read the request, call one service method, shape the
envelope. Authorization and business rules live in services.
"""
