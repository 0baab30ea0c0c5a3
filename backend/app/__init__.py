"""
DevCamper Backend — Application Package
=========================================

Bootcamp directory API. Request path through the layers:

    routes/         HTTP shape only: read params, call one service, wrap envelope
      │
    dependencies    identity (JWT → Identity), geocoder, mailer, photo storage
      │
    services/       authorization policy, query shaping, geo, business rules
      │
    models/         SQLAlchemy ORM (users, bootcamps, courses, reviews)
      │
    database        async engine, one session per request
"""

__version__ = "1.0.0"
