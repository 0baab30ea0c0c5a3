"""
DevCamper Backend — Pydantic Request/Response Schemas
=======================================================

Schemas are separate from SQLAlchemy models: request bodies are validated
here, while rows are serialized with `Base.to_dict()` so list endpoints can
honour `select=` without touching unloaded columns.
"""
