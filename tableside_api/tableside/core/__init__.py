"""
Core application utilities for settings and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Logging with request correlation and restaurant context
- Password hashing and JWT helpers
- Dependency helpers (restaurant extraction, restaurant-scoped DB session, role checks)
"""
