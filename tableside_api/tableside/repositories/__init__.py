"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area. Restaurant-scoped
queries take the restaurant id explicitly; on Postgres the session should also carry
restaurant context (e.g. via tableside.core.deps.get_restaurant_session).
"""
