"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: DB session, connection pool, schema helpers
- Redis: result cache with TTL policies

No scoring logic in stores - that belongs in services.
"""
