"""Product catalog service.

A FastAPI service that fronts PostgreSQL with a Redis read-through cache.
Reads are served from Redis when possible; writes go to PostgreSQL first
and then invalidate or repopulate the affected cache keys.
"""

__version__ = "0.1.0"
