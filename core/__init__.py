"""Settings, persistence, Redis and security plumbing shared by the API, workers and scripts."""

from core.config import settings
from core.db import AsyncSessionLocal, Base, engine, get_db, utcnow
from core.redis import close_redis, get_redis

__all__ = ["settings", "Base", "AsyncSessionLocal", "engine", "get_db", "utcnow", "get_redis", "close_redis"]
