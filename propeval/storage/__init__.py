from .backends import JsonFileStorage, MemoryStorage, ScopedStorage
from .store import SESSION_MAX_AGE_MS, SessionStore, is_stale, property_info_key, session_key

__all__ = [
    "JsonFileStorage",
    "MemoryStorage",
    "ScopedStorage",
    "SESSION_MAX_AGE_MS",
    "SessionStore",
    "is_stale",
    "property_info_key",
    "session_key",
]
