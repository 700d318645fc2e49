from .json_repository import JsonSessionRepository, SESSIONS_KEY

__all__ = ["JsonSessionRepository", "SESSIONS_KEY"]
