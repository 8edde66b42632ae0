from .auth import get_current_user
from .store import get_store

__all__ = ["get_current_user", "get_store"]
