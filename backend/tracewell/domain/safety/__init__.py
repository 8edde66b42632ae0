from .crisis_state import (
    CRISIS_WINDOW_MINUTES,
    SAFE_MESSAGES_TO_EXIT,
    MIN_MINUTES_TO_EXIT,
    PENDING_EXIT_SAFE_MESSAGES,
    Outcome,
    mark_in_crisis,
    is_in_crisis_window,
    get_crisis_state,
    update_after_message,
)
from .repo import CrisisStore, InMemoryCrisisStore, SupabaseCrisisStore, get_crisis_store

__all__ = [
    "CRISIS_WINDOW_MINUTES", "SAFE_MESSAGES_TO_EXIT", "MIN_MINUTES_TO_EXIT", "PENDING_EXIT_SAFE_MESSAGES",
    "Outcome", "mark_in_crisis", "is_in_crisis_window", "get_crisis_state", "update_after_message",
    "CrisisStore", "InMemoryCrisisStore", "SupabaseCrisisStore", "get_crisis_store",
]
