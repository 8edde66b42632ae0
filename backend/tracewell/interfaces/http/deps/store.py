from __future__ import annotations

from typing import Optional

from tracewell.domain.safety.repo import CrisisStore, get_crisis_store


def get_store() -> Optional[CrisisStore]:
    """Crisis store dependency; None when storage is not configured."""
    return get_crisis_store()
