"""TRACE backend: per-user crisis follow-up state."""

__version__ = "0.1.0"
