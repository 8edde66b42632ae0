# backend/tracewell/domain/safety/service.py
"""
Regex distress classifier feeding the crisis tracker, plus the crisis resource text.

- classify(text) -> (level, details), level in {None, "elevated", "immediate"}
- is_high_distress(level) -> bool
- crisis_tag(level, details) -> str
- crisis_message(region=None) -> str
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

__all__ = ["classify", "is_high_distress", "crisis_tag", "crisis_message"]

Details = Dict[str, Any]

# word-bounded, case-insensitive; conservative on purpose
IMMEDIATE_PATTERNS = [
    re.compile(r"\b(kill myself|end my life|take my life|end it all)\b", re.I),
    re.compile(r"\b(suicid(?:e|al))\b", re.I),
    re.compile(r"\b(want to die|no reason to live)\b", re.I),
    re.compile(r"\b(i (?:don['’]?t|do not) want to (?:live|be here) anymore)\b", re.I),
]

SELF_HARM_PATTERNS = [
    re.compile(r"\b(hurt(?:ing)? myself|self[-\s]?harm(?:ing)?|cut(?:ting)? myself|burn(?:ing)? myself)\b", re.I),
]

DISTRESS_PATTERNS = [
    re.compile(r"\b(i can['’]?t cope|i can['’]?t go on|falling apart|i hate myself)\b", re.I),
]

# escalate an elevated match to immediate
MEANS_PATTERNS = [
    re.compile(r"\b(pills?|overdose|rope|noose|gun|knife|razor|blade|bridge)\b", re.I),
]
TIME_PATTERNS = [
    re.compile(r"\b(right now|tonight|today|this (?:evening|night))\b", re.I),
]


def _first(patterns: List[re.Pattern], text: str) -> Optional[re.Match]:
    for pat in patterns:
        m = pat.search(text)
        if m:
            return m
    return None


def classify(text: str) -> Tuple[Optional[str], Optional[Details]]:
    """
    Heuristic classification into {None, 'elevated', 'immediate'}.

    - any IMMEDIATE pattern → 'immediate'
    - self-harm or acute distress → 'elevated', escalated to 'immediate'
      when means or imminent timing are mentioned too
    """
    t = text or ""
    m = _first(IMMEDIATE_PATTERNS, t)
    if m:
        return "immediate", {"kind": "suicidal", "group": m.group(0)}

    kind = "self_harm"
    m = _first(SELF_HARM_PATTERNS, t)
    if not m:
        kind = "distress"
        m = _first(DISTRESS_PATTERNS, t)
    if not m:
        return None, None

    details: Details = {"kind": kind, "group": m.group(0)}
    if _first(MEANS_PATTERNS, t):
        return "immediate", {**details, "escalated_by": "means"}
    if _first(TIME_PATTERNS, t):
        return "immediate", {**details, "escalated_by": "time"}
    return "elevated", details


def is_high_distress(level: Optional[str]) -> bool:
    return level in {"elevated", "immediate"}


def crisis_tag(level: Optional[str], details: Optional[Details] = None) -> str:
    """Label stored as last_crisis_tag for a flagged message."""
    if details and details.get("kind") == "self_harm":
        return "self-harm-language"
    return "high-distress"


_REGION_LINES = {
    "US": "In the United States, you can call or text 988 (Suicide & Crisis Lifeline), "
          "or text HOME to 741741 (Crisis Text Line).",
    "CA": "In Canada, you can call or text 988 (Suicide Crisis Helpline).",
    "UK": "In the UK & ROI, you can contact Samaritans at 116 123.",
    "AU": "In Australia, you can contact Lifeline at 13 11 14.",
}


def crisis_message(region: Optional[str] = None) -> str:
    """Short resource message. Always points to local emergency services."""
    msg = "I'm really glad you told me. If you're in danger, please contact your local emergency services now."
    line = _REGION_LINES.get((region or "").upper())
    return f"{msg} {line}" if line else msg
