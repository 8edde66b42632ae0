"""
Safety regression suite: the distress classifier that feeds crisis tracking.

Run with: pytest backend/tests/test_safety_regression.py -v
"""

from __future__ import annotations

import os
import sys

THIS_DIR = os.path.dirname(__file__)
PKG_ROOT = os.path.abspath(os.path.join(THIS_DIR, ".."))
if PKG_ROOT not in sys.path:
    sys.path.insert(0, PKG_ROOT)

import pytest
from tracewell.domain.safety.service import classify, crisis_message, crisis_tag, is_high_distress


class TestCrisisDetection:
    """Ensure immediate-level threats are detected."""

    IMMEDIATE_SAMPLES = [
        "I'm going to kill myself tonight",
        "I want to end my life",
        "I've decided to take my life",
        "i'm going to end it all!!!",
        "I just want to die",
        "there's no reason to live",
        "I've been feeling suicidal",
        "I don't want to be here anymore",
    ]

    @pytest.mark.parametrize("text", IMMEDIATE_SAMPLES)
    def test_immediate_detection(self, text: str):
        level, details = classify(text)
        assert level == "immediate", f"Expected 'immediate' for: {text}"
        assert details["kind"] == "suicidal"

    def test_elevated_self_harm(self):
        level, details = classify("I'm cutting myself to cope")
        assert level == "elevated"
        assert details["kind"] == "self_harm"

    def test_elevated_distress(self):
        level, details = classify("Honestly I can't cope with any of this")
        assert level == "elevated"
        assert details["kind"] == "distress"

    def test_elevated_with_means_escalates(self):
        level, details = classify("I can't cope anymore. I have pills here.")
        assert level == "immediate"
        assert details["escalated_by"] == "means"

    def test_elevated_with_timing_escalates(self):
        level, details = classify("I hurt myself. Planning to do it again tonight.")
        assert level == "immediate"
        assert details["escalated_by"] == "time"

    def test_no_false_positive_on_safe_text(self):
        level, details = classify("I'm feeling a bit down but going to the gym")
        assert level is None
        assert details is None

    def test_past_tense_is_not_flagged(self):
        level, _details = classify("Earlier I thought about ending things, but I called a friend")
        assert level is None


class TestFalsePositives:
    """Colloquial phrases must not enter the crisis window."""

    SAMPLES = [
        "I'm going to murder this code review",
        "Let me kill this bug",
        "I want to end this meeting right now",
        "She was dying to see you",
        "I'm dying of laughter",
        "My battery is about to die",
        "I want to end this relationship",
        "Kill the lights before you leave tonight",
    ]

    @pytest.mark.parametrize("text", SAMPLES)
    def test_no_false_crisis_on_idioms(self, text: str):
        level, _details = classify(text)
        assert level is None, f"False positive on: {text} (got {level})"


class TestEdgeCases:
    def test_empty_and_none(self):
        assert classify("") == (None, None)
        assert classify(None) == (None, None)  # type: ignore[arg-type]

    def test_very_long_input(self):
        level, _details = classify("I'm happy " * 10000)
        assert level is None

    @pytest.mark.parametrize("text", [
        "I'M GOING TO KILL MYSELF",
        "i'm gonna kill myself!!!",
        "I'm going..to...kill myself",
        "I can’t cope, I have a knife",
    ])
    def test_case_and_punctuation(self, text: str):
        level, _details = classify(text)
        assert level == "immediate"


class TestDistressHelpers:
    def test_is_high_distress(self):
        assert is_high_distress("immediate") is True
        assert is_high_distress("elevated") is True
        assert is_high_distress(None) is False
        assert is_high_distress("neutral") is False

    def test_crisis_tag_for_self_harm(self):
        level, details = classify("I keep hurting myself")
        assert crisis_tag(level, details) == "self-harm-language"

    def test_crisis_tag_for_other_distress(self):
        level, details = classify("I want to die")
        assert crisis_tag(level, details) == "high-distress"
        assert crisis_tag(None, None) == "high-distress"


class TestCrisisMessage:
    def test_base_message(self):
        assert "emergency services" in crisis_message().lower()

    def test_unknown_region_gets_base_only(self):
        assert crisis_message("FR") == crisis_message()

    @pytest.mark.parametrize("region,needle", [
        ("US", "988"),
        ("us", "741741"),
        ("CA", "988"),
        ("UK", "116 123"),
        ("AU", "13 11 14"),
    ])
    def test_region_lines(self, region: str, needle: str):
        assert needle in crisis_message(region)
