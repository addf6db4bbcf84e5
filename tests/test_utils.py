#!/usr/bin/env python3
"""
Helper Tests

Timestamps, string similarity and memory-trigger detection.
"""

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
from recollect.utils import (
    days_ago,
    detect_memory_triggers,
    levenshtein,
    now_timestamp,
    string_similarity,
    to_timestamp,
    unique,
)


class TestTimestamps:

    def test_format_is_utc_millis_with_z(self):
        moment = datetime(2025, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert to_timestamp(moment) == "2025-03-01T12:00:00.123Z"

    def test_naive_datetime_treated_as_utc(self):
        assert to_timestamp(datetime(2025, 3, 1, 12, 0, 0)) == "2025-03-01T12:00:00.000Z"

    def test_other_timezones_converted(self):
        plus_two = timezone(timedelta(hours=2))
        assert to_timestamp(datetime(2025, 3, 1, 14, 0, 0, tzinfo=plus_two)) == "2025-03-01T12:00:00.000Z"

    def test_timestamps_sort_in_time_order(self):
        earlier = to_timestamp(datetime(2025, 1, 9, tzinfo=timezone.utc))
        later = to_timestamp(datetime(2025, 1, 10, tzinfo=timezone.utc))
        assert earlier < later

    def test_now_timestamp_shape(self):
        stamp = now_timestamp()
        assert stamp.endswith("Z")
        assert len(stamp) == len("2025-03-01T12:00:00.000Z")

    def test_days_ago(self):
        now = datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert days_ago(60, now) == "2024-12-31T00:00:00.000Z"


class TestSimilarity:

    def test_levenshtein_basics(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert levenshtein("same", "same") == 0

    def test_identity(self):
        """Similarity of a name with itself is exactly 1.0."""
        assert string_similarity("person_Alice", "person_Alice") == 1.0

    def test_symmetry(self):
        pairs = [("John_Smith", "Jon_Smith"), ("abc", "xyz"), ("Dashboard", "project_Dashboard")]
        for a, b in pairs:
            assert string_similarity(a, b) == string_similarity(b, a)

    def test_case_insensitive(self):
        assert string_similarity("ALICE", "alice") == 1.0

    def test_empty_strings(self):
        assert string_similarity("", "") == 1.0
        assert string_similarity("", "abc") == 0.0

    def test_one_edit_in_ten(self):
        assert string_similarity("John_Smith", "John_Smyth") == pytest.approx(0.9)


class TestTriggers:

    def test_retrieve(self):
        assert detect_memory_triggers("What did I mention last time?") == ["retrieve"]

    def test_store_also_matches_retrieve(self):
        """'remember this' contains 'remember', so both cues fire."""
        assert detect_memory_triggers("Please remember this: I like tea") == ["retrieve", "store"]

    def test_update(self):
        assert detect_memory_triggers("Actually, the deadline moved") == ["update"]

    def test_no_triggers(self):
        assert detect_memory_triggers("How is the weather?") == []


class TestUnique:

    def test_keeps_first_seen_order(self):
        assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
