"""
Small helpers shared by the engines: timestamps, string similarity and
memory-trigger detection.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional


def to_timestamp(moment: datetime) -> str:
    """Format a datetime the way the graph file stores it.

    UTC, millisecond precision, ``Z`` suffix - e.g. ``2025-03-01T12:00:00.000Z``.
    Timestamps in this form sort lexically in time order.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_timestamp() -> str:
    """Current time as a graph timestamp."""
    return to_timestamp(datetime.now(timezone.utc))


def days_ago(days: float, now: Optional[datetime] = None) -> str:
    """Timestamp for ``days`` before ``now`` (defaults to the current time)."""
    if now is None:
        now = datetime.now(timezone.utc)
    return to_timestamp(now - timedelta(days=days))


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, 1):
        current = [i]
        for j, char_b in enumerate(b, 1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """Case-insensitive similarity in [0, 1]: ``1 - distance / max_length``.

    Symmetric. Two empty strings count as identical.
    """
    s1 = a.lower()
    s2 = b.lower()
    max_length = max(len(s1), len(s2))
    if max_length == 0:
        return 1.0
    return 1.0 - levenshtein(s1, s2) / max_length


# Trigger name -> cue pattern
TRIGGER_PATTERNS = {
    "retrieve": re.compile(r"remember|told you|mentioned|said|earlier|previously|last time", re.IGNORECASE),
    "store": re.compile(r"remember this|note this|keep track|don't forget|save this", re.IGNORECASE),
    "update": re.compile(r"not correct|wrong|actually|instead|rather|update", re.IGNORECASE),
}


def detect_memory_triggers(message: str) -> list[str]:
    """Which memory actions a user message hints at: retrieve, store, update."""
    return [name for name, pattern in TRIGGER_PATTERNS.items() if pattern.search(message)]


def unique(items) -> list:
    """De-duplicate while keeping first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def require_text(value, label: str) -> str:
    """Return ``value`` if it is a non-empty string, else raise ValueError."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"{label} must be a non-empty string, got {value!r}")
    return value


def require_strings(values, label: str) -> list:
    """Return ``values`` as a list if it is a list of strings, else raise ValueError."""
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ValueError(f"{label} must be a list of strings, got {values!r}")
    return list(values)
