"""Snapshot comparison.

Both sides are normalized first (normalization is idempotent, so already
canonical text is safe to pass), then compared as exact strings. On a
mismatch a line-by-line summary is built:

    Differences detected: 3
    First differences:
    Line 4: expected: "name": "A",
    Line 4: actual:   "name": "B",

Lines past the end of either side are shown as "<missing>".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .canon import normalize_json

DEFAULT_MAX_PAIRS = 20
MISSING_LINE = "<missing>"
NO_DIFF_SUMMARY = "No diffs detected."


@dataclass(frozen=True)
class SnapshotDiff:
    """
    Outcome of comparing two snapshots.

    normalized_actual is always populated so a caller can write it out as
    the new baseline.
    """

    has_differences: bool
    normalized_actual: str
    summary: str
    diff_count: int

    @classmethod
    def no_diff(cls, normalized_actual: str) -> "SnapshotDiff":
        return cls(False, normalized_actual, NO_DIFF_SUMMARY, 0)

    @classmethod
    def with_diff(
        cls, normalized_actual: str, summary: str, diff_count: int
    ) -> "SnapshotDiff":
        return cls(True, normalized_actual, summary, diff_count)


def compare_snapshots(
    actual_json: str,
    expected_json: str,
    max_pairs: int = DEFAULT_MAX_PAIRS,
) -> SnapshotDiff:
    """Normalize and compare two snapshot texts."""
    normalized_actual = normalize_json(actual_json)
    normalized_expected = normalize_json(expected_json)

    if normalized_actual == normalized_expected:
        return SnapshotDiff.no_diff(normalized_actual)

    summary, diff_count = build_diff_summary(
        normalized_actual, normalized_expected, max_pairs
    )
    return SnapshotDiff.with_diff(normalized_actual, summary, diff_count)


def build_diff_summary(
    actual: str, expected: str, max_pairs: int = DEFAULT_MAX_PAIRS
) -> Tuple[str, int]:
    """Line-by-line summary, capped at max_pairs reported pairs."""
    actual_lines = _split_lines(actual)
    expected_lines = _split_lines(expected)
    total = max(len(actual_lines), len(expected_lines))

    reported: List[str] = []
    diff_count = 0
    for i in range(total):
        actual_line = actual_lines[i] if i < len(actual_lines) else MISSING_LINE
        expected_line = expected_lines[i] if i < len(expected_lines) else MISSING_LINE
        if actual_line == expected_line:
            continue

        diff_count += 1
        if diff_count <= max_pairs:
            reported.append(f"Line {i + 1}: expected: {expected_line}")
            reported.append(f"Line {i + 1}: actual:   {actual_line}")

    lines = [f"Differences detected: {diff_count}"]
    if reported:
        lines.append("First differences:")
        lines.extend(reported)
    return "\n".join(lines) + "\n", diff_count


def _split_lines(value: str) -> List[str]:
    return value.replace("\r\n", "\n").split("\n")
