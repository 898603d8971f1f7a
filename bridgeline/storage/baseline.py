"""
Snapshot baseline checks.

Normalizes a payload, then either refreshes the stored baseline or compares
against it. Optional report files make the outcome inspectable after a test
run:

    <reports_dir>/snapshot-report.json   normalized payload
    <reports_dir>/diff-summary.txt       comparison summary or failure reason
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from ..core.canon import normalize_value
from ..core.compare import compare_snapshots

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

REPORT_FILENAME = "snapshot-report.json"
DIFF_FILENAME = "diff-summary.txt"


class SnapshotStatus(Enum):
    """
    Outcome of a baseline check.

    MATCH: Payload equals the baseline after normalization
    UPDATED: Baseline was (re)written from the payload
    DIFF: Payload differs from the baseline
    ERROR: Check could not run (missing baseline, unreadable file, ...)
    """

    MATCH = "match"
    UPDATED = "updated"
    DIFF = "diff"
    ERROR = "error"

    @property
    def exit_code(self) -> int:
        if self in (SnapshotStatus.MATCH, SnapshotStatus.UPDATED):
            return 0
        if self == SnapshotStatus.DIFF:
            return 1
        return 2


@dataclass(frozen=True)
class SnapshotCheck:
    status: SnapshotStatus
    message: str
    normalized: Optional[str] = None
    diff_count: int = 0

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    def is_match(self) -> bool:
        return self.status in (SnapshotStatus.MATCH, SnapshotStatus.UPDATED)


def check_snapshot(
    payload: Any,
    snapshot_path: PathLike,
    update: bool = False,
    reports_dir: Optional[PathLike] = None,
) -> SnapshotCheck:
    """
    Compare payload with the baseline at snapshot_path.

    Args:
        payload: JSON-like value, dataclass, or object with to_dict()
        snapshot_path: Baseline file
        update: Write the normalized payload as the new baseline instead
        reports_dir: Directory for report files (none written if None)

    Returns:
        SnapshotCheck describing the outcome
    """
    normalized = normalize_value(payload)
    snapshot_path = os.fspath(snapshot_path) if snapshot_path is not None else ""

    reports = os.fspath(reports_dir) if reports_dir is not None else None
    if reports:
        os.makedirs(reports, exist_ok=True)
        _write_text(os.path.join(reports, REPORT_FILENAME), normalized)

    if not snapshot_path.strip():
        return _finish(reports, SnapshotStatus.ERROR, "Snapshot path not provided.", normalized)

    if update:
        directory = os.path.dirname(snapshot_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        _write_text(snapshot_path, normalized)
        logger.info("snapshot baseline updated: %s", snapshot_path)
        return _finish(reports, SnapshotStatus.UPDATED, "Snapshot updated.", normalized)

    if not os.path.isfile(snapshot_path):
        return _finish(
            reports,
            SnapshotStatus.ERROR,
            f"Snapshot file not found: {snapshot_path}",
            normalized,
        )

    with open(snapshot_path, "r", encoding="utf-8") as f:
        expected = f.read()

    try:
        diff = compare_snapshots(normalized, expected)
    except ValueError as exc:
        return _finish(
            reports,
            SnapshotStatus.ERROR,
            f"Snapshot file is not valid JSON: {snapshot_path}: {exc}",
            normalized,
        )

    status = SnapshotStatus.DIFF if diff.has_differences else SnapshotStatus.MATCH
    return _finish(reports, status, diff.summary, normalized, diff.diff_count)


def _finish(
    reports: Optional[str],
    status: SnapshotStatus,
    message: str,
    normalized: str,
    diff_count: int = 0,
) -> SnapshotCheck:
    if reports:
        _write_text(os.path.join(reports, DIFF_FILENAME), message)
    if status in (SnapshotStatus.DIFF, SnapshotStatus.ERROR):
        logger.warning("snapshot check %s: %s", status.value, message.splitlines()[0])
    return SnapshotCheck(
        status=status, message=message, normalized=normalized, diff_count=diff_count
    )


def _write_text(path: str, text: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
