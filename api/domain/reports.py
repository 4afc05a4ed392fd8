# SPDX-License-Identifier: Apache-2.0

"""
Report counter state transitions.

A donor is Active(count) for count in [0, REPORT_THRESHOLD) and becomes
Removed (terminal) on the report that brings the count to REPORT_THRESHOLD.
Stores apply these transitions atomically per donor.
"""

from dataclasses import dataclass

from models.responses import ReportResult


REPORT_THRESHOLD = 3


@dataclass(frozen=True)
class ReportOutcome:
    """Donor state after one report."""
    report_count: int
    removed: bool

    def to_result(self) -> ReportResult:
        return ReportResult(report_count=self.report_count, removed=self.removed)


def apply_report(current_count: int, threshold: int = REPORT_THRESHOLD) -> ReportOutcome:
    """
    Apply one report to an active donor.

    Args:
        current_count: Reports received before this one
        threshold: Report count at which the donor is removed

    Returns:
        ReportOutcome with the new count and whether the donor is removed
    """
    if current_count < 0 or current_count >= threshold:
        raise ValueError(f"Report count {current_count} is outside the active range [0, {threshold})")

    new_count = current_count + 1
    return ReportOutcome(report_count=new_count, removed=new_count >= threshold)


def report_message(donor_id: str, outcome: ReportResult) -> str:
    """User-facing message for a successful report."""
    if outcome.removed:
        return f"Donor {donor_id} has been reported {REPORT_THRESHOLD} times and is now removed."
    return (
        f"Thank you for your report. Donor {donor_id} has been reported "
        f"{outcome.report_count} time(s)."
    )
