"""
recurring_series_detector.py
-----------------------------
Recurring-transaction detection engine. Entry points:

    detect_recurring_series(transactions, options)  -> DetectionResult
    apply_recurring_detection(transactions, options) -> annotated transactions
    select_series_for_month(series, month_date)     -> series active that month

Pipeline inside detect:
    normalize + classify (per transaction) -> group into buckets
    -> validate each bucket -> collect series + orphan ids.

The engine is stateless: same input, same output. Callers that want
memoization or background execution wrap it (see workers/detection_worker.py).
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, List, Mapping, Sequence

from recurrence.annotator import annotate_transactions_with_recurrence, find_orphan_ids
from recurrence.grouping import group_transactions
from recurrence.models import DetectionResult, RecurringSeries, Transaction
from recurrence.options import DetectionOptions
from recurrence.series_validator import SeriesValidator

logger = logging.getLogger(__name__)


class RecurringSeriesDetector:
    """
    Detects monthly recurring series in a transaction list.

    Usage:
        detector = RecurringSeriesDetector({"min_occurrences": 4})
        result = detector.detect(transactions)
    """

    def __init__(self, options: DetectionOptions | Mapping[str, Any] | None = None):
        self.options = DetectionOptions.resolve(options)
        self.validator = SeriesValidator(self.options)

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def detect(self, transactions: Sequence[Transaction]) -> DetectionResult:
        """
        Run detection over a transaction list.

        Raises:
            TypeError: transactions is not a list/tuple of Transaction.
        """
        _check_transactions(transactions)

        buckets = group_transactions(transactions, self.options.grouping_substrings)
        series: List[RecurringSeries] = []
        for key, bucket in buckets.items():
            result = self.validator.validate(key, bucket)
            if result is not None:
                series.append(result)

        logger.debug(
            f"Detection complete. Transactions: {len(transactions):,}, "
            f"buckets: {len(buckets):,}, series: {len(series):,}."
        )
        return DetectionResult(series=series, orphan_ids=find_orphan_ids(transactions, series))


# -----------------------------------------------------------------------------
# MODULE-LEVEL ENTRY POINTS
# -----------------------------------------------------------------------------

def detect_recurring_series(
    transactions: Sequence[Transaction],
    options: DetectionOptions | Mapping[str, Any] | None = None,
) -> DetectionResult:
    return RecurringSeriesDetector(options).detect(transactions)


def apply_recurring_detection(
    transactions: Sequence[Transaction],
    options: DetectionOptions | Mapping[str, Any] | None = None,
) -> List[Transaction]:
    """Detect and annotate in one call."""
    result = detect_recurring_series(transactions, options)
    return annotate_transactions_with_recurrence(transactions, result.series)


def select_series_for_month(series: Sequence[RecurringSeries], month_date: date) -> List[RecurringSeries]:
    """
    Series with an occurrence in the calendar month of month_date.

    The returned series have representative rebound to that month's
    occurrence; series without one are omitted. Ordered by representative
    date, then by lower-cased description.
    """
    if isinstance(month_date, datetime):
        month_date = month_date.date()
    if not isinstance(month_date, date):
        raise TypeError(f"month_date must be a date, got {type(month_date).__name__}")

    target = month_date.year * 12 + month_date.month
    selected = []
    for s in series:
        occurrence = next((t for t in s.occurrences if t.month_index == target), None)
        if occurrence is not None:
            selected.append(replace(s, representative=occurrence))

    return sorted(selected, key=lambda s: (s.representative.date, s.representative.description.lower()))


def _check_transactions(transactions: Any) -> None:
    if not isinstance(transactions, (list, tuple)):
        raise TypeError(
            f"transactions must be a list of Transaction, got {type(transactions).__name__}"
        )
    bad = [i for i, t in enumerate(transactions) if not isinstance(t, Transaction)]
    if bad:
        raise TypeError(f"transactions contains non-Transaction items at positions {bad[:10]}")
