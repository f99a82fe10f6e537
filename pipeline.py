"""
pipeline.py
------------
Main orchestration layer. Wires together:
    1. RecurringSeriesDetector  →  produces RecurringSeries + orphan ids
    2. Annotator                →  copies transactions with is_recurring set
    3. Output serialization     →  flat series table for export / CSV

This is the single entry point for running the engine from scripts.
Calendar badges, budget aggregation and calendar-file export read its output.

Usage:
    from pipeline import RecurringCalendarPipeline

    pipeline = RecurringCalendarPipeline()
    output = pipeline.run(transactions)
    output.series_df.to_csv("series.csv", index=False)
"""

import pandas as pd
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Mapping, Sequence

from recurrence.annotator import annotate_transactions_with_recurrence
from recurrence.models import DetectionResult, RecurringSeries, Transaction
from recurrence.options import DetectionOptions
from recurrence.recurring_series_detector import RecurringSeriesDetector, select_series_for_month

logger = logging.getLogger(__name__)


SERIES_COLUMNS = [
    "series_id", "group_key", "label", "direction", "band", "cadence",
    "occurrence_count", "first_occurrence", "last_occurrence",
    "representative_id", "representative_date", "representative_description",
    "median_amount", "currency_symbol", "min_gap_days", "max_gap_days",
    "max_weekday_drift", "occurrence_ids", "notes",
]

TRANSACTION_COLUMNS = [
    "id", "date", "description", "amount", "currency_symbol", "category",
    "source_name", "source_type", "is_recurring",
]


@dataclass
class PipelineOutput:
    detection: DetectionResult
    annotated: List[Transaction]
    series_df: pd.DataFrame


class RecurringCalendarPipeline:
    """
    End-to-end recurring detection pipeline.

    Orchestrates detection → annotation → serialization without exposing
    internal buckets to callers.
    """

    def __init__(self, options: DetectionOptions | Mapping[str, Any] | None = None):
        """
        Args:
            options: Per-run overrides of the configured detection options.
        """
        self.detector = RecurringSeriesDetector(options)
        self.options = self.detector.options

        logger.info(
            f"Pipeline initialized. "
            f"Min occurrences: {self.options.min_occurrences}. "
            f"Span: {self.options.min_span_days}–{self.options.max_span_days} days. "
            f"Grouping substrings: {list(self.options.grouping_substrings)}."
        )

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def run(self, transactions: Sequence[Transaction]) -> PipelineOutput:
        logger.info(f"Pipeline starting. Input: {len(transactions):,} transactions.")

        # --- Stage 1: Recurring series detection ---
        detection = self.detector.detect(transactions)
        logger.info(
            f"Stage 1 complete. Recurring series: {len(detection.series):,}. "
            f"Orphans: {len(detection.orphan_ids):,}."
        )

        # --- Stage 2: Annotation ---
        annotated = annotate_transactions_with_recurrence(transactions, detection.series)
        recurring_count = sum(1 for t in annotated if t.is_recurring)
        logger.info(f"Stage 2 complete. Transactions marked recurring: {recurring_count:,}.")

        # --- Stage 3: Serialize to DataFrame ---
        series_df = serialize_series(detection.series)
        logger.info(f"Pipeline complete. Output rows: {len(series_df):,}.")

        return PipelineOutput(detection=detection, annotated=annotated, series_df=series_df)

    def run_for_month(self, transactions: Sequence[Transaction], month: date) -> pd.DataFrame:
        """
        Series active in the given month, representative bound to that
        month's occurrence. Feeds the calendar export for one month.
        """
        detection = self.detector.detect(transactions)
        selected = select_series_for_month(detection.series, month)
        logger.info(f"Series with an occurrence in {month:%Y-%m}: {len(selected):,}.")
        return serialize_series(selected)


# -----------------------------------------------------------------------------
# OUTPUT SERIALIZATION
# -----------------------------------------------------------------------------

def serialize_series(series: Sequence[RecurringSeries]) -> pd.DataFrame:
    """One flat row per series. Empty input keeps the column schema."""
    if not series:
        return pd.DataFrame(columns=SERIES_COLUMNS)

    rows = []
    for s in series:
        explanation = s.explanation
        rows.append({
            "series_id": s.series_id,
            "group_key": str(s.key),
            "label": s.key.label,
            "direction": s.key.direction.value,
            "band": s.key.band.value,
            "cadence": s.cadence,
            "occurrence_count": s.occurrence_count,
            "first_occurrence": s.first_occurrence.strftime("%Y-%m-%d"),
            "last_occurrence": s.last_occurrence.strftime("%Y-%m-%d"),
            "representative_id": s.representative.id,
            "representative_date": s.representative.date.strftime("%Y-%m-%d"),
            "representative_description": s.representative.description,
            "median_amount": explanation.median_amount,
            "currency_symbol": s.currency_symbol,
            "min_gap_days": explanation.min_gap_days,
            "max_gap_days": explanation.max_gap_days,
            "max_weekday_drift": explanation.max_weekday_drift,
            "occurrence_ids": "|".join(s.occurrence_ids),
            "notes": " | ".join(explanation.notes),
        })

    return pd.DataFrame(rows, columns=SERIES_COLUMNS)


def serialize_transactions(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """Flat table of (annotated) transactions, same columns the loader reads."""
    rows = [
        {
            "id": t.id,
            "date": t.date.strftime("%Y-%m-%d"),
            "description": t.description,
            "amount": t.amount,
            "currency_symbol": t.currency_symbol,
            "category": t.category,
            "source_name": t.source.name if t.source else "",
            "source_type": t.source.type if t.source else "",
            "is_recurring": t.is_recurring,
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
