"""
series_validator.py
--------------------
Per-bucket accept/reject logic. This is where a candidate bucket becomes a
RecurringSeries or is dropped.

Gates, in order (gates 2-6 reject the whole bucket):
    1. Sort by date.
    2. Raw member count >= min_occurrences.
    3. Amount filter: keep members within the tolerance radius of the median
       of the bucket's raw absolute amounts. Count >= min_occurrences.
    4. Span between first and last kept member within
       [min_span_days, max_span_days], both inclusive.
    5. Monthly dedup: latest member per calendar month.
    6. Deduplicated count >= min_occurrences.
    7. Cadence runs: a consecutive pair is in step when the two occurrences
       are 1..max_skipped_months + 1 months apart and their day gap sits
       inside the monthly window scaled by that month gap, widened by
       day_flex_tolerance_days. Occurrences are split into runs wherever a
       pair is out of step. Runs shorter than min_occurrences are dropped,
       and the span and count gates are applied again to what is left.

Rejection is silent: a DEBUG log line, no exception. Rejected members, and
members of dropped runs, end up as orphans.
"""

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from recurrence.explanation import build_explanation
from recurrence.models import GroupingKey, RecurringSeries, Transaction
from recurrence.normalizer import hash_string
from recurrence.options import DetectionOptions
from recurrence.tolerance import tolerance_radius

logger = logging.getLogger(__name__)

MONTHLY_CADENCE = "monthly"

# Float noise allowance when comparing a deviation against the radius.
_EPSILON = 1e-9


class SeriesValidator:
    """
    Validates one bucket at a time against the configured gates.

    Usage:
        validator = SeriesValidator(DetectionOptions.resolve())
        series = validator.validate(key, bucket)   # RecurringSeries or None
    """

    def __init__(self, options: DetectionOptions):
        self.options = options

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def validate(self, key: GroupingKey, bucket: Sequence[Transaction]) -> RecurringSeries | None:
        opts = self.options

        # --- 1. Sort ---
        df = self._to_frame(bucket)

        # --- 2. Raw count ---
        if len(df) < opts.min_occurrences:
            return self._reject(key, f"{len(df)} members < min_occurrences {opts.min_occurrences}")

        # --- 3. Amount tolerance around the raw median ---
        median_amount = float(np.median(df["abs_amount"].to_numpy()))
        radius = tolerance_radius(median_amount)
        within = (df["abs_amount"] - median_amount).abs() <= radius + _EPSILON
        df = df[within]
        if len(df) < opts.min_occurrences:
            return self._reject(
                key,
                f"{len(df)} members within ±{radius:.2f} of median {median_amount:.2f} "
                f"< min_occurrences {opts.min_occurrences}",
            )

        # --- 4. Span ---
        span_days = self._span_days(df)
        if not opts.min_span_days <= span_days <= opts.max_span_days:
            return self._reject(
                key, f"span {span_days}d outside [{opts.min_span_days}, {opts.max_span_days}]"
            )

        # --- 5. Monthly dedup (df is date-sorted, so "last" is the latest) ---
        deduped = df.drop_duplicates(subset="month_index", keep="last")

        # --- 6. Final count ---
        if len(deduped) < opts.min_occurrences:
            return self._reject(
                key, f"{len(deduped)} distinct months < min_occurrences {opts.min_occurrences}"
            )

        # --- 7. Cadence runs, then span and count again on the kept rows ---
        kept = deduped[self._in_long_runs(deduped)]
        if len(kept) < opts.min_occurrences:
            return self._reject(
                key, f"no run of >= {opts.min_occurrences} occurrences inside the monthly window"
            )
        if len(kept) < len(deduped):
            span_days = self._span_days(kept)
            if not opts.min_span_days <= span_days <= opts.max_span_days:
                return self._reject(
                    key,
                    f"span {span_days}d of in-step runs outside "
                    f"[{opts.min_span_days}, {opts.max_span_days}]",
                )

        occurrences = tuple(bucket[i] for i in kept["position"])
        return build_series(key, occurrences)

    # -------------------------------------------------------------------------
    # INTERNAL
    # -------------------------------------------------------------------------

    @staticmethod
    def _to_frame(bucket: Sequence[Transaction]) -> pd.DataFrame:
        df = pd.DataFrame({
            "position": range(len(bucket)),
            "date": pd.to_datetime([t.date for t in bucket]),
            "abs_amount": [abs(float(t.amount)) for t in bucket],
        })
        df["month_index"] = df["date"].dt.year * 12 + df["date"].dt.month
        # mergesort is stable: same-day members keep input order.
        return df.sort_values("date", kind="mergesort").reset_index(drop=True)

    @staticmethod
    def _span_days(df: pd.DataFrame) -> int:
        return int((df["date"].iloc[-1] - df["date"].iloc[0]).days)

    def _in_long_runs(self, deduped: pd.DataFrame) -> np.ndarray:
        """Row mask: True for occurrences that belong to a run of at least min_occurrences."""
        opts = self.options
        day_gaps = np.diff(deduped["date"].to_numpy()).astype("timedelta64[D]").astype(int)
        month_gaps = np.diff(deduped["month_index"].to_numpy())

        min_allowed = np.maximum(
            month_gaps * opts.min_days_between_occurrences - opts.day_flex_tolerance_days, 1
        )
        max_allowed = month_gaps * opts.max_days_between_occurrences + opts.day_flex_tolerance_days

        within_month_gap = (month_gaps >= 1) & (month_gaps <= opts.max_skipped_months + 1)
        within_window = (day_gaps >= min_allowed) & (day_gaps <= max_allowed)
        in_step = within_month_gap & within_window

        # Each out-of-step pair starts a new run.
        run_ids = np.concatenate(([0], np.cumsum(~in_step)))
        run_sizes = np.bincount(run_ids)
        return run_sizes[run_ids] >= opts.min_occurrences

    @staticmethod
    def _reject(key: GroupingKey, reason: str) -> None:
        logger.debug(f"Rejected bucket '{key}': {reason}.")
        return None


def build_series(key: GroupingKey, occurrences: Sequence[Transaction]) -> RecurringSeries:
    """
    Assemble a RecurringSeries. The explanation is always rebuilt from the
    occurrences, so any change to them yields a fresh explanation.
    """
    occurrences = tuple(occurrences)
    currency_symbol = occurrences[-1].currency_symbol
    return RecurringSeries(
        key=key,
        series_id=hash_string(str(key)),
        cadence=MONTHLY_CADENCE,
        occurrences=occurrences,
        representative=occurrences[-1],
        explanation=build_explanation(occurrences, currency_symbol),
    )
