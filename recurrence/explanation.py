"""
explanation.py
---------------
Explanation builder. Descriptive statistics for a validated series:
gaps between occurrences, weekday drift and amount deltas around the
median. Consumed by the calendar UI and by calendar export; none of these
numbers gate detection.
"""

from typing import Sequence

import numpy as np

from recurrence.models import AmountDeltaStats, SeriesExplanation, SeriesGap, Transaction


def build_explanation(occurrences: Sequence[Transaction], currency_symbol: str) -> SeriesExplanation:
    """
    Build the explanation record for an ordered occurrence list.

    Args:
        occurrences: Series occurrences, ascending by date.
        currency_symbol: Symbol used in notes and amount stats.
    """
    gaps = tuple(
        SeriesGap(
            from_id=prev.id,
            to_id=curr.id,
            from_date=prev.date,
            to_date=curr.date,
            days=(curr.date - prev.date).days,
        )
        for prev, curr in zip(occurrences, occurrences[1:])
    )
    gap_days = [g.days for g in gaps]

    # Weekday drift: how far the posting weekday moves between occurrences.
    # Weekdays are indexed Sunday=0 .. Saturday=6, like the calendar client.
    drift = max(
        (abs(_weekday(curr.date) - _weekday(prev.date)) for prev, curr in zip(occurrences, occurrences[1:])),
        default=0,
    )

    amounts = np.abs(np.array([t.amount for t in occurrences], dtype=float))
    median_amount = float(np.median(amounts)) if len(amounts) else 0.0
    deltas = np.abs(amounts - median_amount)
    amount_delta = AmountDeltaStats(
        min=round(float(deltas.min()), 2) if len(deltas) else 0.0,
        max=round(float(deltas.max()), 2) if len(deltas) else 0.0,
        average=round(float(deltas.mean()), 2) if len(deltas) else 0.0,
        currency_symbol=currency_symbol,
    )

    notes = [f"Median amount {currency_symbol}{median_amount:,.2f} across {len(occurrences)} months."]
    if drift > 0:
        notes.append(f"Posting weekday drifts by up to {drift} day(s).")

    return SeriesExplanation(
        occurrence_ids=tuple(t.id for t in occurrences),
        occurrence_dates=tuple(t.date for t in occurrences),
        gaps=gaps,
        min_gap_days=min(gap_days) if gap_days else None,
        max_gap_days=max(gap_days) if gap_days else None,
        max_weekday_drift=drift,
        amount_delta=amount_delta,
        median_amount=round(median_amount, 2),
        notes=tuple(notes),
    )


def _weekday(day) -> int:
    return day.isoweekday() % 7
