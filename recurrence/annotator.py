"""
annotator.py
-------------
Back-projects validated series onto the original transaction list.
Builds new records; never mutates the caller's transactions.
"""

from dataclasses import replace
from typing import List, Sequence

from recurrence.models import RecurringSeries, Transaction


def claimed_ids(series: Sequence[RecurringSeries]) -> set[str]:
    """Union of every series' occurrence ids."""
    return {tx_id for s in series for tx_id in s.occurrence_ids}


def annotate_transactions_with_recurrence(
    transactions: Sequence[Transaction], series: Sequence[RecurringSeries]
) -> List[Transaction]:
    """
    Return copies of the transactions with is_recurring set from the series.

    Duplicate ids share one flag: if any copy of an id is an occurrence,
    every transaction carrying that id is marked recurring.
    """
    if not series:
        # Still build copies so stale True flags on the input are cleared.
        return [replace(t, is_recurring=False) for t in transactions]

    recurring = claimed_ids(series)
    return [replace(t, is_recurring=t.id in recurring) for t in transactions]


def find_orphan_ids(transactions: Sequence[Transaction], series: Sequence[RecurringSeries]) -> List[str]:
    """Ids not claimed by any series, first-seen input order, no repeats."""
    recurring = claimed_ids(series)
    return list(dict.fromkeys(t.id for t in transactions if t.id not in recurring))
