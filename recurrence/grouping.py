"""
grouping.py
------------
Grouping engine. Partitions a transaction set into candidate buckets keyed
by (normalized label, flow direction, tolerance band).

Each transaction lands in exactly one bucket. Bucket member order carries
no meaning; the series validator re-sorts every bucket by date.
"""

from typing import Dict, Iterable, List, Sequence

import pandas as pd

from recurrence.models import Direction, GroupingKey, ToleranceBand, Transaction
from recurrence.normalizer import normalize_label, resolve_label
from recurrence.tolerance import classify_band


def build_grouping_key(transaction: Transaction, grouping_substrings: Iterable[str] = ()) -> GroupingKey:
    """Pure function of (label, amount, grouping substrings)."""
    direction = Direction.INFLOW if transaction.amount >= 0 else Direction.OUTFLOW
    return GroupingKey(
        label=normalize_label(resolve_label(transaction), grouping_substrings),
        direction=direction,
        band=classify_band(transaction.amount),
    )


def group_transactions(
    transactions: Sequence[Transaction], grouping_substrings: Iterable[str] = ()
) -> Dict[GroupingKey, List[Transaction]]:
    """
    Bucket transactions by grouping key.

    Returns:
        Mapping from GroupingKey to member transactions, iterated in sorted
        key order so downstream output order is deterministic.
    """
    if not transactions:
        return {}

    substrings = tuple(grouping_substrings)
    keys = [build_grouping_key(t, substrings) for t in transactions]

    df = pd.DataFrame({
        "position": range(len(transactions)),
        "label": [k.label for k in keys],
        "direction": [k.direction.value for k in keys],
        "band": [k.band.value for k in keys],
    })

    buckets: Dict[GroupingKey, List[Transaction]] = {}
    for (label, direction, band), group in df.groupby(["label", "direction", "band"], sort=True):
        key = GroupingKey(label=label, direction=Direction(direction), band=ToleranceBand(band))
        buckets[key] = [transactions[i] for i in group["position"]]

    return buckets
