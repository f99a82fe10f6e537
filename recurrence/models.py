"""
models.py
----------
Core domain models. These are the typed contracts between engine layers.

- Transaction: Normalized input record. Immutable; annotation produces copies.

- GroupingKey: (label, direction, band) triple that buckets transactions
  into candidate series. Structural equality, usable as a dict key.

- RecurringSeries: Output of the detection layer. One per validated bucket,
  consumed by calendar badges, budget aggregation and calendar export.

- SeriesExplanation: Descriptive statistics for a series. Always rebuilt
  from the occurrence list, never edited on its own.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    INFLOW = "in"
    OUTFLOW = "out"


class ToleranceBand(str, Enum):
    SMALL = "small"      # |amount| <= 50, absolute tolerance
    MEDIUM = "medium"    # 50 < |amount| < 500, 1% relative
    LARGE = "large"      # |amount| >= 500, 0.5% relative


@dataclass(frozen=True)
class TransactionSource:
    """Structured counterparty descriptor attached by the upstream parser."""
    name: str
    type: str = "merchant"


@dataclass(frozen=True)
class Transaction:
    """
    A single normalized bank transaction.

    Amount sign carries direction: positive is inflow, negative is outflow.
    is_recurring is an output field; the engine only ever sets it on copies.
    """

    id: str
    date: date
    description: str
    amount: float
    currency_symbol: str = "€"
    category: str = "Expense"        # "Income" | "Expense" | "Transfer"
    source: Optional[TransactionSource] = None
    is_recurring: bool = False

    @property
    def month_index(self) -> int:
        """year * 12 + month. Unique per calendar month."""
        return self.date.year * 12 + self.date.month


@dataclass(frozen=True)
class GroupingKey:
    label: str
    direction: Direction
    band: ToleranceBand

    def __str__(self) -> str:
        return f"{self.label}|{self.direction.value}|{self.band.value}"


@dataclass(frozen=True)
class SeriesGap:
    """Day distance between two consecutive occurrences."""
    from_id: str
    to_id: str
    from_date: date
    to_date: date
    days: int


@dataclass(frozen=True)
class AmountDeltaStats:
    """Absolute deviation of occurrence amounts from the series median."""
    min: float
    max: float
    average: float
    currency_symbol: str


@dataclass(frozen=True)
class SeriesExplanation:
    occurrence_ids: tuple[str, ...]
    occurrence_dates: tuple[date, ...]
    gaps: tuple[SeriesGap, ...]
    min_gap_days: Optional[int]
    max_gap_days: Optional[int]
    max_weekday_drift: int
    amount_delta: AmountDeltaStats
    median_amount: float
    notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class RecurringSeries:
    """
    Validated monthly recurring series.

    occurrences holds one transaction per calendar month, ascending by date.
    representative is the latest occurrence unless the series was re-projected
    onto a specific month by select_series_for_month.
    """

    key: GroupingKey
    series_id: str
    cadence: str                     # "monthly" is the only supported cadence
    occurrences: tuple[Transaction, ...]
    representative: Transaction
    explanation: SeriesExplanation

    @property
    def occurrence_ids(self) -> list[str]:
        return [t.id for t in self.occurrences]

    @property
    def occurrence_count(self) -> int:
        return len(self.occurrences)

    @property
    def first_occurrence(self) -> date:
        return self.occurrences[0].date

    @property
    def last_occurrence(self) -> date:
        return self.occurrences[-1].date

    @property
    def currency_symbol(self) -> str:
        return self.explanation.amount_delta.currency_symbol


@dataclass
class DetectionResult:
    """Return value of detect_recurring_series."""
    series: list[RecurringSeries] = field(default_factory=list)
    orphan_ids: list[str] = field(default_factory=list)
