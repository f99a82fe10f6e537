"""
tolerance.py
-------------
Amount tolerance bands.

Small amounts match on an absolute tolerance (a percentage of a few euros
would be cents); larger amounts match on a relative tolerance so that
proportional fluctuations (tax, usage fees) still count as the same bill.
"""

from recurrence.models import ToleranceBand


SMALL_BAND_MAX = 50.0
MEDIUM_BAND_MAX = 500.0

SMALL_ABSOLUTE_TOLERANCE = 0.5
MEDIUM_RELATIVE_TOLERANCE = 0.01
LARGE_RELATIVE_TOLERANCE = 0.005


def classify_band(amount: float) -> ToleranceBand:
    """Band for a signed amount, based on its magnitude."""
    magnitude = abs(amount)
    if magnitude <= SMALL_BAND_MAX:
        return ToleranceBand.SMALL
    if magnitude < MEDIUM_BAND_MAX:
        return ToleranceBand.MEDIUM
    return ToleranceBand.LARGE


def tolerance_radius(magnitude: float) -> float:
    """
    Allowed absolute deviation around a reference magnitude.

    <= 50 -> 0.5 flat, < 500 -> 1% of magnitude, otherwise 0.5%.
    """
    magnitude = abs(magnitude)
    band = classify_band(magnitude)
    if band is ToleranceBand.SMALL:
        return SMALL_ABSOLUTE_TOLERANCE
    if band is ToleranceBand.MEDIUM:
        return magnitude * MEDIUM_RELATIVE_TOLERANCE
    return magnitude * LARGE_RELATIVE_TOLERANCE
