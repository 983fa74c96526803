"""Conversions between decibels and linear amplitude ratios."""

import math

__all__ = ["db_to_ratio", "ratio_to_db"]


def db_to_ratio(db: float) -> float:
    """Return the amplitude ratio for a gain given in decibels."""
    return math.pow(10.0, db / 20.0)


def ratio_to_db(ratio: float) -> float:
    """Return the gain in decibels for an amplitude ratio.

    A ratio of zero gives negative infinity and a negative ratio gives NaN.
    """
    if ratio == 0.0:
        return -math.inf
    if ratio < 0.0 or math.isnan(ratio):
        return math.nan
    return 20.0 * math.log10(ratio)