"""Curves that map a normalised volume onto an output amplitude."""

import math

from .gain import db_to_ratio

__all__ = ["LogMapping", "CubicMapping"]


class LogMapping:
    """Exponential mapping that gives a near linear loudness experience."""

    @staticmethod
    def _coefficients(db_range: float) -> tuple[float, float]:
        db_ratio = db_to_ratio(db_range)
        return db_ratio, math.log(db_ratio)

    @staticmethod
    def linear_to_mapped(normalized_volume: float, db_range: float) -> float:
        """Map a volume in 0..1 onto an amplitude over ``db_range`` decibels."""
        db_ratio, ideal_factor = LogMapping._coefficients(db_range)
        return math.exp(ideal_factor * normalized_volume) / db_ratio

    @staticmethod
    def mapped_to_linear(mapped_volume: float, db_range: float) -> float:
        """Invert :meth:`linear_to_mapped`."""
        db_ratio, ideal_factor = LogMapping._coefficients(db_range)
        return math.log(db_ratio * mapped_volume) / ideal_factor


class CubicMapping:
    """Cubic mapping in the style of the ALSA mixer."""

    @staticmethod
    def _min_norm(db_range: float) -> float:
        # The 60.0 is the cubic voltage to dB ratio, not a default range.
        return math.pow(10.0, -1.0 * db_range / 60.0)

    @staticmethod
    def linear_to_mapped(normalized_volume: float, db_range: float) -> float:
        """Map a volume in 0..1 onto an amplitude over ``db_range`` decibels."""
        min_norm = CubicMapping._min_norm(db_range)
        return (normalized_volume * (1.0 - min_norm) + min_norm) ** 3

    @staticmethod
    def mapped_to_linear(mapped_volume: float, db_range: float) -> float:
        """Invert :meth:`linear_to_mapped`."""
        min_norm = CubicMapping._min_norm(db_range)
        return (math.pow(mapped_volume, 1.0 / 3.0) - min_norm) / (1.0 - min_norm)