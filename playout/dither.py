"""Noise sources that lower requantisation error when converting to integers."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Callable, Optional

__all__ = [
    "Ditherer",
    "TriangularDitherer",
    "GaussianDitherer",
    "HighPassDitherer",
    "DithererBuilder",
    "find_ditherer",
]

_NUM_CHANNELS = 2


class Ditherer(ABC):
    """A source of dithering noise measured in least significant bits."""

    NAME = ""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng if rng is not None else random.Random()

    @property
    def name(self) -> str:
        """Short identifier of this ditherer."""
        return self.NAME

    def __str__(self) -> str:
        return self.NAME

    @abstractmethod
    def noise(self) -> float:
        """Return the next noise value."""


class TriangularDitherer(Ditherer):
    """Triangular noise, 2 LSB peak-to-peak."""

    NAME = "tpdf"

    def noise(self) -> float:
        return self._rng.triangular(-1.0, 1.0, 0.0)


class GaussianDitherer(Ditherer):
    """Gaussian noise, 1/2 LSB RMS."""

    NAME = "gpdf"

    def noise(self) -> float:
        return self._rng.gauss(0.0, 0.5)


class HighPassDitherer(Ditherer):
    """Triangular noise shifted up in frequency, per interleaved channel."""

    NAME = "tpdf_hp"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        super().__init__(rng)
        self._active_channel = 0
        self._previous_noises = [0.0] * _NUM_CHANNELS

    def noise(self) -> float:
        new_noise = self._rng.uniform(-0.5, 0.5)
        high_passed = new_noise - self._previous_noises[self._active_channel]
        self._previous_noises[self._active_channel] = new_noise
        self._active_channel ^= 1
        return high_passed


DithererBuilder = Callable[[], Ditherer]

_DITHERERS: dict[str, type[Ditherer]] = {
    cls.NAME: cls for cls in (TriangularDitherer, GaussianDitherer, HighPassDitherer)
}


def find_ditherer(name: Optional[str]) -> Optional[type[Ditherer]]:
    """Return the ditherer class registered under ``name``, or None."""
    if name is None:
        return None
    return _DITHERERS.get(name)