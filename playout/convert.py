"""Conversion of floating point PCM samples to integer sample formats."""

from __future__ import annotations

import logging
import math
import struct
from typing import Iterable, Optional

from .dither import Ditherer, DithererBuilder

__all__ = ["Converter"]

log = logging.getLogger(__name__)


def _round_half_away(value: float) -> float:
    if not math.isfinite(value):
        return value
    return math.copysign(math.floor(abs(value) + 0.5), value)


def _saturate(value: float, low: int, high: int) -> int:
    if math.isnan(value):
        return 0
    if value <= low:
        return low
    if value >= high:
        return high
    return int(value)


def _to_f32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


class Converter:
    """Converts samples normalised to -1.0..=1.0, optionally with dithering."""

    SCALE_S32 = 2147483648.0
    SCALE_S24 = 8388608.0
    SCALE_S16 = 32768.0

    def __init__(self, ditherer_builder: Optional[DithererBuilder] = None) -> None:
        self.ditherer: Optional[Ditherer] = None
        if ditherer_builder is not None:
            self.ditherer = ditherer_builder()
            log.info("Converting with ditherer: %s", self.ditherer.name)

    def scale(self, sample: float, factor: float) -> float:
        """Scale a sample, add dither and round to the nearest integer value."""
        dither = self.ditherer.noise() if self.ditherer is not None else 0.0
        return _round_half_away(sample * factor + dither)

    def clamping_scale(self, sample: float, factor: float) -> float:
        """Like :meth:`scale`, clamped to the two's complement range of ``factor``."""
        value = self.scale(sample, factor)
        low = -factor
        high = factor - 1.0
        if value < low:
            return low
        if value > high:
            return high
        return value

    def f64_to_f32(self, samples: Iterable[float]) -> list[float]:
        return [_to_f32(sample) for sample in samples]

    def f64_to_s32(self, samples: Iterable[float]) -> list[int]:
        return [
            _saturate(self.scale(s, self.SCALE_S32), -(2**31), 2**31 - 1) for s in samples
        ]

    def f64_to_s24(self, samples: Iterable[float]) -> list[int]:
        """24-bit samples held in a 32-bit word."""
        return [
            _saturate(self.clamping_scale(s, self.SCALE_S24), -(2**31), 2**31 - 1)
            for s in samples
        ]

    def f64_to_s24_3(self, samples: Iterable[float]) -> list[bytes]:
        """24-bit samples packed in three little-endian bytes each."""
        return [
            (value & 0xFFFFFF).to_bytes(3, "little") for value in self.f64_to_s24(samples)
        ]

    def f64_to_s16(self, samples: Iterable[float]) -> list[int]:
        return [_saturate(self.scale(s, self.SCALE_S16), -(2**15), 2**15 - 1) for s in samples]