"""Player settings, sample formats and volume control curves."""

from __future__ import annotations

import enum
import logging
import math
import sys
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from .dither import DithererBuilder, TriangularDitherer
from .gain import db_to_ratio
from .mappings import CubicMapping, LogMapping

__all__ = [
    "SAMPLE_RATE",
    "NUM_CHANNELS",
    "SAMPLES_PER_SECOND",
    "PAGES_PER_MS",
    "MS_PER_PAGE",
    "Bitrate",
    "AudioFormat",
    "NormalisationType",
    "NormalisationMethod",
    "PlayerConfig",
    "VolumeCtrlKind",
    "VolumeCtrl",
]

log = logging.getLogger(__name__)

SAMPLE_RATE = 44100
NUM_CHANNELS = 2
SAMPLES_PER_SECOND = SAMPLE_RATE * NUM_CHANNELS
PAGES_PER_MS = SAMPLE_RATE / 1000.0
MS_PER_PAGE = 1000.0 / SAMPLE_RATE


class Bitrate(enum.Enum):
    """Stream bitrate in kbit/s."""

    BITRATE_96 = 96
    BITRATE_160 = 160
    BITRATE_320 = 320

    @classmethod
    def parse(cls, text: str) -> "Bitrate":
        for member in cls:
            if str(member.value) == text:
                return member
        raise ValueError(f"invalid bitrate: {text!r}")


class AudioFormat(enum.Enum):
    """Sample format delivered to an audio sink."""

    F64 = "F64"
    F32 = "F32"
    S32 = "S32"
    S24 = "S24"
    S24_3 = "S24_3"
    S16 = "S16"

    @classmethod
    def parse(cls, text: str) -> "AudioFormat":
        try:
            return cls(text.upper())
        except ValueError:
            raise ValueError(f"invalid audio format: {text!r}") from None

    def size(self) -> int:
        """Bytes used to store one sample; S32 and S24 both take a 32-bit word."""
        return _FORMAT_SIZES[self]


_FORMAT_SIZES = {
    AudioFormat.F64: 8,
    AudioFormat.F32: 4,
    AudioFormat.S32: 4,
    AudioFormat.S24: 4,
    AudioFormat.S24_3: 3,
    AudioFormat.S16: 2,
}


class NormalisationType(enum.Enum):
    ALBUM = "album"
    TRACK = "track"
    AUTO = "auto"

    @classmethod
    def parse(cls, text: str) -> "NormalisationType":
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"invalid normalisation type: {text!r}") from None


class NormalisationMethod(enum.Enum):
    BASIC = "basic"
    DYNAMIC = "dynamic"

    @classmethod
    def parse(cls, text: str) -> "NormalisationMethod":
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"invalid normalisation method: {text!r}") from None


@dataclass
class PlayerConfig:
    """Playback settings; the ditherer is a factory so it can be built lazily."""

    bitrate: Bitrate = Bitrate.BITRATE_160
    gapless: bool = True
    passthrough: bool = False
    normalisation: bool = False
    normalisation_type: NormalisationType = NormalisationType.AUTO
    normalisation_method: NormalisationMethod = NormalisationMethod.DYNAMIC
    normalisation_pregain: float = 0.0
    normalisation_threshold: float = field(default_factory=lambda: db_to_ratio(-2.0))
    normalisation_attack: timedelta = timedelta(milliseconds=5)
    normalisation_release: timedelta = timedelta(milliseconds=100)
    normalisation_knee: float = 1.0
    ditherer: Optional[DithererBuilder] = TriangularDitherer


class VolumeCtrlKind(enum.Enum):
    CUBIC = "cubic"
    FIXED = "fixed"
    LINEAR = "linear"
    LOG = "log"


def _saturating_u16(value: float) -> int:
    if math.isnan(value):
        return 0
    return int(min(max(value, 0.0), float(VolumeCtrl.MAX_VOLUME)))


@dataclass
class VolumeCtrl:
    """A volume control curve; ``decibel_range`` matters for cubic and log only."""

    MAX_VOLUME = 0xFFFF
    DEFAULT_DB_RANGE = 60.0

    kind: VolumeCtrlKind = VolumeCtrlKind.LOG
    decibel_range: float = DEFAULT_DB_RANGE

    def __repr__(self) -> str:
        label = self.kind.name.capitalize()
        if self.kind in (VolumeCtrlKind.CUBIC, VolumeCtrlKind.LOG):
            return f"{label}({self.decibel_range})"
        return label

    @classmethod
    def parse(cls, text: str, db_range: float = DEFAULT_DB_RANGE) -> "VolumeCtrl":
        try:
            kind = VolumeCtrlKind(text.lower())
        except ValueError:
            raise ValueError(f"invalid volume control: {text!r}") from None
        return cls(kind, db_range)

    def db_range(self) -> float:
        if self.kind is VolumeCtrlKind.FIXED:
            return 0.0
        if self.kind is VolumeCtrlKind.LINEAR:
            return self.DEFAULT_DB_RANGE
        return self.decibel_range

    def set_db_range(self, new_db_range: float) -> None:
        if self.kind not in (VolumeCtrlKind.CUBIC, VolumeCtrlKind.LOG):
            raise ValueError(f"invalid to set dB range for volume control type {self!r}")
        self.decibel_range = new_db_range
        log.debug("Volume control is now %r", self)

    def range_ok(self) -> bool:
        return self.db_range() > 0.0 or self.kind in (VolumeCtrlKind.FIXED, VolumeCtrlKind.LINEAR)

    def to_mapped(self, volume: int) -> float:
        """Map a volume in 0..MAX_VOLUME onto an amplitude in 0..1."""
        if not 0 <= volume <= self.MAX_VOLUME:
            raise ValueError(f"volume out of range: {volume}")
        # Zero must be mute: the log and cubic curves never reach zero.
        if volume == 0:
            return 0.0
        if volume == self.MAX_VOLUME:
            return 1.0

        normalized = volume / self.MAX_VOLUME
        if not self.range_ok():
            log.error("%r does not work with 0 dB range, using linear mapping instead", self)
            mapped = normalized
        elif self.kind is VolumeCtrlKind.CUBIC:
            mapped = CubicMapping.linear_to_mapped(normalized, self.decibel_range)
        elif self.kind is VolumeCtrlKind.LOG:
            mapped = LogMapping.linear_to_mapped(normalized, self.decibel_range)
        else:
            mapped = normalized

        log.debug("Input volume %d mapped to: %.2f%%", volume, mapped * 100.0)
        return mapped

    def from_mapped(self, mapped_volume: float) -> int:
        """Map an amplitude in 0..1 back onto a volume in 0..MAX_VOLUME."""
        if abs(mapped_volume - 0.0) <= sys.float_info.epsilon:
            return 0
        if abs(mapped_volume - 1.0) <= sys.float_info.epsilon:
            return self.MAX_VOLUME

        if not self.range_ok():
            log.error("%r does not work with 0 dB range, using linear mapping instead", self)
            unmapped = mapped_volume
        elif self.kind is VolumeCtrlKind.CUBIC:
            unmapped = CubicMapping.mapped_to_linear(mapped_volume, self.decibel_range)
        elif self.kind is VolumeCtrlKind.LOG:
            unmapped = LogMapping.mapped_to_linear(mapped_volume, self.decibel_range)
        else:
            unmapped = mapped_volume

        return _saturating_u16(unmapped * self.MAX_VOLUME)