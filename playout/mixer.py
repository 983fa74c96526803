"""Volume mixers and the software mixer."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, MutableSequence, Optional

from .config import VolumeCtrl

__all__ = ["MixerConfig", "AudioFilter", "Mixer", "SoftMixer", "find_mixer"]

log = logging.getLogger(__name__)


@dataclass
class MixerConfig:
    device: str = "default"
    control: str = "PCM"
    index: int = 0
    volume_ctrl: VolumeCtrl = field(default_factory=VolumeCtrl)


class AudioFilter(ABC):
    @abstractmethod
    def modify_stream(self, data: MutableSequence[float]) -> None:
        """Modify samples in place."""


class Mixer(ABC):
    @abstractmethod
    def volume(self) -> int:
        """Current volume in 0..VolumeCtrl.MAX_VOLUME."""

    @abstractmethod
    def set_volume(self, volume: int) -> None:
        """Set the volume in 0..VolumeCtrl.MAX_VOLUME."""

    def get_audio_filter(self) -> Optional[AudioFilter]:
        return None


class _SharedVolume:
    def __init__(self, value: float) -> None:
        self._lock = threading.Lock()
        self._value = value

    def load(self) -> float:
        with self._lock:
            return self._value

    def store(self, value: float) -> None:
        with self._lock:
            self._value = value


class _SoftVolumeApplier(AudioFilter):
    def __init__(self, volume: _SharedVolume) -> None:
        self._volume = volume

    def modify_stream(self, data: MutableSequence[float]) -> None:
        volume = self._volume.load()
        if volume < 1.0:
            for i, sample in enumerate(data):
                data[i] = sample * volume


class SoftMixer(Mixer):
    """Scales samples in software."""

    NAME = "softvol"

    def __init__(self, config: MixerConfig) -> None:
        self.volume_ctrl = config.volume_ctrl
        log.info("Mixing with softvol and volume control: %r", self.volume_ctrl)
        self._volume = _SharedVolume(0.5)

    def volume(self) -> int:
        return self.volume_ctrl.from_mapped(self._volume.load())

    def set_volume(self, volume: int) -> None:
        self._volume.store(self.volume_ctrl.to_mapped(volume))

    def get_audio_filter(self) -> Optional[AudioFilter]:
        return _SoftVolumeApplier(self._volume)


MixerFn = Callable[[MixerConfig], Mixer]

_MIXERS: dict[str, MixerFn] = {SoftMixer.NAME: SoftMixer}


def find_mixer(name: Optional[str]) -> Optional[MixerFn]:
    """Return the mixer factory named ``name``, the default for None, or None."""
    if name is None:
        return next(iter(_MIXERS.values()))
    return _MIXERS.get(name)