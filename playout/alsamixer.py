"""Mixer that drives an ALSA simple mixer element."""

from __future__ import annotations

import dataclasses
import logging
import sys
from abc import ABC, abstractmethod
from typing import Callable

from .config import VolumeCtrl, VolumeCtrlKind
from .gain import db_to_ratio, ratio_to_db
from .mappings import LogMapping
from .mixer import Mixer, MixerConfig

__all__ = ["MixerElement", "AlsaMixer"]

log = logging.getLogger(__name__)

# Millibel value ALSA reports for mute; the minimum dB cannot be relied on to be mute.
_DB_GAIN_MUTE = -9999999
_ZERO_DB = 0


def _to_db(millibel: int) -> float:
    return millibel / 100.0


def _from_db(db: float) -> int:
    return int(db * 100.0)


def _div_trunc(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


class MixerElement(ABC):
    """A playback control; failures are reported as OSError.

    dB values are in millibel.
    """

    @abstractmethod
    def has_playback_switch(self) -> bool: ...

    @abstractmethod
    def get_playback_switch(self) -> int: ...

    @abstractmethod
    def set_playback_switch_all(self, value: int) -> None: ...

    @abstractmethod
    def get_playback_volume_range(self) -> tuple[int, int]: ...

    @abstractmethod
    def get_playback_volume(self) -> int: ...

    @abstractmethod
    def set_playback_volume_all(self, value: int) -> None: ...

    @abstractmethod
    def get_playback_db_range(self) -> tuple[int, int]: ...

    @abstractmethod
    def get_playback_vol_db(self) -> int:
        """Current dB volume; raises OSError for software volume controls."""

    @abstractmethod
    def ask_playback_vol_db(self, raw_volume: int) -> int: ...

    @abstractmethod
    def set_playback_db_all(self, millibel: int) -> None:
        """Set the dB volume, rounding down to a supported step."""

    @abstractmethod
    def get_softvol_db_range(self) -> tuple[int, int]:
        """dB range of a software volume control, from its control interface."""


ElementFactory = Callable[[MixerConfig], MixerElement]


class AlsaMixer(Mixer):
    """Volume control through an ALSA hardware or softvol element."""

    NAME = "alsa"

    def __init__(self, config: MixerConfig, element_factory: ElementFactory) -> None:
        log.info(
            "Mixing with Alsa and volume control: %r for device: %s with mixer control: %s,%d",
            config.volume_ctrl,
            config.device,
            config.control,
            config.index,
        )
        config = dataclasses.replace(config, volume_ctrl=dataclasses.replace(config.volume_ctrl))
        self.config = config
        self._element_factory = element_factory
        element = element_factory(config)

        self.has_switch = element.has_playback_switch()
        try:
            element.get_playback_vol_db()
            self.is_softvol = False
        except OSError:
            self.is_softvol = True

        self.min, self.max = element.get_playback_volume_range()
        self.range = abs(self.max - self.min)

        if self.is_softvol:
            min_mb, max_mb = element.get_softvol_db_range()
            # ALSA may round the maximum, e.g. [-60.0..0.0] over [0..255]
            # comes back as [-60.00..-1.35]; correct the common case of 0 dB.
            if max_mb != _ZERO_DB:
                log.warning("Alsa mixer reported maximum dB != 0, which is suspect")
                reported_step = _div_trunc(max_mb - min_mb, self.range)
                assumed_step = _div_trunc(_ZERO_DB - min_mb, self.range)
                if reported_step == assumed_step:
                    log.warning(
                        "Alsa rounding error detected, setting maximum dB to %.2f instead of %.2f",
                        _to_db(_ZERO_DB),
                        _to_db(max_mb),
                    )
                    max_mb = _ZERO_DB
                else:
                    log.warning("Please manually set with `--volume-ctrl` if this is incorrect")
        else:
            min_mb, max_mb = element.get_playback_db_range()
            if min_mb == _DB_GAIN_MUTE and self.min < self.max:
                log.debug("Alsa mixer reported minimum dB as mute, trying workaround")
                min_mb = element.ask_playback_vol_db(self.min + 1)

        self.min_db = _to_db(min_mb)
        self.max_db = _to_db(max_mb)
        self.db_range = abs(self.max_db - self.min_db)

        if not config.volume_ctrl.range_ok():
            config.volume_ctrl.set_db_range(self.db_range)

        # Hardware controls with a small range use the dB API linearly.
        self.use_linear_in_db = False
        if not self.is_softvol and self.db_range <= 24.0:
            self.use_linear_in_db = True
            config.volume_ctrl = VolumeCtrl(VolumeCtrlKind.LINEAR)

        log.debug("Alsa mixer control is softvol: %s", self.is_softvol)
        log.debug("Alsa support for playback (mute) switch: %s", self.has_switch)
        log.debug("Alsa raw volume range: [%d..%d] (%d)", self.min, self.max, self.range)
        log.debug(
            "Alsa dB volume range: [%.2f..%.2f] (%.2f)", self.min_db, self.max_db, self.db_range
        )
        log.debug("Alsa forcing linear dB mapping: %s", self.use_linear_in_db)

    def _is_some_linear(self) -> bool:
        return self.is_softvol or self.use_linear_in_db

    def _switched_off(self, element: MixerElement) -> bool:
        if not self.has_switch:
            return False
        try:
            return element.get_playback_switch() == 0
        except OSError:
            return False

    def volume(self) -> int:
        element = self._element_factory(self.config)
        if self._switched_off(element):
            return 0

        if self.is_softvol:
            raw_volume = element.get_playback_volume()
            mapped = raw_volume / self.range - self.min
        else:
            db_volume = _to_db(element.get_playback_vol_db())
            if self.use_linear_in_db:
                mapped = (db_volume - self.min_db) / self.db_range
            elif abs(db_volume - _to_db(_DB_GAIN_MUTE)) <= sys.float_info.epsilon:
                mapped = 0.0
            else:
                mapped = db_to_ratio(db_volume - self.max_db)

        # See set_volume for why the antilog is taken.
        if mapped > 0.0 and self._is_some_linear():
            mapped = LogMapping.linear_to_mapped(mapped, self.db_range)

        return self.config.volume_ctrl.from_mapped(mapped)

    def set_volume(self, volume: int) -> None:
        element = self._element_factory(self.config)

        if self.has_switch:
            if volume == 0:
                log.debug("Disabling playback (setting mute) on Alsa")
                element.set_playback_switch_all(0)
            elif self._switched_off(element):
                log.debug("Enabling playback (unsetting mute) on Alsa")
                element.set_playback_switch_all(1)

        mapped = self.config.volume_ctrl.to_mapped(volume)

        # Softvol and linear-in-dB map onto a log scale themselves; counteract it.
        if mapped > 0.0 and self._is_some_linear():
            mapped = LogMapping.mapped_to_linear(mapped, self.db_range)

        if self.is_softvol:
            scaled = int(self.min + mapped * self.range)
            log.debug("Setting Alsa raw volume to %d", scaled)
            element.set_playback_volume_all(scaled)
            return

        if self.use_linear_in_db:
            db_volume = self.min_db + mapped * self.db_range
        elif volume == 0:
            db_volume = _to_db(_DB_GAIN_MUTE)
        else:
            db_volume = ratio_to_db(mapped) + self.max_db

        log.debug("Setting Alsa volume to %.2f dB", db_volume)
        element.set_playback_db_all(_from_db(db_volume))