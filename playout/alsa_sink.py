"""Audio sink that plays through an ALSA PCM device."""

from __future__ import annotations

import copy
import logging
import sys
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .config import NUM_CHANNELS, SAMPLE_RATE, AudioFormat
from .sinks import (
    BytesSink,
    SinkConnectionRefusedError,
    SinkInvalidParamsError,
    SinkNotConnectedError,
    SinkWriteError,
)

__all__ = [
    "MAX_BUFFER",
    "MIN_BUFFER",
    "MAX_PERIOD_DIVISOR",
    "MIN_PERIOD_DIVISOR",
    "AlsaError",
    "HwParams",
    "Pcm",
    "PcmOpener",
    "choose_buffer_size",
    "choose_period_size",
    "open_device",
    "AlsaSink",
]

log = logging.getLogger(__name__)

MAX_BUFFER = SAMPLE_RATE // 2
MIN_BUFFER = SAMPLE_RATE // 10
_ZERO_FRAMES = 0

MAX_PERIOD_DIVISOR = 4
MIN_PERIOD_DIVISOR = 10

_ENDIAN = "LE" if sys.byteorder == "little" else "BE"
_ALSA_FORMAT_NAMES = {
    AudioFormat.F64: "Float64",
    AudioFormat.F32: "Float",
    AudioFormat.S32: "S32",
    AudioFormat.S24: "S24",
    AudioFormat.S24_3: "S243",
    AudioFormat.S16: "S16",
}


def _alsa_format_name(audio_format: AudioFormat) -> str:
    return _ALSA_FORMAT_NAMES[audio_format] + _ENDIAN


class AlsaError(Exception):
    """A failure reported by the ALSA device layer.

    ``setting`` names the hardware setting that was refused while configuring
    a device: ``"access"``, ``"format"``, ``"rate"`` or ``"channels"``.
    """

    def __init__(self, message: str, setting: Optional[str] = None) -> None:
        super().__init__(message)
        self.setting = setting


class HwParams(ABC):
    """Hardware parameters of a PCM device; failures raise :class:`AlsaError`."""

    @abstractmethod
    def get_buffer_size_min(self) -> int: ...

    @abstractmethod
    def get_buffer_size_max(self) -> int: ...

    @abstractmethod
    def set_buffer_size_near(self, size: int) -> int:
        """Request a buffer size in frames and return the size obtained."""

    @abstractmethod
    def get_period_size_min(self) -> int: ...

    @abstractmethod
    def get_period_size_max(self) -> int: ...

    @abstractmethod
    def set_period_size_near(self, size: int) -> int:
        """Request a period size in frames and return the size obtained."""


class Pcm(ABC):
    """An open playback PCM device; failures raise :class:`AlsaError`."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def configure(self, audio_format: AudioFormat, rate: int, channels: int) -> HwParams:
        """Return hardware parameters set to interleaved access, format, rate and channels."""

    @abstractmethod
    def apply(self, hw_params: HwParams) -> tuple[int, int]:
        """Install ``hw_params``, set the start threshold to buffer minus period.

        Returns the actual (frames per period, frames per buffer).
        """

    @abstractmethod
    def writei(self, data: bytes) -> None:
        """Write interleaved frames."""

    @abstractmethod
    def try_recover(self, error: AlsaError) -> None:
        """Recover from a write error, or raise if that is impossible."""

    @abstractmethod
    def drain(self) -> None:
        """Play out everything buffered and stop."""


PcmOpener = Callable[[str], Pcm]


def _query(getter: Callable[[], int], what: str) -> int:
    try:
        return getter()
    except AlsaError as e:
        log.debug("Error getting the device's %s: %s", what, e)
        return _ZERO_FRAMES


def _best_in(low: int, high: int, dev_min: int, dev_max: int) -> Optional[int]:
    """Largest value in low..=high that also lies in dev_min..=dev_max."""
    candidate = min(high, dev_max)
    if candidate >= max(low, dev_min):
        return candidate
    return None


def choose_buffer_size(hw_params: HwParams) -> int:
    """Set the largest buffer in MIN_BUFFER..=MAX_BUFFER the device allows; 0 if none."""
    dev_max = _query(hw_params.get_buffer_size_max, "max Buffer size")
    dev_min = _query(hw_params.get_buffer_size_min, "min Buffer size")

    buffer_size = _ZERO_FRAMES
    if dev_min < dev_max:
        size = _best_in(MIN_BUFFER, MAX_BUFFER, dev_min, dev_max)
        if size is None:
            log.debug("No Desired Buffer size in range reported by the device.")
        else:
            log.debug("Desired Frames per Buffer: %d", size)
            try:
                buffer_size = hw_params.set_buffer_size_near(size)
            except AlsaError as e:
                log.debug("Error setting the device's Buffer size: %s", e)
    else:
        log.debug(
            "The device's min reported Buffer size was greater than or equal "
            "to its max reported Buffer size."
        )

    if buffer_size == _ZERO_FRAMES:
        log.debug("Desired Buffer Frame range: %d - %d", MIN_BUFFER, MAX_BUFFER)
        log.debug("Actual Buffer Frame range as reported by the device: %d - %d", dev_min, dev_max)
    return buffer_size


def choose_period_size(hw_params: HwParams, buffer_size: int) -> int:
    """Set the largest period between a tenth and a quarter of the buffer; 0 if none."""
    if buffer_size == _ZERO_FRAMES:
        return _ZERO_FRAMES

    dev_max = _query(hw_params.get_period_size_max, "max Period size")
    dev_min = _query(hw_params.get_period_size_min, "min Period size")
    max_period = buffer_size // MAX_PERIOD_DIVISOR
    min_period = buffer_size // MIN_PERIOD_DIVISOR

    period_size = _ZERO_FRAMES
    if dev_min < dev_max and min_period < max_period:
        size = _best_in(min_period, max_period, dev_min, dev_max)
        if size is None:
            log.debug("No Desired Period size in range reported by the device.")
        else:
            log.debug("Desired Frames per Period: %d", size)
            try:
                period_size = hw_params.set_period_size_near(size)
            except AlsaError as e:
                log.debug("Error setting the device's Period size: %s", e)
    else:
        log.debug(
            "The device's min reported Period size was greater than or equal to its max, "
            "or the desired min Period size was greater than or equal to the desired max."
        )

    if period_size == _ZERO_FRAMES:
        log.debug("Buffer size: %d", buffer_size)
        log.debug(
            "Desired Period Frame range: %d (Buffer size / %d) - %d (Buffer size / %d)",
            min_period,
            MIN_PERIOD_DIVISOR,
            max_period,
            MAX_PERIOD_DIVISOR,
        )
        log.debug("Actual Period Frame range as reported by the device: %d - %d", dev_min, dev_max)
    return period_size


def _configure_error(pcm: Pcm, audio_format: AudioFormat, e: AlsaError) -> SinkInvalidParamsError:
    device = pcm.name
    if e.setting == "access":
        detail = f"Device {device} Unsupported Access Type RWInterleaved, {e}"
    elif e.setting == "format":
        detail = (
            f"Device {device} Unsupported Format {_alsa_format_name(audio_format)} "
            f"({audio_format.name}), {e}"
        )
    elif e.setting == "rate":
        detail = f"Device {device} Unsupported Sample Rate {SAMPLE_RATE}, {e}"
    elif e.setting == "channels":
        detail = f"Device {device} Unsupported Channel Count {NUM_CHANNELS}, {e}"
    else:
        detail = f"Hardware, {e}"
    return SinkInvalidParamsError(f"<AlsaSink> {detail}")


def open_device(pcm: Pcm, audio_format: AudioFormat) -> int:
    """Configure ``pcm`` for playback and return the size of one period in bytes."""
    try:
        hw_params = pcm.configure(audio_format, SAMPLE_RATE, NUM_CHANNELS)
    except AlsaError as e:
        raise _configure_error(pcm, audio_format, e) from e

    # Keep the parameters in a good state in case setting sizes fails.
    fallback = copy.deepcopy(hw_params)

    buffer_size = choose_buffer_size(hw_params)
    period_size = choose_period_size(hw_params, buffer_size)

    if buffer_size == _ZERO_FRAMES or period_size == _ZERO_FRAMES:
        log.debug("Failed to set Buffer and/or Period size, falling back to the device's defaults.")
        log.debug("You may experience higher than normal CPU usage and/or audio issues.")
        chosen = fallback
    else:
        chosen = hw_params

    try:
        frames_per_period, frames_per_buffer = pcm.apply(chosen)
    except AlsaError as e:
        raise SinkInvalidParamsError(f"<AlsaSink> PCM, {e}") from e

    log.debug("Actual Frames per Buffer: %d", frames_per_buffer)
    log.debug("Actual Frames per Period: %d", frames_per_period)

    bytes_per_period = frames_per_period * NUM_CHANNELS * audio_format.size()
    log.debug("Period Buffer size in bytes: %d", bytes_per_period)
    return bytes_per_period


class AlsaSink(BytesSink):
    """Buffers audio into whole periods and writes them to an ALSA device."""

    NAME = "alsa"

    def __init__(
        self, device: Optional[str], audio_format: AudioFormat, pcm_opener: PcmOpener
    ) -> None:
        self.device = device if device is not None else "default"
        self.audio_format = audio_format
        self._pcm_opener = pcm_opener
        self._pcm: Optional[Pcm] = None
        self._capacity = 0
        self._period_buffer = bytearray()
        log.info("Using AlsaSink with format: %s", audio_format.name)

    def start(self) -> None:
        if self._pcm is not None:
            return
        try:
            pcm = self._pcm_opener(self.device)
        except AlsaError as e:
            raise SinkConnectionRefusedError(
                f"<AlsaSink> Device {self.device} May be Invalid, Busy, or Already in Use, {e}"
            ) from e
        bytes_per_period = open_device(pcm, self.audio_format)
        self._pcm = pcm
        if self._capacity != bytes_per_period:
            self._capacity = bytes_per_period
            self._period_buffer = bytearray()
        log.debug("Period Buffer capacity: %d", self._capacity)

    def stop(self) -> None:
        # Zero fill the rest of the period and write it before draining.
        self._period_buffer.extend(bytes(self._capacity - len(self._period_buffer)))
        self._write_buf()

        pcm, self._pcm = self._pcm, None
        if pcm is None:
            raise SinkNotConnectedError("<AlsaSink>")
        try:
            pcm.drain()
        except AlsaError as e:
            raise SinkWriteError(f"<AlsaSink> Failed to Drain PCM Buffer, {e}") from e

    def write_bytes(self, data: bytes) -> None:
        view = memoryview(bytes(data))
        start = 0
        while True:
            space_left = self._capacity - len(self._period_buffer)
            chunk = view[start : start + space_left]
            self._period_buffer.extend(chunk)
            start += len(chunk)
            if len(self._period_buffer) == self._capacity:
                self._write_buf()
            if start == len(view):
                return

    def _write_buf(self) -> None:
        if self._pcm is None:
            raise SinkNotConnectedError("<AlsaSink>")
        try:
            self._pcm.writei(bytes(self._period_buffer))
        except AlsaError as e:
            log.warning("Error writing from AlsaSink buffer to PCM, trying to recover, %s", e)
            try:
                self._pcm.try_recover(e)
            except AlsaError as recover_error:
                raise SinkWriteError(f"<AlsaSink> {recover_error}") from recover_error
        self._period_buffer.clear()