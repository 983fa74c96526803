"""Audio packets and the decoder interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

__all__ = ["DecoderError", "AudioPacketError", "AudioPacket", "AudioDecoder"]


class DecoderError(Exception):
    """A decoder could not read or produce audio."""


class AudioPacketError(Exception):
    """The packet does not hold the requested kind of data."""


class AudioPacket:
    """Either decoded float samples or raw Ogg data."""

    def __init__(
        self, *, samples: Optional[Iterable[float]] = None, ogg_data: Optional[bytes] = None
    ) -> None:
        if (samples is None) == (ogg_data is None):
            raise ValueError("an audio packet holds exactly one of samples or ogg_data")
        self._samples = list(samples) if samples is not None else None
        self._ogg_data = bytes(ogg_data) if ogg_data is not None else None

    @classmethod
    def samples_from_f32(cls, samples: Iterable[float]) -> "AudioPacket":
        return cls(samples=[float(s) for s in samples])

    def samples(self) -> list[float]:
        if self._samples is None:
            raise AudioPacketError("Decoder OggData Error: Can't return OggData on Samples")
        return self._samples

    def oggdata(self) -> bytes:
        if self._ogg_data is None:
            raise AudioPacketError("Decoder Samples Error: Can't return Samples on OggData")
        return self._ogg_data

    def is_empty(self) -> bool:
        if self._samples is not None:
            return not self._samples
        return not self._ogg_data


class AudioDecoder(ABC):
    @abstractmethod
    def seek(self, absgp: int) -> None:
        """Seek to an absolute granule position."""

    @abstractmethod
    def next_packet(self) -> Optional[AudioPacket]:
        """Return the next packet, or None at the end of the stream."""