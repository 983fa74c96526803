"""Audio sinks: the sink interface, a pipe sink and a subprocess sink."""

from __future__ import annotations

import logging
import os
import shlex
import struct
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Optional, Sequence

from .config import AudioFormat
from .convert import Converter
from .decoder import AudioPacket, AudioPacketError

__all__ = [
    "SinkError",
    "SinkNotConnectedError",
    "SinkConnectionRefusedError",
    "SinkWriteError",
    "SinkInvalidParamsError",
    "Sink",
    "BytesSink",
    "StdoutSink",
    "SubprocessSink",
    "SinkBuilder",
    "find_backend",
]

log = logging.getLogger(__name__)


class SinkError(Exception):
    """An audio sink failed."""

    PREFIX = "Audio Sink Error"

    def __init__(self, detail: str) -> None:
        super().__init__(f"{self.PREFIX}: {detail}")
        self.detail = detail


class SinkNotConnectedError(SinkError):
    PREFIX = "Audio Sink Error Not Connected"


class SinkConnectionRefusedError(SinkError):
    PREFIX = "Audio Sink Error Connection Refused"


class SinkWriteError(SinkError):
    PREFIX = "Audio Sink Error On Write"


class SinkInvalidParamsError(SinkError):
    PREFIX = "Audio Sink Error Invalid Parameters"


class Sink(ABC):
    """Destination for audio packets."""

    def start(self) -> None:
        """Prepare the sink for writing."""

    def stop(self) -> None:
        """Finish writing and release the output."""

    @abstractmethod
    def write(self, packet: AudioPacket, converter: Converter) -> None:
        """Write one packet, converting samples as needed."""


def _encode(samples: Sequence[float], audio_format: AudioFormat, converter: Converter) -> bytes:
    count = len(samples)
    if audio_format is AudioFormat.F64:
        return struct.pack(f"={count}d", *samples)
    if audio_format is AudioFormat.F32:
        return struct.pack(f"={count}f", *converter.f64_to_f32(samples))
    if audio_format is AudioFormat.S32:
        return struct.pack(f"={count}i", *converter.f64_to_s32(samples))
    if audio_format is AudioFormat.S24:
        return struct.pack(f"={count}i", *converter.f64_to_s24(samples))
    if audio_format is AudioFormat.S24_3:
        chunks = converter.f64_to_s24_3(samples)
        if sys.byteorder == "big":
            chunks = [chunk[::-1] for chunk in chunks]
        return b"".join(chunks)
    return struct.pack(f"={count}h", *converter.f64_to_s16(samples))


class BytesSink(Sink):
    """A sink that takes raw bytes in the native layout of its sample format."""

    audio_format: AudioFormat

    def write(self, packet: AudioPacket, converter: Converter) -> None:
        try:
            samples = packet.samples()
        except AudioPacketError:
            self.write_bytes(packet.oggdata())
            return
        self.write_bytes(_encode(samples, self.audio_format, converter))

    @abstractmethod
    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes to the output."""


class StdoutSink(BytesSink):
    """Writes to an existing file or pipe at ``path``, or to standard output."""

    NAME = "pipe"

    def __init__(self, path: Optional[str], audio_format: AudioFormat) -> None:
        log.info("Using pipe sink with format: %s", audio_format.name)
        self.path = path
        self.audio_format = audio_format
        self._output: Optional[BinaryIO] = None

    def start(self) -> None:
        if self._output is not None:
            return
        if self.path is None:
            self._output = sys.stdout.buffer
            return
        try:
            fd = os.open(self.path, os.O_WRONLY)
        except OSError as e:
            raise SinkConnectionRefusedError(str(e)) from e
        self._output = os.fdopen(fd, "wb")

    def write_bytes(self, data: bytes) -> None:
        if self._output is None:
            raise SinkNotConnectedError("Output is None")
        try:
            self._output.write(data)
            self._output.flush()
        except OSError as e:
            raise SinkWriteError(str(e)) from e


class SubprocessSink(BytesSink):
    """Pipes audio into the standard input of a started command."""

    NAME = "subprocess"

    def __init__(self, shell_command: Optional[str], audio_format: AudioFormat) -> None:
        log.info("Using subprocess sink with format: %s", audio_format.name)
        if shell_command is None:
            raise ValueError("subprocess sink requires specifying a shell command")
        self.shell_command = shell_command
        self.audio_format = audio_format
        self._child: Optional[subprocess.Popen] = None

    def start(self) -> None:
        args = shlex.split(self.shell_command)
        if not args:
            raise ValueError("subprocess sink shell command is empty")
        try:
            self._child = subprocess.Popen(args, stdin=subprocess.PIPE)
        except OSError as e:
            raise SinkConnectionRefusedError(str(e)) from e

    def stop(self) -> None:
        child, self._child = self._child, None
        if child is None:
            return
        try:
            child.kill()
            child.wait()
        except OSError as e:
            raise SinkWriteError(str(e)) from e
        finally:
            if child.stdin is not None:
                try:
                    child.stdin.close()
                except OSError:
                    pass

    def write_bytes(self, data: bytes) -> None:
        if self._child is None:
            return
        stdin = self._child.stdin
        if stdin is None:
            raise SinkNotConnectedError("Child is None")
        try:
            stdin.write(data)
            stdin.flush()
        except OSError as e:
            raise SinkWriteError(str(e)) from e


SinkBuilder = Callable[[Optional[str], AudioFormat], Sink]

_BACKENDS: dict[str, SinkBuilder] = {
    StdoutSink.NAME: StdoutSink,
    SubprocessSink.NAME: SubprocessSink,
}


def find_backend(name: Optional[str]) -> Optional[SinkBuilder]:
    """Return the sink builder named ``name``, the default for None, or None."""
    if name is None:
        return next(iter(_BACKENDS.values()))
    return _BACKENDS.get(name)