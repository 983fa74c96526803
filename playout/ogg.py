"""Reading and writing Ogg pages and packets."""

from __future__ import annotations

import enum
import struct
from collections import deque
from dataclasses import dataclass, field
from typing import BinaryIO, Optional

__all__ = [
    "OggReadError",
    "NoCapturePatternFound",
    "Packet",
    "PacketWriteEndInfo",
    "PacketReader",
    "PacketWriter",
    "page_checksum",
]

_CAPTURE = b"OggS"
_HEADER = struct.Struct("<4sBBQIII B")
_FLAG_CONTINUED = 0x01
_FLAG_BOS = 0x02
_FLAG_EOS = 0x04
_NO_GRANULE = 0xFFFFFFFFFFFFFFFF


def _make_table() -> list[int]:
    table = []
    for i in range(256):
        r = i << 24
        for _ in range(8):
            r = ((r << 1) ^ 0x04C11DB7) if r & 0x80000000 else (r << 1)
        table.append(r & 0xFFFFFFFF)
    return table


_CRC_TABLE = _make_table()


def page_checksum(data: bytes) -> int:
    """Ogg CRC-32 (polynomial 0x04c11db7, no reflection, initial value 0)."""
    crc = 0
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[((crc >> 24) ^ byte) & 0xFF]
    return crc


class OggReadError(Exception):
    """The Ogg stream is malformed or a requested position is missing."""


class NoCapturePatternFound(OggReadError):
    """A page did not begin with the Ogg capture pattern."""


@dataclass
class Packet:
    data: bytes
    absgp_page: int
    stream_serial: int
    last_in_page: bool = False
    last_in_stream: bool = False


class PacketWriteEndInfo(enum.Enum):
    NORMAL_PACKET = "normal"
    END_PAGE = "end_page"
    END_STREAM = "end_stream"


@dataclass
class _Page:
    flags: int
    granule: int
    serial: int
    lacing: bytes
    body: bytes


class PacketReader:
    """Reads packets from a seekable binary stream of Ogg pages."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._queue: deque[Packet] = deque()
        self._partial = bytearray()

    def _read_page(self) -> Optional[_Page]:
        header = self._stream.read(_HEADER.size)
        if not header:
            return None
        if header[:4] != _CAPTURE:
            raise NoCapturePatternFound("no Ogg capture pattern found")
        if len(header) < _HEADER.size:
            raise OggReadError("truncated page header")
        _, version, flags, granule, serial, _seq, crc, nsegs = _HEADER.unpack(header)
        if version != 0:
            raise OggReadError(f"unsupported Ogg version {version}")
        lacing = self._stream.read(nsegs)
        body = self._stream.read(sum(lacing))
        if len(lacing) != nsegs or len(body) != sum(lacing):
            raise OggReadError("truncated page")
        zeroed = header[:22] + b"\0\0\0\0" + header[26:]
        if page_checksum(zeroed + lacing + body) != crc:
            raise OggReadError("page checksum mismatch")
        return _Page(flags, granule, serial, lacing, body)

    def _ingest(self, page: _Page) -> None:
        skipping = bool(page.flags & _FLAG_CONTINUED) and not self._partial
        if not page.flags & _FLAG_CONTINUED:
            self._partial.clear()
        packets: list[Packet] = []
        offset = 0
        for size in page.lacing:
            if not skipping:
                self._partial.extend(page.body[offset : offset + size])
            offset += size
            if size < 255:
                if not skipping:
                    packets.append(Packet(bytes(self._partial), page.granule, page.serial))
                skipping = False
                self._partial.clear()
        if packets:
            packets[-1].last_in_page = True
            packets[-1].last_in_stream = bool(page.flags & _FLAG_EOS)
        self._queue.extend(packets)

    def read_packet(self) -> Optional[Packet]:
        """Return the next packet, or None at the end of the stream."""
        while not self._queue:
            page = self._read_page()
            if page is None:
                return None
            self._ingest(page)
        return self._queue.popleft()

    def read_packet_expected(self) -> Packet:
        packet = self.read_packet()
        if packet is None:
            raise OggReadError("end of stream where a packet was expected")
        return packet

    def seek_absgp(self, stream_serial: Optional[int], absgp: int) -> bool:
        """Position the reader at the first page reaching granule ``absgp``."""
        self._stream.seek(0)
        self.delete_unread_packets()
        while True:
            position = self._stream.tell()
            page = self._read_page()
            if page is None:
                raise OggReadError(f"granule position {absgp} not found")
            if stream_serial is not None and page.serial != stream_serial:
                continue
            if page.granule != _NO_GRANULE and page.granule >= absgp:
                self._stream.seek(position)
                return True

    def delete_unread_packets(self) -> None:
        self._queue.clear()
        self._partial.clear()


@dataclass
class _StreamState:
    sequence: int = 0
    started: bool = False
    continued: bool = False
    segments: list[bytes] = field(default_factory=list)
    ends: list[bool] = field(default_factory=list)


class PacketWriter:
    """Writes packets as Ogg pages into an in-memory buffer."""

    def __init__(self) -> None:
        self._out = bytearray()
        self._streams: dict[int, _StreamState] = {}

    def write_packet(
        self, data: bytes, serial: int, end_info: PacketWriteEndInfo, absgp: int
    ) -> None:
        state = self._streams.setdefault(serial, _StreamState())
        data = bytes(data)
        chunks = [data[i : i + 255] for i in range(0, len(data), 255)]
        if len(data) % 255 == 0:
            chunks.append(b"")
        state.segments.extend(chunks)
        state.ends.extend([False] * (len(chunks) - 1) + [True])

        if end_info is PacketWriteEndInfo.NORMAL_PACKET:
            while len(state.segments) > 255:
                self._flush_page(state, serial, 255, absgp, eos=False)
            return
        eos = end_info is PacketWriteEndInfo.END_STREAM
        while state.segments:
            count = min(255, len(state.segments))
            self._flush_page(state, serial, count, absgp, eos and count == len(state.segments))
        if eos:
            del self._streams[serial]

    def _flush_page(
        self, state: _StreamState, serial: int, count: int, absgp: int, eos: bool
    ) -> None:
        segments, state.segments = state.segments[:count], state.segments[count:]
        ends, state.ends = state.ends[:count], state.ends[count:]
        flags = 0
        if state.continued:
            flags |= _FLAG_CONTINUED
        if not state.started:
            flags |= _FLAG_BOS
        if eos:
            flags |= _FLAG_EOS
        granule = (absgp % 2**64) if any(ends) else _NO_GRANULE
        lacing = bytes(len(s) for s in segments)
        body = b"".join(segments)
        header = _HEADER.pack(
            _CAPTURE, 0, flags, granule, serial & 0xFFFFFFFF, state.sequence, 0, count
        )
        page = bytearray(header + lacing + body)
        page[22:26] = struct.pack("<I", page_checksum(page))
        self._out.extend(page)
        state.sequence = (state.sequence + 1) & 0xFFFFFFFF
        state.started = True
        state.continued = not ends[-1]

    def take(self) -> bytes:
        """Return and clear the bytes written so far."""
        data = bytes(self._out)
        self._out.clear()
        return data