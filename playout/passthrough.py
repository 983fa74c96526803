"""Decoder that re-muxes Ogg Vorbis packets without decoding them."""

from __future__ import annotations

import logging
import time
from typing import BinaryIO, Optional

from .decoder import AudioDecoder, AudioPacket, DecoderError
from .ogg import NoCapturePatternFound, OggReadError, PacketReader, PacketWriteEndInfo, PacketWriter

__all__ = ["PassthroughDecoder"]

log = logging.getLogger(__name__)


def _get_header(code: int, reader: PacketReader) -> bytes:
    try:
        packet = reader.read_packet_expected()
    except OggReadError as e:
        raise DecoderError(f"Passthrough Decoder Error: {e}") from e
    if not packet.data:
        raise DecoderError("Passthrough Decoder Error: Invalid Data")
    log.debug("Vorbis header type %d", packet.data[0])
    if packet.data[0] != code:
        raise DecoderError("Passthrough Decoder Error: Invalid Data")
    return packet.data


class PassthroughDecoder(AudioDecoder):
    """Yields Ogg data with fresh headers and granule positions relative to seeks."""

    def __init__(self, stream: BinaryIO) -> None:
        self._reader = PacketReader(stream)
        self._writer = PacketWriter()
        self.stream_serial = int(time.time() * 1000) & 0xFFFFFFFF
        log.info("Starting passthrough track with serial %d", self.stream_serial)
        self._ident = _get_header(1, self._reader)
        self._comment = _get_header(3, self._reader)
        self._setup = _get_header(5, self._reader)
        self._reader.delete_unread_packets()
        self._eos = False
        self._bos = False
        self._ofsgp_page = 0

    def _write(self, data: bytes, end_info: PacketWriteEndInfo, absgp: int) -> None:
        self._writer.write_packet(data, self.stream_serial, end_info, absgp % 2**64)

    def seek(self, absgp: int) -> None:
        if self._bos and not self._eos:
            try:
                packet = self._reader.read_packet()
            except OggReadError:
                packet = None
            if packet is not None:
                self._write(
                    packet.data, PacketWriteEndInfo.END_STREAM, packet.absgp_page - self._ofsgp_page
                )
            else:
                log.warning("Cannot write EoS after seeking")

        self._eos = False
        self._bos = False
        self._ofsgp_page = 0
        self.stream_serial = (self.stream_serial + 1) & 0xFFFFFFFF

        try:
            self._reader.seek_absgp(None, absgp)
            packet = self._reader.read_packet()
        except OggReadError as e:
            raise DecoderError(f"Passthrough Decoder Error: {e}") from e
        if packet is None:
            raise DecoderError("Passthrough Decoder Error: Packet is None")
        self._ofsgp_page = packet.absgp_page
        log.debug("Seek to offset page %d", self._ofsgp_page)

    def next_packet(self) -> Optional[AudioPacket]:
        if not self._bos:
            self._write(self._ident, PacketWriteEndInfo.END_PAGE, 0)
            self._write(self._comment, PacketWriteEndInfo.NORMAL_PACKET, 0)
            self._write(self._setup, PacketWriteEndInfo.END_PAGE, 0)
            self._bos = True
            log.debug("Wrote Ogg headers")

        while True:
            try:
                packet = self._reader.read_packet()
            except NoCapturePatternFound:
                packet = None
            except OggReadError as e:
                raise DecoderError(f"Passthrough Decoder Error: {e}") from e
            if packet is None:
                log.info("end of streaming")
                return None

            granule = packet.absgp_page
            if granule == 0 or granule == self._ofsgp_page:
                continue

            if packet.last_in_stream:
                self._eos = True
                end_info = PacketWriteEndInfo.END_STREAM
            elif packet.last_in_page:
                end_info = PacketWriteEndInfo.END_PAGE
            else:
                end_info = PacketWriteEndInfo.NORMAL_PACKET

            self._write(packet.data, end_info, granule - self._ofsgp_page)
            data = self._writer.take()
            if data:
                return AudioPacket(ogg_data=data)