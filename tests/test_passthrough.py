import io

import pytest

from playout.decoder import DecoderError
from playout.ogg import PacketReader, PacketWriteEndInfo, PacketWriter
from playout.passthrough import PassthroughDecoder

IDENT = b"\x01vorbis-ident"
COMMENT = b"\x03vorbis-comment"
SETUP = b"\x05vorbis-setup"


def _stream(headers=(IDENT, COMMENT, SETUP)):
    w = PacketWriter()
    w.write_packet(headers[0], 7, PacketWriteEndInfo.END_PAGE, 0)
    w.write_packet(headers[1], 7, PacketWriteEndInfo.NORMAL_PACKET, 0)
    w.write_packet(headers[2], 7, PacketWriteEndInfo.END_PAGE, 0)
    w.write_packet(b"a1", 7, PacketWriteEndInfo.END_PAGE, 100)
    w.write_packet(b"a2", 7, PacketWriteEndInfo.END_PAGE, 200)
    w.write_packet(b"a3", 7, PacketWriteEndInfo.END_STREAM, 300)
    return io.BytesIO(w.take())


def _packets(data):
    reader = PacketReader(io.BytesIO(data))
    out = []
    while (p := reader.read_packet()) is not None:
        out.append(p)
    return out


def test_headers_then_audio():
    decoder = PassthroughDecoder(_stream())
    first = _packets(decoder.next_packet().oggdata())
    assert [p.data for p in first] == [IDENT, COMMENT, SETUP, b"a1"]
    assert first[-1].absgp_page == 100
    assert all(p.stream_serial == decoder.stream_serial for p in first)
    second = _packets(decoder.next_packet().oggdata())
    assert [p.data for p in second] == [b"a2"]
    third = _packets(decoder.next_packet().oggdata())
    assert third[-1].last_in_stream is True
    assert decoder.next_packet() is None


def test_seek_offsets_granules():
    decoder = PassthroughDecoder(_stream())
    serial = decoder.stream_serial
    decoder.seek(150)
    assert decoder.stream_serial == (serial + 1) & 0xFFFFFFFF
    packets = _packets(decoder.next_packet().oggdata())
    assert [p.data for p in packets] == [IDENT, COMMENT, SETUP, b"a3"]
    assert packets[-1].absgp_page == 100


def test_wrong_header_order():
    with pytest.raises(DecoderError):
        PassthroughDecoder(_stream((COMMENT, IDENT, SETUP)))


def test_seek_past_end():
    decoder = PassthroughDecoder(_stream())
    with pytest.raises(DecoderError):
        decoder.seek(10_000)