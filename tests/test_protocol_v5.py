import asyncio
import bz2
import zlib

import pytest

from graalnet.packets import FromClientPacketId, Packet
from graalnet.protocol import InvalidCompressionError, ProtocolError
from graalnet.protocol_v5 import CompressionV5, ProtocolV5
from graalnet.server_packets import FromServerPacketId
from graalnet.sync_io import GraalReader, GraalWriter


class _Sink:
    def __init__(self):
        self.data = bytearray()

    def write(self, data):
        self.data += data

    async def drain(self):
        pass


def _reader(payload: bytes) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(payload)
    reader.feed_eof()
    return reader


def _body(packet_id, data: bytes) -> bytes:
    writer = GraalWriter()
    writer.write_gu8(packet_id.value)
    writer.write_bytes(data)
    writer.write_bytes(b"\n")
    return writer.getvalue()


def _frame(compression: int, body: bytes) -> bytes:
    content = bytes([compression]) + body
    return len(content).to_bytes(2, "big") + content


def test_compression_values():
    assert CompressionV5.from_value(2) is CompressionV5.NONE
    assert CompressionV5.from_value(4) is CompressionV5.ZLIB
    assert CompressionV5.from_value(6) is CompressionV5.BZIP2


def test_invalid_compression_value():
    with pytest.raises(InvalidCompressionError):
        CompressionV5.from_value(3)


@pytest.mark.asyncio
async def test_version_and_key_set_once():
    proto = ProtocolV5(_reader(b""), _Sink())
    assert proto.version() == 5
    proto.set_encryption_key(42)
    assert proto.encryption_key == 42
    with pytest.raises(ProtocolError):
        proto.set_encryption_key(7)


@pytest.mark.asyncio
async def test_send_without_key_has_no_compression_byte():
    sink = _Sink()
    proto = ProtocolV5(_reader(b""), sink)
    await proto.write(Packet(FromClientPacketId.RcChat, b"hi"))
    assert int.from_bytes(sink.data[:2], "big") == len(sink.data) - 2
    body = zlib.decompress(bytes(sink.data[2:]))
    assert body == _body(FromClientPacketId.RcChat, b"hi")


@pytest.mark.asyncio
async def test_send_with_key_adds_zlib_byte_and_enciphers():
    sink = _Sink()
    proto = ProtocolV5(_reader(b""), sink)
    proto.set_encryption_key(0x55)
    await proto.write(Packet(FromClientPacketId.RcChat, b"hi"))
    assert int.from_bytes(sink.data[:2], "big") == len(sink.data) - 2
    assert sink.data[2] == CompressionV5.ZLIB
    plain = zlib.compress(_body(FromClientPacketId.RcChat, b"hi"))
    assert len(sink.data) - 3 == len(plain)
    assert bytes(sink.data[3:]) != plain


@pytest.mark.asyncio
async def test_enciphered_round_trip_keeps_state_in_step():
    sink = _Sink()
    sender = ProtocolV5(_reader(b""), sink)
    sender.set_encryption_key(0x21)
    messages = [b"first", b"second message", b"third"]
    for message in messages:
        await sender.send_packet(Packet(FromClientPacketId.RcChat, message))

    receiver = ProtocolV5(_reader(bytes(sink.data)), _Sink())
    receiver.set_encryption_key(0x21)
    expected_id = FromServerPacketId.from_value(FromClientPacketId.RcChat.value)
    for message in messages:
        packet = await receiver.read()
        assert packet.id is expected_id
        assert packet.data == message


@pytest.mark.asyncio
async def test_read_uncompressed_frame_without_key():
    stream = _frame(2, _body(FromServerPacketId.RcChat, b"plain"))
    proto = ProtocolV5(_reader(stream), _Sink())
    assert await proto.read() == Packet(FromServerPacketId.RcChat, b"plain")


@pytest.mark.asyncio
async def test_read_bzip2_frame_without_key():
    body = _body(FromServerPacketId.ToAll, b"one") + _body(FromServerPacketId.RcChat, b"two")
    proto = ProtocolV5(_reader(_frame(6, bz2.compress(body))), _Sink())
    first = await proto.read()
    second = await proto.read()
    assert first == Packet(FromServerPacketId.ToAll, b"one")
    assert second == Packet(FromServerPacketId.RcChat, b"two")


@pytest.mark.asyncio
async def test_read_invalid_compression_byte():
    proto = ProtocolV5(_reader(_frame(3, b"abc")), _Sink())
    with pytest.raises(InvalidCompressionError):
        await proto.read()


@pytest.mark.asyncio
async def test_unkeyed_send_is_not_readable_as_frame():
    sink = _Sink()
    sender = ProtocolV5(_reader(b""), sink)
    await sender.send_packet(Packet(FromClientPacketId.RcChat, b"x"))
    receiver = ProtocolV5(_reader(bytes(sink.data)), _Sink())
    with pytest.raises(InvalidCompressionError):
        await receiver.read()


@pytest.mark.asyncio
async def test_empty_frame_raises_protocol_error():
    proto = ProtocolV5(_reader(b"\x00\x00"), _Sink())
    with pytest.raises(ProtocolError):
        await proto.read()


@pytest.mark.asyncio
async def test_truncated_stream_raises_protocol_error():
    proto = ProtocolV5(_reader(b"\x00\x10\x02ab"), _Sink())
    with pytest.raises(ProtocolError):
        await proto.read()


@pytest.mark.asyncio
async def test_invalid_zlib_body_raises_protocol_error():
    proto = ProtocolV5(_reader(_frame(4, b"not zlib")), _Sink())
    with pytest.raises(ProtocolError):
        await proto.read()


@pytest.mark.asyncio
async def test_parsed_payload_matches_reader_view():
    body = _body(FromServerPacketId.NpcServerAddr, b"host,14900")
    proto = ProtocolV5(_reader(_frame(2, body)), _Sink())
    packet = await proto.read()
    reader = GraalReader(body)
    assert reader.read_gu8() == packet.id.value
    assert reader.read_until(b"\n") == packet.data