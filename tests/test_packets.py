import pytest

from graalnet.packets import (
    FromClientPacketId,
    InvalidPacketIdError,
    Packet,
    PacketConversionError,
    PacketEvent,
)


def test_from_value_known_ids():
    assert FromClientPacketId.from_value(0x4F) is FromClientPacketId.RcChat
    assert FromClientPacketId.from_value(0xFD) is FromClientPacketId.Bundle
    assert FromClientPacketId.from_value(0x5E) is FromClientPacketId.NpcServerQuery


def test_from_value_uses_low_byte():
    assert FromClientPacketId.from_value(0x100 + 0x4F) is FromClientPacketId.RcChat


def test_from_value_unknown_raises():
    with pytest.raises(InvalidPacketIdError) as info:
        FromClientPacketId.from_value(0x19)
    assert info.value.packet_id == 0x19
    assert isinstance(info.value, PacketConversionError)
    assert "Invalid packet id: 25" in str(info.value)


def test_every_member_round_trips():
    for member in FromClientPacketId:
        assert FromClientPacketId.from_value(int(member)) is member
        assert FromClientPacketId.from_name(str(member)) is member


def test_from_name():
    assert FromClientPacketId.from_name("V5Login") is FromClientPacketId.V5Login
    with pytest.raises(ValueError, match="Invalid packet name: Nope"):
        FromClientPacketId.from_name("Nope")


def test_str_is_variant_name():
    assert str(FromClientPacketId.from_value(0x75)) == "NcWeaponAdd"


def test_ids_are_not_plain_ints_as_keys():
    table = {FromClientPacketId.RcChat: "chat"}
    assert table.get(0x4F) is None
    assert table[FromClientPacketId.from_value(0x4F)] == "chat"


def test_packet_repr_shows_lossy_text():
    packet = Packet(FromClientPacketId.RcChat, b"hi\xff")
    text = repr(packet)
    assert "RcChat" in text
    assert "hi\ufffd" in text


def test_packet_defaults_and_equality():
    packet = Packet(FromClientPacketId.Bundle)
    assert packet.data == b""
    assert packet == Packet(FromClientPacketId.Bundle, b"")


def test_packet_event_holds_packet():
    packet = Packet(FromClientPacketId.RcChat, b"hello")
    event = PacketEvent(packet)
    assert event.packet.data == b"hello"
    assert event.packet.id is FromClientPacketId.RcChat