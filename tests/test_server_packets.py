import pytest

from graalnet.packets import InvalidPacketIdError, Packet, PacketConversionError
from graalnet.server_packets import FromServerPacketId, NcWeaponGet, NpcWeaponScript
from graalnet.sync_io import GraalWriter


def _weapon_get_payload(name: str, img: str, script: bytes) -> bytes:
    writer = GraalWriter()
    writer.write_gstring(name)
    writer.write_gstring(img)
    writer.write_bytes(script)
    return writer.getvalue()


def _weapon_script_payload(header: bytes, bytecode: bytes) -> bytes:
    writer = GraalWriter()
    writer.write_gu16(len(header))
    writer.write_bytes(header)
    writer.write_bytes(bytecode)
    return writer.getvalue()


@pytest.mark.parametrize("member", list(FromServerPacketId))
def test_from_value_round_trip(member):
    assert FromServerPacketId.from_value(member.value) is member


def test_from_value_uses_low_byte():
    assert FromServerPacketId.from_value(0x100 + 0x4A) is FromServerPacketId.RcChat


def test_from_value_unknown_raises():
    with pytest.raises(InvalidPacketIdError) as info:
        FromServerPacketId.from_value(0x3C)
    assert info.value.packet_id == 0x3C


def test_from_name_and_str():
    member = FromServerPacketId.from_name("NpcWeaponScript")
    assert member is FromServerPacketId.NpcWeaponScript
    assert str(member) == "NpcWeaponScript"


def test_from_name_unknown_raises():
    with pytest.raises(ValueError):
        FromServerPacketId.from_name("NoSuchPacket")


def test_source_values_pinned():
    assert FromServerPacketId.from_value(0xC0) is FromServerPacketId.NcWeaponGet
    assert FromServerPacketId.from_value(0xFD) is FromServerPacketId.Bundle


def test_nc_weapon_get_from_bytes():
    payload = _weapon_get_payload("sword", "sword.png", b"line1\xa7line2")
    weapon = NcWeaponGet.from_bytes(payload)
    assert weapon == NcWeaponGet(script_name="sword", img="sword.png", script="line1\nline2")


def test_nc_weapon_get_from_packet():
    payload = _weapon_get_payload("bow", "bow.png", b"")
    packet = Packet(FromServerPacketId.NcWeaponGet, payload)
    weapon = NcWeaponGet.from_packet(packet)
    assert weapon.script_name == "bow"
    assert weapon.img == "bow.png"
    assert weapon.script == ""


def test_nc_weapon_get_wrong_id():
    packet = Packet(FromServerPacketId.RcChat, b"")
    with pytest.raises(PacketConversionError):
        NcWeaponGet.from_packet(packet)


def test_nc_weapon_get_invalid_utf8():
    payload = _weapon_get_payload("a", "b", b"\xff\xfe")
    with pytest.raises(PacketConversionError):
        NcWeaponGet.from_bytes(payload)


def test_nc_weapon_get_truncated():
    writer = GraalWriter()
    writer.write_gu8(10)
    writer.write_bytes(b"abc")
    with pytest.raises(PacketConversionError):
        NcWeaponGet.from_bytes(writer.getvalue())


def test_npc_weapon_script_from_bytes():
    payload = _weapon_script_payload(b"weapon,Bow,extra", b"\x01\x02\x03")
    script = NpcWeaponScript.from_bytes(payload)
    assert script.script_type == "weapon"
    assert script.script_name == "Bow"
    assert script.weapon_bytecode == b"\x01\x02\x03"


def test_npc_weapon_script_from_packet():
    payload = _weapon_script_payload(b"weapon,Sword", b"\x00")
    packet = Packet(FromServerPacketId.NpcWeaponScript, payload)
    script = NpcWeaponScript.from_packet(packet)
    assert script.script_name == "Sword"
    assert script.weapon_bytecode == b"\x00"


def test_npc_weapon_script_needs_two_parts():
    payload = _weapon_script_payload(b"weapon", b"")
    with pytest.raises(PacketConversionError):
        NpcWeaponScript.from_bytes(payload)


def test_npc_weapon_script_wrong_id():
    packet = Packet(FromServerPacketId.NcWeaponGet, b"")
    with pytest.raises(PacketConversionError):
        NpcWeaponScript.from_packet(packet)


def test_npc_weapon_script_header_too_long():
    writer = GraalWriter()
    writer.write_gu16(50)
    writer.write_bytes(b"weapon,Bow")
    with pytest.raises(PacketConversionError):
        NpcWeaponScript.from_bytes(writer.getvalue())