"""Server-to-client packet ids and the structured packets parsed from them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .codec import GraalIoError
from .packets import InvalidPacketIdError, Packet, PacketConversionError
from .sync_io import GraalReader

__all__ = ["FromServerPacketId", "NcWeaponGet", "NpcWeaponScript"]


class FromServerPacketId(Enum):
    """Ids of packets sent from the server to the client."""

    LevelBoard = 0x0
    LevelLink = 0x1
    BaddyProps = 0x2
    NpcProps = 0x3
    LevelChest = 0x4
    Login = 0x5
    LevelName = 0x6
    BoardModify = 0x7
    OtherPlProps = 0x8
    PlayerProps = 0x9
    IsLeader = 0xA
    BombAdd = 0xB
    BombDel = 0xC
    ToAll = 0xD
    PlayerWarp = 0xE
    WarpFailed = 0xF
    DiscMessage = 0x10
    HorseAdd = 0x11
    HorseDel = 0x12
    ArrowAdd = 0x13
    FireSpy = 0x14
    ThrowCarried = 0x15
    ItemAdd = 0x16
    ItemDel = 0x17
    NpcMoved = 0x18
    Signature = 0x19
    NpcAction = 0x1A
    BaddyHurt = 0x1B
    FlagSet = 0x1C
    NpcDel = 0x1D
    FileSendFailed = 0x1E
    FlagDel = 0x1F
    ShowImg = 0x20
    NpcWeaponAdd = 0x21
    NpcWeaponDel = 0x22
    RcAdminMessage = 0x23
    Explosion = 0x24
    PrivateMessage = 0x25
    PushAway = 0x26
    LevelModTime = 0x27
    HurtPlayer = 0x28
    StartMessage = 0x29
    NewWorldTime = 0x2A
    DefaultWeapon = 0x2B
    HasNpcServer = 0x2C
    FileUpToDate = 0x2D
    HitObjects = 0x2E
    StaffGuilds = 0x2F
    TriggerAction = 0x30
    PlayerWarp2 = 0x31
    RcAccountAdd = 0x32
    RcAccountStatus = 0x33
    RcAccountName = 0x34
    RcAccountDel = 0x35
    RcAccountProps = 0x36
    AddPlayer = 0x37
    DelPlayer = 0x38
    RcAccountPropsGet = 0x39
    RcAccountChange = 0x3A
    RcPlayerPropsChange = 0x3B
    RcServerFlagsGet = 0x3D
    RcPlayerRightsGet = 0x3E
    RcPlayerCommentsGet = 0x3F
    RcPlayerBanGet = 0x40
    RcFileBrowserDirList = 0x41
    RcFileBrowserDir = 0x42
    RcFileBrowserMessage = 0x43
    LargeFileStart = 0x44
    LargeFileEnd = 0x45
    RcAccountListGet = 0x46
    RcPlayerProps = 0x47
    RcPlayerPropsGet = 0x48
    RcAccountGet = 0x49
    RcChat = 0x4A
    Profile = 0x4B
    RcServerOptionsGet = 0x4C
    RcFolderConfigGet = 0x4D
    NcControl = 0x4E
    NpcServerAddr = 0x4F
    NcLevelList = 0x50
    ServerText = 0x52
    LargeFileSize = 0x54
    RawData = 0x64
    BoardPacket = 0x65
    File = 0x66
    RcMaxUploadFileSize = 0x67
    UpdatePackageSize = 0x69
    UpdatePackageDone = 0x6A
    BoardLayer = 0x6B
    NpcBytecode = 0x83
    GaniScript = 0x86
    NpcWeaponScript = 0x8C
    NpcDel2 = 0x96
    HideNpcs = 0x97
    Say2 = 0x99
    FreezePlayer2 = 0x9A
    UnfreezePlayer = 0x9B
    SetActiveLevel = 0x9C
    NcNpcAttributes = 0x9D
    NcNpcAdd = 0x9E
    NcNpcDelete = 0x9F
    NcNpcScript = 0xA0
    NcNpcFlags = 0xA1
    NcClassGet = 0xA2
    NcClassAdd = 0xA3
    NcLevelDump = 0xA4
    Move = 0xA5
    NcWeaponListGet = 0xA7
    GhostMode = 0xAA
    UnknownA8 = 0xA8
    BigMap = 0xAB
    MiniMap = 0xAC
    GhostText = 0xAD
    GhostIcon = 0xAE
    Shoot = 0xAF
    FullStop = 0xB0
    FullStop2 = 0xB1
    ServerWarp = 0xB2
    RpgWindow = 0xB3
    StatusList = 0xB4
    ListProcesses = 0xB6
    UpdatePackageIsUpdated = 0xBB
    NcClassDelete = 0xBC
    Move2 = 0xBD
    UnknownBE = 0xBE
    Shoot2 = 0xBF
    NcWeaponGet = 0xC0
    ClearWeapons = 0xC2
    UnknownC5 = 0xC5
    SetEncKey = 0xFC
    Bundle = 0xFD

    @classmethod
    def from_value(cls, value: int) -> FromServerPacketId:
        """Return the id for a numeric value, using its low byte."""
        byte = int(value) & 0xFF
        try:
            return cls(byte)
        except ValueError:
            raise InvalidPacketIdError(byte) from None

    @classmethod
    def from_name(cls, name: str) -> FromServerPacketId:
        """Return the id with the given name."""
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Invalid packet name: {name}") from None

    def __str__(self) -> str:
        return self.name

    def __int__(self) -> int:
        return self.value


def _expect_id(packet: Packet, expected: FromServerPacketId) -> None:
    if packet.id is not expected:
        raise PacketConversionError(f"Expected {expected} packet")


@dataclass(frozen=True)
class NcWeaponGet:
    """A weapon's name, image and script, as sent by the NPC server."""

    script_name: str
    img: str
    script: str

    @classmethod
    def from_bytes(cls, data: bytes) -> NcWeaponGet:
        """Parse the packet payload; 0xA7 bytes in the script become newlines."""
        reader = GraalReader(data)
        try:
            script_name = reader.read_gstring()
            img = reader.read_gstring()
            raw_script = reader.read_to_end()
        except GraalIoError as exc:
            raise PacketConversionError(f"GraalIo error: {exc}") from exc
        try:
            script = raw_script.replace(b"\xa7", b"\n").decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PacketConversionError(f"Failed to convert script to string: {exc}") from exc
        return cls(script_name=script_name, img=img, script=script)

    @classmethod
    def from_packet(cls, packet: Packet) -> NcWeaponGet:
        """Parse an NcWeaponGet packet."""
        _expect_id(packet, FromServerPacketId.NcWeaponGet)
        return cls.from_bytes(packet.data)


@dataclass(frozen=True)
class NpcWeaponScript:
    """A weapon's compiled script, as sent to a game client."""

    script_type: str
    script_name: str
    weapon_bytecode: bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> NpcWeaponScript:
        """Parse the packet payload: a comma-separated header, then the bytecode."""
        reader = GraalReader(data)
        try:
            header_length = reader.read_gu16()
            header = reader.read_exact(header_length)
            parts = GraalReader(header).split(b",")
            bytecode = reader.read_to_end()
        except GraalIoError as exc:
            raise PacketConversionError(f"GraalIo error: {exc}") from exc
        if len(parts) < 2:
            raise PacketConversionError("Invalid NpcWeaponScript packet")
        try:
            script_type = parts[0].decode("utf-8")
        except UnicodeDecodeError:
            raise PacketConversionError(
                "Failed to parse UTF-8 String from script type"
            ) from None
        try:
            script_name = parts[1].decode("utf-8")
        except UnicodeDecodeError:
            raise PacketConversionError(
                "Failed to parse UTF-8 String from script name"
            ) from None
        return cls(script_type=script_type, script_name=script_name, weapon_bytecode=bytecode)

    @classmethod
    def from_packet(cls, packet: Packet) -> NpcWeaponScript:
        """Parse an NpcWeaponScript packet."""
        _expect_id(packet, FromServerPacketId.NpcWeaponScript)
        return cls.from_bytes(packet.data)