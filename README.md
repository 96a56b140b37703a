# graalnet

`graalnet` is an asyncio client library for talking to Graal game servers.
It supports the three wire protocols these servers use:

- **v4** (`graalnet.protocol_v4.ProtocolV4`): zlib-compressed frames with a two-byte length
  prefix. NPC-control connections use it.
- **v5** (`graalnet.protocol_v5.ProtocolV5`): zlib or bzip2 compressed frames with the v5
  stream cipher. Remote-control connections use it. Frames stay unenciphered until
  `set_encryption_key` is called, and the key can be set only once.
- **v6** (`graalnet.protocol_v6.ProtocolV6`): packet headers laid out by a format string
  (`graalnet.v6_header.HeaderFormat.parse("EILLT")`, for example), packet bundles, and an
  RC4 session key. The server sends this key encrypted with RSA, and it is decrypted with a
  `cryptography` private key that you supply. Outgoing data is zlib-compressed when it is
  longer than 55 bytes. It is never encrypted.

All three implement the `graalnet.protocol.Protocol` interface: `read()`, `write(packet)`
and `version()`. `graalnet.client.GClient` is built on that interface.

## Installation

```
pip install graalnet
```

## Building blocks

Graal encodes integers with 7 bits per byte, and each byte is offset by 32:

```python
from graalnet.codec import encode_bits, decode_bits

assert encode_bits(100, 2) == bytes([32, 132])
assert decode_bits(bytes([32, 132])) == 100
```

`graalnet.sync_io.GraalReader` reads these values from bytes or a binary stream, and
`GraalWriter` writes them. When `GraalWriter` is given no sink, it writes to an in-memory
buffer:

```python
from graalnet.sync_io import GraalReader, GraalWriter

writer = GraalWriter()
writer.write_gu16(1234)
writer.write_gstring("hello")

reader = GraalReader(writer.getvalue())
assert reader.read_gu16() == 1234
assert reader.read_gstring() == "hello"
```

If a value is too large for its width, `write_gu*` raises
`graalnet.codec.ValueExceedsMaximumError`.

`graalnet.async_io.AsyncGraalReader` and `AsyncGraalWriter` offer the same operations on
asyncio streams.

Other modules:

- `graalnet.compression`: zlib and bzip2 helpers.
- `graalnet.serialization`: `GString` (a string with a length prefix) and `GScript` (a
  script with carriage returns dropped and newlines sent as `0xA7`). Each has an
  `encode_graal()` method that returns its wire bytes.

## Packets

A packet is a `graalnet.packets.Packet(id, data)`. The id is either a
`graalnet.packets.FromClientPacketId` or a `graalnet.server_packets.FromServerPacketId`.
Both enums have `from_value` and `from_name` lookups.

Two server packets can be parsed into structured objects:

- `graalnet.server_packets.NcWeaponGet`: script name, image and script.
- `graalnet.server_packets.NpcWeaponScript`: script type, script name and bytecode.

Each has a `from_packet` and a `from_bytes` method.

## Connecting

```python
import asyncio

from graalnet.client import GClient
from graalnet.protocol_v4 import ProtocolV4
from graalnet.server_packets import FromServerPacketId


async def main():
    reader, writer = await asyncio.open_connection("localhost", 14900)
    client = await GClient.connect(ProtocolV4(reader, writer), timeout=10.0)

    async def on_chat(event):
        print(event.packet.data.decode("latin-1"))

    await client.register_event_handler(FromServerPacketId.RcChat, on_chat)
    ...
    await client.disconnect()


asyncio.run(main())
```

`GClient` runs a background read loop.

- A packet that answers a pending `send_and_receive` call is returned to that caller.
- Any other packet is passed to the handlers registered for its id. Each handler runs in its
  own task.
- `send_packet` sends a packet without waiting for an answer.
- `send_and_receive(packet, response_packet)` waits for the next packet with the given id.
  If none arrives within the timeout, the client disconnects and `ClientTimeoutError` is
  raised.
- A read or send error also disconnects the client. After a disconnect, the handler set
  with `register_disconnect_handler` runs once.
- When a v6 protocol is used, `GClient.connect` queues the handshake string, and it goes out
  with the first packet sent.
- `set_codec(key)` sets the v5 encryption key. With any other protocol it raises
  `UnsupportedProtocolVersionError`.

## What this package does not do

`graalnet` is a library only.

- It has no command-line tool and no configuration loading.
- It does not reconnect by itself. Use a disconnect handler to do that.
- It has no ready-made login, chat or NPC-control packets. Build a `Packet` with the
  payload bytes the server expects, using `GraalWriter` and the `serialization` wrappers.