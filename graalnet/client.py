"""A high-level client that runs a protocol's read loop and dispatches packets."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from .packets import Packet, PacketEvent
from .protocol import Protocol, ProtocolError
from .protocol_v5 import ProtocolV5
from .protocol_v6 import ProtocolV6

__all__ = [
    "ClientError",
    "ClientNotConnectedError",
    "ClientTimeoutError",
    "GClient",
    "UnsupportedProtocolVersionError",
]

log = logging.getLogger(__name__)

EventHandler = Callable[[PacketEvent], Awaitable[None] | None]
DisconnectHandler = Callable[[], Awaitable[None] | None]


class ClientError(Exception):
    """Raised when a client operation fails."""


class ClientNotConnectedError(ClientError):
    """Raised when the client is not, or no longer, connected."""

    def __init__(self) -> None:
        super().__init__("Client not connected")


class UnsupportedProtocolVersionError(ClientError):
    """Raised when an operation does not apply to the client's protocol."""

    def __init__(self) -> None:
        super().__init__("Unsupported protocol version")


class ClientTimeoutError(ClientError):
    """Raised when an expected response does not arrive in time."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Timeout error: no response within {timeout} seconds")
        self.timeout = timeout


async def _call(func: Callable[..., Any], *args: Any) -> None:
    result = func(*args)
    if inspect.isawaitable(result):
        await result


class GClient:
    """Talks to a server over a protocol.

    A background task reads packets: a packet that answers a pending
    `send_and_receive` goes to its caller, any other one is handed to the
    event handlers registered for its id, each in a task of its own.
    """

    task_join_timeout: float = 5.0

    def __init__(self, protocol: Protocol, timeout: float) -> None:
        self._protocol = protocol
        self.timeout = timeout
        self._pending: dict[Any, asyncio.Future[Packet]] = {}
        self._handlers: dict[Any, list[EventHandler]] = {}
        self._disconnect_handler: DisconnectHandler | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._disconnected = False

    @classmethod
    async def connect(cls, protocol: Protocol, timeout: float) -> GClient:
        """Start the read loop on `protocol`; v6 protocols also get the handshake."""
        client = cls(protocol, timeout)
        client._spawn(client._read_loop())
        if isinstance(protocol, ProtocolV6):
            try:
                await protocol.send_handshake()
            except ProtocolError as exc:
                raise ClientError(f"Protocol error: {exc}") from exc
        return client

    @property
    def protocol(self) -> Protocol:
        return self._protocol

    @property
    def is_disconnected(self) -> bool:
        return self._disconnected

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def set_codec(self, key: int) -> None:
        """Set the encryption key; only the v5 protocol has one."""
        if not isinstance(self._protocol, ProtocolV5):
            raise UnsupportedProtocolVersionError()
        try:
            self._protocol.set_encryption_key(key)
        except ProtocolError as exc:
            raise ClientError(f"Protocol error: {exc}") from exc

    async def _run_handler(self, handler: EventHandler, event: PacketEvent) -> None:
        try:
            await _call(handler, event)
        except Exception:
            log.exception("Event handler for %s failed", event.packet.id)

    async def _read_loop(self) -> None:
        while True:
            try:
                packet = await self._protocol.read()
            except Exception as exc:
                log.error("Error reading packet, initiating disconnect: %r", exc)
                await self._handle_disconnect("read error")
                return
            future = self._pending.pop(packet.id, None)
            if future is not None:
                log.debug("Received response packet: %r", packet)
                if not future.done():
                    future.set_result(packet)
                continue
            log.debug("Received unsolicited packet: %r", packet)
            event = PacketEvent(packet)
            for handler in list(self._handlers.get(packet.id, ())):
                self._spawn(self._run_handler(handler, event))

    async def _join_tasks(self, cancel: bool) -> None:
        current = asyncio.current_task()
        tasks, self._tasks = self._tasks, set()
        if current in tasks:
            tasks.discard(current)
            self._tasks.add(current)
        if cancel:
            for task in tasks:
                task.cancel()
        if not tasks:
            return
        done, pending = await asyncio.wait(tasks, timeout=self.task_join_timeout)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                log.warning("Task failed: %r", task.exception())
        if pending:
            log.warning(
                "Timed out waiting for tasks to complete after %s seconds",
                self.task_join_timeout,
            )
            for task in pending:
                task.cancel()

    async def _handle_disconnect(self, reason: str) -> None:
        if self._disconnected:
            return
        log.debug("Handling disconnect (reason: %s)", reason)
        self._disconnected = True
        await self._join_tasks(cancel=True)
        if self._disconnect_handler is not None:
            await _call(self._disconnect_handler)

    async def disconnect(self) -> None:
        """Stop all tasks and run the disconnect handler; later calls do nothing."""
        await self._handle_disconnect("explicit disconnect call")

    async def register_event_handler(self, packet_id: Any, handler: EventHandler) -> None:
        """Call `handler` with a PacketEvent for each unsolicited packet with this id."""
        self._handlers.setdefault(packet_id, []).append(handler)

    async def register_disconnect_handler(self, handler: DisconnectHandler) -> None:
        """Set the handler run after a disconnect; only the first one set is kept."""
        if self._disconnect_handler is None:
            self._disconnect_handler = handler

    async def send_packet(self, packet: Packet) -> None:
        """Send a packet; a failed send disconnects the client."""
        if self._disconnected:
            raise ClientNotConnectedError()
        try:
            await self._protocol.write(packet)
        except ProtocolError as exc:
            log.error("Failed to send packet: %r", exc)
            await self._handle_disconnect("send packet error")
            raise ClientError(f"Protocol error: {exc}") from exc

    async def send_and_receive(self, packet: Packet, response_packet: Any) -> Packet:
        """Send a packet and return the next packet with id `response_packet`.

        If none arrives within the client's timeout, the client disconnects
        and ClientTimeoutError is raised.
        """
        if self._disconnected:
            raise ClientNotConnectedError()
        future: asyncio.Future[Packet] = asyncio.get_running_loop().create_future()
        self._pending[response_packet] = future
        try:
            await self.send_packet(packet)
        except ClientError:
            if self._pending.get(response_packet) is future:
                del self._pending[response_packet]
            raise
        try:
            return await asyncio.wait_for(future, self.timeout)
        except TimeoutError as exc:
            if self._pending.get(response_packet) is future:
                del self._pending[response_packet]
            log.error("Expected packet response, but timed out after %s seconds", self.timeout)
            await self._handle_disconnect("timeout")
            raise ClientTimeoutError(self.timeout) from exc

    async def wait_for_tasks(self) -> None:
        """Wait for background tasks; those still running after the join timeout are cancelled."""
        await self._join_tasks(cancel=False)