"""Framed message channels between processes, over in-memory queues or TCP streams."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from .codec import CodecError, HEADER_SIZE, decode_payload, encode_frame, read_raw_payload

CHANNEL_CAPACITY = 64
_READ_CHUNK = 4096
_CLOSED = None

_log = logging.getLogger(__name__)
_background_tasks: set = set()


class IpcError(Exception):
    """Base error for inter-process channels."""


class ChannelClosedError(IpcError):
    def __init__(self) -> None:
        super().__init__("Channel closed")


class IpcTimeoutError(IpcError):
    def __init__(self) -> None:
        super().__init__("Timeout")


class _Pipe:
    """A bounded queue of byte chunks with an end-of-stream marker."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue = asyncio.Queue(CHANNEL_CAPACITY)
        self.closed = False


class MessageSender:
    """Writing end of a channel; messages are sent as length-prefixed frames."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe

    async def send(self, message: Any) -> None:
        """Encode a message as a frame and queue it."""
        try:
            data = encode_frame(message)
        except CodecError as error:
            raise IpcError(f"Codec error: {error}") from error
        await self.send_raw(data)
        _log.debug("Sent %s message", type(message).__qualname__)

    async def send_raw(self, data: bytes) -> None:
        """Queue bytes as they are, without framing them."""
        if self._pipe.closed:
            raise IpcError("Send error: channel closed")
        await self._pipe.queue.put(bytes(data))

    async def close(self) -> None:
        """Signal end of stream; the receiving end reports the channel closed."""
        if not self._pipe.closed:
            self._pipe.closed = True
            await self._pipe.queue.put(_CLOSED)


class MessageReceiver:
    """Reading end of a channel; reassembles frames from arbitrary chunks."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe
        self._buffer = bytearray()
        self._lock = asyncio.Lock()
        self._exhausted = False

    async def recv(self, cls: Any) -> Any:
        """Receive the next frame and decode it as ``cls``."""
        payload = await self.recv_raw()
        try:
            return decode_payload(cls, payload)
        except CodecError as error:
            raise IpcError(f"Codec error: {error}") from error

    async def recv_raw(self) -> bytes:
        """Receive the payload of the next complete frame."""
        async with self._lock:
            while True:
                try:
                    payload = read_raw_payload(self._buffer)
                except CodecError as error:
                    raise IpcError(f"Codec error: {error}") from error
                if payload is not None:
                    return payload
                if self._exhausted:
                    raise ChannelClosedError()
                chunk = await self._pipe.queue.get()
                if chunk is _CLOSED:
                    self._exhausted = True
                    raise ChannelClosedError()
                self._buffer += chunk

    async def recv_raw_timeout(self, timeout: float) -> bytes:
        """Like recv_raw, raising IpcTimeoutError after ``timeout`` seconds."""
        try:
            return await asyncio.wait_for(self.recv_raw(), timeout)
        except asyncio.TimeoutError as error:
            raise IpcTimeoutError() from error


@dataclass
class IpcChannel:
    """One endpoint of a bidirectional channel."""

    sender: MessageSender
    receiver: MessageReceiver

    def split(self) -> tuple[MessageSender, MessageReceiver]:
        return self.sender, self.receiver


def create_ipc_pair() -> tuple[IpcChannel, IpcChannel]:
    """Two connected in-memory endpoints: what one sends the other receives."""
    first, second = _Pipe(), _Pipe()
    channel_a = IpcChannel(MessageSender(first), MessageReceiver(second))
    channel_b = IpcChannel(MessageSender(second), MessageReceiver(first))
    return channel_a, channel_b


def _spawn(coro: Any) -> None:
    task = asyncio.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


async def _pump_socket_to_pipe(reader: asyncio.StreamReader, incoming: _Pipe) -> None:
    buffer = bytearray()
    while True:
        try:
            data = await reader.read(_READ_CHUNK)
        except OSError as error:
            _log.debug("tcp_endpoint: reader error: %s", error)
            break
        if not data:
            _log.debug("tcp_endpoint: reader EOF")
            break
        buffer += data
        while True:
            try:
                payload = read_raw_payload(buffer)
            except CodecError as error:
                _log.debug("tcp_endpoint: payload read error: %s", error)
                break
            if payload is None:
                break
            await incoming.queue.put(len(payload).to_bytes(HEADER_SIZE, "big") + payload)
    incoming.closed = True
    await incoming.queue.put(_CLOSED)


async def _pump_pipe_to_socket(outgoing: _Pipe, writer: asyncio.StreamWriter) -> None:
    while True:
        chunk = await outgoing.queue.get()
        if chunk is _CLOSED:
            break
        try:
            writer.write(chunk)
            await writer.drain()
        except OSError as error:
            _log.debug("tcp_endpoint: writer error: %s", error)
            break
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    _log.debug("tcp_endpoint: writer exiting")


def create_tcp_endpoint(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter
) -> tuple[MessageSender, MessageReceiver]:
    """Wrap a stream pair into a sender and receiver driven by background tasks.

    Must be called from a running event loop. Closing the sender closes the
    connection once queued frames are written.
    """
    outgoing, incoming = _Pipe(), _Pipe()
    _spawn(_pump_socket_to_pipe(reader, incoming))
    _spawn(_pump_pipe_to_socket(outgoing, writer))
    return MessageSender(outgoing), MessageReceiver(incoming)