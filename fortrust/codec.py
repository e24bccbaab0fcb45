"""Length-prefixed framing of big-endian bincode messages."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .bincode import BincodeError, decode, encode

MAX_MESSAGE_SIZE = 64 * 1024 * 1024
HEADER_SIZE = 8

_log = logging.getLogger(__name__)


class CodecError(Exception):
    """Base error for message framing."""


class SerializationError(CodecError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Serialization error: {detail}")


class DeserializationError(CodecError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Deserialization error: {detail}")


class MessageTooLargeError(CodecError):
    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(f"Message too large: {size} bytes (max: {max_size})")
        self.size = size
        self.max_size = max_size


def encode_frame(message: Any) -> bytes:
    """Encode a message and prefix it with its 8-byte big-endian length."""
    try:
        payload = encode(message, big_endian=True)
    except BincodeError as error:
        _log.warning("Failed to encode message: %s", error)
        raise SerializationError(str(error)) from error
    if len(payload) > MAX_MESSAGE_SIZE:
        raise MessageTooLargeError(len(payload), MAX_MESSAGE_SIZE)
    _log.debug("Encoded message: %d bytes payload", len(payload))
    return len(payload).to_bytes(HEADER_SIZE, "big") + payload


def decode_payload(cls: Any, data: bytes) -> Any:
    """Decode an unframed payload as ``cls``."""
    try:
        return decode(cls, data, big_endian=True)
    except BincodeError as error:
        _log.warning("Failed to decode message: %s", error)
        raise DeserializationError(str(error)) from error


def _complete_frame_length(buffer: bytearray) -> Optional[int]:
    if len(buffer) < HEADER_SIZE:
        return None
    payload_len = int.from_bytes(buffer[:HEADER_SIZE], "big")
    if payload_len > MAX_MESSAGE_SIZE:
        raise MessageTooLargeError(payload_len, MAX_MESSAGE_SIZE)
    total = HEADER_SIZE + payload_len
    return total if len(buffer) >= total else None


def decode_message(cls: Any, buffer: bytearray) -> Optional[tuple[Any, int]]:
    """Decode and consume one complete frame from ``buffer``.

    Returns the message and the frame length, or None while the frame is
    incomplete. The buffer is left untouched when decoding fails.
    """
    total = _complete_frame_length(buffer)
    if total is None:
        return None
    message = decode_payload(cls, bytes(buffer[HEADER_SIZE:total]))
    del buffer[:total]
    return message, total


def read_raw_payload(buffer: bytearray) -> Optional[bytes]:
    """Consume one complete frame from ``buffer`` and return its payload."""
    total = _complete_frame_length(buffer)
    if total is None:
        return None
    payload = bytes(buffer[HEADER_SIZE:total])
    del buffer[:total]
    return payload


@dataclass(frozen=True)
class FramedMessage:
    """An encoded frame ready to be written."""

    data: bytes

    @classmethod
    def from_message(cls, message: Any) -> "FramedMessage":
        return cls(encode_frame(message))

    def into_bytes(self) -> bytes:
        return self.data