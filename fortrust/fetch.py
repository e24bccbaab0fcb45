"""Responses, errors and helpers shared by network clients."""

import enum
from dataclasses import dataclass
from typing import AsyncIterable, Optional

import httpx

from .cache import CacheDecision, CacheEntry, CacheRevalidate
from .transport import TransportError


class FetchSource(enum.Enum):
    CACHE = "Cache"
    NETWORK = "Network"
    REVALIDATED_CACHE = "RevalidatedCache"


class NetworkError(Exception):
    """Base error for fetching resources."""


class InvalidEffectiveUrlError(NetworkError):
    def __init__(self) -> None:
        super().__init__("invalid effective URL")


class BodyTooLargeError(NetworkError):
    def __init__(self, limit_bytes: int) -> None:
        super().__init__(f"response body exceeds {limit_bytes} bytes")
        self.limit_bytes = limit_bytes


class NetworkTransportError(NetworkError):
    """The transport failed to deliver a response."""


@dataclass
class NetworkResponse:
    url: str
    status: int
    headers: httpx.Headers
    body: bytes
    source: FetchSource


def _valid_header_value(value: str) -> bool:
    return all(c == "\t" or (ord(c) >= 0x20 and c != "\x7f") for c in value)


def _with_header(headers: httpx.Headers, name: str, value: Optional[str]) -> None:
    if value is not None and _valid_header_value(value):
        headers[name] = value


async def collect_body_limited(body: AsyncIterable[bytes], limit_bytes: int) -> bytes:
    """Join a streamed body, raising BodyTooLargeError past ``limit_bytes``."""
    merged = bytearray()
    try:
        async for chunk in body:
            if len(merged) + len(chunk) > limit_bytes:
                raise BodyTooLargeError(limit_bytes)
            merged += chunk
    except TransportError as error:
        raise NetworkTransportError(str(error)) from error
    return bytes(merged)


def response_from_cache_entry(
    url: str, entry: CacheEntry, source: FetchSource
) -> NetworkResponse:
    """Build a response from a stored entry, restoring its caching headers."""
    headers = httpx.Headers()
    _with_header(headers, "etag", entry.headers.etag)
    _with_header(headers, "last-modified", entry.headers.last_modified)
    _with_header(headers, "cache-control", entry.headers.cache_control)
    _with_header(headers, "vary", entry.headers.vary)
    return NetworkResponse(url, entry.status, headers, entry.body, source)


def add_cache_validation_headers(
    headers: httpx.Headers, decision: CacheDecision
) -> httpx.Headers:
    """Copy of ``headers`` with conditional headers added for a revalidation."""
    result = httpx.Headers(headers)
    if isinstance(decision, CacheRevalidate):
        _with_header(result, "if-none-match", decision.validation.if_none_match)
        _with_header(result, "if-modified-since", decision.validation.if_modified_since)
    return result