"""Client that routes fetches through a separate network process over a framed TCP channel."""

import asyncio
import enum
import itertools
import logging
import re
from typing import Optional, Union
from urllib.parse import urlsplit, urlunsplit

import httpx

from .channel import IpcError, MessageReceiver, MessageSender, create_tcp_endpoint
from .fetch import (
    FetchSource,
    InvalidEffectiveUrlError,
    NetworkResponse,
    NetworkTransportError,
)
from .messages import NetProcessCommand, NetProcessEvent

_log = logging.getLogger(__name__)

_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file"})


class ResourceType(enum.Enum):
    """Kind of resource being requested; the value is its name on the wire."""

    DOCUMENT = "document"
    SCRIPT = "script"
    IMAGE = "image"
    STYLESHEET = "stylesheet"
    XHR = "xhr"
    MEDIA = "media"
    FONT = "font"
    OTHER = "other"


def _parse_url(url: str) -> str:
    try:
        parts = urlsplit(url.strip())
    except ValueError as error:
        raise InvalidEffectiveUrlError() from error
    if not parts.scheme or not _SCHEME.fullmatch(parts.scheme):
        raise InvalidEffectiveUrlError()
    scheme = parts.scheme.lower()
    path = parts.path
    if scheme in _SPECIAL_SCHEMES:
        if not parts.netloc and scheme != "file":
            raise InvalidEffectiveUrlError()
        path = path or "/"
    return urlunsplit((scheme, parts.netloc, path, parts.query, parts.fragment))


def _fetch_source(source: str) -> FetchSource:
    if "Cache" in source:
        return FetchSource.CACHE
    if "Revalidated" in source:
        return FetchSource.REVALIDATED_CACHE
    return FetchSource.NETWORK


class NetprocClient:
    """Sends fetch commands to a network process and gathers its replies.

    The network process does the privacy checks, cache lookup and transport;
    response headers are not reported back and the response URL is the
    requested one.
    """

    def __init__(self, sender: MessageSender, receiver: MessageReceiver) -> None:
        self._sender = sender
        self._receiver = receiver
        self._ids = itertools.count(1)

    @classmethod
    async def connect(cls, host: str, port: int) -> "NetprocClient":
        """Connect to a running network process at ``host:port``."""
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as error:
            raise NetworkTransportError(f"netproc connect: {error}") from error
        sender, receiver = create_tcp_endpoint(reader, writer)
        return cls(sender, receiver)

    async def fetch(
        self,
        url: str,
        resource_type: Union[ResourceType, str] = ResourceType.DOCUMENT,
        top_level_url: Optional[str] = None,
    ) -> NetworkResponse:
        """Fetch ``url`` through the network process and buffer the body."""
        request_id = next(self._ids)
        command = NetProcessCommand.FetchUrl(
            request_id=request_id,
            url=url,
            headers=[],
            method="GET",
            resource_type=ResourceType(resource_type).value,
            top_level_url=top_level_url,
        )
        try:
            await self._sender.send(command)
        except IpcError as error:
            raise NetworkTransportError(f"netproc send: {error}") from error

        body = bytearray()
        while True:
            try:
                event = await self._receiver.recv(NetProcessEvent)
            except IpcError as error:
                raise NetworkTransportError(f"netproc recv: {error}") from error

            if getattr(event, "request_id", None) != request_id:
                continue
            if isinstance(event, NetProcessEvent.ResponseBody):
                body += event.chunk
            elif isinstance(event, NetProcessEvent.RequestComplete):
                return NetworkResponse(
                    url=_parse_url(url),
                    status=event.status,
                    headers=httpx.Headers(),
                    body=bytes(body),
                    source=_fetch_source(event.source),
                )
            elif isinstance(event, NetProcessEvent.RequestFailed):
                raise NetworkTransportError(event.error)
            else:
                _log.debug("netproc: ignoring %s", type(event).__name__)

    async def close(self) -> None:
        """Close the outgoing side of the connection."""
        await self._sender.close()