"""HTTP transports that send GET requests and stream response bodies."""

import abc
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

import httpx

USER_AGENT = "Fortrust/0.1 Trust Engine"
CONNECT_TIMEOUT = 8.0
REQUEST_TIMEOUT = 20.0
MAX_REDIRECTS = 8


class TransportError(Exception):
    """Base error for HTTP transports."""


class BuilderError(TransportError):
    """The transport could not be configured."""


class RequestError(TransportError):
    """A request failed or was refused."""


@dataclass
class TransportRequest:
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    def __post_init__(self) -> None:
        self.headers = httpx.Headers(self.headers)


@dataclass
class TransportResponse:
    status: int
    headers: httpx.Headers
    body: bytes


@dataclass
class TransportStreamResponse:
    status: int
    headers: httpx.Headers
    body: AsyncIterator[bytes]


class HttpTransport(abc.ABC):
    """Sends GET requests."""

    @abc.abstractmethod
    async def send(self, request: TransportRequest) -> TransportResponse:
        """Send a request and read the whole body."""

    @abc.abstractmethod
    async def send_stream(self, request: TransportRequest) -> TransportStreamResponse:
        """Send a request and return the body as a stream of chunks."""


async def _require_https(request: httpx.Request) -> None:
    if request.url.scheme != "https":
        raise RequestError(f"refusing non-HTTPS request to {request.url}")


async def _stream_body(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.HTTPError as error:
        raise RequestError(str(error)) from error
    finally:
        await response.aclose()


class HttpxTransport(HttpTransport):
    """HTTPS-only transport with fixed timeouts, user agent and redirect limit."""

    def __init__(self, transport: Optional[Any] = None) -> None:
        try:
            self._client = httpx.AsyncClient(
                transport=transport,
                timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT),
                headers={"user-agent": USER_AGENT},
                follow_redirects=True,
                max_redirects=MAX_REDIRECTS,
                event_hooks={"request": [_require_https]},
            )
        except (httpx.HTTPError, ValueError, OSError) as error:
            raise BuilderError(str(error)) from error

    async def send(self, request: TransportRequest) -> TransportResponse:
        response = await self.send_stream(request)
        body = bytearray()
        async for chunk in response.body:
            body += chunk
        return TransportResponse(response.status, response.headers, bytes(body))

    async def send_stream(self, request: TransportRequest) -> TransportStreamResponse:
        try:
            outgoing = self._client.build_request("GET", request.url, headers=request.headers)
            response = await self._client.send(outgoing, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as error:
            raise RequestError(str(error)) from error
        return TransportStreamResponse(
            status=response.status_code,
            headers=httpx.Headers(response.headers),
            body=_stream_body(response),
        )

    async def aclose(self) -> None:
        await self._client.aclose()