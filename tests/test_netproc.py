import asyncio
import socket

import pytest

from fortrust.channel import create_ipc_pair, create_tcp_endpoint
from fortrust.fetch import FetchSource, InvalidEffectiveUrlError, NetworkTransportError
from fortrust.messages import NetProcessCommand, NetProcessEvent
from fortrust.netproc import NetprocClient, ResourceType


def _client_and_server():
    client_side, server_side = create_ipc_pair()
    client = NetprocClient(client_side.sender, client_side.receiver)
    return client, server_side


async def _serve_one(channel, reply):
    command = await channel.receiver.recv(NetProcessCommand)
    for event in reply(command):
        await channel.sender.send(event)
    return command


def _ok(body_chunks, status=200, source="Network"):
    def reply(command):
        events = [
            NetProcessEvent.ResponseBody(request_id=command.request_id, chunk=chunk, last=False)
            for chunk in body_chunks
        ]
        events.append(
            NetProcessEvent.RequestComplete(
                request_id=command.request_id,
                status=status,
                total_bytes=sum(len(c) for c in body_chunks),
                source=source,
            )
        )
        return events

    return reply


@pytest.mark.asyncio
async def test_fetch_sends_get_command_and_collects_body():
    client, server = _client_and_server()
    response, command = await asyncio.gather(
        client.fetch("https://example.com/", ResourceType.DOCUMENT, "https://example.com"),
        _serve_one(server, _ok([b"stream-", b"body"])),
    )
    assert isinstance(command, NetProcessCommand.FetchUrl)
    assert command.request_id == 1
    assert command.method == "GET"
    assert command.resource_type == "document"
    assert command.headers == []
    assert command.top_level_url == "https://example.com"
    assert response.body == b"stream-body"
    assert response.status == 200
    assert response.source is FetchSource.NETWORK
    assert response.url == "https://example.com/"
    assert len(response.headers) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "resource_type, wire",
    [
        (ResourceType.SCRIPT, "script"),
        (ResourceType.STYLESHEET, "stylesheet"),
        (ResourceType.XHR, "xhr"),
        (ResourceType.OTHER, "other"),
    ],
)
async def test_resource_type_wire_names(resource_type, wire):
    client, server = _client_and_server()
    _, command = await asyncio.gather(
        client.fetch("https://example.com/app.js", resource_type),
        _serve_one(server, _ok([])),
    )
    assert command.resource_type == wire
    assert command.top_level_url is None


@pytest.mark.asyncio
async def test_request_ids_increase_per_fetch():
    client, server = _client_and_server()
    _, first = await asyncio.gather(
        client.fetch("https://example.com/a"), _serve_one(server, _ok([b"a"]))
    )
    _, second = await asyncio.gather(
        client.fetch("https://example.com/b"), _serve_one(server, _ok([b"b"]))
    )
    assert second.request_id == first.request_id + 1


@pytest.mark.asyncio
async def test_events_for_other_requests_are_ignored():
    client, server = _client_and_server()

    def reply(command):
        other = command.request_id + 100
        return [
            NetProcessEvent.ResponseBody(request_id=other, chunk=b"noise", last=True),
            NetProcessEvent.RequestFailed(request_id=other, error="other failed"),
            NetProcessEvent.CacheHit(request_id=command.request_id, cached_bytes=4),
            NetProcessEvent.ResponseBody(request_id=command.request_id, chunk=b"mine", last=True),
            NetProcessEvent.RequestComplete(
                request_id=command.request_id, status=404, total_bytes=4, source="Network"
            ),
        ]

    response, _ = await asyncio.gather(
        client.fetch("https://example.com/x"), _serve_one(server, reply)
    )
    assert response.body == b"mine"
    assert response.status == 404


@pytest.mark.asyncio
async def test_request_failed_raises_transport_error():
    client, server = _client_and_server()

    def reply(command):
        return [NetProcessEvent.RequestFailed(request_id=command.request_id, error="boom")]

    with pytest.raises(NetworkTransportError, match="boom"):
        await asyncio.gather(client.fetch("https://example.com/"), _serve_one(server, reply))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "source, expected",
    [
        ("Cache", FetchSource.CACHE),
        ("RevalidatedCache", FetchSource.CACHE),
        ("Revalidated", FetchSource.REVALIDATED_CACHE),
        ("Network", FetchSource.NETWORK),
    ],
)
async def test_completion_source_mapping(source, expected):
    client, server = _client_and_server()
    response, _ = await asyncio.gather(
        client.fetch("https://example.com/"), _serve_one(server, _ok([b"x"], source=source))
    )
    assert response.source is expected


@pytest.mark.asyncio
async def test_invalid_url_is_reported_on_completion():
    client, server = _client_and_server()
    with pytest.raises(InvalidEffectiveUrlError):
        await asyncio.gather(client.fetch("not a url"), _serve_one(server, _ok([])))


@pytest.mark.asyncio
async def test_closed_channel_raises_transport_error():
    client, server = _client_and_server()
    await server.sender.close()
    with pytest.raises(NetworkTransportError, match="netproc recv"):
        await client.fetch("https://example.com/")


@pytest.mark.asyncio
async def test_send_after_close_raises_transport_error():
    client, _server = _client_and_server()
    await client.close()
    with pytest.raises(NetworkTransportError, match="netproc send"):
        await client.fetch("https://example.com/")


@pytest.mark.asyncio
async def test_fetch_over_tcp():
    received = []

    async def handle(reader, writer):
        sender, receiver = create_tcp_endpoint(reader, writer)
        command = await receiver.recv(NetProcessCommand)
        received.append(command)
        await sender.send(
            NetProcessEvent.ResponseBody(request_id=command.request_id, chunk=b"cached", last=True)
        )
        await sender.send(
            NetProcessEvent.RequestComplete(
                request_id=command.request_id, status=200, total_bytes=6, source="Cache"
            )
        )
        await sender.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        client = await NetprocClient.connect("127.0.0.1", port)
        response = await asyncio.wait_for(
            client.fetch("https://example.com/app.css", ResourceType.STYLESHEET), 5
        )
        await client.close()
    finally:
        server.close()
    assert response.body == b"cached"
    assert response.source is FetchSource.CACHE
    assert received[0].url == "https://example.com/app.css"
    assert received[0].resource_type == "stylesheet"


@pytest.mark.asyncio
async def test_connect_refused_raises_transport_error():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(NetworkTransportError, match="netproc connect"):
        await NetprocClient.connect("127.0.0.1", port)