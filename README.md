# fortrust

Building blocks for a web browser, usable on their own. It is a library: it
has no command-line program.

## Modules

- `fortrust.dom`: `parse_html(html)` parses HTML with a spec-compliant tree
  builder into a `Document` holding a root `Node`, the `QuirksMode` and the
  parser's error messages. `Document.descendants()`, `Document.text_content()`
  and `Document.first_element_by_tag(tag)` walk the tree; `Node.as_element()`
  gives an `ElementData` whose `attr`, `set_attr` and `remove_attr` match
  attribute names without regard to ASCII case. Comments are kept as nodes but
  left out of text content. Input larger than 8 MiB (UTF-8) raises
  `InputTooLargeError`.
- `fortrust.bincode`: `encode(value, big_endian)` and `decode(cls, data,
  big_endian)` for dataclasses and `TaggedUnion` sum types, in the bincode 2
  standard layout with variable-length integers. Bad input raises
  `BincodeError`.
- `fortrust.codec`: frames with an 8-byte big-endian length header and a
  big-endian payload (`encode_frame`, `decode_payload`, `decode_message`,
  `read_raw_payload`, `FramedMessage`). Payloads over 64 MiB raise
  `MessageTooLargeError`.
- `fortrust.messages`: the message types `BrowserToRenderer`,
  `RendererToBrowser`, `NetProcessCommand`, `NetProcessEvent` and their
  payload types, plus `IpcMessage` with `to_bytes()` / `from_bytes()`
  (little-endian, unframed).
- `fortrust.channel`: asyncio channels. `create_ipc_pair()` returns two
  connected in-memory `IpcChannel`s; `create_tcp_endpoint(reader, writer)`
  wraps an asyncio stream pair in a `MessageSender` and `MessageReceiver`
  driven by background tasks. `MessageReceiver.recv_raw_timeout` raises
  `IpcTimeoutError`; a closed channel raises `ChannelClosedError`.
- `fortrust.event_loop`: `EventLoop` with timeouts and intervals (in seconds,
  on an injectable clock) and a `TaskQueue` of microtasks and macrotasks.
- `fortrust.hooks`: process-wide callbacks for title changes
  (`set_title_handler`, `notify_title_changed`) and dispatched events
  (`set_event_handler`, `notify_event`).
- `fortrust.cache`: `HttpCache` whose `lookup(url, now)` returns `CacheMiss`,
  `CacheFresh` or `CacheRevalidate` according to `Cache-Control` max-age,
  no-cache and must-revalidate; `CacheEntry.create` refuses no-store responses
  and non-cacheable statuses.
- `fortrust.dns`: DNS-over-HTTPS providers (`DohProvider.CLOUDFLARE`,
  `QUAD9`, `GOOGLE`, `DohProvider.custom(url)`) and `DohResolverConfig` with
  bootstrap hosts; `DohResolverConfig.privacy_default()` uses Cloudflare.
- `fortrust.transport`: `HttpxTransport`, an HTTPS-only GET transport with an
  8 s connect timeout, 20 s overall timeout and at most 8 redirects.
- `fortrust.fetch`: `NetworkResponse`, `FetchSource`, network errors, and the
  helpers `collect_body_limited`, `response_from_cache_entry` and
  `add_cache_validation_headers`.
- `fortrust.netproc`: `NetprocClient`, which sends `FetchUrl` commands to a
  separate network process over TCP and gathers the reply into a
  `NetworkResponse`.

## What it does not do

There is no JavaScript engine, no style or layout engine, and no network
client that applies privacy rules (tracker blocking, HTTPS upgrades, referrer
policy) itself. `NetprocClient` expects a network process that does this work
to be running already; no such process is included. Response headers are not
reported back by `NetprocClient`.

## Install

```
pip install fortrust
```

## Examples

```python
from fortrust.dom import parse_html

document = parse_html("<!doctype html><p>Hello <strong>world</p>")
print(document.text_content())          # Hello world
img = parse_html('<img src="/logo.png">').first_element_by_tag("img")
print(img.as_element().attr("SRC"))     # /logo.png
```

```python
import asyncio
from fortrust.channel import create_ipc_pair
from fortrust.messages import BrowserToRenderer

async def main():
    browser, renderer = create_ipc_pair()
    await browser.sender.send(BrowserToRenderer.Navigate(url="https://example.com/"))
    print(await renderer.receiver.recv(BrowserToRenderer))

asyncio.run(main())
```

## Tests

```
pip install "fortrust[test]"
pytest
```