"""Messages exchanged between the browser, renderer and network processes."""

from dataclasses import dataclass
from typing import Optional

from .bincode import F32, F64, U8, U16, U32, U64, TaggedUnion, decode, encode

_Headers = list[tuple[str, str]]


@dataclass
class KeyEvent:
    key: str
    code: str
    ctrl: bool
    alt: bool
    shift: bool
    meta: bool


@dataclass
class MouseEvent:
    x: F64
    y: F64
    button: U8
    buttons: U8
    ctrl: bool
    alt: bool
    shift: bool
    meta: bool


@dataclass
class Modifiers:
    ctrl: bool
    alt: bool
    shift: bool
    meta: bool


class PrivacyEvent(TaggedUnion):
    """A privacy protection applied while loading a page."""


PrivacyEvent.variant("AdBlocked", url=str)
PrivacyEvent.variant("TrackerBlocked", url=str)
PrivacyEvent.variant("HttpsUpgraded", url=str, effective_url=str)
PrivacyEvent.variant("FingerprintAttemptBlocked", api=str)
PrivacyEvent.variant("ThirdPartyCookieBlocked", url=str, cookie_name=str)


class LoadState(TaggedUnion):
    """Stage of a page load."""


LoadState.variant("Loading")
LoadState.variant("Parsing")
LoadState.variant("Layout")
LoadState.variant("Painting")
LoadState.variant("Loaded")
LoadState.variant("Error", message=str)


class BrowserToRenderer(TaggedUnion):
    """Commands sent from the browser to a renderer."""


BrowserToRenderer.variant("Navigate", url=str)
BrowserToRenderer.variant("GoBack")
BrowserToRenderer.variant("GoForward")
BrowserToRenderer.variant("Reload")
BrowserToRenderer.variant("Stop")
BrowserToRenderer.variant("ExecuteScript", js=str)
BrowserToRenderer.variant("KeyEvent", event=KeyEvent)
BrowserToRenderer.variant("MouseEvent", event=MouseEvent)
BrowserToRenderer.variant("Resize", width=U32, height=U32)
BrowserToRenderer.variant("ZoomChange", factor=F32)
BrowserToRenderer.variant("ScrollTo", x=F64, y=F64)
BrowserToRenderer.variant(
    "SetPrivacySettings", block_ads=bool, block_trackers=bool, https_only=bool
)
BrowserToRenderer.variant("Shutdown")


class RendererToBrowser(TaggedUnion):
    """Notifications sent from a renderer to the browser."""


RendererToBrowser.variant("TitleChanged", title=str)
RendererToBrowser.variant("UrlChanged", url=str)
RendererToBrowser.variant("FaviconUpdated", data=bytes)
RendererToBrowser.variant("LoadProgress", percent=F32, state=LoadState)
RendererToBrowser.variant("LoadComplete")
RendererToBrowser.variant(
    "FrameReady", texture_data=bytes, width=U32, height=U32, stride=U32
)
RendererToBrowser.variant("PrivacyEvent", event=PrivacyEvent)
RendererToBrowser.variant("Alert", message=str)
RendererToBrowser.variant("ConsoleMessage", level=str, message=str)
RendererToBrowser.variant("NewTabRequested", url=str)
RendererToBrowser.variant("DownloadRequested", url=str, filename=str, mime_type=str)
RendererToBrowser.variant("NavigationStart", url=str)
RendererToBrowser.variant("NavigationError", url=str, error=str)
RendererToBrowser.variant("DocumentTitleChanged", title=str)
RendererToBrowser.variant("DomEvent", origin=str, name=str, detail=str)
RendererToBrowser.variant("ScrollPosition", x=F64, y=F64)
RendererToBrowser.variant("RendererCrashed", reason=str)
RendererToBrowser.variant("MemoryUsage", used_mb=U32, heap_mb=U32)
RendererToBrowser.variant("ShutdownAck")


class NetProcessCommand(TaggedUnion):
    """Requests sent to the network process."""


NetProcessCommand.variant(
    "FetchUrl",
    request_id=U64,
    url=str,
    headers=_Headers,
    method=str,
    resource_type=str,
    top_level_url=Optional[str],
)
NetProcessCommand.variant("FetchStream", request_id=U64, url=str, headers=_Headers)
NetProcessCommand.variant("CancelRequest", request_id=U64)
NetProcessCommand.variant("SetDohProvider", provider=str)
NetProcessCommand.variant("ClearCache")
NetProcessCommand.variant("PrefetchUrls", urls=list[str])
NetProcessCommand.variant("Shutdown")


class NetProcessEvent(TaggedUnion):
    """Events reported by the network process."""


NetProcessEvent.variant("ResponseHeaders", request_id=U64, status=U16, headers=_Headers)
NetProcessEvent.variant("ResponseBody", request_id=U64, chunk=bytes, last=bool)
NetProcessEvent.variant(
    "RequestComplete", request_id=U64, status=U16, total_bytes=U64, source=str
)
NetProcessEvent.variant("RequestFailed", request_id=U64, error=str)
NetProcessEvent.variant("RequestBlocked", request_id=U64, reason=str, original_url=str)
NetProcessEvent.variant("CacheHit", request_id=U64, cached_bytes=U64)
NetProcessEvent.variant("ShutdownAck")


class IpcMessage(TaggedUnion):
    """General inter-process messages, encoded little-endian without framing."""

    def to_bytes(self) -> bytes:
        return encode(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> "IpcMessage":
        return decode(cls, data)


IpcMessage.variant("NavigateRequest", tab_id=U64, url=str)
IpcMessage.variant("ResourceResponse", request_id=U64, status=U16, body=bytes)
IpcMessage.variant("PaintFrame", tab_id=U64, frame_id=U64, payload=bytes)
IpcMessage.variant("TabUpdate", tab_id=U64, title=Optional[str], url=Optional[str])
IpcMessage.variant("SecurityInfo", tab_id=U64, secure=bool)