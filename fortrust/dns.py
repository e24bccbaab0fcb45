"""DNS-over-HTTPS resolver settings."""

from dataclasses import dataclass, field
from typing import ClassVar
from urllib.parse import urlsplit, urlunsplit

_BOOTSTRAP_HOSTS = {
    "cloudflare": ("1.1.1.1", "1.0.0.1"),
    "quad9": ("9.9.9.9", "149.112.112.112"),
    "google": ("8.8.8.8", "8.8.4.4"),
}


@dataclass(frozen=True)
class DohProvider:
    """A DoH service: one of the built-in providers or a custom endpoint."""

    name: str
    endpoint: str

    CLOUDFLARE: ClassVar["DohProvider"]
    QUAD9: ClassVar["DohProvider"]
    GOOGLE: ClassVar["DohProvider"]

    @classmethod
    def custom(cls, url: str) -> "DohProvider":
        """A provider at ``url``; raise ValueError if it is not an absolute URL."""
        parts = urlsplit(url.strip())
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"invalid DoH endpoint URL: {url!r}")
        path = parts.path or "/"
        endpoint = urlunsplit((parts.scheme.lower(), parts.netloc, path, parts.query, ""))
        return cls("custom", endpoint)

    @property
    def is_custom(self) -> bool:
        return self.name not in _BOOTSTRAP_HOSTS


DohProvider.CLOUDFLARE = DohProvider("cloudflare", "https://cloudflare-dns.com/dns-query")
DohProvider.QUAD9 = DohProvider("quad9", "https://dns.quad9.net/dns-query")
DohProvider.GOOGLE = DohProvider("google", "https://dns.google/dns-query")


@dataclass(frozen=True)
class DohResolverConfig:
    """A provider and the plain-IP hosts used to reach it."""

    provider: DohProvider
    bootstrap_hosts: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "bootstrap_hosts", _BOOTSTRAP_HOSTS.get(self.provider.name, ())
        )

    @classmethod
    def privacy_default(cls) -> "DohResolverConfig":
        return cls(DohProvider.CLOUDFLARE)

    @property
    def endpoint(self) -> str:
        return self.provider.endpoint