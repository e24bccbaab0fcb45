"""In-memory HTTP response cache with freshness and revalidation rules."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterator, Mapping, Optional, Union

_CACHEABLE_STATUSES = frozenset(
    {200, 203, 204, 206, 300, 301, 404, 405, 410, 414, 501}
)
_UNSIGNED = re.compile(r"\+?[0-9]+")
_MAX_SECONDS = int(timedelta.max.total_seconds())


def _header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """First value of a header, matched without regard to case."""
    return next(
        (value for key, value in headers.items() if key.lower() == name), None
    )


def _cache_control_tokens(value: Optional[str]) -> Iterator[str]:
    if value is None:
        return iter(())
    return (token.strip() for token in value.split(","))


@dataclass(frozen=True)
class CacheHeaders:
    """Response headers that govern caching."""

    etag: Optional[str] = None
    last_modified: Optional[str] = None
    cache_control: Optional[str] = None
    vary: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "CacheHeaders":
        return cls(
            etag=_header_value(headers, "etag"),
            last_modified=_header_value(headers, "last-modified"),
            cache_control=_header_value(headers, "cache-control"),
            vary=_header_value(headers, "vary"),
        )

    def is_no_store(self) -> bool:
        return any(
            token.lower() == "no-store"
            for token in _cache_control_tokens(self.cache_control)
        )

    def requires_validation(self) -> bool:
        return any(
            token.lower() in ("no-cache", "must-revalidate")
            for token in _cache_control_tokens(self.cache_control)
        )

    def max_age(self) -> Optional[timedelta]:
        """The first valid ``max-age`` directive, if any."""
        for token in _cache_control_tokens(self.cache_control):
            name, sep, value = token.partition("=")
            if not sep or name.strip().lower() != "max-age":
                continue
            value = value.strip().strip('"')
            if not _UNSIGNED.fullmatch(value):
                continue
            seconds = int(value)
            if seconds >= 1 << 64:
                continue
            return timedelta(seconds=min(seconds, _MAX_SECONDS))
        return None


@dataclass(frozen=True)
class ValidationHeaders:
    """Conditional request headers for revalidating a stored response."""

    if_none_match: Optional[str] = None
    if_modified_since: Optional[str] = None

    def is_empty(self) -> bool:
        return self.if_none_match is None and self.if_modified_since is None


@dataclass(frozen=True)
class CacheEntry:
    """A stored response."""

    url: str
    status: int
    headers: CacheHeaders
    body: bytes
    stored_at: datetime

    @classmethod
    def create(
        cls,
        url: str,
        status: int,
        headers: CacheHeaders,
        body: bytes,
        stored_at: datetime,
    ) -> Optional["CacheEntry"]:
        """An entry for a cacheable response, or None when it may not be stored."""
        if status not in _CACHEABLE_STATUSES or headers.is_no_store():
            return None
        return cls(url, status, headers, bytes(body), stored_at)

    def is_fresh(self, now: datetime) -> bool:
        if self.headers.requires_validation():
            return False
        max_age = self.headers.max_age()
        if max_age is None:
            return False
        age = now - self.stored_at
        return timedelta(0) <= age < max_age

    def validation_headers(self) -> ValidationHeaders:
        return ValidationHeaders(
            if_none_match=self.headers.etag,
            if_modified_since=self.headers.last_modified,
        )


@dataclass(frozen=True)
class CacheMiss:
    """Nothing is stored for the URL."""


@dataclass(frozen=True)
class CacheFresh:
    """A stored response may be served as is."""

    entry: CacheEntry


@dataclass(frozen=True)
class CacheRevalidate:
    """A stored response must be confirmed with the origin first."""

    entry: CacheEntry
    validation: ValidationHeaders


CacheDecision = Union[CacheMiss, CacheFresh, CacheRevalidate]


@dataclass
class HttpCache:
    """Stored responses keyed by URL."""

    _entries: list = field(default_factory=list)

    def lookup(self, url: str, now: datetime) -> CacheDecision:
        entry = next((e for e in self._entries if e.url == url), None)
        if entry is None:
            return CacheMiss()
        if entry.is_fresh(now):
            return CacheFresh(entry)
        return CacheRevalidate(entry, entry.validation_headers())

    def store(self, entry: CacheEntry) -> None:
        """Store an entry, replacing any entry for the same URL."""
        for index, stored in enumerate(self._entries):
            if stored.url == entry.url:
                self._entries[index] = entry
                return
        self._entries.append(entry)

    def __len__(self) -> int:
        return len(self._entries)