"""URL normalization, link resolution and bounded navigation history."""

from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from fractal.core.constants import ALLOWED_URL_SCHEMES, MAX_URL_LENGTH
from fractal.core.errors import InvalidUrl
from fractal.services.prompt import PromptBuilder

NON_NAVIGABLE_PREFIXES = ("#", "mailto:", "tel:")

# "mailto:x", "javascript:..." but not "localhost:8080"
_BARE_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):(?!//|\d)")


def normalize_url(url: str) -> str:
    """Trim and add ``https://`` when no scheme is given.

    Raises:
        InvalidUrl: If the URL is empty, too long, or uses another scheme
    """
    candidate = url.strip()
    if not candidate:
        raise InvalidUrl(url, "URL is empty")
    if len(candidate) > MAX_URL_LENGTH:
        raise InvalidUrl(url, f"URL exceeds {MAX_URL_LENGTH} characters")

    bare_scheme = _BARE_SCHEME_RE.match(candidate)
    if bare_scheme:
        raise InvalidUrl(url, f"unsupported scheme {bare_scheme.group(1)!r}")
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parts = urlsplit(candidate)
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES:
        raise InvalidUrl(url, f"unsupported scheme {parts.scheme!r}")
    if not parts.netloc:
        raise InvalidUrl(url, "missing host")
    return candidate


def extract_domain(url: str) -> str:
    return PromptBuilder.extract_domain(url)


def resolve_link(href: str, current_url: str) -> str | None:
    """Turn a clicked link into the next URL to generate, or None.

    Relative links stay on the current site; fragments, ``mailto:`` and
    ``tel:`` links do not navigate.
    """
    href = href.strip()
    if not href or href.startswith(NON_NAVIGABLE_PREFIXES):
        return None
    if href.startswith(("http://", "https://")):
        return href

    domain = extract_domain(current_url)
    if href.startswith("/"):
        return f"https://{domain}{href}"
    return f"https://{domain}/{href}"


@dataclass(frozen=True)
class HistoryEntry:
    id: str  # noqa: A003
    url: str
    title: str
    timestamp: int  # ms since epoch

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "url": self.url, "title": self.title, "timestamp": self.timestamp}


class NavigationHistory:
    """Back/forward history with a fixed maximum length.

    Pushing while not at the newest entry discards the forward entries.
    """

    def __init__(self, max_entries: int = 100) -> None:
        self.max_entries = max_entries
        self._entries: list[HistoryEntry] = []
        self._index = -1

    def push(self, url: str) -> HistoryEntry:
        entry = HistoryEntry(
            id=secrets.token_hex(6),
            url=url,
            title=extract_domain(url),
            timestamp=int(time.time() * 1000),
        )

        del self._entries[self._index + 1 :]
        self._entries.append(entry)
        self._index = len(self._entries) - 1

        if len(self._entries) > self.max_entries:
            self._entries.pop(0)
            self._index -= 1
        return entry

    @property
    def current(self) -> HistoryEntry | None:
        if self._index < 0:
            return None
        return self._entries[self._index]

    @property
    def can_go_back(self) -> bool:
        return self._index > 0

    @property
    def can_go_forward(self) -> bool:
        return self._index < len(self._entries) - 1

    def back(self) -> HistoryEntry | None:
        if not self.can_go_back:
            return None
        self._index -= 1
        return self._entries[self._index]

    def forward(self) -> HistoryEntry | None:
        if not self.can_go_forward:
            return None
        self._index += 1
        return self._entries[self._index]

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)
