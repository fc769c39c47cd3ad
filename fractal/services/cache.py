"""In-memory response cache for blocking generations.

Eviction is strictly by insertion order: when the cache is full the entry
inserted earliest goes, however recently it was read.
"""

from __future__ import annotations

import json
import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any

from fractal.models import GenerationOptions, GenerationResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 100


def _canonical_options(options: GenerationOptions | Mapping[str, Any] | None) -> str:
    if options is None:
        data: dict[str, Any] = {}
    elif isinstance(options, GenerationOptions):
        data = options.to_dict()
    else:
        data = {k: v for k, v in options.items() if v is not None}
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


class ResponseCache:
    """Bounded key -> GenerationResponse store."""

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: OrderedDict[str, GenerationResponse] = OrderedDict()

    @staticmethod
    def key(
        url: str,
        provider_id: str,
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Deterministic fingerprint of (url, provider, options)."""
        return f"{url}:{provider_id}:{_canonical_options(options)}"

    def get(self, key: str) -> GenerationResponse | None:
        # Reads never reorder entries
        response = self._entries.get(key)
        if response is None:
            logger.debug(f"Cache miss: {key}")
        else:
            logger.debug(f"Cache hit: {key}")
        return response

    def put(self, key: str, response: GenerationResponse) -> None:
        if key in self._entries:
            self._entries[key] = response
            return

        if len(self._entries) >= self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full ({self.max_size}), evicted oldest entry: {evicted}")

        self._entries[key] = response

    def has(self, key: str) -> bool:
        return key in self._entries

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("Response cache cleared")

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        """Keys from oldest to newest insertion."""
        return list(self._entries)

    def is_full(self) -> bool:
        return len(self._entries) >= self.max_size

    def stats(self) -> dict[str, int]:
        return {"size": len(self._entries), "maxSize": self.max_size}
