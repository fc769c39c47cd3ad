"""Backend credential loading from environment variables."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from fractal.core.constants import BACKENDS


@dataclass(frozen=True)
class BackendCredentials:
    """Credential plus optional overrides read for one backend."""

    api_key: str
    model: str | None = None
    base_url: str | None = None


class CredentialLoader:
    """Reads ``{PREFIX}_API_KEY`` / ``_MODEL`` / ``_BASE_URL`` for each backend.

    Only backends with a non-blank API key appear in the result.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ
        self._logger = logging.getLogger(__name__)

    def _read(self, name: str) -> str | None:
        value = self._environ.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def load(self) -> dict[str, BackendCredentials]:
        credentials: dict[str, BackendCredentials] = {}
        for backend in BACKENDS:
            api_key = self._read(backend.credential_env_var)
            if api_key is None:
                continue
            credentials[backend.id] = BackendCredentials(
                api_key=api_key,
                model=self._read(backend.model_env_var),
                base_url=self._read(backend.base_url_env_var),
            )
            self._logger.debug(f"Found credential for {backend.id} ({backend.credential_env_var})")
        return credentials
