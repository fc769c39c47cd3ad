"""Provider registry for storing and resolving enabled backends."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fractal.core.clients import BaseLLMClient
from fractal.core.constants import BACKENDS, BACKENDS_BY_ID
from fractal.core.errors import (
    CredentialMissing,
    NoProvidersAvailable,
    ProviderNotFound,
    UnsupportedProvider,
)
from fractal.core.provider.client_factory import ClientFactory
from fractal.core.provider.credential_loader import BackendCredentials
from fractal.core.provider.provider_config import Provider


class ProviderRegistry:
    """Central registry of enabled providers.

    Responsibilities:
    - Build Provider records from loaded credentials, in fixed backend order
    - Resolve a provider id to its record, validating the credential
    - Pick the default provider (first registered)
    - Hand out model handles through the ClientFactory

    The enabled set is computed once by ``initialize()``; after that the
    registry is read-only apart from ``clear()`` for tests.
    """

    def __init__(self, client_factory: ClientFactory | None = None) -> None:
        self._providers: dict[str, Provider] = {}
        self._client_factory = client_factory or ClientFactory()
        self._logger = logging.getLogger(__name__)

    @classmethod
    def from_credentials(
        cls,
        credentials: Mapping[str, BackendCredentials],
        client_factory: ClientFactory | None = None,
    ) -> ProviderRegistry:
        registry = cls(client_factory)
        registry.initialize(credentials)
        return registry

    def initialize(self, credentials: Mapping[str, BackendCredentials]) -> None:
        """Register every backend that has a credential.

        Missing credentials are logged, not raised; an empty registry only
        fails later, when a caller asks for a provider.
        """
        for backend in BACKENDS:
            creds = credentials.get(backend.id)
            if creds is None or not creds.api_key:
                self._logger.warning(
                    f"{backend.name} API key not found ({backend.credential_env_var})"
                )
                continue

            self.register(
                Provider(
                    id=backend.id,
                    name=backend.name,
                    api_key=creds.api_key,
                    model=creds.model or backend.default_model,
                    base_url=creds.base_url or backend.default_base_url,
                )
            )
            self._logger.debug(f"{backend.name} provider initialized")

        if not self._providers:
            self._logger.error(
                "No AI providers configured. Set at least one of: "
                + ", ".join(backend.credential_env_var for backend in BACKENDS)
            )

    def register(self, provider: Provider) -> None:
        self._providers[provider.id] = provider

    def get(self, provider_id: str) -> Provider | None:
        return self._providers.get(provider_id)

    def exists(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def has_providers(self) -> bool:
        return bool(self._providers)

    def resolve(self, provider_id: str) -> Provider:
        """Return the provider record for ``provider_id``.

        Raises:
            ProviderNotFound: If the id is not registered
            CredentialMissing: If the registered entry has an empty credential
        """
        provider = self._providers.get(provider_id)
        if provider is None:
            raise ProviderNotFound(provider_id)
        if not provider.has_api_key:
            raise CredentialMissing(provider_id)
        return provider

    def default_provider(self) -> str:
        """Return the first registered provider id.

        Raises:
            NoProvidersAvailable: If the registry is empty
        """
        for provider_id in self._providers:
            return provider_id
        raise NoProvidersAvailable()

    def model_handle(self, provider_id: str, model_id: str | None = None) -> BaseLLMClient:
        """Return a client bound to ``provider_id`` and ``model_id``.

        ``model_id`` defaults to the provider's configured model.

        Raises:
            UnsupportedProvider: If no backend client exists for the id
            ProviderNotFound / CredentialMissing: As for ``resolve``
        """
        if not self._client_factory.supports(provider_id):
            raise UnsupportedProvider(provider_id)
        provider = self.resolve(provider_id)
        return self._client_factory.get_or_create_client(provider, model_id or provider.model)

    def list_providers(self) -> list[dict[str, Any]]:
        return [provider.to_dict() for provider in self._providers.values()]

    def provider_status(self) -> dict[str, dict[str, bool]]:
        """Per-backend status for every known backend, configured or not."""
        status: dict[str, dict[str, bool]] = {}
        for backend_id in BACKENDS_BY_ID:
            provider = self._providers.get(backend_id)
            status[backend_id] = {
                "configured": provider is not None,
                "hasApiKey": provider is not None and provider.has_api_key,
            }
        return status

    async def aclose(self) -> None:
        await self._client_factory.aclose()
