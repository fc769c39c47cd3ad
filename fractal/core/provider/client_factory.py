"""Client factory for creating and caching backend client instances."""

from fractal.core.clients import AnthropicClient, BaseLLMClient, GoogleClient, OpenAIClient
from fractal.core.errors import UnsupportedProvider
from fractal.core.provider.provider_config import Provider

CLIENT_CLASSES: dict[str, type[BaseLLMClient]] = {
    "openai": OpenAIClient,
    "anthropic": AnthropicClient,
    "google": GoogleClient,
}


class ClientFactory:
    """Creates and caches API client instances per (provider, model).

    Clients are cached to avoid creating new HTTP connections for each request.
    """

    def __init__(self, timeout: int = 90) -> None:
        self.timeout = timeout
        self._clients: dict[tuple[str, str], BaseLLMClient] = {}

    def supports(self, provider_id: str) -> bool:
        return provider_id in CLIENT_CLASSES

    def get_or_create_client(self, provider: Provider, model: str) -> BaseLLMClient:
        """Get cached client or create a new one.

        Raises:
            UnsupportedProvider: If no client class exists for ``provider.id``
        """
        client_class = CLIENT_CLASSES.get(provider.id)
        if client_class is None:
            raise UnsupportedProvider(provider.id)

        cache_key = (provider.id, model)
        if cache_key not in self._clients:
            self._clients[cache_key] = client_class(
                api_key=provider.api_key,
                model=model,
                base_url=provider.base_url,
                timeout=self.timeout,
            )
        return self._clients[cache_key]

    def has_client(self, provider_id: str, model: str) -> bool:
        return (provider_id, model) in self._clients

    async def aclose(self) -> None:
        """Close every cached client's connection pool."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aclose()
