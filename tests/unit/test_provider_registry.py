import pytest

from fractal.core.clients import AnthropicClient, GoogleClient, OpenAIClient
from fractal.core.errors import (
    CredentialMissing,
    NoProvidersAvailable,
    ProviderNotFound,
    UnsupportedProvider,
)
from fractal.core.provider import (
    BackendCredentials,
    ClientFactory,
    CredentialLoader,
    Provider,
    ProviderRegistry,
)


@pytest.mark.unit
class TestCredentialLoader:
    def test_reads_only_present_credentials(self):
        credentials = CredentialLoader(
            {"GOOGLE_API_KEY": "g-key", "OPENAI_API_KEY": "   ", "GOOGLE_MODEL": "gemini-pro"}
        ).load()

        assert list(credentials) == ["google"]
        assert credentials["google"].api_key == "g-key"
        assert credentials["google"].model == "gemini-pro"
        assert credentials["google"].base_url is None

    def test_defaults_to_process_environment(self, openai_api_key):
        assert CredentialLoader().load()["openai"].api_key == openai_api_key


@pytest.mark.unit
class TestProviderRegistry:
    def test_google_only(self):
        registry = ProviderRegistry.from_credentials({"google": BackendCredentials("g-key")})

        assert registry.default_provider() == "google"
        with pytest.raises(ProviderNotFound, match="Provider openai not found"):
            registry.resolve("openai")

    def test_registration_order_is_fixed(self):
        registry = ProviderRegistry.from_credentials(
            {
                "google": BackendCredentials("g"),
                "anthropic": BackendCredentials("a"),
                "openai": BackendCredentials("o"),
            }
        )

        assert [p["id"] for p in registry.list_providers()] == ["openai", "anthropic", "google"]
        assert registry.default_provider() == "openai"

    def test_default_models_and_overrides(self):
        registry = ProviderRegistry.from_credentials(
            {
                "anthropic": BackendCredentials("a"),
                "google": BackendCredentials("g", model="gemini-2.0-flash", base_url="http://g"),
            }
        )

        assert registry.resolve("anthropic").model == "claude-sonnet-4-20250514"
        assert registry.resolve("anthropic").base_url == "https://api.anthropic.com"
        assert registry.resolve("google").model == "gemini-2.0-flash"
        assert registry.resolve("google").base_url == "http://g"

    def test_empty_registry_is_not_fatal_until_used(self, caplog):
        registry = ProviderRegistry.from_credentials({})

        assert not registry.has_providers()
        assert "No AI providers configured" in caplog.text
        with pytest.raises(NoProvidersAvailable):
            registry.default_provider()

    def test_missing_credentials_are_warnings(self, caplog):
        ProviderRegistry.from_credentials({"openai": BackendCredentials("o")})

        warnings = [r for r in caplog.records if r.levelname == "WARNING"]
        assert any("ANTHROPIC_API_KEY" in r.getMessage() for r in warnings)
        assert any("GOOGLE_API_KEY" in r.getMessage() for r in warnings)

    def test_resolve_rejects_empty_credential(self):
        registry = ProviderRegistry()
        registry.register(Provider("openai", "OpenAI GPT-4", "", "gpt-4o", "https://x"))

        with pytest.raises(CredentialMissing):
            registry.resolve("openai")

    def test_list_providers_and_status(self):
        registry = ProviderRegistry.from_credentials({"anthropic": BackendCredentials("a")})

        assert registry.list_providers() == [
            {"id": "anthropic", "name": "Anthropic Claude", "enabled": True}
        ]
        assert registry.provider_status() == {
            "openai": {"configured": False, "hasApiKey": False},
            "anthropic": {"configured": True, "hasApiKey": True},
            "google": {"configured": False, "hasApiKey": False},
        }

    def test_model_handle_dispatches_by_provider(self):
        registry = ProviderRegistry.from_credentials(
            {
                "openai": BackendCredentials("o"),
                "anthropic": BackendCredentials("a"),
                "google": BackendCredentials("g"),
            }
        )

        assert isinstance(registry.model_handle("openai"), OpenAIClient)
        assert isinstance(registry.model_handle("anthropic"), AnthropicClient)
        google = registry.model_handle("google", "gemini-1.5-pro")
        assert isinstance(google, GoogleClient)
        assert google.model == "gemini-1.5-pro"

    def test_model_handle_unknown_backend(self):
        registry = ProviderRegistry()
        registry.register(Provider("mistral", "Mistral", "m", "large", "https://m"))

        with pytest.raises(UnsupportedProvider):
            registry.model_handle("mistral", "large")


@pytest.mark.unit
class TestClientFactory:
    def test_caches_per_provider_and_model(self):
        factory = ClientFactory(timeout=5)
        provider = Provider("openai", "OpenAI GPT-4", "o", "gpt-4o", "https://api.openai.com/v1")

        first = factory.get_or_create_client(provider, "gpt-4o")
        again = factory.get_or_create_client(provider, "gpt-4o")
        other = factory.get_or_create_client(provider, "gpt-4o-mini")

        assert first is again
        assert first is not other
        assert first.timeout == 5
        assert factory.has_client("openai", "gpt-4o-mini")

    @pytest.mark.asyncio
    async def test_aclose_closes_clients(self):
        factory = ClientFactory()
        provider = Provider("google", "Google Gemini", "g", "gemini-1.5-flash", "https://g")
        client = factory.get_or_create_client(provider, "gemini-1.5-flash")

        await factory.aclose()

        assert client.client.is_closed
        assert not factory.has_client("google", "gemini-1.5-flash")
