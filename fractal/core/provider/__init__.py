"""Provider management package.

- ProviderRegistry: Stores enabled providers and resolves ids to model handles
- ClientFactory: Creates and caches backend client instances
- CredentialLoader: Reads backend credentials from the environment
"""

from fractal.core.provider.client_factory import ClientFactory
from fractal.core.provider.credential_loader import BackendCredentials, CredentialLoader
from fractal.core.provider.provider_config import Provider
from fractal.core.provider.provider_registry import ProviderRegistry

__all__ = [
    "BackendCredentials",
    "ClientFactory",
    "CredentialLoader",
    "Provider",
    "ProviderRegistry",
]
