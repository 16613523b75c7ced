"""Base provider interface — Abstract provider class and registry."""

from findr.providers.base.provider import SearchProvider
from findr.providers.base.registry import ProviderRegistration, ProviderRegistry

__all__ = ["ProviderRegistration", "ProviderRegistry", "SearchProvider"]
