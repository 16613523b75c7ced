"""Provider Registry — Holds the known providers and their enabled flags.

Providers are registered once at startup. After that only their enabled
flag changes, through explicit enable / disable / toggle operations driven
by the control path (API handlers, CLI), never from inside a search.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from findr.exceptions import ProviderAlreadyRegisteredError, ProviderNotFoundError
from findr.providers.base.provider import SearchProvider

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderRegistration:
    """A registered provider and its current enabled flag."""

    provider: SearchProvider
    enabled: bool


class ProviderRegistry:
    """Registry of search providers keyed by provider id.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register(MockProvider())
        >>> registry.toggle("mock")
        False
        >>> registry.enabled_ids()
        []
    """

    def __init__(self) -> None:
        self._registrations: dict[str, ProviderRegistration] = {}

    def register(self, provider: SearchProvider) -> None:
        """Register a provider.

        The initial enabled flag comes from ``provider.enabled_by_default``
        (``None`` means enabled).

        Raises:
            ProviderAlreadyRegisteredError: If the id is already registered.
        """
        if provider.id in self._registrations:
            raise ProviderAlreadyRegisteredError(provider.id)
        enabled = True if provider.enabled_by_default is None else provider.enabled_by_default
        self._registrations[provider.id] = ProviderRegistration(provider=provider, enabled=enabled)
        logger.info("Registered provider: %s (enabled=%s)", provider.id, enabled)

    def list(self, order_by: Literal["id", "name"] = "id") -> list[ProviderRegistration]:
        """All registrations, ascending by provider id or display name."""
        if order_by == "name":
            return sorted(
                self._registrations.values(),
                key=lambda r: (r.provider.display_name, r.provider.id),
            )
        return sorted(self._registrations.values(), key=lambda r: r.provider.id)

    def get(self, provider_id: str) -> SearchProvider | None:
        registration = self._registrations.get(provider_id)
        return registration.provider if registration else None

    def is_enabled(self, provider_id: str) -> bool:
        return self._require(provider_id).enabled

    def set_enabled(self, provider_id: str, enabled: bool) -> None:
        self._require(provider_id).enabled = enabled
        logger.info("Provider %s %s", provider_id, "enabled" if enabled else "disabled")

    def toggle(self, provider_id: str) -> bool:
        """Flip a provider's enabled flag and return the new state."""
        registration = self._require(provider_id)
        registration.enabled = not registration.enabled
        logger.info("Provider %s toggled to enabled=%s", provider_id, registration.enabled)
        return registration.enabled

    def set_enabled_ids(self, provider_ids: Iterable[str]) -> None:
        """Bulk overwrite: exactly the given ids end up enabled."""
        desired = set(provider_ids)
        unknown = desired - self._registrations.keys()
        if unknown:
            logger.debug("Ignoring unknown provider ids: %s", sorted(unknown))
        for provider_id, registration in self._registrations.items():
            registration.enabled = provider_id in desired

    def enabled_ids(self) -> list[str]:
        return [provider.id for provider in self.enabled_providers()]

    def enabled_providers(self) -> list[SearchProvider]:
        """Enabled providers in registration order."""
        return [r.provider for r in self._registrations.values() if r.enabled]

    def _require(self, provider_id: str) -> ProviderRegistration:
        registration = self._registrations.get(provider_id)
        if registration is None:
            raise ProviderNotFoundError(provider_id)
        return registration

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._registrations

    def __len__(self) -> int:
        return len(self._registrations)
