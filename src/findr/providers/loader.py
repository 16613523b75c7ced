"""Provider auto-registration from settings.

Each entry in ``settings.search.providers`` names a provider. Built-in ids
resolve through ``_PROVIDER_MAP``; any other id is treated as a dotted
``"package.module:ClassName"`` path. The class is imported lazily,
instantiated with the entry's ``extra`` keyword arguments, and registered.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from findr.providers.base.provider import SearchProvider

if TYPE_CHECKING:
    from findr.config.settings import ProviderConfig, SearchSettings
    from findr.providers.base.registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Maps built-in provider ids to (module_path, class_name) for lazy import
_PROVIDER_MAP: dict[str, tuple[str, str]] = {
    "mock": ("findr.providers.mock.provider", "MockProvider"),
}


def _resolve_class(name: str) -> type[SearchProvider] | None:
    entry = _PROVIDER_MAP.get(name)
    if entry is None:
        if ":" not in name:
            logger.warning(
                "Unknown provider '%s' — no built-in class found. "
                "Use 'package.module:ClassName' or register it manually.",
                name,
            )
            return None
        module_path, class_name = name.split(":", 1)
    else:
        module_path, class_name = entry

    try:
        module = importlib.import_module(module_path)
        provider_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        logger.warning("Failed to import provider '%s': %s", name, e)
        return None

    if not (isinstance(provider_class, type) and issubclass(provider_class, SearchProvider)):
        logger.warning("Provider '%s' does not implement SearchProvider", name)
        return None
    return provider_class


def build_provider(name: str, config: ProviderConfig) -> SearchProvider | None:
    """Instantiate the provider named ``name``, or None if it cannot be built."""
    provider_class = _resolve_class(name)
    if provider_class is None:
        return None
    try:
        return provider_class(**config.extra)
    except Exception:
        logger.warning("Failed to initialise provider '%s'", name, exc_info=True)
        return None


def register_providers(registry: ProviderRegistry, settings: SearchSettings) -> list[str]:
    """Register every configured provider and apply configured enabled flags.

    Returns:
        Ids of the providers that were registered.
    """
    registered: list[str] = []
    for name, config in settings.providers.items():
        provider = build_provider(name, config)
        if provider is None:
            continue
        registry.register(provider)
        if config.enabled is not None:
            registry.set_enabled(provider.id, config.enabled)
        registered.append(provider.id)

    if settings.enabled_providers is not None:
        registry.set_enabled_ids(settings.enabled_providers)

    logger.info("Registered %d providers, enabled: %s", len(registered), registry.enabled_ids())
    return registered
