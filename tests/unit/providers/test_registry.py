"""Tests for the provider registry."""

from __future__ import annotations

import pytest

from findr.exceptions import ProviderAlreadyRegisteredError, ProviderNotFoundError, RegistryError
from findr.providers.base.registry import ProviderRegistry


class TestRegister:
    def test_register_defaults_to_enabled(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("alpha"))

        assert "alpha" in registry
        assert len(registry) == 1
        assert registry.is_enabled("alpha")

    def test_enabled_by_default_false(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("alpha", enabled_by_default=False))

        assert not registry.is_enabled("alpha")
        assert registry.enabled_ids() == []

    def test_duplicate_id_rejected(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("alpha"))

        with pytest.raises(ProviderAlreadyRegisteredError) as exc_info:
            registry.register(stub_provider("alpha", display_name="Other"))

        assert exc_info.value.provider_id == "alpha"
        assert isinstance(exc_info.value, RegistryError)
        assert registry.get("alpha").display_name == "Alpha"

    def test_get_unknown_returns_none(self, registry: ProviderRegistry) -> None:
        assert registry.get("missing") is None


class TestList:
    def test_order_by_id(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("charlie", display_name="A Charlie"))
        registry.register(stub_provider("alpha", display_name="Z Alpha"))
        registry.register(stub_provider("bravo", display_name="M Bravo"))

        assert [r.provider.id for r in registry.list()] == ["alpha", "bravo", "charlie"]

    def test_order_by_name(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("charlie", display_name="A Charlie"))
        registry.register(stub_provider("alpha", display_name="Z Alpha"))
        registry.register(stub_provider("bravo", display_name="M Bravo"))

        assert [r.provider.id for r in registry.list("name")] == ["charlie", "bravo", "alpha"]

    def test_list_carries_enabled_flag(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("alpha"))
        registry.register(stub_provider("beta", enabled_by_default=False))

        assert [(r.provider.id, r.enabled) for r in registry.list()] == [("alpha", True), ("beta", False)]


class TestEnabledState:
    def test_set_enabled(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("alpha"))

        registry.set_enabled("alpha", False)
        assert not registry.is_enabled("alpha")

        registry.set_enabled("alpha", True)
        assert registry.is_enabled("alpha")

    def test_toggle_returns_new_state(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("alpha"))

        assert registry.toggle("alpha") is False
        assert registry.toggle("alpha") is True

    @pytest.mark.parametrize("operation", ["is_enabled", "toggle"])
    def test_unknown_id_raises(self, registry: ProviderRegistry, operation: str) -> None:
        with pytest.raises(ProviderNotFoundError, match="Unknown provider: ghost"):
            getattr(registry, operation)("ghost")

    def test_set_enabled_unknown_id_raises(self, registry: ProviderRegistry) -> None:
        with pytest.raises(ProviderNotFoundError):
            registry.set_enabled("ghost", True)

    def test_set_enabled_ids_is_exact(self, registry: ProviderRegistry, stub_provider) -> None:
        for provider_id in ("alpha", "beta", "gamma"):
            registry.register(stub_provider(provider_id))

        registry.set_enabled_ids(["gamma", "alpha", "ghost"])

        assert registry.enabled_ids() == ["alpha", "gamma"]
        assert "ghost" not in registry

    def test_set_enabled_ids_empty_disables_all(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("alpha"))

        registry.set_enabled_ids([])

        assert registry.enabled_ids() == []

    def test_enabled_providers_keep_registration_order(self, registry: ProviderRegistry, stub_provider) -> None:
        registry.register(stub_provider("zulu"))
        registry.register(stub_provider("alpha"))

        assert [p.id for p in registry.enabled_providers()] == ["zulu", "alpha"]
