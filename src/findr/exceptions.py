"""findr exceptions — Registry misuse, provider failures, and cancellation."""


class FindrError(Exception):
    """Base exception for findr errors."""


class RegistryError(FindrError):
    """Base exception for provider registry misuse."""


class ProviderAlreadyRegisteredError(RegistryError):
    """Raised when a provider id is registered twice."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider '{provider_id}' is already registered.")
        self.provider_id = provider_id


class ProviderNotFoundError(RegistryError):
    """Raised when a requested provider id is not registered."""

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Unknown provider: {provider_id}")
        self.provider_id = provider_id


class ProviderError(FindrError):
    """Raised by a provider when a search fails."""


class SearchCancelledError(ProviderError):
    """Raised in place of a provider result when the search was cancelled."""

    def __init__(self, reason: str = "Search cancelled") -> None:
        super().__init__(reason)
        self.reason = reason
