"""Mock provider — deterministic sample results."""

from findr.providers.mock.provider import MockProvider

__all__ = ["MockProvider"]
