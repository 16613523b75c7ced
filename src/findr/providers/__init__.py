"""Search provider layer — Pluggable sources of raw search results.

Built-in providers:
  - mock: deterministic sample results for development and testing

Implement ``SearchProvider`` to plug in your own result source.
"""
