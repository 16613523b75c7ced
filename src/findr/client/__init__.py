"""Findr Python SDK — Client library for the Findr API.

Quick start::

    from findr.client import FindrClient

    client = FindrClient("http://localhost:8080")

    # Complete mode
    snapshot = client.search("terminal ui")

    # Streaming mode
    for event in client.search_stream("terminal ui"):
        print(event["event"], len(event["data"].get("results", [])))
"""

from findr.client.client import AsyncFindrClient, FindrClient

__all__ = ["AsyncFindrClient", "FindrClient"]
