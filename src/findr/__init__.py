"""findr — Meta-search aggregation engine.

Fans a query out to pluggable result providers, merges overlapping results by
URL, caches provider responses on disk, and streams progressively more
complete snapshots to the caller.
"""

__version__ = "0.1.0"
