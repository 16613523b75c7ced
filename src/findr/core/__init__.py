"""Core aggregation engine — fan-out, merge, ordering, and cancellation."""
