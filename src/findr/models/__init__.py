"""Data models for results, requests, and snapshots."""
