"""
Hookserver: FastAPI application in front of the GitHub data repository.

Receives repository webhook deliveries to evict stale cache buckets and exposes a thin
JSON API over the data provider. Run with the `hookserver` entry point.
"""
