"""Counter store adapters.

This package provides a small abstraction layer over where rate limit
window counters live: Redis for deployments with several workers or hosts,
process memory for local development.
"""
