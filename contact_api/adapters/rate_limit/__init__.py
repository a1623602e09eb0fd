"""Rate limiting adapters.

This package provides a small abstraction layer so the service can run with
an in-memory limiter and later migrate to a shared store without changing
the API layer.
"""
