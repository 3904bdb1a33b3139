"""Application layer: services that use the cache infrastructure.

Depends on domain and infrastructure.cache; no HTTP concerns.
"""
