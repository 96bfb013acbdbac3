"""
Utility modules for the Resep Nusantara core.

This package contains:
- cache: in-process TTL cache for reconciled reviews
"""
