"""
Core utilities shared across the ScholarMind backend.

This package hosts configuration helpers, logging setup, identifier
allocation and password hashing. Services and routers depend on these
primitives instead of reading os.environ or configuring handlers directly.
"""
