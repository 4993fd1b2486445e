"""
High-level use cases for the ScholarMind backend.

Routers call these services instead of touching repositories or storage
adapters directly.
"""
