"""ScholarMind study-goal backend."""

__version__ = "0.1.0"
