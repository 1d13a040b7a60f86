"""CreatorHub authorization engine."""

__version__ = "0.3.0"
