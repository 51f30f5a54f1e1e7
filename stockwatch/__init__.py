"""Stockwatch: watches product pages and alerts when sold-out items come back."""

__version__ = "0.1.0"
