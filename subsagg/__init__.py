"""WSGI service that stores user subscriptions in SQLite and totals their cost over a period."""

__version__ = "0.1.0"