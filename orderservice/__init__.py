"""HTTP service for food orders, menu lookup and order payment over a SQL database."""

__version__ = "0.1.0"