"""Sharded site catalog: products, specs, categories and media routed to ten table shards."""

__version__ = "1.0.0"
