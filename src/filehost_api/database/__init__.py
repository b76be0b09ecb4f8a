"""
File record persistence.

Two interchangeable document stores: SQLite JSON documents for local work
and MongoDB for deployed environments.
"""
