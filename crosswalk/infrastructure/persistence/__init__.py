"""Persistence layer: async SQLite engine, cache table and cache repository."""
