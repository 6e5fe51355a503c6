"""Persistence layer backed by MongoDB collections."""
