"""Data models for the FastAPI service.

This package contains Pydantic models for request/response validation,
persisted documents, and domain entities.
"""
