"""FastAPI service for LostAndFound publications.

This package provides REST API endpoints for reporting lost and found
subjects, voting on reports and managing subject photos.
"""

__version__ = "1.0.0"
