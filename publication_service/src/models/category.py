"""Subject category reference data."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class Category(BaseModel):
    """Subject category, read-only for this service."""
    exposed_id: str = Field(..., description="Exposed category identifier")
    display_name: str = Field(..., description="Human readable category name")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Category":
        data = {key: value for key, value in document.items() if key != "_id"}
        return cls.model_validate(data)
