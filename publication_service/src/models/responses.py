"""
Response DTOs returned by the publication API.
"""

from datetime import datetime
from math import ceil
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field

from publication_service.src.models.enums import (
    PublicationState,
    PublicationType,
    SinglePublicationVote,
)


class AuthorResponse(BaseModel):
    """Publication author."""
    id: UUID = Field(..., description="Author user ID")
    username: str = Field(..., description="Author username")


class PublicationBaseDataResponse(BaseModel):
    """Publication data shown in listings."""
    publication_id: UUID = Field(..., description="Publication identifier")
    title: str = Field(..., description="Publication title")
    description: str = Field(..., description="Publication description")
    subject_photo_url: Optional[str] = Field(None, description="Subject photo URL")
    incident_address: str = Field(..., description="Incident address")
    incident_date: datetime = Field(..., description="Date of the incident")
    aggregate_rating: int = Field(0, description="Up votes minus down votes")
    user_vote: SinglePublicationVote = Field(
        SinglePublicationVote.NO_VOTE,
        description="Vote cast by the authenticated caller"
    )


class PublicationDetailsResponse(PublicationBaseDataResponse):
    """Full publication details."""
    subject_category_id: str = Field(..., description="Subject category identifier")
    subject_category_name: Optional[str] = Field(None, description="Subject category display name")
    publication_type: PublicationType = Field(..., description="LostSubject or FoundSubject")
    publication_state: PublicationState = Field(..., description="Open or Closed")
    creation_date: Optional[datetime] = Field(None, description="Creation timestamp")
    last_modification_date: Optional[datetime] = Field(None, description="Last modification timestamp")
    author: Optional[AuthorResponse] = Field(None, description="Publication author")

    model_config = {
        "json_schema_extra": {
            "example": {
                "publication_id": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
                "title": "Black leather wallet",
                "description": "Found near the main entrance of the library",
                "subject_photo_url": "http://localhost:9000/publication-photos/4c1d.jpg",
                "incident_address": "Main Street 1, Warsaw",
                "incident_date": "2024-05-12T14:30:00Z",
                "aggregate_rating": 3,
                "user_vote": "Up",
                "subject_category_id": "wallets",
                "subject_category_name": "Wallets",
                "publication_type": "FoundSubject",
                "publication_state": "Open",
                "creation_date": "2024-05-12T15:00:00Z",
                "last_modification_date": "2024-05-12T15:00:00Z",
                "author": {
                    "id": "11111111-1111-1111-1111-111111111111",
                    "username": "bob"
                }
            }
        }
    }


class CategoryResponse(BaseModel):
    """Subject category."""
    id: str = Field(..., description="Category identifier")
    display_name: str = Field(..., description="Category display name")


class PaginationMetadata(BaseModel):
    """Pagination data sent with listings in the X-Pagination header."""
    total_item_count: int = Field(..., ge=0, description="Items matching the filter")
    page_size: int = Field(..., gt=0, description="Requested page size")
    current_page: int = Field(..., gt=0, description="Requested page number")

    @computed_field
    @property
    def total_page_count(self) -> int:
        return ceil(self.total_item_count / self.page_size)


class ErrorResponse(BaseModel):
    """Error response schema."""
    detail: str = Field(
        ...,
        min_length=1,
        description="Error message"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "detail": "Publication not found."
            }
        }
    }
