"""
Request DTOs and listing parameters.

Shape rules live here as pydantic field constraints; rules that need the
clock or the category store live in ``validators.py``.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from publication_service.src.models.enums import (
    PublicationState,
    PublicationType,
    SinglePublicationVote,
)


def as_utc(value: datetime) -> datetime:
    """Return a timezone-aware UTC datetime, assuming UTC for naive input."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CreatePublicationRequest(BaseModel):
    """Create publication request schema."""
    title: str = Field(
        ...,
        min_length=1,
        description="Publication title"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Publication description"
    )
    incident_address: str = Field(
        ...,
        min_length=1,
        description="Incident address"
    )
    incident_date: datetime = Field(
        ...,
        description="Date of the incident, must not be in the future"
    )
    subject_category_id: str = Field(
        ...,
        min_length=1,
        description="Exposed identifier of the subject category"
    )
    publication_type: PublicationType = Field(
        ...,
        description="LostSubject or FoundSubject"
    )

    @field_validator("title", "description", "incident_address", "subject_category_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only values."""
        if not v.strip():
            raise ValueError("Value must not be empty")
        return v

    @field_validator("incident_date")
    @classmethod
    def validate_incident_date(cls, v: datetime) -> datetime:
        """Treat naive timestamps as UTC."""
        return as_utc(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Black leather wallet",
                "description": "Found near the main entrance of the library",
                "incident_address": "Main Street 1, Warsaw",
                "incident_date": "2024-05-12T14:30:00Z",
                "subject_category_id": "wallets",
                "publication_type": "FoundSubject"
            }
        }
    }


class UpdatePublicationDetailsRequest(CreatePublicationRequest):
    """Update publication details request schema."""
    publication_state: PublicationState = Field(
        PublicationState.OPEN,
        description="Open or Closed"
    )


class UpdatePublicationStateRequest(BaseModel):
    """Update publication state request schema."""
    publication_state: PublicationState = Field(
        ...,
        description="New publication state"
    )


class UpdatePublicationRatingRequest(BaseModel):
    """Vote request schema. ``NoVote`` retracts the caller's vote."""
    new_publication_vote: SinglePublicationVote = Field(
        ...,
        description="NoVote, Up or Down"
    )


class PublicationsResourceParameters(BaseModel):
    """
    Filter and pagination parameters for the publication listing.

    Built per request from the query string; never persisted.
    """
    page_number: int = Field(1, ge=1, description="Page number (1-based)")
    page_size: int = Field(20, ge=1, description="Page size")
    only_user_publications: bool = Field(
        False,
        description="Include only the caller's publications"
    )
    subject_category_id: Optional[str] = Field(
        None,
        description="Filter by subject category identifier"
    )
    publication_state: PublicationState = Field(
        PublicationState.OPEN,
        description="State to filter by"
    )
    search_query: Optional[str] = Field(
        None,
        description="Substring searched in title or description"
    )
    from_date: Optional[datetime] = Field(None, description="Incident date lower bound")
    to_date: Optional[datetime] = Field(None, description="Incident date upper bound")
    publication_type: PublicationType = Field(
        PublicationType.FOUND_SUBJECT,
        description="Type to filter by"
    )

    @field_validator("from_date", "to_date")
    @classmethod
    def validate_bounds(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive bounds as UTC."""
        return as_utc(v) if v is not None else None

    @model_validator(mode="after")
    def validate_date_range(self) -> "PublicationsResourceParameters":
        """Ensure the date range is not inverted."""
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError("from_date must not be later than to_date")
        return self
