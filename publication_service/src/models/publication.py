"""
Persisted publication documents.

Pydantic models mirroring the documents stored in the ``publications``
MongoDB collection:
- Publication (lost/found item posting)
- Author snapshot
- Vote sub-documents
- Persisted enums (state, type, rating)

Documents are converted with ``to_document()`` / ``from_document()`` so the
repositories never hand raw dicts to the service layer.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from bson import ObjectId
from pydantic import BaseModel, Field


# ============================================================================
# Persisted Enums
# ============================================================================


class State(str, Enum):
    """Publication lifecycle state."""
    OPEN = "Open"
    CLOSED = "Closed"


class Type(str, Enum):
    """Whether the subject was lost or found."""
    LOST_SUBJECT = "LostSubject"
    FOUND_SUBJECT = "FoundSubject"


class Rating(str, Enum):
    """Persisted vote rating. Absence of a vote is not stored."""
    UP = "Up"
    DOWN = "Down"


# ============================================================================
# Sub-documents
# ============================================================================


class Author(BaseModel):
    """Author snapshot taken when the publication is created."""
    id: UUID = Field(
        ...,
        description="Author user ID"
    )
    username: str = Field(
        ...,
        description="Author username at creation time"
    )


class Vote(BaseModel):
    """Single voter rating, owned by its publication."""
    voter_id: UUID = Field(
        ...,
        description="Voter user ID"
    )
    rating: Rating = Field(
        ...,
        description="Up or Down"
    )
    creation_date: datetime = Field(
        ...,
        description="When the vote was first cast"
    )


# ============================================================================
# Publication Document
# ============================================================================


class Publication(BaseModel):
    """
    Lost/found item posting.

    ``id`` is the internal MongoDB key and is never exposed; callers address
    publications by ``exposed_id``. ``subject_category_name`` is copied from
    the category at write time and is not kept in sync with later renames.
    """
    id: Optional[str] = Field(
        None,
        description="Internal storage key (MongoDB _id)"
    )
    exposed_id: UUID = Field(
        default_factory=uuid4,
        description="Externally visible publication identifier"
    )
    title: str = Field(..., description="Publication title")
    description: str = Field(..., description="Publication description")
    subject_photo_url: Optional[str] = Field(
        None,
        description="URL of the subject photo blob"
    )
    incident_address: str = Field(..., description="Where the incident happened")
    incident_date: datetime = Field(..., description="When the incident happened")
    creation_time: Optional[datetime] = Field(None, description="Creation timestamp (UTC)")
    last_modification_date: Optional[datetime] = Field(
        None,
        description="Last modification timestamp (UTC)"
    )
    author: Optional[Author] = Field(None, description="Publication author")
    subject_category_id: str = Field(..., description="Exposed category identifier")
    subject_category_name: Optional[str] = Field(
        None,
        description="Category display name copied at write time"
    )
    type: Type = Field(..., description="Lost or found subject")
    state: State = Field(State.OPEN, description="Open or closed")
    votes: List[Vote] = Field(default_factory=list, description="Votes, one per voter")

    def find_vote(self, voter_id: UUID) -> Optional[Vote]:
        """
        Find the vote cast by a given voter.

        Args:
            voter_id: Voter user ID

        Returns:
            The voter's vote or None
        """
        return next((vote for vote in self.votes if vote.voter_id == voter_id), None)

    @property
    def aggregate_rating(self) -> int:
        """Up votes minus down votes."""
        return sum(1 if vote.rating == Rating.UP else -1 for vote in self.votes)

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a MongoDB document."""
        document = self.model_dump(mode="python", exclude={"id"})
        if self.id is not None:
            document["_id"] = ObjectId(self.id)
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Publication":
        """Build a publication from a MongoDB document."""
        data = dict(document)
        raw_id = data.pop("_id", None)
        if raw_id is not None:
            data["id"] = str(raw_id)
        return cls.model_validate(data)
