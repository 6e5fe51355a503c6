"""Wire-level enums shared by request and response DTOs."""

from enum import Enum


class PublicationState(str, Enum):
    """Publication state as exposed on the API."""
    OPEN = "Open"
    CLOSED = "Closed"


class PublicationType(str, Enum):
    """Publication type as exposed on the API."""
    LOST_SUBJECT = "LostSubject"
    FOUND_SUBJECT = "FoundSubject"


class SinglePublicationVote(str, Enum):
    """
    A caller's vote on a publication.

    ``NO_VOTE`` stands for the absence of a stored vote; ``UP`` and ``DOWN``
    correspond to a persisted ``Rating``.
    """
    NO_VOTE = "NoVote"
    UP = "Up"
    DOWN = "Down"
