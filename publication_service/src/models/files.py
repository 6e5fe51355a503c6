"""File payload handed to the blob storage service."""

from pydantic import BaseModel, Field


class FileDto(BaseModel):
    """Uploaded file contents with its client-side name and media type."""
    name: str = Field(..., description="Original file name")
    content: bytes = Field(..., description="File contents")
    content_type: str = Field(
        "application/octet-stream",
        description="Media type reported by the client"
    )

    @property
    def size(self) -> int:
        return len(self.content)
