"""
Caller identity models.

Tokens are issued by the account service; this service only verifies them
and reads the caller id and username from the claims.
"""

from typing import Optional

from pydantic import BaseModel, Field


class TokenData(BaseModel):
    """
    JWT token payload/claims.

    ``sub`` is kept as a raw string: a value that is not a UUID is rejected
    by the publication operations, not by token decoding.
    """
    sub: str = Field(
        ...,
        description="Subject (user ID)"
    )
    username: str = Field(
        "",
        description="Username"
    )
    exp: Optional[int] = Field(
        None,
        description="Expiration timestamp (Unix epoch)"
    )
    iat: Optional[int] = Field(
        None,
        description="Issued at timestamp (Unix epoch)"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "sub": "550e8400-e29b-41d4-a716-446655440000",
                "username": "jdoe",
                "exp": 1706270400,
                "iat": 1706266800
            }
        }
    }


class CurrentUser(BaseModel):
    """
    Authenticated caller.

    Injected into request handlers via dependency injection.
    """
    user_id: str = Field(
        ...,
        description="Caller id as found in the token"
    )
    username: str = Field(
        ...,
        description="Caller username"
    )
