"""
Access token verification.

Provides:
- JWT signature, expiry, issuer and audience validation (python-jose)
- Mapping of verified claims to the current caller
"""

import structlog
from typing import Optional

from jose import JWTError, jwt

from publication_service.src.config import Settings
from publication_service.src.models.auth import CurrentUser, TokenData

logger = structlog.get_logger(__name__)


class AuthService:
    """Service verifying bearer tokens issued by the account service."""

    def __init__(self, settings: Settings):
        """
        Initialize auth service.

        Args:
            settings: Application settings (JWT key, algorithm, issuer, audience)
        """
        self.settings = settings

    def decode_token(self, token: str) -> Optional[TokenData]:
        """
        Decode and validate JWT token.

        Args:
            token: JWT token string

        Returns:
            Token payload or None if invalid
        """
        options = {
            "verify_aud": self.settings.jwt_audience is not None,
            "verify_iss": self.settings.jwt_issuer is not None,
        }
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
                issuer=self.settings.jwt_issuer,
                options=options
            )
        except JWTError as e:
            logger.warning("token_decode_failed", error=str(e))
            return None

        if not payload.get("sub"):
            logger.warning("token_missing_subject")
            return None

        token_data = TokenData(
            sub=str(payload["sub"]),
            username=payload.get("username") or "",
            exp=payload.get("exp"),
            iat=payload.get("iat")
        )

        logger.debug("token_decoded", user_id=token_data.sub)
        return token_data

    def get_current_user(self, token: str) -> Optional[CurrentUser]:
        """
        Resolve the caller from a bearer token.

        Args:
            token: JWT token string

        Returns:
            Current caller or None if the token is invalid
        """
        token_data = self.decode_token(token)
        if token_data is None:
            return None
        return CurrentUser(user_id=token_data.sub, username=token_data.username)
