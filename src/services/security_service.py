from typing import Optional, Dict, Any
from jose import jwt, JWTError

from src.core import get_settings
from src.schemas.auth import Actor
from src.logs import debug_logger

# Get application settings
settings = get_settings()


class SecurityService:
    """Verification of bearer tokens issued by the external identity provider"""

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode a JWT token, returning an empty payload when it is invalid"""
        options = {"verify_aud": settings.JWT_AUDIENCE is not None}
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM],
                audience=settings.JWT_AUDIENCE,
                options=options
            )
            return payload
        except JWTError as e:
            debug_logger.debug(f"Token rejected: {e}")
            return {}

    @staticmethod
    def verify_token(token: Optional[str]) -> Optional[Actor]:
        """Resolve a token to the acting user, or None if it cannot be trusted"""
        if not token or not settings.JWT_SECRET:
            return None

        payload = SecurityService.decode_token(token)
        user_id = payload.get("sub")
        if not user_id:
            return None

        return Actor(id=str(user_id), email=payload.get("email"))
