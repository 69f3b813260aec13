"""Bearer token verification for users signed in through the identity provider."""

from datetime import datetime, timedelta
from typing import Optional

import jwt


class AuthService:
    """Issues and verifies the JWTs that identify the calling user."""

    def __init__(
        self,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        jwt_expiration_hours: int = 24,
    ):
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.jwt_expiration_hours = jwt_expiration_hours

    def create_token(self, user_id: str, email: Optional[str] = None) -> str:
        """
        Create JWT token for a user.

        Args:
            user_id: Identity provider user id
            email: Optional email claim

        Returns:
            JWT token string
        """
        payload = {
            "user_id": user_id,
            "email": email,
            "exp": datetime.utcnow() + timedelta(hours=self.jwt_expiration_hours),
            "iat": datetime.utcnow(),
        }

        return jwt.encode(payload, self.jwt_secret, algorithm=self.jwt_algorithm)

    def verify_token(self, token: str) -> Optional[dict]:
        """
        Verify and decode JWT token.

        Args:
            token: JWT token string

        Returns:
            Decoded payload if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token, self.jwt_secret, algorithms=[self.jwt_algorithm]
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
        if not payload.get("user_id"):
            return None
        return payload
