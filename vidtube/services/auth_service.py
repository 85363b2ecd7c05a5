"""Authentication service for JWT tokens and password hashing."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import bcrypt
import jwt
import structlog

from vidtube.config import get_settings

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"

# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class AuthService:
    """Password hashing plus signing and verification of the token pair.

    Access and refresh tokens are signed with two distinct secrets, so a
    refresh token can never pass as an access token and vice versa.
    """

    def __init__(self):
        self.settings = get_settings()

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        A malformed stored hash counts as a mismatch.
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            logger.warning("password_hash_malformed")
            return False

    def create_access_token(
        self, user_id: str, username: str, email: str, full_name: str
    ) -> str:
        """Create a short-lived signed access token.

        Args:
            user_id: User UUID as string (placed in 'sub' claim)
            username: Username claim
            email: Email claim
            full_name: Display name claim

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "username": username,
            "email": email,
            "full_name": full_name,
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + timedelta(minutes=self.settings.access_token_expire_minutes),
        }
        token = jwt.encode(
            payload, self.settings.access_token_secret, algorithm=JWT_ALGORITHM
        )
        logger.debug(
            "access_token_created",
            user_id=user_id,
            expires_minutes=self.settings.access_token_expire_minutes,
        )
        return token

    def create_refresh_token(self, user_id: str) -> str:
        """Create a long-lived signed refresh token carrying only the identity.

        The random 'jti' makes every issued token distinct, so rotation always
        replaces the stored value even within the same second.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + timedelta(days=self.settings.refresh_token_expire_days),
        }
        token = jwt.encode(
            payload, self.settings.refresh_token_secret, algorithm=JWT_ALGORITHM
        )
        logger.debug(
            "refresh_token_created",
            user_id=user_id,
            expires_days=self.settings.refresh_token_expire_days,
        )
        return token

    def validate_access_token(self, token: str) -> dict:
        """Decode and validate an access token.

        Raises:
            ValueError: If the token is invalid, expired, or malformed
        """
        return self._decode(token, self.settings.access_token_secret, "Access")

    def validate_refresh_token(self, token: str) -> dict:
        """Decode and validate a refresh token.

        Raises:
            ValueError: If the token is invalid, expired, or malformed
        """
        return self._decode(token, self.settings.refresh_token_secret, "Refresh")

    def _decode(self, token: str, secret: str, kind: str) -> dict:
        try:
            return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise ValueError(f"{kind} token has expired")
        except jwt.InvalidTokenError as e:
            raise ValueError(f"Invalid {kind.lower()} token: {e}")
