"""Issuance and rotation of the access/refresh token pair."""

from uuid import UUID

import structlog

from vidtube.exceptions import InternalError
from vidtube.models.auth import TokenPair
from vidtube.services.auth_service import AuthService
from vidtube.services.user_service import UserService

logger = structlog.get_logger(__name__)


class TokenService:
    """Issues token pairs and keeps the user's single active refresh token."""

    def __init__(self):
        self.auth_service = AuthService()
        self.user_service = UserService()

    async def generate_access_and_refresh_token(self, user_id: UUID) -> TokenPair:
        """Issue a new token pair and persist its refresh half on the user.

        Only the refresh_token column is written, so older rows with
        incomplete profile fields never block rotation.

        Args:
            user_id: Identity to issue tokens for

        Returns:
            TokenPair with fresh access and refresh tokens

        Raises:
            InternalError: On any failure (unknown user, signing, store write).
                The original exception is chained as __cause__.
        """
        try:
            user = await self.user_service.get_by_id(user_id)
            if user is None:
                raise LookupError(f"user {user_id} not found")

            access_token = self.auth_service.create_access_token(
                user_id=str(user.id),
                username=user.username,
                email=user.email,
                full_name=user.full_name,
            )
            refresh_token = self.auth_service.create_refresh_token(str(user.id))

            if not await self.user_service.set_refresh_token(user.id, refresh_token):
                raise LookupError(f"user {user_id} vanished before token was stored")
        except Exception as e:
            logger.error(
                "token_generation_failed",
                user_id=str(user_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InternalError(
                "Error while generating access and refresh token",
                detail=f"{type(e).__name__}: {e}",
            ) from e

        logger.info("token_pair_issued", user_id=str(user_id))
        return TokenPair(access_token=access_token, refresh_token=refresh_token)
