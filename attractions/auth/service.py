import logging
from typing import Optional

from attractions.accounts.schemas import UserRecord
from attractions.accounts.service import AccountService
from attractions.auth.schemas import Token, TokenData
from attractions.auth.utils import create_access_token, is_password_hash, verify_password
from attractions.exceptions import Forbidden, InvalidRequest, UserNotFound

logger = logging.getLogger(__name__)

class AuthService:
    """Login and password management for reseller users"""

    def __init__(self, accounts: AccountService):
        self.accounts = accounts

    async def authenticate(self, email: str, password: str) -> Optional[UserRecord]:
        """Return the user when the credentials match"""
        user = await self.accounts.get_user_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            return None
        return user

    @staticmethod
    def create_token(user: UserRecord) -> Token:
        claims = TokenData(
            user_id=user.id,
            role=user.type,
            agency_id=user.agency_id,
            currency=user.currency,
            status=user.status,
        )
        data = claims.model_dump(exclude={"user_id"})
        data["sub"] = claims.user_id
        return Token(token=create_access_token(data))

    async def update_password(self, actor: UserRecord, user_id: Optional[str], password_hash: Optional[str]) -> None:
        """Store a password that was hashed with bcrypt by the caller"""
        if not user_id or not password_hash:
            raise InvalidRequest("Missing userId or bcryptPassword")
        if not is_password_hash(password_hash):
            raise InvalidRequest("bcryptPassword must be a bcrypt hash")
        if user_id != actor.id and not actor.is_admin:
            raise Forbidden("Not enough permissions")

        if not await self.accounts.update_password(user_id, password_hash):
            raise UserNotFound("User not found")
        logger.info("Password updated for user %s", user_id)
