from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from attractions.accounts.schemas import UserRecord
from attractions.accounts.service import AccountService
from attractions.auth.utils import verify_token
from attractions.config import settings
from attractions.dependencies import get_accounts
from attractions.exceptions import Unauthenticated, UserNotFound

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)

def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """User id from the bearer token, None when no token was sent"""
    if not token:
        return None
    return verify_token(token)["sub"]

async def get_current_user(
    user_id: Optional[str] = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_accounts),
) -> UserRecord:
    """Get current authenticated user"""
    if not user_id:
        raise Unauthenticated("User not authenticated. Please log in again.")

    user = await accounts.get_user(user_id)
    if user is None:
        raise UserNotFound("User not authenticated")
    return user
