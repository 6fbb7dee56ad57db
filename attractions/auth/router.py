from fastapi import APIRouter, Depends, status

from attractions.accounts.schemas import UserRecord
from attractions.auth.dependencies import get_current_user
from attractions.auth.schemas import LoginRequest, UpdatePasswordRequest
from attractions.auth.service import AuthService
from attractions.dependencies import get_auth_service
from attractions.responses import send_response

router = APIRouter()

@router.post("/login")
async def login(login_data: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """Exchange email and password for an access token"""
    user = await auth.authenticate(login_data.email, login_data.password)
    if not user:
        return send_response(False, status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    token = auth.create_token(user)
    return send_response(True, status.HTTP_200_OK, "User Authenticated", token.model_dump())

@router.post("/update-password")
async def update_password(
    body: UpdatePasswordRequest,
    current_user: UserRecord = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    """Store a new bcrypt password hash for a user"""
    await auth.update_password(current_user, body.userId, body.bcryptPassword)
    return send_response(True, status.HTTP_200_OK, "Password updated successfully")
