"""
Users Controllers (API Routes)
==============================

FastAPI routes for authentication and admin user management.

Controllers delegate to application services; failures surface as
application exceptions and are translated by the shared handlers.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from ticket_ai.users.application import (
    AuthResponse,
    AuthService,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    UpdateUserRequest,
    UpdateUserResponse,
    UserAdminService,
    UserResponse,
)
from ticket_ai.users.domain import User
from ticket_ai.users.interfaces.dependencies import (
    get_auth_service,
    get_bearer_token,
    get_current_user,
    get_user_admin_service,
)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ========== Example payloads for Swagger ==========

AUTH_RESPONSE_EXAMPLE = {
    "user": {
        "id": "123e4567-e89b-12d3-a456-426614174000",
        "email": "jane@example.com",
        "role": "user",
        "skills": [],
        "created_at": "2024-01-15T10:00:00Z"
    },
    "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."
}


# ========== Route Handlers ==========

@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    responses={
        201: {"content": {"application/json": {"example": AUTH_RESPONSE_EXAMPLE}}},
        409: {"description": "Email already registered"}
    }
)
async def signup(
    payload: SignupRequest,
    auth: AuthService = Depends(get_auth_service)
):
    user, token = await auth.signup(payload.email, payload.password, payload.skills)
    return AuthResponse(user=UserResponse.from_domain(user), token=token)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with email and password",
    responses={
        200: {"content": {"application/json": {"example": AUTH_RESPONSE_EXAMPLE}}},
        401: {"description": "Incorrect password"},
        404: {"description": "No account for this email"}
    }
)
async def login(
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service)
):
    user, token = await auth.login(payload.email, payload.password)
    return AuthResponse(user=UserResponse.from_domain(user), token=token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out",
    description="Tokens are stateless; the client discards its token. The token is only checked."
)
async def logout(
    token: str = Depends(get_bearer_token),
    auth: AuthService = Depends(get_auth_service)
):
    auth.logout(token)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/users",
    response_model=List[UserResponse],
    summary="List all users (admin)"
)
async def list_users(
    actor: User = Depends(get_current_user),
    admin: UserAdminService = Depends(get_user_admin_service)
):
    users = await admin.list_users(actor)
    return [UserResponse.from_domain(u) for u in users]


@router.post(
    "/update-user",
    response_model=UpdateUserResponse,
    summary="Update a user's role and skills (admin)"
)
async def update_user(
    payload: UpdateUserRequest,
    actor: User = Depends(get_current_user),
    admin: UserAdminService = Depends(get_user_admin_service)
):
    user = await admin.update_user(actor, payload.email, role=payload.role, skills=payload.skills)
    return UpdateUserResponse(message="User updated successfully", user=UserResponse.from_domain(user))


# Export router for inclusion in main app
users_router = router
