"""Authentication schemas."""

from pydantic import BaseModel, Field

from vetflow.schemas.users import UserResponse


class TokenRequest(BaseModel):
    """Username/password login request."""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class Token(BaseModel):
    """JWT token response schema."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")


class LoginResponse(Token):
    """Login response with token and user info."""

    user: UserResponse
