from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str
    password: str = Field(min_length=6, max_length=128)
    role: str = "patient"
    telegram_username: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str
    name: str | None = None
    email: str | None = None
