from datetime import datetime

from models.user import UserRole
from schemas.base import APIModel


class UserBrief(APIModel):
    id: int
    name: str | None
    email: str
    role: UserRole


class UserOut(UserBrief):
    telegram_username: str | None = None
    created_at: datetime | None = None
