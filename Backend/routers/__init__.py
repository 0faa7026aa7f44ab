from routers.auth import router as auth_router
from routers.users import router as users_router
from routers.medicines import router as medicines_router
from routers.prescriptions import router as prescriptions_router
from routers.reminders import router as reminders_router

__all__ = [
    "auth_router",
    "users_router",
    "medicines_router",
    "prescriptions_router",
    "reminders_router",
]
