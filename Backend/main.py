import os
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, LOGS_DIR
from migrate import migrate as run_migrations
from routers import (
    auth_router,
    users_router,
    medicines_router,
    prescriptions_router,
    reminders_router,
)

# Create all tables, then add any columns older deployments lack.
run_migrations()

app = FastAPI(
    title="MedTrack API",
    description="Prescription tracking and medicine reminder backend",
    version="1.0.0",
)

os.makedirs(LOGS_DIR, exist_ok=True)
error_log_file = os.path.join(LOGS_DIR, "errors.log")
error_logger = logging.getLogger("medtrack.errors")
if not error_logger.handlers:
    error_logger.setLevel(logging.ERROR)
    fh = logging.FileHandler(error_log_file, encoding="utf-8")
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    error_logger.addHandler(fh)
    error_logger.propagate = False

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

cors_origins = [o.strip() for o in CORS_ORIGINS.split(",") if o.strip()]
allow_any_origin = "*" in cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_any_origin else cors_origins,
    # Browsers reject wildcard+credentials; keep credentials off for bearer-token API calls.
    allow_credentials=False if allow_any_origin else True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(medicines_router)
app.include_router(prescriptions_router)
app.include_router(reminders_router)


@app.middleware("http")
async def _capture_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        error_logger.exception("Unhandled server error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/", tags=["Health"])
def health_check():
    return {"status": "ok", "service": "MedTrack API", "version": "1.0.0"}
