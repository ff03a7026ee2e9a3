# nextlevel/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nextlevel.config import settings
from nextlevel.core.db import init_db, close_db
from nextlevel.core.bootstrap import ensure_default_admin
from nextlevel.core.errors import AppError
from nextlevel.services.notifications import build_notifier

from nextlevel.api.v1.routers import auth, users, profile, activity_logs, notifications

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("[error] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client errors (400), same as other validation failures
    return JSONResponse(
        status_code=400,
        content={"detail": {"code": "BAD_REQUEST", "message": "Invalid request", "errors": jsonable_encoder(exc.errors())}},
    )

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[error] unhandled %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "INTERNAL_ERROR", "message": "Something went wrong!"}},
    )

@app.on_event("startup")
async def on_startup():
    await init_db()
    # Ensure there's a default admin account on first run
    await ensure_default_admin()
    # One notifier per process, handed to routes through app.state
    app.state.notifier = build_notifier(settings)
    logger.info("[notify] relay available=%s", app.state.notifier.is_available())

@app.on_event("shutdown")
async def on_shutdown():
    notifier = getattr(app.state, "notifier", None)
    if notifier is not None:
        await notifier.aclose()
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(profile.router, prefix="/api/v1")
app.include_router(activity_logs.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
