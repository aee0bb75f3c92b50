# liftlog/main.py
import os
import time
import logging
import uuid
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from liftlog.errors import Forbidden, NotFound, StorageFailure, Unauthorized, ValidationFailed
from liftlog.routers.auth import router as auth_router
from liftlog.routers.workouts import router as workouts_router
from liftlog.routers.exercises import router as exercises_router
from liftlog.routers.sets import router as sets_router
from liftlog.routers.preferences import router as preferences_router
from liftlog.settings import get_settings
from liftlog.db import SessionLocal  # for healthz DB check

log = logging.getLogger("uvicorn")
logging.getLogger("liftlog").setLevel(get_settings().LOG_LEVEL)

app = FastAPI(
    title="LiftLog API",
    openapi_tags=[
        {"name": "auth", "description": "Caller identity"},
        {"name": "workouts", "description": "Workouts, newest first"},
        {"name": "exercises", "description": "Ordered exercises per workout"},
        {"name": "sets", "description": "Ordered sets per exercise"},
        {"name": "preferences", "description": "Per-browser preferences"},
    ],
)


# CORS (relax for local dev; tighten origins in prod via env)
ALLOW_ORIGINS = os.getenv("ALLOW_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = req_id
    log.info("rid=%s %s %s -> %s in %.1fms",
             req_id, request.method, request.url.path, response.status_code, duration_ms)
    return response

# Data-layer errors -> HTTP
@app.exception_handler(Unauthorized)
def unauthorized_handler(request: Request, exc: Unauthorized):
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )

@app.exception_handler(NotFound)
def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

@app.exception_handler(Forbidden)
def forbidden_handler(request: Request, exc: Forbidden):
    # Optionally indistinguishable from a missing row, so ids cannot be enumerated
    if get_settings().HIDE_FORBIDDEN_AS_NOT_FOUND:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"{exc.entity} not found"},
        )
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

@app.exception_handler(ValidationFailed)
def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.message, "field": exc.field, "rule": exc.rule},
    )

@app.exception_handler(StorageFailure)
def storage_failure_handler(request: Request, exc: StorageFailure):
    # Already logged by the repository; keep storage internals out of the body
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal storage error"},
    )

@app.get("/")
def root():
    return {"ok": True, "name": "LiftLog API"}

@app.get("/ping")
def ping():
    return {"pong": True}

@app.get("/healthz")
def healthz():
    # Quick DB sanity check
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception:
        # Driver messages can carry hosts and credentials; keep them in the log
        log.exception("healthz: database check failed")
        return {"status": "degraded"}

@app.get("/version")
def version():
    return {"version": os.getenv("API_VERSION", "dev")}

# Routers
app.include_router(auth_router)
app.include_router(workouts_router)
app.include_router(exercises_router)
app.include_router(sets_router)
app.include_router(preferences_router)
