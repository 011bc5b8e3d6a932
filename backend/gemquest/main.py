# gemquest/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from tortoise.exceptions import DBConnectionError, IntegrityError, OperationalError

# Your configuration and DB
from gemquest.config import settings
from gemquest.core.db import init_db, close_db
from gemquest.core.errors import DependencyFailure, GemQuestError

from gemquest.api.v1.routers import auth, clients, collaborators, experiences, rbac

from gemquest.core.bootstrap import ensure_default_admin, seed_roles
logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message, **extra}},
    )

@app.exception_handler(GemQuestError)
async def gemquest_error_handler(request: Request, exc: GemQuestError):
    if isinstance(exc, DependencyFailure):
        logger.error("[api] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.to_dict()})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({".".join(str(p) for p in err["loc"][1:]) for err in exc.errors()})
    return _error_response(400, "BAD_REQUEST", "Invalid request", fields=fields)

@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    return _error_response(409, "CONFLICT", "Resource already exists")

@app.exception_handler(OperationalError)
@app.exception_handler(DBConnectionError)
async def database_error_handler(request: Request, exc: Exception):
    logger.exception("[db] %s %s failed", request.method, request.url.path, exc_info=exc)
    return _error_response(500, "DEPENDENCY_FAILURE", "Database unavailable")


@app.on_event("startup")
async def on_startup():
    await init_db()
    # Role reference data must exist before anyone registers
    await seed_roles()
    # Ensure there's a default admin account on first run
    await ensure_default_admin()

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(clients.router, prefix="/api/v1")
app.include_router(collaborators.router, prefix="/api/v1")
app.include_router(experiences.router, prefix="/api/v1")
app.include_router(rbac.router, prefix="/api/v1")

@app.get("/healthz")
def healthz():
    return {"ok": True}
