import os
import uuid
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from .db import engine
from .models import Base
from .routes import ideas, ai, media, posts, leads, admin
from .config import settings
from .logging_setup import setup_logging, log_event, request_id_var

setup_logging()

if settings.secret_key == "change-me-in-production-for-jwt":
    log_event("startup_insecure_jwt_secret", level="warning")
if not settings.openai_api_key:
    log_event("startup_openai_key_missing", level="warning")

app = FastAPI(title="Command Center")
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log_event(
        "unhandled_error",
        level="error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/ready")
def readiness_check():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as e:
        log_event("readiness_failed", level="error", error=str(e))
        return JSONResponse(status_code=503, content={"status": "not_ready", "detail": "Database unreachable."})

# Local provider files
os.makedirs(settings.uploads_dir, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.uploads_dir), name="uploads")

app.include_router(ideas.router)
app.include_router(ai.router)
app.include_router(media.router)
app.include_router(posts.router)
app.include_router(leads.router)
app.include_router(admin.router)

@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    log_event("startup_complete", database=engine.url.get_backend_name())
