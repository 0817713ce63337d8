from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from soundscore.api import admin, artists, auth, collections, comments, ratings, releases, system, users
from soundscore.core.config import settings
from soundscore.core.exceptions import SoundscoreException
from soundscore.core.rate_limit import rate_limit
from soundscore.services.database import SessionLocal, utcnow
from soundscore.services.session_store import SessionStore
import traceback
import logging
import time
import uvicorn # For running programmatically
import os



# Configure logging
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger("soundscore")
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with SessionLocal() as db:
        await SessionStore(db).purge_expired()
    logger.info("SoundScore API started")
    yield


app = FastAPI(title="SoundScore API", lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000
    level = logging.WARNING if response.status_code >= 400 else logging.INFO
    logger.log(level, f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)")
    return response


# Every error leaves the API in the same envelope
def error_response(request: Request, status_code: int, message: str, code: str, errors=None, headers=None, detail=None) -> JSONResponse:
    content = {
        "success": False,
        "message": message,
        "code": code,
        "path": request.url.path,
        "method": request.method,
        "timestamp": utcnow().isoformat(),
    }
    if errors:
        content["errors"] = errors
    if detail:
        content["detail"] = detail
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(SoundscoreException)
async def soundscore_exception_handler(request: Request, exc: SoundscoreException):
    return error_response(request, exc.status_code, exc.detail, exc.code, exc.errors, exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path", "header", "cookie"))
        message = error["msg"].removeprefix("Value error, ")
        errors.append({"field": field or "body", "message": message, "code": error["type"]})
    return error_response(request, 400, "Validation failed", "VALIDATION_ERROR", errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    codes = {401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED", 409: "CONFLICT"}
    return error_response(
        request,
        exc.status_code,
        str(exc.detail),
        codes.get(exc.status_code, "ERROR"),
        headers=getattr(exc, "headers", None)
    )


# Add exception handler for detailed error responses
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_detail = traceback.format_exc()
    logger.error(f"Unhandled exception: {str(exc)}\n{error_detail}")
    if settings.DEBUG:
        return error_response(request, 500, str(exc), "INTERNAL_ERROR", detail=error_detail)
    return error_response(request, 500, "Internal server error", "INTERNAL_ERROR")


# Include routes
general_limit = [Depends(rate_limit("general"))]
app.include_router(system.router, prefix="/api", tags=["System"])
app.include_router(auth.router, prefix="/api", tags=["Authentication"], dependencies=general_limit)
app.include_router(artists.router, prefix="/api", tags=["artists"], dependencies=general_limit)
app.include_router(releases.router, prefix="/api", tags=["releases"], dependencies=general_limit)
app.include_router(ratings.router, prefix="/api", tags=["ratings"], dependencies=general_limit)
app.include_router(comments.router, prefix="/api", tags=["comments"], dependencies=general_limit)
app.include_router(collections.router, prefix="/api", tags=["collections"], dependencies=general_limit)
app.include_router(users.router, prefix="/api", tags=["users"], dependencies=general_limit)
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"], dependencies=general_limit)


@app.get("/")
async def root():
    return {"message": "Welcome to SoundScore API"}


if __name__ == "__main__":
    # For deployment, use 0.0.0.0 and PORT from environment
    port = int(os.environ.get("PORT", settings.PORT))
    uvicorn.run("main:app", host="0.0.0.0", port=port, log_level="info")
