from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError

from app.config import CORS_ALLOW_ORIGINS, LOCAL_STORAGE_PATH, LOG_LEVEL, STORAGE_BACKEND
from app.core.errors import AppError
from app.core.http import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, CORS_MAX_AGE, preflight_response
from app.db import create_database, create_supabase_client
from app.routers import audio_books, authors, books, curriculum, profile, uploads
from app.storage import create_storage

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared database and storage handles."""
    client = create_supabase_client()
    app.state.db = create_database(client)
    app.state.storage = create_storage(client)
    logger.info("Storage backend: %s", type(app.state.storage).__name__)
    yield


app = FastAPI(
    title="Agribook API",
    description="Agricultural e-book marketplace: books, audio books, curriculum and uploads",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials="*" not in CORS_ALLOW_ORIGINS,
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
    max_age=CORS_MAX_AGE,
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ValidationError)
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Field coercion failures are client errors, reported like every other error."""
    if isinstance(exc, ValidationError):
        details = exc.errors(include_url=False, include_context=False, include_input=False)
    else:
        details = [
            {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
            for error in exc.errors()
        ]
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


# Include routers
app.include_router(uploads.router, prefix="/api")
app.include_router(books.router, prefix="/api")
app.include_router(audio_books.router, prefix="/api")
app.include_router(curriculum.router, prefix="/api")
app.include_router(profile.router, prefix="/api")
app.include_router(authors.router, prefix="/api")


@app.options("/api/{path:path}", include_in_schema=False)
async def api_preflight(path: str):
    """Bare OPTIONS on any API route (mobile clients send them without an Origin)."""
    return preflight_response()


@app.get("/")
async def root():
    return {"message": "Agribook API", "version": "0.1.0"}


# Serve local uploads when STORAGE_BACKEND=local (public URLs are /files/<bucket>/<key>)
if STORAGE_BACKEND == "local":

    @app.get("/files/{path:path}")
    async def serve_upload(path: str):
        """Serve files from local uploads directory. Path must be under uploads root."""
        path = path.lstrip("/").replace("..", "")
        full_path = (LOCAL_STORAGE_PATH / path).resolve()
        if not str(full_path).startswith(str(LOCAL_STORAGE_PATH.resolve())):
            return PlainTextResponse("Forbidden", status_code=403)
        if not full_path.is_file():
            return PlainTextResponse("Not Found", status_code=404)
        return FileResponse(full_path)
