from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.formparsers import MultiPartParser
from ..core.logging import setup_logging
from ..core.config import settings
from .deps import build_pipeline
from .routers import extract, health

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Clients are created once and shared by all requests
    async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds) as http_client:
        app.state.pipeline = build_pipeline(http_client=http_client)
        logger.info(
            "Extraction pipeline ready",
            extractors=app.state.pipeline.extractor.names,
            object_store=app.state.pipeline.uploader.enabled,
        )
        yield
        app.state.pipeline = None


app = FastAPI(title="Inventory Vision Extraction Service", lifespan=lifespan)

# Multipart file parts spill to a temp file past spool_max_size (1 MiB by default).
# Raising it to MAX_UPLOAD_BYTES keeps every accepted photo in memory.
MultiPartParser.spool_max_size = max(MultiPartParser.spool_max_size, settings.max_upload_bytes)


# Add custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    body = await request.body()
    # Multipart bodies carry image bytes; log only their size
    logger.error(f"Request body: {len(body)} bytes")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Invalid request", "detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


# CORS_ORIGINS can be set in .env as comma-separated list
# Example: CORS_ORIGINS=http://localhost:8081,https://your-frontend.com
allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=allowed_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(extract.router)
