import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resu.config import settings
from resu.database import close_db, engine, init_db
from resu.health import ServiceHealth, check_database, check_ollama
from resu.routers import generate, profile, resumes
from resu.services.normalizer import format_field_path
from resu.services.pipeline import GenerationPipeline, get_pipeline

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables
    logger.info("Starting Resu backend")
    await init_db()
    logger.info("Database tables ready")
    yield
    # Shutdown: close connections
    logger.info("Shutting down Resu backend")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Tailored resume and cover letter generation",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generate.router)
app.include_router(resumes.router)
app.include_router(profile.router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with the first offending field."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field_path = format_field_path(tuple(first.get("loc", ())))
    return JSONResponse(
        status_code=400,
        content={
            "error": f"{field_path}: {first.get('msg', 'invalid request')}",
            "field_path": field_path,
        },
    )


@app.get("/")
async def root():
    return {"message": "Resu API - Ready"}


@app.get("/health")
async def health_check(pipeline: GenerationPipeline = Depends(get_pipeline)):
    """Database and Ollama reachability plus generation state."""
    db_health, ollama_health = await asyncio.gather(
        check_database(engine),
        check_ollama(settings.ollama_base_url),
    )
    all_connected = all(
        h.status == "connected" for h in (db_health, ollama_health)
    )

    return {
        "status": "healthy" if all_connected else "degraded",
        "dependencies": {
            "database": _describe(db_health),
            "ollama": _describe(ollama_health),
        },
        "generation": {
            "busy": pipeline.is_busy(),
            "stage": pipeline.stage.value,
        },
    }


def _describe(health: ServiceHealth) -> dict:
    return {
        "status": health.status,
        "latency_ms": health.latency_ms,
        "error": health.error,
    }
