"""
HTTP API for the Nash query service.

GET /apikey, /api/keys, /nash, /teach and /health. Query parameters are
validated by FastAPI; failures are reported as 400 with per-field errors.
"""

from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .schemas import (
    ApiKeyRecord,
    ApiKeyResponse,
    HealthResponse,
    MessageResponse,
    PromptResponse,
    ValidationErrorResponse,
    ValidationFieldError
)
from ..core.config import DEFAULT_LANGUAGE, VERSION, debug_enabled
from ..core.db import health_check
from ..core.errors import AuthError, StorageError
from ..core.services import NashServices, build_services
from ..util.logging import logger

INVALID_API_KEY_MESSAGE = "Invalid API key"
RESOLVE_FAILED_MESSAGE = "Error retrieving responses"
TEACH_FAILED_MESSAGE = "Error training the chatbot"
TEACH_CREATED_MESSAGE = "Training successful"
TEACH_DUPLICATE_MESSAGE = "This answer already exists for the question"

# At least one non-whitespace character
NON_BLANK = r"\S"


def get_services(request: Request) -> NashServices:
    return request.app.state.services


def create_app(services: NashServices = None) -> FastAPI:
    """Build the application; services are created from config when not supplied."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.services = services or build_services()
        app.state.services.start()
        try:
            yield
        finally:
            app.state.services.shutdown()

    app = FastAPI(
        title="Nash API",
        version=VERSION,
        description="Trainable question answering with API key access control",
        docs_url="/docs" if debug_enabled() else None,
        redoc_url="/redoc" if debug_enabled() else None,
        lifespan=lifespan
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            ValidationFieldError(
                field=".".join(str(part) for part in error.get("loc", ())[1:]) or "request",
                message=error.get("msg", "invalid value"),
                value=error.get("input")
            )
            for error in exc.errors()
        ]
        logger.log_validation_error(request.url.path, [e.model_dump() for e in errors])
        body = ValidationErrorResponse(message="Request validation failed", errors=errors)
        return JSONResponse(status_code=400, content=body.model_dump(mode="json"))

    @app.exception_handler(AuthError)
    async def auth_exception_handler(request: Request, exc: AuthError):
        return JSONResponse(status_code=403, content={"message": INVALID_API_KEY_MESSAGE})

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logger.error(f"Storage failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Storage unavailable"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        logger.error(f"Unhandled exception: {exc}")
        content = {"detail": "Internal server error"}
        if debug_enabled():
            content["debug"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    @app.get("/apikey", response_model=ApiKeyResponse)
    def generate_api_key_endpoint(services: NashServices = Depends(get_services)):
        """Issue a new API key."""
        api_key = services.credentials.generate()
        return ApiKeyResponse(apiKey=api_key.token)

    @app.get("/api/keys", response_model=List[ApiKeyRecord])
    def list_api_keys_endpoint(services: NashServices = Depends(get_services)):
        """List every stored key; expired keys are included until the next sweep."""
        return [
            ApiKeyRecord(api_key=key.token, expiration=key.expires_at)
            for key in services.credentials.list_all()
        ]

    @app.get("/nash", response_model=PromptResponse)
    def nash_endpoint(
        prompt: str = Query(..., pattern=NON_BLANK),
        apiKey: str = Query(..., min_length=1),
        language: str = Query(DEFAULT_LANGUAGE),
        services: NashServices = Depends(get_services)
    ):
        """Answer a prompt through the resolution pipeline."""
        if not services.credentials.is_valid(apiKey):
            raise AuthError()

        try:
            result = services.pipeline.resolve(language, prompt)
        except StorageError as e:
            logger.error(f"Resolution failed: {e}")
            return JSONResponse(status_code=500, content={"message": RESOLVE_FAILED_MESSAGE})

        return PromptResponse(response=result.text)

    @app.get("/teach", response_model=MessageResponse)
    def teach_endpoint(
        question: str = Query(..., pattern=NON_BLANK),
        answer: str = Query(..., pattern=NON_BLANK),
        services: NashServices = Depends(get_services)
    ):
        """Teach a question/answer pair; an exact duplicate is reported, not an error."""
        try:
            outcome = services.learning.teach(question, answer)
        except ValueError as e:
            raise RequestValidationError([{
                "type": "value_error",
                "loc": ("query", "question"),
                "msg": str(e),
                "input": question
            }])
        except StorageError as e:
            logger.error(f"Teach failed: {e}")
            return JSONResponse(status_code=500, content={"message": TEACH_FAILED_MESSAGE})

        if not outcome.created:
            return MessageResponse(message=TEACH_DUPLICATE_MESSAGE)
        return MessageResponse(message=TEACH_CREATED_MESSAGE)

    @app.get("/health", response_model=HealthResponse)
    def health_check_endpoint(services: NashServices = Depends(get_services)):
        """Check system health."""
        db_health = health_check(services.knowledge.db_path)
        pair_count = services.knowledge.count() if db_health else 0
        key_count = services.credentials.count() if db_health else 0

        return HealthResponse(
            status="healthy" if db_health else "unhealthy",
            version=VERSION,
            db_health=db_health,
            pair_count=pair_count,
            key_count=key_count,
            heartbeat=services.heartbeat.get_status()
        )

    return app


app = create_app()
