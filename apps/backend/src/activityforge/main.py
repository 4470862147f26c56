import logging
from typing import AsyncIterator

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .export import ExportBlockedError, export_activity
from .generator import UnsupportedStackError
from .models import (
    ExportRequest,
    ExtractRequest,
    FieldUsageRequest,
    GenerateRequest,
    HealthResponse,
    RequirementsValidationResponse,
    ValidateArtifactRequest,
)
from .pipeline import build_activity, customize_activity, extract_requirements
from .prompts import GenerationClient, GenerationOutputError, GenerationServiceError
from .requirements import (
    RequirementsError,
    RequirementsParseError,
    parse_requirements,
    validate_requirements,
)
from .validator import validate_artifact, validate_field_usage

load_dotenv()

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ActivityForge API",
    description="Generate, validate and export Journey Builder custom activities",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SERVICE_ERROR_STATUS = {
    "rate_limit": 429,
    "credits_exhausted": 402,
    "not_configured": 503,
}


async def get_generation_client() -> AsyncIterator[GenerationClient]:
    client = GenerationClient.from_settings(get_settings())
    try:
        yield client
    finally:
        await client.aclose()


# --- Error mapping ---

@app.exception_handler(RequirementsError)
async def requirements_error_handler(request: Request, exc: RequirementsError):
    return JSONResponse(
        status_code=422,
        content={"detail": "Invalid requirements", "errors": [e.model_dump() for e in exc.errors]},
    )


@app.exception_handler(RequirementsParseError)
async def requirements_parse_error_handler(request: Request, exc: RequirementsParseError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "errors": []})


@app.exception_handler(UnsupportedStackError)
async def unsupported_stack_handler(request: Request, exc: UnsupportedStackError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(GenerationServiceError)
async def generation_service_error_handler(request: Request, exc: GenerationServiceError):
    logger.error("Generation service failed (%s): %s", exc.error_type, exc)
    return JSONResponse(
        status_code=SERVICE_ERROR_STATUS.get(exc.error_type, 502),
        content={"detail": str(exc), "errorType": exc.error_type},
    )


@app.exception_handler(GenerationOutputError)
async def generation_output_error_handler(request: Request, exc: GenerationOutputError):
    logger.error("Unparseable generation output: %s", exc)
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "errorType": "parse_error", "rawExcerpt": exc.excerpt},
    )


@app.exception_handler(ExportBlockedError)
async def export_blocked_handler(request: Request, exc: ExportBlockedError):
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Export blocked: the activity has validation errors",
            "validation": exc.validation.model_dump(by_alias=True),
        },
    )


# --- Endpoints ---

@app.get("/api/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@app.post("/api/requirements/validate", response_model=RequirementsValidationResponse)
def validate_requirements_endpoint(data: dict):
    result = validate_requirements(data)
    return RequirementsValidationResponse(valid=result.ok, errors=result.errors)


@app.post("/api/requirements/extract")
async def extract_requirements_endpoint(
    request: ExtractRequest,
    client: GenerationClient = Depends(get_generation_client),
):
    """Turn a free-text description into repaired, strictly validated requirements."""
    result = await extract_requirements(request.description, request.activity_name, client=client)
    if not result.ok:
        raise RequirementsError(result.errors)
    return result.requirements.model_dump(by_alias=True)


@app.post("/api/activities/generate")
def generate_activity_endpoint(request: GenerateRequest):
    artifact = build_activity(request.requirements, request.stack or settings.default_stack)
    return artifact.model_dump(by_alias=True)


@app.post("/api/activities/customize")
async def customize_activity_endpoint(
    request: GenerateRequest,
    client: GenerationClient = Depends(get_generation_client),
):
    requirements = parse_requirements(request.requirements)
    artifact = await customize_activity(requirements, request.stack or settings.default_stack, client)
    return artifact.model_dump(by_alias=True)


@app.post("/api/activities/validate")
def validate_activity_endpoint(request: ValidateArtifactRequest):
    result = validate_artifact(
        request.artifact,
        is_decision_split=request.is_decision_split,
        expected_outcome_labels=request.expected_outcome_labels,
    )
    return result.model_dump(by_alias=True)


@app.post("/api/activities/field-usage")
def field_usage_endpoint(request: FieldUsageRequest):
    result = validate_field_usage(request.field_names, request.server_code, request.client_code)
    return result.model_dump(by_alias=True)


@app.post("/api/activities/export")
def export_activity_endpoint(request: ExportRequest):
    requirements = parse_requirements(request.requirements)
    bundle = export_activity(request.artifact, requirements)
    return Response(
        content=bundle.content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{bundle.file_name}"'},
    )
