"""
Construction Stages - HTTP Server

FastAPI application exposing CRUD endpoints for construction stages.
Payload checks are done by the rule validator, not by pydantic: the
request models accept any JSON scalar so that the validator can report
every problem of a payload at once.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .main import AppConfig, Value
from .repository import ConstructionStageRepository
from .service import ConstructionStagesService, StageNotFoundError, StageValidationError
from .validation import RuleConfigurationError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Construction Stages API",
    description="CRUD API for construction stages with rule-based payload validation",
    version=__version__,
)


# --- Request/Response Models ---


class ConstructionStageCreate(BaseModel):
    """Body of POST and PATCH requests"""

    name: Value = Field(default=None, description="Stage name, at most 255 characters")
    startDate: Value = Field(default=None, description="Start, e.g. 2024-01-01T00:00:00Z")
    endDate: Value = Field(default=None, description="End, after startDate")
    duration: Value = Field(default=None, description="Ignored; derived from the dates")
    durationUnit: Value = Field(default=None, description="HOURS, DAYS or WEEKS")
    color: Value = Field(default=None, description="HEX color, e.g. #ff0000")
    externalId: Value = Field(default=None, description="External reference")
    status: Value = Field(default=None, description="NEW, PLANNED or DELETED")


class ConstructionStage(BaseModel):
    """A stored construction stage"""

    id: int
    name: str
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    duration: Optional[float] = None
    durationUnit: Optional[str] = None
    color: Optional[str] = None
    externalId: Optional[str] = None
    status: str


class DeleteResponse(BaseModel):
    message: str


# --- Dependencies ---


@lru_cache(maxsize=1)
def get_service() -> ConstructionStagesService:
    """Service backed by the database configured in the environment"""
    config = AppConfig()
    logger.info(f"Using database {config.database_path}")
    return ConstructionStagesService(ConstructionStageRepository(config.database_path))


# --- Error handlers ---


@app.exception_handler(StageNotFoundError)
async def stage_not_found_handler(request: Request, exc: StageNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(StageValidationError)
async def stage_validation_handler(request: Request, exc: StageValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {"message": str(exc), "errors": exc.errors}},
    )


@app.exception_handler(RuleConfigurationError)
async def rule_configuration_handler(request: Request, exc: RuleConfigurationError) -> JSONResponse:
    logger.error(f"Rule table error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Validation rules are misconfigured"},
    )


# --- Endpoints ---


@app.get("/health")
def health() -> Dict[str, str]:
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": "construction-stages",
        "version": __version__,
    }


@app.get("/constructionStages", response_model=List[ConstructionStage])
def list_stages(
    service: ConstructionStagesService = Depends(get_service),
) -> List[Dict[str, Any]]:
    return service.get_all()


@app.get("/constructionStages/{stage_id}", response_model=ConstructionStage)
def get_stage(
    stage_id: int,
    service: ConstructionStagesService = Depends(get_service),
) -> Dict[str, Any]:
    return service.get_single(stage_id)


@app.post(
    "/constructionStages",
    response_model=ConstructionStage,
    status_code=status.HTTP_201_CREATED,
)
def create_stage(
    body: ConstructionStageCreate,
    service: ConstructionStagesService = Depends(get_service),
) -> Dict[str, Any]:
    """
    Create a construction stage.

    Status defaults to NEW; the duration is derived from startDate and
    endDate in durationUnit (DAYS when not given).
    """
    return service.create(body.model_dump())


@app.patch("/constructionStages/{stage_id}", response_model=ConstructionStage)
def patch_stage(
    stage_id: int,
    body: ConstructionStageCreate,
    service: ConstructionStagesService = Depends(get_service),
) -> Dict[str, Any]:
    """Update the fields present in the body; null fields are left unchanged"""
    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="Request body has no fields to update")
    return service.patch(stage_id, changes)


@app.delete("/constructionStages/{stage_id}", response_model=DeleteResponse)
def delete_stage(
    stage_id: int,
    service: ConstructionStagesService = Depends(get_service),
) -> Dict[str, str]:
    return {"message": service.delete(stage_id)}
