"""Concept map API routes.

Endpoints:
- POST /v1/concept-maps         - Build a concept map from text
- GET  /v1/concept-maps/config  - Available styles, stages and limits

Every response of the POST endpoint has the shape
``{success, result?, error?}``: 400 for invalid input or options, 500 when
a pipeline stage fails.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from conceptforge.core.config import (
    DEFAULT_STYLE,
    STAGE_NAMES,
    STYLE_PRESETS,
    AppConfig,
    PipelineConfig,
)
from conceptforge.core.config.pipeline import MAX_CONCEPTS_LIMIT
from conceptforge.core.exceptions import (
    ConceptForgeError,
    InvalidInputError,
    StageFailure,
    ValidationError,
    get_error_info,
)
from conceptforge.core.logging import get_logger
from conceptforge.core.pipeline import ConceptMapPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/v1/concept-maps", tags=["concept-maps"])


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================


class ConceptMapRequest(BaseModel):
    """Text to transform plus optional pipeline options."""

    text: Any = Field(default=None, description="Source text")
    options: Optional[Dict[str, Any]] = Field(
        default=None,
        description=(
            "maxConcepts, style, stages{organization, reasoning, enrichment, "
            "validation, aesthetics, conclusion}, includeExamples, includeDefinitions"
        ),
    )


class ConceptMapResponse(BaseModel):
    """Envelope for concept map results."""

    success: bool = Field(..., description="Whether the map was built")
    result: Optional[Dict[str, Any]] = Field(
        default=None,
        description="concepts, relationships, hierarchy, content, metadata, knowledgeGraph",
    )
    error: Optional[str] = Field(default=None, description="Error message")
    errorCode: Optional[str] = Field(default=None, description="Error code")
    howToFix: Optional[List[str]] = Field(default=None, description="Fix suggestions")


class ConceptMapConfigResponse(BaseModel):
    """Options accepted by the concept map endpoint."""

    styles: List[str]
    defaultStyle: str
    stages: List[str]
    maxConceptsLimit: int
    maxTextLength: int
    defaults: Dict[str, Any]


# =============================================================================
# HELPERS
# =============================================================================


def _app_config(request: Request) -> AppConfig:
    return getattr(request.app.state, "config", None) or AppConfig()


def _error_response(status_code: int, exc: BaseException) -> JSONResponse:
    info = get_error_info(exc)
    body = ConceptMapResponse(
        success=False,
        error=info["error"],
        errorCode=info["errorCode"],
        howToFix=info["howToFix"],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.post("", response_model=ConceptMapResponse, response_model_exclude_none=True)
def create_concept_map(payload: ConceptMapRequest, request: Request) -> Any:
    """Build a concept map.

    Runs synchronously in the server's thread pool; the pipeline is
    CPU-bound and shares no state between requests.
    """
    config = _app_config(request)
    try:
        text = payload.text
        if isinstance(text, str) and len(text) > config.api.max_text_length:
            raise InvalidInputError(
                f"text exceeds {config.api.max_text_length} characters"
            )
        pipeline_config = PipelineConfig.from_options(
            payload.options, base=config.pipeline
        )
        result = ConceptMapPipeline(pipeline_config).run(text)
    except ValidationError as e:
        logger.info("Rejected concept map request", error=str(e))
        return _error_response(400, e)
    except StageFailure as e:
        logger.error("Concept map failed", stage=e.stage, error=str(e))
        return _error_response(500, e)
    except ConceptForgeError as e:
        logger.error("Concept map failed", error=str(e))
        return _error_response(500, e)

    return ConceptMapResponse(success=True, result=result.to_dict())


@router.get("/config", response_model=ConceptMapConfigResponse)
def get_concept_map_config(request: Request) -> ConceptMapConfigResponse:
    """List styles, stages and limits accepted by the POST endpoint."""
    config = _app_config(request)
    return ConceptMapConfigResponse(
        styles=sorted(STYLE_PRESETS),
        defaultStyle=DEFAULT_STYLE,
        stages=list(STAGE_NAMES),
        maxConceptsLimit=MAX_CONCEPTS_LIMIT,
        maxTextLength=config.api.max_text_length,
        defaults=config.pipeline.to_dict(),
    )
