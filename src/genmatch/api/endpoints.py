"""
REST API Endpoints for the review interface

Provides HTTP API for:
- Health checks
- Candidate search for a subject
- Deeper analysis of one subject/candidate pair
- Rejecting candidates and listing past rejections
- Research suggestions
- Full record details from a source
"""

import asyncio
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from genmatch.errors import ConfigurationError
from genmatch.models.candidate import candidate_from_dict
from genmatch.models.subject import subject_from_dict
from genmatch.services.research_pipeline import ResearchPipeline
from genmatch.version import VERSION


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str = VERSION


class SearchRequest(BaseModel):
    """Candidate search request model."""

    subject: dict[str, Any]


class AnalyzeRequest(BaseModel):
    """Match analysis request model."""

    subject: dict[str, Any]
    record: dict[str, Any]
    candidate_id: str | None = None


class RejectRequest(BaseModel):
    """Rejection request model."""

    subject_id: str = Field(min_length=1)
    candidate_id: str = Field(min_length=1)
    reason: str | None = None


class RejectResponse(BaseModel):
    status: str
    message: str


def create_api_router(pipeline: ResearchPipeline | None = None) -> APIRouter:
    """
    Create FastAPI router with all API endpoints.

    Args:
        pipeline: Research pipeline to serve (default: built from configuration
            on first use)

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter(prefix="/api")
    state: dict[str, ResearchPipeline] = {}
    if pipeline is not None:
        state["pipeline"] = pipeline

    def get_pipeline() -> ResearchPipeline:
        if "pipeline" not in state:
            state["pipeline"] = ResearchPipeline.from_config()
        return state["pipeline"]

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    @router.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        logger.debug("Health check requested")
        return HealthResponse(status="ok")

    # -------------------------------------------------------------------------
    # Search and Analysis
    # -------------------------------------------------------------------------

    @router.post("/search")
    async def search(request: SearchRequest):
        """
        Search external sources for records matching a subject.

        Returns:
            Ranked candidates with confidence analysis, per-provider counts
            and errors, and an explicit status (completed or zero_results)

        Raises:
            HTTPException: If the subject is missing an id or a name
        """
        try:
            subject = subject_from_dict(request.subject)
            outcome = await get_pipeline().search(subject)
        except ConfigurationError as e:
            logger.error(f"Search request rejected: {e}")
            raise HTTPException(status_code=400, detail=str(e)) from e

        return outcome.to_dict()

    @router.post("/analyze")
    async def analyze(request: AnalyzeRequest):
        """
        Analyze whether one record describes the subject.

        Returns:
            Generative (or rule-based) judgment, weighted confidence and the
            blended final recommendation
        """
        record = dict(request.record)
        if request.candidate_id:
            record["id"] = request.candidate_id

        try:
            subject = subject_from_dict(request.subject)
            candidate = candidate_from_dict(record)
        except ConfigurationError as e:
            logger.error(f"Analyze request rejected: {e}")
            raise HTTPException(status_code=400, detail=str(e)) from e

        analysis = await asyncio.to_thread(get_pipeline().analyze, subject, candidate)
        return {
            "subject_id": subject.id,
            "candidate_id": candidate.id,
            "analysis": analysis.to_dict(),
        }

    @router.post("/suggestions")
    async def suggestions(request: SearchRequest):
        """Research suggestions for gaps in what is known about a subject."""
        try:
            subject = subject_from_dict(request.subject)
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        items = ResearchPipeline.research_suggestions(subject)
        return {
            "subject_id": subject.id,
            "suggestions": [asdict(s) for s in items],
            "count": len(items),
        }

    @router.get("/records/{source}/{record_id}")
    async def record_details(source: str, record_id: str):
        """Full record from the source that produced a candidate."""
        details = await get_pipeline().get_record_details(record_id, source)
        if details is None:
            raise HTTPException(status_code=404, detail=f"No details for {source} record {record_id}")
        return {"source": source, "record_id": record_id, "record": details}

    # -------------------------------------------------------------------------
    # Rejections
    # -------------------------------------------------------------------------

    @router.post("/reject", response_model=RejectResponse)
    async def reject(request: RejectRequest):
        """Record that a reviewer dismissed a candidate for a subject."""
        get_pipeline().reject(request.subject_id, request.candidate_id, request.reason)
        return RejectResponse(
            status="success",
            message=f"Candidate {request.candidate_id} rejected for subject {request.subject_id}",
        )

    @router.get("/rejections/{subject_id}")
    async def list_rejections(subject_id: str):
        pipeline = get_pipeline()
        rejections = pipeline.ledger.list_rejections(pipeline.owner_id, subject_id=subject_id)
        return {"subject_id": subject_id, "rejections": rejections, "count": len(rejections)}

    @router.delete("/rejections/{subject_id}/{candidate_id}")
    async def unreject(subject_id: str, candidate_id: str):
        pipeline = get_pipeline()
        if not pipeline.ledger.unreject(subject_id, candidate_id, pipeline.owner_id):
            raise HTTPException(status_code=404, detail="Rejection not found")
        return {"status": "success", "message": f"Candidate {candidate_id} restored"}

    return router


def create_app(pipeline: ResearchPipeline | None = None) -> FastAPI:
    """FastAPI application serving the API router."""
    app = FastAPI(title="GenMatch", version=VERSION)
    app.include_router(create_api_router(pipeline))
    return app
