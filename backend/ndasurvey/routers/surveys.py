# ndasurvey/routers/surveys.py
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from typing import Any, Dict, Optional

from ndasurvey.services.storage import get_storage
from ndasurvey.services.surveys import SurveyRepository

router = APIRouter(prefix="/api/surveys", tags=["surveys"])

_repository: Optional[SurveyRepository] = None


def get_repository() -> SurveyRepository:
    """Repository singleton over the configured storage backend."""
    global _repository
    if _repository is None:
        _repository = SurveyRepository(get_storage())
    return _repository


# ---------- Models ----------

class SurveyIn(BaseModel):
    ndaDetails: Optional[Dict[str, Any]] = None
    questionnaireData: Optional[Dict[str, Optional[str]]] = None


class StatusIn(BaseModel):
    status: str
    reviewNotes: Optional[str] = None


# ---------- Routes ----------

@router.post("", status_code=201)
def create_survey(payload: SurveyIn, request: Request,
                  repo: SurveyRepository = Depends(get_repository)):
    """Store a completed NDA + questionnaire submission."""
    result = repo.create(
        payload.ndaDetails,
        payload.questionnaireData,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return {"success": True, "message": "Survey submitted successfully", "data": result}


@router.get("")
def list_surveys(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    search: str = "",
    status: str = "",
    sortBy: str = "submissionDate",
    sortOrder: str = "desc",
    startDate: str = "",
    endDate: str = "",
    repo: SurveyRepository = Depends(get_repository),
):
    items, pagination = repo.list(
        page=page, limit=limit, search=search, status=status,
        sort_by=sortBy, sort_order=sortOrder,
        start_date=startDate or None, end_date=endDate or None,
    )
    return {"success": True, "data": items, "pagination": pagination}


# Declared before /{survey_id} so "stats" is not taken for an id
@router.get("/stats/overview")
def survey_stats(repo: SurveyRepository = Depends(get_repository)):
    counts = repo.stats()
    return {
        "success": True,
        "data": {
            "totalSurveys": counts["total"],
            "submittedSurveys": counts["submitted"],
            "reviewedSurveys": counts["reviewed"],
            "draftSurveys": counts["draft"],
        },
    }


@router.get("/{survey_id}")
def get_survey(survey_id: str, repo: SurveyRepository = Depends(get_repository)):
    return {"success": True, "data": repo.get(survey_id)}


@router.patch("/{survey_id}/status")
def update_survey_status(survey_id: str, payload: StatusIn,
                         repo: SurveyRepository = Depends(get_repository)):
    """Admin review: move a submission between draft/submitted/reviewed."""
    doc = repo.update_status(survey_id, payload.status, payload.reviewNotes)
    return {"success": True, "data": doc, "message": "Survey status updated successfully"}
