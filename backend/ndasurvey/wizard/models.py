# ndasurvey/wizard/models.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel, ConfigDict

from ndasurvey.errors import ValidationError

REQUIRED_MESSAGE = "This field is required."

MIN_DURATION_YEARS = 1
MAX_DURATION_YEARS = 50


class SurveyStep(str, Enum):
    INPUT_NDA = "inputNda"
    DISPLAY_NDA = "displayNda"
    QUESTIONNAIRE = "questionnaire"


class NdaDetails(BaseModel):
    """Party details the NDA is generated from. Immutable once entered."""

    model_config = ConfigDict(frozen=True)

    bankName: str
    bankAddress: str
    bankRegNumber: str
    bankContactName: str
    bankContactPosition: str
    receiverName: str
    receiverAddress: str
    receiverRegNumber: str
    receiverContactName: str
    receiverContactPosition: str
    ndaPurpose: str
    ndaDurationYears: str
    ndaEffectiveDate: str


NDA_FIELDS: Tuple[str, ...] = tuple(NdaDetails.model_fields)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def validate_nda_details(values: Mapping[str, Any]) -> NdaDetails:
    """
    Check the step-1 form and build :class:`NdaDetails`.

    Raises :class:`ValidationError` whose ``errors`` maps each offending
    field to a message; all fields are checked before raising.
    """
    cleaned: Dict[str, str] = {}
    errors: Dict[str, str] = {}

    for field in NDA_FIELDS:
        text = _text(values.get(field))
        if not text:
            errors[field] = REQUIRED_MESSAGE
        cleaned[field] = text

    duration = cleaned["ndaDurationYears"]
    if duration and "ndaDurationYears" not in errors:
        try:
            years = int(duration)
        except ValueError:
            errors["ndaDurationYears"] = "Duration must be a whole number of years."
        else:
            if not MIN_DURATION_YEARS <= years <= MAX_DURATION_YEARS:
                errors["ndaDurationYears"] = (
                    f"Duration must be between {MIN_DURATION_YEARS} and {MAX_DURATION_YEARS} years."
                )
            cleaned["ndaDurationYears"] = str(years)

    effective = cleaned["ndaEffectiveDate"]
    if effective and "ndaEffectiveDate" not in errors:
        try:
            cleaned["ndaEffectiveDate"] = date.fromisoformat(effective[:10]).isoformat()
        except ValueError:
            errors["ndaEffectiveDate"] = "Effective date must be a YYYY-MM-DD date."

    if errors:
        raise ValidationError("NDA details are incomplete", errors=errors)
    return NdaDetails(**cleaned)
