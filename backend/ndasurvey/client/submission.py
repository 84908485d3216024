# ndasurvey/client/submission.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional

from ndasurvey.client.api import SurveyApiClient
from ndasurvey.client.notify import Notifier
from ndasurvey.errors import SurveyError, ValidationError, WizardStateError
from ndasurvey.wizard.controller import WizardController
from ndasurvey.wizard.models import NdaDetails, SurveyStep
from ndasurvey.wizard.progress import is_filled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionReceipt:
    id: str
    submission_date: str


def _as_answer(value: Any) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def merge_answers(structured: Optional[Mapping[str, Any]] = None,
                  free_form: Optional[Mapping[str, Any]] = None) -> Dict[str, str]:
    """
    Flatten the two answer sources into one submission mapping.

    Empty values are dropped. For a key present in both, a non-empty
    structured value wins; an empty structured value never hides a
    free-form one.
    """
    merged: Dict[str, str] = {}
    for source in (free_form or {}, structured or {}):
        for key, value in source.items():
            if is_filled(value):
                merged[key] = _as_answer(value)
    return merged


class SubmissionService:
    def __init__(self, api: SurveyApiClient, wizard: WizardController,
                 notifier: Optional[Notifier] = None):
        self.api = api
        self.wizard = wizard
        self.notifier = notifier or Notifier()
        self.confirmation: Optional[SubmissionReceipt] = None

    def submit(self, nda_details: Optional[NdaDetails],
               structured: Optional[Mapping[str, Any]] = None,
               answers: Optional[Mapping[str, Any]] = None) -> Optional[SubmissionReceipt]:
        """
        Send NDA details and answers to the API.

        Returns the receipt on success (the draft is cleared), or None after
        surfacing one error notice (the draft is left alone).
        """
        if nda_details is None:
            raise ValidationError("NDA details are required")

        questionnaire_data = merge_answers(structured, answers)
        try:
            response = self.api.submit_survey(nda_details.model_dump(), questionnaire_data)
        except SurveyError as e:
            logger.error("Survey submission failed: %s", e.message)
            self.notifier.error("Error", "The questionnaire could not be submitted")
            return None

        data = response.get("data") or {}
        receipt = SubmissionReceipt(id=str(data.get("id")), submission_date=str(data.get("submissionDate")))
        self.wizard.clear()
        self.confirmation = receipt
        self.notifier.success("Submitted", "The questionnaire was submitted and saved")
        logger.info("Survey submitted as %s", receipt.id)
        return receipt

    def submit_draft(self, structured: Optional[Mapping[str, Any]] = None) -> Optional[SubmissionReceipt]:
        """Submit what the wizard holds, with ``structured`` form values on top."""
        if self.wizard.step is not SurveyStep.QUESTIONNAIRE:
            raise WizardStateError(f"Cannot submit while on step {self.wizard.step.value}")
        return self.submit(self.wizard.nda_details, structured, self.wizard.answers)

    def dismiss_confirmation(self) -> None:
        self.confirmation = None
