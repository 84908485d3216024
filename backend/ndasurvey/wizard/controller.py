# ndasurvey/wizard/controller.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Mapping, Optional

from ndasurvey.errors import ConsentRequired, WizardStateError
from ndasurvey.wizard.drafts import SurveyDraftStore
from ndasurvey.wizard.models import NdaDetails, SurveyStep, validate_nda_details
from ndasurvey.wizard.progress import calculate_progress

logger = logging.getLogger(__name__)


class WizardController:
    """
    Three-step survey wizard: inputNda -> displayNda -> questionnaire.

    State is mirrored to the draft store on every change so a new
    controller over the same store resumes where the last one stopped.
    """

    def __init__(self, store: SurveyDraftStore):
        self.store = store
        self.nda_details: Optional[NdaDetails] = store.load_nda_details()
        self.answers: Dict[str, Any] = store.load_answers()
        step = store.load_step()
        if step is not SurveyStep.INPUT_NDA and self.nda_details is None:
            logger.warning("Stored step %s has no NDA details, resuming at inputNda", step.value)
            step = SurveyStep.INPUT_NDA
            store.save_step(step)
        self.step = step

    def _require(self, step: SurveyStep, action: str) -> None:
        if self.step is not step:
            raise WizardStateError(f"Cannot {action} while on step {self.step.value}")

    def _move(self, step: SurveyStep) -> None:
        logger.debug("Wizard %s -> %s", self.step.value, step.value)
        self.step = step
        self.store.save_step(step)

    # ---------- Transitions ----------

    def submit_nda(self, values: Mapping[str, Any]) -> NdaDetails:
        """Validate step-1 values and move on to the NDA review."""
        self._require(SurveyStep.INPUT_NDA, "submit NDA details")
        details = validate_nda_details(values)
        self.nda_details = details
        self.store.save_nda_details(details)
        self._move(SurveyStep.DISPLAY_NDA)
        return details

    def back(self) -> None:
        self._require(SurveyStep.DISPLAY_NDA, "go back")
        self._move(SurveyStep.INPUT_NDA)

    def accept_nda(self, consent: bool) -> None:
        self._require(SurveyStep.DISPLAY_NDA, "accept the NDA")
        if consent is not True:
            raise ConsentRequired("The NDA terms must be accepted before continuing")
        self._move(SurveyStep.QUESTIONNAIRE)

    def clear(self) -> None:
        """Drop every draft and start over."""
        self.store.clear()
        self.nda_details = None
        self.answers = {}
        self.step = SurveyStep.INPUT_NDA
        logger.info("Survey draft cleared")

    # ---------- Questionnaire draft ----------

    def set_answer(self, key: str, value: Any) -> int:
        return self.update_answers({key: value})

    def update_answers(self, values: Mapping[str, Any]) -> int:
        """Record answers in the draft and return the new progress."""
        self._require(SurveyStep.QUESTIONNAIRE, "answer questions")
        self.answers.update(
            {k: v.isoformat() if isinstance(v, date) else v for k, v in values.items()}
        )
        self.store.save_answers(self.answers)
        return self.progress

    @property
    def progress(self) -> int:
        return calculate_progress(self.answers)
