# ndasurvey/wizard/drafts.py
"""
Client-side draft persistence for the survey wizard.

Three entries live under the draft namespace of a storage backend:
the NDA details, the in-progress answer map and the last wizard step.
Nothing else in the wizard touches the storage medium.
"""
import logging
from typing import Any, Dict, Optional

from ndasurvey.services.storage import StorageBackend
from ndasurvey.wizard.models import NdaDetails, SurveyStep

logger = logging.getLogger(__name__)

NDA_DETAILS_KEY = "survey_nda_details"
FORM_DATA_KEY = "survey_form_data"
LAST_STEP_KEY = "survey_last_step"

DRAFT_KEYS = (NDA_DETAILS_KEY, FORM_DATA_KEY, LAST_STEP_KEY)


class SurveyDraftStore:
    def __init__(self, storage: StorageBackend, namespace: str = "drafts"):
        self.storage = storage
        self.namespace = namespace.strip("/")

    def _path(self, key: str) -> str:
        return f"{self.namespace}/{key}"

    def _read_json(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not self.storage.exists(path):
            return None
        try:
            return self.storage.read_json(path)
        except ValueError:
            logger.warning("Discarding unreadable draft entry %s", key)
            return None

    # ---------- NDA details ----------

    def load_nda_details(self) -> Optional[NdaDetails]:
        data = self._read_json(NDA_DETAILS_KEY)
        if not isinstance(data, dict):
            return None
        try:
            return NdaDetails(**data)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed NDA draft")
            return None

    def save_nda_details(self, details: Optional[NdaDetails]) -> None:
        if details is None:
            self.storage.delete(self._path(NDA_DETAILS_KEY))
        else:
            self.storage.write_json(self._path(NDA_DETAILS_KEY), details.model_dump())

    # ---------- Answers ----------

    def load_answers(self) -> Dict[str, Any]:
        data = self._read_json(FORM_DATA_KEY)
        return data if isinstance(data, dict) else {}

    def save_answers(self, answers: Dict[str, Any]) -> None:
        self.storage.write_json(self._path(FORM_DATA_KEY), dict(answers))

    # ---------- Step ----------

    def load_step(self) -> SurveyStep:
        path = self._path(LAST_STEP_KEY)
        if not self.storage.exists(path):
            return SurveyStep.INPUT_NDA
        raw = None
        try:
            raw = self.storage.read_text(path).strip()
            return SurveyStep(raw)
        except ValueError:
            logger.warning("Unknown stored wizard step %r, starting over", raw)
            return SurveyStep.INPUT_NDA

    def save_step(self, step: SurveyStep) -> None:
        self.storage.write_text(self._path(LAST_STEP_KEY), step.value)

    def clear(self) -> None:
        for key in DRAFT_KEYS:
            self.storage.delete(self._path(key))
