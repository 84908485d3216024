# ndasurvey/client/admin.py
"""
Admin dashboard state: filters, the current page of submissions, summary
counters and the record opened for review.

The table only ever shows server-confirmed data. Each list/stats request
carries a sequence number and only the response to the latest request of
its kind is applied, so a slow older response cannot overwrite a newer one.
"""
from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

from ndasurvey.client.api import SurveyApiClient
from ndasurvey.client.notify import Notifier
from ndasurvey.errors import SurveyError
from ndasurvey.wizard.progress import is_filled
from ndasurvey.wizard.rules import (
    BANK_INFO_FIELDS,
    COMMENTS_FIELD,
    CONDITIONAL_RULES,
    active_children,
    conditional_keys,
)

logger = logging.getLogger(__name__)

EMPTY_STATS = {"totalSurveys": 0, "submittedSurveys": 0, "reviewedSurveys": 0, "draftSurveys": 0}

_QUESTION_RE = re.compile(r"^q(\d+)_(\d+)$")


@dataclass(frozen=True)
class SurveyFilters:
    page: int = 1
    limit: int = 10
    search: str = ""
    status: str = ""
    sort_by: str = "submissionDate"
    sort_order: str = "desc"
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        names = {"sort_by": "sortBy", "sort_order": "sortOrder",
                 "start_date": "startDate", "end_date": "endDate"}
        return {names.get(k, k): v for k, v in asdict(self).items()}


class AdminReview:
    def __init__(self, api: SurveyApiClient, notifier: Optional[Notifier] = None):
        self.api = api
        self.notifier = notifier or Notifier()
        self.filters = SurveyFilters()
        self.items: List[dict] = []
        self.pagination: Dict[str, Any] = {}
        self.stats: Dict[str, int] = dict(EMPTY_STATS)
        self.selected: Optional[dict] = None
        self._issued = {"list": 0, "stats": 0}

    # ---------- Sequencing ----------

    def begin(self, kind: str) -> int:
        self._issued[kind] += 1
        return self._issued[kind]

    def apply_list(self, seq: int, response: Dict[str, Any]) -> bool:
        if seq != self._issued["list"]:
            logger.debug("Ignoring stale list response #%d", seq)
            return False
        self.items = list(response.get("data") or [])
        self.pagination = dict(response.get("pagination") or {})
        return True

    def apply_stats(self, seq: int, response: Dict[str, Any]) -> bool:
        if seq != self._issued["stats"]:
            logger.debug("Ignoring stale stats response #%d", seq)
            return False
        self.stats = {**EMPTY_STATS, **(response.get("data") or {})}
        return True

    # ---------- Fetching ----------

    def refresh_list(self) -> None:
        seq = self.begin("list")
        try:
            response = self.api.get_surveys(**self.filters.to_params())
        except SurveyError as e:
            self.notifier.error("Error", f"Failed to load surveys: {e.message}")
            return
        self.apply_list(seq, response)

    def refresh_stats(self) -> None:
        seq = self.begin("stats")
        try:
            response = self.api.get_stats()
        except SurveyError as e:
            logger.error("Failed to fetch stats: %s", e.message)
            return
        self.apply_stats(seq, response)

    def load(self) -> None:
        self.refresh_list()
        self.refresh_stats()

    # ---------- Filters ----------

    def _set_filters(self, **changes: Any) -> None:
        self.filters = replace(self.filters, **changes)
        self.refresh_list()

    def search(self, text: str) -> None:
        self._set_filters(search=text, page=1)

    def filter_status(self, status: str) -> None:
        self._set_filters(status=status, page=1)

    def filter_dates(self, start_date: Optional[str], end_date: Optional[str]) -> None:
        if start_date and end_date:
            self._set_filters(start_date=start_date, end_date=end_date, page=1)
        else:
            self._set_filters(start_date=None, end_date=None, page=1)

    def change_page(self, page: int, limit: Optional[int] = None) -> None:
        self._set_filters(page=page, limit=limit or self.filters.limit)

    def sort(self, field: str, order: str = "desc") -> None:
        self._set_filters(sort_by=field, sort_order=order, page=1)

    # ---------- Review ----------

    def select(self, survey_id: str) -> Optional[dict]:
        try:
            self.selected = self.api.get_survey(survey_id).get("data")
        except SurveyError as e:
            self.notifier.error("Error", f"Failed to load survey: {e.message}")
        return self.selected

    def close_details(self) -> None:
        self.selected = None

    def update_status(self, survey_id: str, status: str,
                      review_notes: Optional[str] = None) -> bool:
        try:
            response = self.api.update_survey_status(survey_id, status, review_notes)
        except SurveyError as e:
            self.notifier.error("Error", f"Failed to update status: {e.message}")
            return False

        self.notifier.success("Status updated", f"Survey marked as {status}")
        if self.selected and self.selected.get("id") == survey_id:
            self.selected = response.get("data")
        self.refresh_list()
        self.refresh_stats()
        return True


# ---------- Review display ----------

def field_label(key: str) -> str:
    """Readable label for a questionnaire key."""
    m = _QUESTION_RE.match(key)
    if m:
        return f"Question {m.group(1)}.{m.group(2)}"
    if key.startswith("q") and "_" in key:
        head, _, rest = key.partition("_")
        number, _, tail = rest.partition("_")
        if head[1:].isdigit() and number.isdigit():
            return f"Question {head[1:]}.{number} {tail.replace('_', ' ')}".strip()
    words = re.sub(r"([a-z])([A-Z])", r"\1 \2", key).replace("_", " ")
    return words[:1].upper() + words[1:]


def answer_entries(data: Dict[str, Any]) -> List[Tuple[str, str, Any]]:
    """
    Flatten a submission's answers for review as ``(key, label, value)``.

    Bank info comes first, then each question followed by the follow-ups it
    currently unlocks, then any other non-empty field, comments last.
    Follow-ups of answers that do not unlock them are left out.
    """
    entries: List[Tuple[str, str, Any]] = []
    seen = set()

    def add(key: str) -> None:
        if key in seen:
            return
        seen.add(key)
        if is_filled(data.get(key)):
            entries.append((key, field_label(key), data[key]))

    for key in BANK_INFO_FIELDS:
        add(key)

    unlocked: Dict[str, List[str]] = {}
    for question, child in active_children(data, CONDITIONAL_RULES):
        unlocked.setdefault(question, []).append(child)
    follow_ups = conditional_keys(CONDITIONAL_RULES)

    def add_question(key: str) -> None:
        add(key)
        for child in unlocked.get(key, []):
            add_question(child)

    questions = [k for k in data if _QUESTION_RE.match(k)]
    for key in sorted(questions, key=lambda k: tuple(map(int, _QUESTION_RE.match(k).groups()))):
        add_question(key)

    for key in data:
        if key not in follow_ups and key != COMMENTS_FIELD:
            add(key)
    add(COMMENTS_FIELD)
    return entries
