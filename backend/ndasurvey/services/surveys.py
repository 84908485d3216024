# ndasurvey/services/surveys.py
"""
Survey collection on top of the document storage.

One JSON document per submission under ``surveys/<id>.json``. Filtering,
sorting and pagination are evaluated in process over the collection.
"""
from __future__ import annotations

import logging
import math
import threading
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from ndasurvey.errors import InvalidArgument, NotFound, ValidationError
from ndasurvey.services.storage import StorageBackend

logger = logging.getLogger(__name__)

COLLECTION = "surveys"

STATUSES = ("draft", "submitted", "reviewed")
DEFAULT_STATUS = "submitted"

# Text fields matched by the admin search box
SEARCH_FIELDS = (
    "ndaDetails.bankName",
    "ndaDetails.bankContactName",
    "ndaDetails.receiverName",
    "questionnaireData.contactPersonEmail",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp or date; naive values are taken as UTC."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _is_date_only(value: str) -> bool:
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def _lookup(doc: Dict[str, Any], dotted: str) -> Any:
    cur: Any = doc
    for part in dotted.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(part)
    return cur


def _sort_key(value: Any) -> Tuple[int, Any]:
    # null < numbers < everything else
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    return (2, str(value))


class SurveyRepository:
    """CRUD + query operations over the survey collection."""

    def __init__(self, storage: StorageBackend,
                 clock: Callable[[], datetime] = utc_now):
        self.storage = storage
        self.clock = clock
        self._lock = threading.Lock()

    # ---------- Helpers ----------

    def _path(self, survey_id: str) -> str:
        return f"{COLLECTION}/{survey_id}.json"

    def _load(self, survey_id: str) -> Optional[dict]:
        # ids are used as file names; anything path-like cannot exist
        if not survey_id or "/" in survey_id or "\\" in survey_id or survey_id.startswith("."):
            return None
        path = self._path(survey_id)
        if not self.storage.exists(path):
            return None
        return self.storage.read_json(path)

    def _all(self) -> List[dict]:
        docs = []
        for name in self.storage.list_dir(COLLECTION):
            if not name.endswith(".json"):
                continue
            try:
                docs.append(self.storage.read_json(f"{COLLECTION}/{name}"))
            except (ValueError, FileNotFoundError):
                logger.warning("Skipping unreadable survey document %s", name)
        return docs

    # ---------- Operations ----------

    def create(self, nda_details: Optional[Dict[str, Any]],
               questionnaire_data: Optional[Dict[str, Any]] = None,
               ip_address: Optional[str] = None,
               user_agent: Optional[str] = None) -> dict:
        """Persist a new submission and return ``{id, submissionDate}``."""
        if not nda_details or not nda_details.get("bankName"):
            raise ValidationError("NDA details are required")

        now = to_iso(self.clock())
        doc = {
            "id": uuid4().hex,
            "ndaDetails": dict(nda_details),
            "questionnaireData": dict(questionnaire_data or {}),
            "submissionDate": now,
            "ipAddress": ip_address,
            "userAgent": user_agent or "Unknown",
            "status": DEFAULT_STATUS,
            "reviewNotes": None,
            "createdAt": now,
            "updatedAt": now,
        }
        self.storage.write_json(self._path(doc["id"]), doc)
        logger.info("Survey %s saved (bank=%s, %d answers)",
                    doc["id"], nda_details.get("bankName"), len(doc["questionnaireData"]))
        return {"id": doc["id"], "submissionDate": doc["submissionDate"]}

    def list(self, page: int = 1, limit: int = 10, search: str = "",
             status: str = "", sort_by: str = "submissionDate",
             sort_order: str = "desc", start_date: Optional[str] = None,
             end_date: Optional[str] = None) -> Tuple[List[dict], dict]:
        """Filter, sort and paginate. Returns ``(items, pagination)``."""
        if page < 1 or limit < 1:
            raise InvalidArgument("page and limit must be positive integers")

        docs = self._all()

        if search:
            needle = search.lower()
            docs = [d for d in docs
                    if any(needle in str(_lookup(d, f) or "").lower() for f in SEARCH_FIELDS)]

        if status:
            docs = [d for d in docs if d.get("status") == status]

        if start_date and end_date:
            lo, hi = self._date_bounds(start_date, end_date)
            docs = [d for d in docs if self._in_range(d, lo, hi)]

        docs.sort(key=lambda d: _sort_key(_lookup(d, sort_by or "submissionDate")),
                  reverse=(sort_order or "desc").lower() == "desc")

        total = len(docs)
        total_pages = math.ceil(total / limit)
        skip = (page - 1) * limit
        pagination = {
            "currentPage": page,
            "totalPages": total_pages,
            "totalItems": total,
            "itemsPerPage": limit,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
        }
        return docs[skip:skip + limit], pagination

    def get(self, survey_id: str) -> dict:
        doc = self._load(survey_id)
        if doc is None:
            raise NotFound("Survey not found")
        return doc

    def update_status(self, survey_id: str, status: str,
                      review_notes: Optional[str] = None) -> dict:
        if status not in STATUSES:
            raise InvalidArgument("Invalid status value")

        with self._lock:
            doc = self._load(survey_id)
            if doc is None:
                raise NotFound("Survey not found")
            previous = doc.get("status")
            doc["status"] = status
            if review_notes is not None:
                doc["reviewNotes"] = review_notes
            doc["updatedAt"] = to_iso(self.clock())
            self.storage.write_json(self._path(survey_id), doc)

        logger.info("Survey %s status %s -> %s", survey_id, previous, status)
        return doc

    def stats(self) -> Dict[str, int]:
        counts = {"total": 0, "submitted": 0, "reviewed": 0, "draft": 0}
        for doc in self._all():
            counts["total"] += 1
            if doc.get("status") in STATUSES:
                counts[doc["status"]] += 1
        return counts

    # ---------- Date range ----------

    @staticmethod
    def _date_bounds(start_date: str, end_date: str) -> Tuple[datetime, datetime]:
        try:
            lo = parse_timestamp(start_date)
            hi = parse_timestamp(end_date)
        except ValueError as e:
            raise InvalidArgument(f"Invalid date range: {e}") from e
        if _is_date_only(end_date):
            # A bare end date covers the whole day
            hi = datetime.combine(hi.date(), time.min, tzinfo=timezone.utc) \
                + timedelta(days=1) - timedelta(microseconds=1)
        return lo, hi

    @staticmethod
    def _in_range(doc: dict, lo: datetime, hi: datetime) -> bool:
        raw = doc.get("submissionDate")
        if not raw:
            return False
        try:
            ts = parse_timestamp(raw)
        except ValueError:
            return False
        return lo <= ts <= hi
