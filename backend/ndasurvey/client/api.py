# ndasurvey/client/api.py
"""
HTTP client for the survey API.

Every call returns the decoded JSON envelope. Network failures become
:class:`TransportError`; error envelopes become the matching
:class:`SurveyError` subclass. Nothing is retried.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from ndasurvey.errors import ApiError, InvalidArgument, NotFound, TransportError, ValidationError

logger = logging.getLogger(__name__)

SURVEY_API_URL = os.getenv("SURVEY_API_URL", "http://localhost:5001/api")
SURVEY_API_TIMEOUT = float(os.getenv("SURVEY_API_TIMEOUT", "10"))


class SurveyApiClient:
    def __init__(self, base_url: str = SURVEY_API_URL,
                 timeout: float = SURVEY_API_TIMEOUT,
                 http: Optional[httpx.Client] = None):
        self._http = http or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _request(self, method: str, path: str, *,
                 not_ok: type = ApiError, **kwargs) -> Dict[str, Any]:
        logger.debug("API request: %s %s", method, path)
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("API request failed: %s %s: %s", method, path, e)
            raise TransportError(f"Could not reach the survey service: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success:
            return body

        message = body.get("message") if isinstance(body, dict) else None
        message = message or f"Survey service answered {response.status_code}"
        logger.error("API response error: %s %s -> %s %s",
                     method, path, response.status_code, message)
        if response.status_code == 404:
            raise NotFound(message)
        if response.status_code == 400 and not_ok is not ApiError:
            raise not_ok(message)
        raise ApiError(message, response.status_code)

    # ---------- Endpoints ----------

    def submit_survey(self, nda_details: Dict[str, Any],
                      questionnaire_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/surveys", not_ok=ValidationError, json={
            "ndaDetails": nda_details,
            "questionnaireData": questionnaire_data,
        })

    def get_surveys(self, **params: Any) -> Dict[str, Any]:
        query = {k: v for k, v in params.items() if v not in (None, "")}
        return self._request("GET", "/surveys", not_ok=InvalidArgument, params=query)

    def get_survey(self, survey_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/surveys/{survey_id}")

    def update_survey_status(self, survey_id: str, status: str,
                             review_notes: Optional[str] = None) -> Dict[str, Any]:
        body = {"status": status}
        if review_notes is not None:
            body["reviewNotes"] = review_notes
        return self._request("PATCH", f"/surveys/{survey_id}/status", not_ok=InvalidArgument, json=body)

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/surveys/stats/overview")

    def health_check(self) -> Dict[str, Any]:
        return self._request("GET", "/health")
