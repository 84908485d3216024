import json

import httpx
import pytest

from ndasurvey.client.api import SurveyApiClient
from ndasurvey.errors import ApiError, InvalidArgument, NotFound, TransportError, ValidationError


def _client(handler):
    http = httpx.Client(base_url="http://survey.test/api", transport=httpx.MockTransport(handler))
    return SurveyApiClient(http=http)


def test_network_failure_becomes_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        _client(handler).get_stats()


def test_timeout_becomes_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(TransportError):
        _client(handler).submit_survey({"bankName": "B"}, {})


@pytest.mark.parametrize("method, status, expected", [
    ("submit", 400, ValidationError),
    ("update", 400, InvalidArgument),
    ("get", 404, NotFound),
])
def test_error_envelopes_map_to_errors(method, status, expected):
    def handler(request):
        return httpx.Response(status, json={"success": False, "message": "nope"})

    api = _client(handler)
    call = {
        "submit": lambda: api.submit_survey({}, {}),
        "update": lambda: api.update_survey_status("x", "archived"),
        "get": lambda: api.get_survey("x"),
    }[method]

    with pytest.raises(expected, match="nope"):
        call()


def test_server_error_keeps_status():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(ApiError) as exc_info:
        _client(handler).get_surveys()
    assert exc_info.value.status_code == 500


def test_get_surveys_drops_empty_params():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"success": True, "data": [], "pagination": {}})

    _client(handler).get_surveys(page=2, limit=10, search="", status=None, sortBy="submissionDate")

    assert seen["url"].path == "/api/surveys"
    assert dict(seen["url"].params) == {"page": "2", "limit": "10", "sortBy": "submissionDate"}


@pytest.mark.parametrize("notes, expected", [
    (None, {"status": "submitted"}),
    ("checked", {"status": "reviewed", "reviewNotes": "checked"}),
])
def test_status_update_sends_notes_only_when_given(notes, expected):
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "data": {}})

    _client(handler).update_survey_status("abc", expected["status"], notes)

    assert seen["body"] == expected


def test_health_check_against_app(api):
    assert api.health_check()["status"] == "OK"
