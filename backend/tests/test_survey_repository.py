import pytest

from ndasurvey.errors import InvalidArgument, NotFound, ValidationError


def _seed(repo, clock, n, **nda_overrides):
    ids = []
    for i in range(n):
        nda = {"bankName": f"Bank {i:02d}", "bankContactName": f"Contact {i}",
               "receiverName": "Receiver"}
        nda.update(nda_overrides)
        ids.append(repo.create(nda, {"contactPersonEmail": f"user{i}@bank.mk"})["id"])
        clock.advance(hours=1)
    return ids


class TestCreate:
    def test_defaults(self, repo, nda_values):
        result = repo.create(nda_values, {"q1_1": "Да"}, ip_address="10.0.0.1")
        doc = repo.get(result["id"])

        assert result["submissionDate"] == "2024-01-15T10:00:00.000Z"
        assert doc["status"] == "submitted"
        assert doc["userAgent"] == "Unknown"
        assert doc["ipAddress"] == "10.0.0.1"
        assert doc["ndaDetails"] == nda_values
        assert doc["questionnaireData"] == {"q1_1": "Да"}
        assert doc["createdAt"] == doc["updatedAt"] == doc["submissionDate"]

    def test_missing_questionnaire_defaults_to_empty(self, repo):
        doc = repo.get(repo.create({"bankName": "B"})["id"])
        assert doc["questionnaireData"] == {}

    @pytest.mark.parametrize("nda", [None, {}, {"bankName": ""}, {"receiverName": "R"}])
    def test_requires_bank_name(self, repo, nda):
        with pytest.raises(ValidationError, match="NDA details are required"):
            repo.create(nda, {})
        assert repo.stats()["total"] == 0


class TestList:
    def test_page_two_of_twenty_five(self, repo, clock):
        _seed(repo, clock, 25)

        items, pagination = repo.list(page=2, limit=10)

        assert len(items) == 10
        assert pagination == {
            "currentPage": 2,
            "totalPages": 3,
            "totalItems": 25,
            "itemsPerPage": 10,
            "hasNextPage": True,
            "hasPrevPage": True,
        }

    def test_last_page_is_partial(self, repo, clock):
        _seed(repo, clock, 25)
        items, pagination = repo.list(page=3, limit=10)
        assert len(items) == 5
        assert pagination["hasNextPage"] is False

    def test_empty_collection(self, repo):
        items, pagination = repo.list()
        assert items == []
        assert pagination["totalPages"] == 0
        assert pagination["hasNextPage"] is False
        assert pagination["hasPrevPage"] is False

    def test_default_sort_is_newest_first(self, repo, clock):
        ids = _seed(repo, clock, 3)
        items, _ = repo.list()
        assert [d["id"] for d in items] == list(reversed(ids))

    def test_sort_by_nested_field_ascending(self, repo, clock):
        repo.create({"bankName": "Zeta"})
        repo.create({"bankName": "Alpha"})
        items, _ = repo.list(sort_by="ndaDetails.bankName", sort_order="asc")
        assert [d["ndaDetails"]["bankName"] for d in items] == ["Alpha", "Zeta"]

    def test_search_is_case_insensitive_across_fields(self, repo, clock):
        repo.create({"bankName": "Alpha Bank"})
        repo.create({"bankName": "Beta", "receiverName": "ALPHA Consulting"})
        repo.create({"bankName": "Gamma"}, {"contactPersonEmail": "it@alphamail.mk"})
        repo.create({"bankName": "Delta"})

        items, _ = repo.list(search="alpha")
        assert sorted(d["ndaDetails"]["bankName"] for d in items) == ["Alpha Bank", "Beta", "Gamma"]

    def test_search_is_literal_not_regex(self, repo):
        repo.create({"bankName": "Bank (North)"})
        repo.create({"bankName": "Bank North"})
        items, _ = repo.list(search="(north)")
        assert [d["ndaDetails"]["bankName"] for d in items] == ["Bank (North)"]

    def test_status_and_search_combine(self, repo, clock):
        a = repo.create({"bankName": "Alpha Bank"})["id"]
        b = repo.create({"bankName": "Alpha Savings"})["id"]
        repo.create({"bankName": "Beta"})
        c = repo.create({"bankName": "Beta Reviewed"})["id"]
        for survey_id in (a, c):
            repo.update_status(survey_id, "reviewed")

        reviewed, _ = repo.list(status="reviewed")
        assert {d["id"] for d in reviewed} == {a, c}

        both, _ = repo.list(status="reviewed", search="alpha")
        assert [d["id"] for d in both] == [a]
        assert b not in {d["id"] for d in both}

    def test_date_range_is_inclusive(self, repo, clock):
        ids = _seed(repo, clock, 1)          # 2024-01-15 10:00
        clock.advance(days=1)                # 2024-01-16 11:00
        ids += _seed(repo, clock, 1)
        clock.advance(days=5)                # 2024-01-21 12:00
        ids += _seed(repo, clock, 1)

        items, _ = repo.list(start_date="2024-01-15", end_date="2024-01-16")
        assert {d["id"] for d in items} == set(ids[:2])

        items, _ = repo.list(start_date="2024-01-15T10:00:00Z", end_date="2024-01-15T10:00:00Z")
        assert [d["id"] for d in items] == ids[:1]

    def test_single_date_bound_is_ignored(self, repo, clock):
        _seed(repo, clock, 2)
        items, _ = repo.list(start_date="2030-01-01")
        assert len(items) == 2

    def test_bad_dates_and_paging(self, repo):
        with pytest.raises(InvalidArgument):
            repo.list(start_date="yesterday", end_date="today")
        with pytest.raises(InvalidArgument):
            repo.list(page=0)


class TestGetAndUpdate:
    def test_get_unknown(self, repo):
        with pytest.raises(NotFound):
            repo.get("deadbeef")

    def test_get_rejects_path_like_ids(self, repo):
        with pytest.raises(NotFound):
            repo.get("../server")

    def test_update_status(self, repo, clock):
        survey_id = repo.create({"bankName": "B"})["id"]
        clock.advance(minutes=5)

        doc = repo.update_status(survey_id, "reviewed", "looks fine")

        assert doc["status"] == "reviewed"
        assert doc["reviewNotes"] == "looks fine"
        assert doc["updatedAt"] == "2024-01-15T10:05:00.000Z"
        assert doc["submissionDate"] == "2024-01-15T10:00:00.000Z"
        assert repo.get(survey_id) == doc

    def test_status_change_without_notes_keeps_notes(self, repo):
        survey_id = repo.create({"bankName": "B"})["id"]
        repo.update_status(survey_id, "reviewed", "checked by legal")

        doc = repo.update_status(survey_id, "submitted")

        assert doc["status"] == "submitted"
        assert doc["reviewNotes"] == "checked by legal"
        assert repo.get(survey_id)["reviewNotes"] == "checked by legal"

    def test_invalid_status_does_not_mutate(self, repo):
        survey_id = repo.create({"bankName": "B"})["id"]
        before = repo.get(survey_id)

        with pytest.raises(InvalidArgument):
            repo.update_status(survey_id, "archived")

        assert repo.get(survey_id) == before

    def test_update_unknown(self, repo):
        with pytest.raises(NotFound):
            repo.update_status("nope", "reviewed")


def test_stats_counts_whole_collection(repo, clock):
    ids = _seed(repo, clock, 5)
    repo.update_status(ids[0], "reviewed")
    repo.update_status(ids[1], "reviewed")
    repo.update_status(ids[2], "draft")

    assert repo.stats() == {"total": 5, "submitted": 2, "reviewed": 2, "draft": 1}
