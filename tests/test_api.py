"""
HTTP API tests through FastAPI's TestClient.
"""

import sqlite3
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from question_bank.api.main import app
from question_bank.core.errors import StoreError


class TestQuestionAPI:
    """Question CRUD endpoints."""

    @pytest.fixture
    def client(self, test_db):
        with TestClient(app) as test_client:
            yield test_client

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["db_health"] is True
        assert data["question_count"] == 0

    def test_create_get_and_duplicate(self, client):
        response = client.post("/questions", json={"category": "wfd", "identifier": "418", "content": " Jobs. "})
        assert response.status_code == 201
        created = response.json()
        assert created["identifier"] == "#418 WFD"
        assert created["category"] == "WFD"
        assert created["content"] == "Jobs."
        assert created["version"] == 1

        assert client.get(f"/questions/{created['id']}").json()["identifier"] == "#418 WFD"

        response = client.post("/questions", json={"category": "WFD", "identifier": "#418 WFD", "content": "x"})
        assert response.status_code == 409
        assert "Question number already exists" in response.json()["detail"]

    def test_create_validation(self, client):
        assert client.post("/questions", json={"category": "XX", "identifier": "1", "content": "x"}).status_code == 422
        assert client.post("/questions", json={"category": "RS", "identifier": "1", "content": " "}).status_code == 422
        assert client.post("/questions", json={"category": "RS", "identifier": "abc", "content": "x"}).status_code == 400

    def test_list_with_category_and_search(self, client):
        for identifier, content in [("10", "Ten apples"), ("2", "Two pears"), ("1", "One apple")]:
            client.post("/questions", json={"category": "WFD", "identifier": identifier, "content": content})
        client.post("/questions", json={"category": "RA", "identifier": "1", "content": "Apple RA"})

        data = client.get("/questions", params={"category": "WFD", "search": "apple"}).json()
        assert data["count"] == 2
        assert [q["identifier"] for q in data["items"]] == ["#1 WFD", "#10 WFD"]

        assert client.get("/questions").json()["count"] == 4
        assert client.get("/questions", params={"category": "nope"}).status_code == 400

    def test_batch_create(self, client):
        client.post("/questions", json={"category": "RS", "identifier": "2", "content": "existing"})

        response = client.post("/questions/batch", json={"identifiers": "1, 2, x", "content": "Shared", "category": "RS"})
        assert response.status_code == 200
        data = response.json()
        assert [q["identifier"] for q in data["created"]] == ["#1 RS"]
        assert data["skipped"] == ["#2 RS"]
        assert data["errors"] == {"x": "NoDigitsFound"}

    def test_update_with_version_guard(self, client):
        created = client.post("/questions", json={"category": "RA", "identifier": "1", "content": "old"}).json()

        response = client.patch(f"/questions/{created['id']}", json={"content": "new", "version": 1})
        assert response.status_code == 200
        assert response.json()["version"] == 2

        response = client.patch(f"/questions/{created['id']}", json={"content": "stale", "version": 1})
        assert response.status_code == 409

        response = client.patch(f"/questions/{created['id']}", json={"identifier": "12"})
        assert response.json()["identifier"] == "RA012"

        assert client.patch("/questions/999", json={"content": "x"}).status_code == 404
        assert client.patch(f"/questions/{created['id']}", json={}).status_code == 422

    def test_delete(self, client):
        created = client.post("/questions", json={"category": "WFD", "identifier": "1", "content": "x"}).json()

        assert client.delete(f"/questions/{created['id']}").json() == {"ok": True, "id": created["id"]}
        assert client.delete(f"/questions/{created['id']}").status_code == 404
        assert client.get(f"/questions/{created['id']}").status_code == 404

    def test_store_failure_is_503(self, client):
        with patch("question_bank.core.dao.get_db", side_effect=sqlite3.OperationalError("unable to open database file")):
            response = client.get("/questions")
        assert response.status_code == 503
        assert "unable to open database file" in response.json()["detail"]


class TestImportAPI:
    """Text conversion and bulk import endpoints."""

    @pytest.fixture
    def client(self, test_db):
        with TestClient(app) as test_client:
            yield test_client

    def test_convert(self, client):
        text = "#418 WFD University graduates.\nnoise here\n\nRA001 Describe the picture."
        data = client.post("/convert", json={"text": text}).json()

        assert [r["identifier"] for r in data["records"]] == ["#418 WFD", "RA001"]
        assert data["dropped_lines"] == [2]
        assert '"identifier": "#418 WFD"' in data["json_text"]
        assert client.get("/health").json()["question_count"] == 0

    def test_import_records_reports_each_item(self, client):
        payload = {"records": [
            {"identifier": "#1 WFD", "content": "one"},
            {"identifier": "#2 WFD"},
            {"identifier": "3", "category": "RA", "content": "three"},
        ], "stop_on_error": False}

        data = client.post("/import", json=payload).json()
        assert (data["total"], data["succeeded"], data["failed"], data["aborted"]) == (3, 2, 1, False)
        assert [o["status"] for o in data["outcomes"]] == ["succeeded", "failed", "succeeded"]
        assert data["outcomes"][2]["identifier"] == "RA003"

    def test_import_stop_on_error(self, client):
        payload = {"records": [{"identifier": "x", "content": "bad"}, {"identifier": "#1 RS", "content": "ok"}],
                   "stop_on_error": True}

        data = client.post("/import", json=payload).json()
        assert data["aborted"] is True
        assert data["skipped"] == 1
        assert client.get("/questions").json()["count"] == 0

    def test_import_empty(self, client):
        assert client.post("/import", json={"records": []}).status_code == 400
        assert client.post("/import/text", json={"text": "nothing useful"}).status_code == 400

    def test_import_text(self, client):
        data = client.post("/import/text", json={"text": "#5 RS Five.\n#6 RS Six."}).json()
        assert data["succeeded"] == 2
        assert [q["identifier"] for q in client.get("/questions", params={"category": "RS"}).json()["items"]] == [
            "#5 RS", "#6 RS"]


class TestReconcileAPI:
    """Reconcile, add-missing and CSV export endpoints."""

    @pytest.fixture
    def client(self, test_db):
        with TestClient(app) as test_client:
            test_client.post("/questions", json={"category": "WFD", "identifier": "1", "content": 'He said "hi"'})
            yield test_client

    def test_reconcile(self, client):
        data = client.post("/reconcile", json={"tokens": "1, 2, 1", "category": "WFD"}).json()

        assert [q["identifier"] for q in data["found"]] == ["#1 WFD"]
        assert data["missing"] == ["#2 WFD"]
        assert data["errors"] == {}

    def test_reconcile_empty_input(self, client):
        response = client.post("/reconcile", json={"tokens": " , ", "category": "WFD"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Please enter valid numbers"

    def test_add_missing(self, client):
        payload = {"tokens": ["1", "2"], "category": "WFD", "identifier": "#2 WFD", "content": "Second"}
        data = client.post("/reconcile/add-missing", json=payload).json()

        assert [q["identifier"] for q in data["found"]] == ["#1 WFD", "#2 WFD"]
        assert data["missing"] == []

        payload["identifier"] = "#3 WFD"
        response = client.post("/reconcile/add-missing", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "#3 WFD is not in the missing list"

    def test_add_missing_accepts_a_bare_number(self, client):
        payload = {"tokens": "1, 2", "category": "WFD", "identifier": "2", "content": "Second"}
        data = client.post("/reconcile/add-missing", json=payload).json()

        assert [q["identifier"] for q in data["found"]] == ["#1 WFD", "#2 WFD"]

    def test_reconcile_store_failure_is_503(self, client):
        with patch("question_bank.core.dao.query_by_membership", side_effect=StoreError("Failed to query questions: db down")):
            response = client.post("/reconcile", json={"tokens": "1,2", "category": "WFD"})
        assert response.status_code == 503
        assert response.json()["detail"] == "Failed to query questions: db down"

    def test_add_missing_store_failure_is_503(self, client):
        payload = {"tokens": "1, 2", "category": "WFD", "identifier": "#2 WFD", "content": "Second"}
        with patch("question_bank.core.dao.insert", side_effect=StoreError("Failed to save question #2 WFD: db down")):
            response = client.post("/reconcile/add-missing", json=payload)
        assert response.status_code == 503
        assert "db down" in response.json()["detail"]

    def test_export_all(self, client):
        response = client.get("/export")
        assert response.status_code == 200
        assert response.headers["content-disposition"] == 'attachment; filename="questions.csv"'
        assert response.content == b'Identifier,Category,Content\n#1 WFD,WFD,"He said ""hi"""'

    def test_export_reconcile_view(self, client):
        client.post("/questions", json={"category": "RS", "identifier": "4", "content": "Four"})

        response = client.get("/export", params={"category": "RS", "tokens": "4,5"})
        assert 'filename="rs_search_results.csv"' in response.headers["content-disposition"]
        assert response.content.startswith(b"\xef\xbb\xbf")
        assert response.content.decode("utf-8-sig").split("\n")[1] == '#4 RS,RS,"Four"'

        assert client.get("/export", params={"tokens": "4"}).status_code == 400
        assert client.get("/export", params={"view": "bogus"}).status_code == 400

    def test_debug_toggle(self, client, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        assert client.get("/debug").status_code == 200
        monkeypatch.setenv("DEBUG", "false")
        assert client.get("/debug").status_code == 403
