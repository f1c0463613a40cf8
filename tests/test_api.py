"""HTTP surface: auth gates, error mapping and response shapes."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from seva.config import Settings
from seva.errors import UpstreamUnavailable
from seva.main import app
from tests.fakes import FakeIdentity, service_rows

ALICE = {"authorization": "Bearer tok-a"}
BOB = {"authorization": "Bearer tok-b"}
ADMIN = {"authorization": "Bearer tok-admin"}
TITLE = "Cleaning 2030-01-05"
ALICE_ROW = ["t1", "Rags", "box", "1", "A", "555", "a@x.com", ""]
BOB_ROW = ["t2", "Rags", "box", "2", "B", "666", "b@x.com", ""]


@pytest.fixture
def client(store, notifier, alice, bob, admin, monkeypatch):
    store.add_document("d1", "Seva Signups")
    store.add_sheet("d1", TITLE, service_rows(["", "Mops", "each", "3"], ALICE_ROW, BOB_ROW), handle=11)
    app.state.store = store
    app.state.notifier = notifier
    app.state.identity = FakeIdentity({"tok-a": alice, "tok-b": bob, "tok-admin": admin})
    app.state.settings = Settings(
        admin_emails=frozenset({"admin@x.com"}),
        registration_document_id="reg",
    )
    monkeypatch.setattr("seva.routes.signups.local_today", lambda tz=None: date(2030, 1, 1))
    return TestClient(app)


def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestAuth:
    def test_missing_token_is_401(self, client):
        response = client.get("/api/service/sheets")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_bad_token_is_401(self, client):
        assert client.get("/api/me", headers={"authorization": "Bearer nope"}).status_code == 401

    def test_legacy_header_accepted(self, client):
        response = client.get("/api/me", headers={"bearer": "firebase tok-a"})
        assert response.status_code == 200
        assert response.json()["email"] == "a@x.com"

    def test_admin_flag_from_settings(self, client):
        assert client.get("/api/me", headers=ADMIN).json()["is_admin"] is True
        assert client.get("/api/me", headers=ALICE).json()["is_admin"] is False


class TestSheets:
    def test_list_upcoming(self, client):
        response = client.get("/api/service/sheets", headers=ALICE)
        assert response.status_code == 200
        (sheet,) = response.json()
        assert sheet["title"] == "Cleaning"
        assert sheet["tags"] == ["seva", "kids"]
        assert [i["item"] for i in sheet["items"]] == ["Mops"]
        assert sheet["signees"] == []

    def test_unknown_domain_is_404(self, client):
        assert client.get("/api/garden/sheets", headers=ALICE).status_code == 404

    def test_detail_filters_signees_for_non_admin(self, client):
        response = client.get(f"/api/service/sheets/d1/{TITLE}", headers=ALICE)
        assert response.status_code == 200
        assert [s["email"] for s in response.json()["signees"]] == ["a@x.com"]

    def test_detail_shows_all_signees_to_admin(self, client):
        response = client.get(f"/api/service/sheets/d1/{TITLE}?all=true", headers=ADMIN)
        assert [s["name"] for s in response.json()["signees"]] == ["A", "B"]

    def test_malformed_sheet_is_404(self, client, store):
        store.add_sheet("d1", "Broken 2030-02-01", [["#"]])
        assert client.get("/api/service/sheets/d1/Broken 2030-02-01", headers=ALICE).status_code == 404

    def test_mine(self, client):
        response = client.get("/api/service/mine", headers=BOB)
        (sheet,) = response.json()
        assert [s["name"] for s in sheet["signees"]] == ["B"]

    def test_upstream_failure_is_502(self, client, store, monkeypatch):
        def fail():
            raise UpstreamUnavailable("Document store unavailable while listing spreadsheets")

        monkeypatch.setattr(store, "list_documents", fail)
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/api/service/sheets", headers=ALICE)
        assert response.status_code == 502


class TestSignup:
    def test_partial_signup(self, client, store, notifier):
        response = client.post(
            f"/api/service/sheets/d1/{TITLE}/signups",
            json={"items": [{"row": 7, "count": 2, "item": "Mops"}]},
            headers=ALICE,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["applied"] == 1
        assert data["notified"] is True
        (result,) = data["results"]
        assert result["outcome"] == "applied"
        assert result["remaining"] == 1
        assert result["signee"]["name"] == "A"
        assert store.rows("d1", TITLE)[6][3] == 1
        assert len(notifier.sent) == 1

    def test_signup_stamp_uses_configured_timezone(self, client, store):
        app.state.settings = Settings(admin_emails=frozenset({"admin@x.com"}), timezone="Asia/Kolkata")
        response = client.post(
            f"/api/service/sheets/d1/{TITLE}/signups",
            json={"items": [{"row": 7, "count": 1}]},
            headers=ALICE,
        )
        assert response.status_code == 200
        stamp = store.rows("d1", TITLE)[-1][0]
        assert stamp.endswith(" IST")
        assert response.json()["results"][0]["signee"]["signed_up_on"] == stamp

    def test_over_request_reports_outcome(self, client, store, notifier):
        response = client.post(
            f"/api/service/sheets/d1/{TITLE}/signups",
            json={"items": [{"row": 7, "count": 9}]},
            headers=ALICE,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["applied"] == 0
        assert data["notified"] is False
        assert data["results"][0]["outcome"] == "insufficient"
        assert store.writes() == []
        assert notifier.sent == []

    def test_zero_count_is_rejected_by_validation(self, client):
        response = client.post(
            f"/api/service/sheets/d1/{TITLE}/signups",
            json={"items": [{"row": 7, "count": 0}]},
            headers=ALICE,
        )
        assert response.status_code == 422

    def test_empty_batch_is_rejected(self, client):
        response = client.post(f"/api/service/sheets/d1/{TITLE}/signups", json={"items": []}, headers=ALICE)
        assert response.status_code == 422

    def test_malformed_sheet_is_404(self, client, store):
        store.add_sheet("d1", "Broken 2030-02-01", [["#"], ["", "Mops", "each", "3"]])
        response = client.post(
            "/api/service/sheets/d1/Broken 2030-02-01/signups",
            json={"items": [{"row": 2}]},
            headers=ALICE,
        )
        assert response.status_code == 404
        assert store.writes() == []


class TestExport:
    def test_requires_admin(self, client):
        assert client.get("/api/service/export", headers=ALICE).status_code == 403

    def test_csv(self, client):
        response = client.get("/api/service/export", headers=ADMIN)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="service-signups.csv"' in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0].startswith("date,location,title")
        assert len(lines) == 3


class TestRegistrations:
    def test_search(self, client, store):
        store.add_sheet("reg", "Registration", [["", "Ravi", "Kumar", "r@x.com", "555"]])
        response = client.get("/api/registrations?q=kumar", headers=ALICE)
        assert response.status_code == 200
        assert response.json() == [["1", "Ravi", "Kumar"] + [""] * 17]

    def test_save_with_bad_reference_is_422(self, client, store):
        store.add_sheet("reg", "Registration", [])
        response = client.post("/api/registrations", json=[["x1", "Ravi"]], headers=ALICE)
        assert response.status_code == 422

    def test_save(self, client, store):
        store.add_sheet("reg", "Registration", [])
        response = client.post("/api/registrations", json=[["", "Ravi"]], headers=ALICE)
        assert response.json() == {"saved": 1}
        assert store.rows("reg", "Registration") == [["", "Ravi"]]

    def test_unconfigured_is_503(self, client):
        app.state.settings = Settings()
        assert client.get("/api/registrations?q=kumar", headers=ALICE).status_code == 503


class TestNotifications:
    def test_sms_requires_admin(self, client):
        response = client.post("/api/notifications/sms", json={"recipients": ["555"], "body": "hi"}, headers=ALICE)
        assert response.status_code == 403

    def test_admin_sends_email(self, client, notifier):
        response = client.post(
            "/api/notifications/email",
            json={"recipients": ["a@x.com"], "subject": "Hi", "body": "Hello"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert notifier.sent == [("email", ["a@x.com"], "Hi", "Hello")]
