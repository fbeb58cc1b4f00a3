import csv
import io

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import get_service, router


@pytest.fixture
def client(service) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_service] = lambda: service
    return TestClient(app)


def test_full_flow(client, service):
    start_resp = client.post(
        "/api/interviews/start",
        json={"name": "Ana", "position": "Backend Engineer", "persona": "john-technical-lead"},
    )
    assert start_resp.status_code == 201
    started = start_resp.json()
    session_id = started["session_id"]
    assert started["persona"] == "john-technical-lead"
    assert started["welcome_text"]

    active = client.get("/api/interviews/active").json()
    assert active["count"] == 1
    assert active["sessions"][0]["session_id"] == session_id

    turn_resp = client.post(
        f"/api/interviews/{session_id}/turn",
        json={"text": "I led a team of 5 engineers, for example on Project X, using React and AWS."},
    )
    assert turn_resp.status_code == 200
    body = turn_resp.json()
    assert body["reply_text"] == "Great, tell me more about the hardest part of that project."
    assert 7.0 <= body["turn_score"] <= 10.0
    assert body["conversation_length"] == 3

    note = client.post(f"/api/interviews/{session_id}/intervene", json={"message": "Ask about on-call"})
    assert note.status_code == 200
    assert note.json()["speaker"] == "admin"

    finish_resp = client.post(f"/api/interviews/{session_id}/end")
    assert finish_resp.status_code == 200
    ended = finish_resp.json()
    assert ended["final_score"] == body["turn_score"]
    assert ended["total_messages"] == 5

    # Finished sessions leave the registry and are read back from the store.
    assert client.get("/api/interviews/active").json()["count"] == 0
    snapshot = client.get(f"/api/interviews/{session_id}").json()
    assert snapshot["session"]["status"] == "completed"
    assert snapshot["session"]["flags"]["admin_intervention"] is True
    assert client.post(f"/api/interviews/{session_id}/end").status_code == 409
    assert client.post(f"/api/interviews/{session_id}/turn", json={"text": "one more"}).status_code == 409

    transcript = client.get(f"/api/interviews/{session_id}/transcript").json()
    assert [t["speaker"] for t in transcript] == ["ai", "candidate", "ai", "admin", "ai"]

    analytics = client.get(f"/api/interviews/{session_id}/analytics").json()
    assert analytics["message_counts"]["candidate"] == 1
    assert analytics["passed"] is True

    stats = client.get("/api/interviews/stats").json()
    assert stats["completed"] == 1


@pytest.mark.parametrize(
    "fmt,media_type",
    [("json", "application/json"), ("csv", "text/csv"), ("pdf", "application/pdf")],
)
def test_export_formats(client, fmt, media_type):
    session_id = client.post("/api/interviews/start", json={"name": "Ana", "position": "Engineer"}).json()["session_id"]
    client.post(f"/api/interviews/{session_id}/turn", json={"text": "I enjoy building Python APIs."})
    client.post(f"/api/interviews/{session_id}/end")

    resp = client.get(f"/api/interviews/{session_id}/export", params={"format": fmt})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(media_type)
    assert f'filename="interview-{session_id}.{fmt}"' in resp.headers["content-disposition"]
    if fmt == "csv":
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0] == ["Speaker", "Message", "Timestamp", "Score"]
    if fmt == "pdf":
        assert resp.content.startswith(b"%PDF")


def test_abandon_flow(client):
    session_id = client.post("/api/interviews/start", json={"name": "Ana", "position": "Engineer"}).json()["session_id"]
    assert client.post(f"/api/interviews/{session_id}/pause").status_code == 200
    assert client.post(f"/api/interviews/{session_id}/resume").json()["session"]["status"] == "active"
    resp = client.post(f"/api/interviews/{session_id}/abandon")
    assert resp.status_code == 200
    assert resp.json()["session"]["status"] == "abandoned"
    assert client.post(f"/api/interviews/{session_id}/resume").status_code == 409
