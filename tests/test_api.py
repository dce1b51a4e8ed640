"""HTTP surface exercised through ``TestClient`` over in-memory fakes."""

from __future__ import annotations

from contextlib import contextmanager

from fastapi.testclient import TestClient

from salescoach.domain.models import QUEUED_ID_PREFIX, QUEUED_MARKER
from salescoach.main import create_app
from tests.fakes import make_recording

HEADERS = {"X-User-Id": "rep-1"}
FORM = {"clientName": "Acme Corp", "meetingDate": "2026-10-14"}


@contextmanager
def api_client(pipeline_factory, **overrides):
    pipeline = pipeline_factory(**overrides)
    with TestClient(create_app(pipeline)) as client:
        yield client, pipeline
        client.portal.call(pipeline.wait_idle)


def _upload(client: TestClient, **form):
    return client.post(
        "/recordings/",
        headers=HEADERS,
        data={**FORM, **form},
        files={"audio_file": ("meeting.webm", b"audio-bytes", "audio/webm")},
    )


def test_health_and_metrics(pipeline_factory):
    with api_client(pipeline_factory, online=False) as (client, _):
        health = client.get("/health")
        metrics = client.get("/metrics")

    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.json()["connectivity"] == "offline"
    assert metrics.status_code == 200
    assert "http_requests_total" in metrics.text


def test_missing_user_header_is_rejected(pipeline_factory):
    with api_client(pipeline_factory) as (client, _):
        response = client.get("/recordings/")

    assert response.status_code == 401


def test_offline_submit_returns_placeholder(pipeline_factory, coach_service):
    with api_client(pipeline_factory, online=False) as (client, _):
        response = _upload(client)
        queue = client.get("/queue").json()
        listed = client.get("/recordings/", headers=HEADERS).json()

    assert response.status_code == 201
    body = response.json()
    assert body["id"].startswith(QUEUED_ID_PREFIX)
    assert body["status"] == "uploaded"
    assert body["error"] == QUEUED_MARKER
    assert body["clientName"] == "Acme Corp"
    assert coach_service.requests == []

    assert len(queue) == 1
    assert queue[0]["placeholderId"] == body["id"]
    assert queue[0]["sizeBytes"] == len(b"audio-bytes")
    assert queue[0]["attempts"] == 0
    assert [item["id"] for item in listed] == [body["id"]]


def test_reconnect_then_drain_empties_queue(pipeline_factory, coach_service):
    with api_client(pipeline_factory, online=False) as (client, _):
        _upload(client)
        connectivity = client.put("/connectivity", json={"online": True})
        drain = client.post("/queue/drain")
        queue = client.get("/queue").json()

    assert connectivity.status_code == 200
    assert connectivity.json()["online"] is True
    assert drain.status_code == 200
    assert drain.json()["remaining"] == 0
    assert queue == []
    assert len(coach_service.upload_bodies) == 1


def test_drain_while_offline_reports_remaining(pipeline_factory):
    with api_client(pipeline_factory, online=False) as (client, _):
        _upload(client)
        drain = client.post("/queue/drain")

    assert drain.json() == {
        "uploaded": 0,
        "retrying": 0,
        "dropped": 0,
        "remaining": 1,
        "interrupted": False,
    }


def test_upload_error_maps_to_bad_gateway(pipeline_factory, coach_service):
    coach_service.upload_status = 500
    coach_service.upload_error = "Storage quota exceeded"

    with api_client(pipeline_factory) as (client, _):
        response = _upload(client)

    assert response.status_code == 502
    assert response.json()["detail"] == "Storage quota exceeded"


def test_unsupported_content_type_is_rejected(pipeline_factory, coach_service):
    with api_client(pipeline_factory) as (client, _):
        response = client.post(
            "/recordings/",
            headers=HEADERS,
            data=FORM,
            files={"audio_file": ("notes.txt", b"hello", "text/plain")},
        )

    assert response.status_code == 400
    assert coach_service.requests == []


def test_unknown_recording_is_not_found(pipeline_factory):
    with api_client(pipeline_factory) as (client, _):
        response = client.get("/recordings/missing", headers=HEADERS)

    assert response.status_code == 404


def test_review_is_attached_and_validated(pipeline_factory, recording_store):
    recording = make_recording("rec-9", score=75)
    recording_store.records["rec-9"] = recording

    review = {"reviewerId": "mgr-1", "reviewerName": "Dana", "rating": 4, "comments": "Solid discovery"}
    with api_client(pipeline_factory) as (client, pipeline):
        pipeline.recordings.cache.upsert(recording)
        saved = client.put("/recordings/rec-9/review", headers=HEADERS, json=review)
        rejected = client.put(
            "/recordings/rec-9/review",
            headers=HEADERS,
            json={**review, "rating": 6},
        )
        missing = client.put("/recordings/nope/review", headers=HEADERS, json=review)

    assert saved.status_code == 200
    assert saved.json()["managerReview"]["rating"] == 4
    assert saved.json()["managerReview"]["reviewerName"] == "Dana"
    assert rejected.status_code == 422
    assert missing.status_code == 404
    assert recording_store.records["rec-9"].manager_review.rating == 4


def test_leaderboard_and_rank(pipeline_factory):
    with api_client(pipeline_factory) as (client, pipeline):
        cache = pipeline.recordings.cache
        cache.upsert(make_recording("a-1", user_id="rep-1", score=60))
        cache.upsert(make_recording("b-1", user_id="rep-2", score=90))

        board = client.get("/leaderboard/").json()
        rank = client.get("/leaderboard/rank", headers=HEADERS).json()
        bad = client.get("/leaderboard/", params={"timeframe": "year"})

    assert [(entry["userId"], entry["rank"]) for entry in board] == [("rep-2", 1), ("rep-1", 2)]
    assert board[0]["averageScore"] == 90
    assert rank == {"userId": "rep-1", "timeframe": "all", "rank": 2}
    assert bad.status_code == 422


def test_processes_catalog(pipeline_factory):
    process = {"id": "enterprise", "name": "Enterprise", "steps": [{"name": "Discovery"}]}

    with api_client(pipeline_factory) as (client, _):
        listed = client.get("/processes").json()
        saved = client.put("/processes/enterprise", headers=HEADERS, json=process)
        mismatch = client.put("/processes/other", headers=HEADERS, json=process)
        fetched = client.get("/processes/enterprise")
        delete_default = client.delete("/processes/standard", headers=HEADERS)
        missing = client.get("/processes/unknown")

    assert listed[0]["id"] == "standard"
    assert saved.status_code == 200
    assert saved.json()["createdBy"] == "rep-1"
    assert mismatch.status_code == 422
    assert fetched.json()["name"] == "Enterprise"
    assert delete_default.status_code == 409
    assert missing.status_code == 404


def test_debug_endpoints(pipeline_factory):
    with api_client(pipeline_factory, online=False) as (client, _):
        _upload(client)
        events = client.get("/debug/events", params={"limit": 10}).json()
        stages = client.get("/debug/stages").json()

    assert "Offline - adding to queue" in [event["message"] for event in events]
    assert [stage["order"] for stage in stages] == list(range(1, len(stages) + 1))
    assert stages[0]["name"] == "Ingestion"


def test_non_json_upload_response_maps_to_bad_gateway(pipeline_factory, coach_service):
    coach_service.upload_raw_body = "<html>gateway</html>"

    with api_client(pipeline_factory) as (client, _):
        response = _upload(client)

    assert response.status_code == 502
    assert response.json()["detail"] == "Upload response was not valid JSON"
