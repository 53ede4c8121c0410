"""HTTP-level tests for the FastAPI routes."""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import make_ppg
from api.app import create_app


@pytest.fixture
def client():
    with TestClient(create_app()) as c:
        c.post("/session/reset")
        yield c
        c.post("/session/reset")


def _samples(duration_s, flat=False):
    values, timestamps = make_ppg(duration_s)
    if flat:
        values = [128.0] * len(values)
    return {"samples": [{"value": float(v), "timestamp_ms": ts} for v, ts in zip(values, timestamps)]}


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_stop_without_measurement_is_conflict(client):
    assert client.post("/session/stop").status_code == 409


def test_result_before_completion_is_not_found(client):
    assert client.get("/session/result").status_code == 404


def test_pushing_while_idle_is_conflict(client):
    assert client.post("/session/ppg", json=_samples(1.0)).status_code == 409
    assert client.post("/session/audio", json={"values": [1.0, 2.0]}).status_code == 409


def test_double_start_is_conflict(client):
    assert client.post("/session/start").status_code == 200
    assert client.post("/session/start").status_code == 409


def test_too_short_stop_is_rejected(client):
    client.post("/session/start")
    r = client.post("/session/ppg", json=_samples(5.0))
    assert r.status_code == 200
    assert r.json()["accepted"] == 150
    assert client.post("/session/stop").status_code == 422
    assert client.get("/session/status").json()["status"] == "measuring"


def test_empty_batch_is_invalid(client):
    client.post("/session/start")
    assert client.post("/session/ppg", json={"samples": []}).status_code == 422


def test_full_measurement_round_trip(client):
    client.post("/session/start")
    assert client.post("/session/ppg", json=_samples(32.0)).status_code == 200
    assert client.post("/session/audio", json={"values": [3.0] * 200}).json()["accepted"] == 200

    status = client.get("/session/status").json()
    assert status["ppg_samples"] == 960
    assert status["audio_samples"] == 200
    assert abs(status["heart_rate_bpm"] - 72) <= 5

    r = client.post("/session/stop")
    assert r.status_code == 200
    body = r.json()
    for key in ("heartRateBpm", "rmssdMs", "lfIA", "hfIA", "lfHfRatio",
                "respirationRate", "stressLevel", "stressState", "disclaimer"):
        assert key in body
    assert abs(body["heartRateBpm"] - 72) <= 5

    assert client.get("/session/result").json() == body
    points = client.get("/session/scatter").json()["points"]
    assert points and points[-1]["final"] is True


def test_flat_measurement_reports_fallback(client):
    client.post("/session/start")
    client.post("/session/ppg", json=_samples(31.0, flat=True))
    body = client.post("/session/stop").json()
    assert body["usedSyntheticRr"] is True
    assert "synthetic_data" in body["fallbacks"]


def test_auto_stop_reports_complete(client):
    client.post("/session/start")
    r = client.post("/session/ppg", json=_samples(36.0, flat=True))
    assert r.json()["status"] == "complete"
    assert r.json()["accepted"] < 36 * 30
    assert client.get("/session/result").status_code == 200


def test_health_answers_while_a_large_batch_is_analysed():
    app = create_app()
    batch = _samples(30.0)
    finished = []

    async def push(ac):
        r = await ac.post("/session/ppg", json=batch)
        finished.append("ppg")
        return r

    async def poll_health(ac):
        await asyncio.sleep(0.05)
        r = await ac.get("/health")
        finished.append("health")
        return r

    async def run():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            await ac.post("/session/reset")
            await ac.post("/session/start")
            try:
                return await asyncio.gather(push(ac), poll_health(ac))
            finally:
                await ac.post("/session/reset")

    pushed, health = asyncio.run(run())
    assert pushed.status_code == 200 and pushed.json()["accepted"] == 900
    assert health.status_code == 200
    assert finished == ["health", "ppg"]
