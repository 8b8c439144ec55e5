"""
tests/unit/test_api.py

HTTP contract of the FastAPI app. Collaborators are injected; no network,
no LLM calls.
"""
import asyncio
import threading

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from renomatch.adapters.directory import JsonContractorDirectory, JsonSchemeRegistry
from renomatch.api import CONTRACTOR_MATCH_FAILED, SUBSIDY_CHECK_FAILED, create_app
from renomatch.schemas import INVALID_JSON_BODY, ContractorMatchRequest


class _BrokenDirectory:
    def fetch_contractors(self, location, max_distance):
        raise RuntimeError("database unreachable")


class _BrokenRegistry:
    name = "broken"

    def fetch_schemes(self):
        raise RuntimeError("down")


@pytest.fixture
def client(fixtures_dir):
    app = create_app(
        contractor_provider=JsonContractorDirectory(fixtures_dir / "contractors.json"),
        scheme_registries=[JsonSchemeRegistry(fixtures_dir / "schemes.json")],
        enhancer_factory=lambda: None,
    )
    return TestClient(app)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_smart_match_ok(client, load_json):
    resp = client.post("/api/contractors/smart-match", json=load_json("contractor_request.json"))
    assert resp.status_code == 200

    body = resp.json()
    assert set(body) >= {"matches", "insights", "summary", "recommendations", "lastUpdated"}
    assert body["summary"]["totalContractorsEvaluated"] == 3
    assert body["matches"][0]["contractor"]["companyName"] == "EcoTech Installaties"
    assert body["matches"][0]["matchScore"] == 91
    scores = [m["matchScore"] for m in body["matches"]]
    assert scores == sorted(scores, reverse=True)


def test_smart_match_validation_error(client, load_json):
    payload = load_json("contractor_request.json")
    payload["budget"] = 500
    resp = client.post("/api/contractors/smart-match", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Minimum budget is €1000"}


def test_smart_match_missing_field(client):
    resp = client.post("/api/contractors/smart-match", json={"location": "Amsterdam"})
    assert resp.status_code == 400
    assert "projectType" in resp.json()["error"]


def test_smart_match_internal_failure_is_generic(fixtures_dir, load_json):
    app = create_app(
        contractor_provider=_BrokenDirectory(),
        scheme_registries=[JsonSchemeRegistry(fixtures_dir / "schemes.json")],
        enhancer_factory=lambda: None,
    )
    resp = TestClient(app).post("/api/contractors/smart-match", json=load_json("contractor_request.json"))
    assert resp.status_code == 500
    assert resp.json() == {"error": CONTRACTOR_MATCH_FAILED}


def test_live_check_ok(client, load_json):
    resp = client.post("/api/subsidies/live-check", json=load_json("subsidy_request.json"))
    assert resp.status_code == 200

    body = resp.json()
    assert body["eligibility"]["eligible"] is True
    assert body["eligibility"]["totalMaxSubsidy"] == 8000
    assert body["optimalCombinations"][0]["schemes"][0]["id"] == "isde"
    assert set(body["recommendations"]) == {"immediateActions", "timeline", "riskFactors", "advice"}


def test_live_check_invalid_postal_code(client, load_json):
    payload = load_json("subsidy_request.json")
    payload["postalCode"] = "ABCD 12"
    resp = client.post("/api/subsidies/live-check", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Valid Dutch postal code required"}


def test_live_check_all_registries_down(fixtures_dir, load_json):
    app = create_app(
        contractor_provider=JsonContractorDirectory(fixtures_dir / "contractors.json"),
        scheme_registries=[_BrokenRegistry()],
        enhancer_factory=lambda: None,
    )
    resp = TestClient(app).post("/api/subsidies/live-check", json=load_json("subsidy_request.json"))
    assert resp.status_code == 500
    assert resp.json() == {"error": SUBSIDY_CHECK_FAILED}


def test_malformed_json_body_is_rejected(client):
    resp = client.post(
        "/api/contractors/smart-match",
        content='{"projectType": ["heat_pump"], "location": ',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": INVALID_JSON_BODY}


class _HangingVerifier:
    """Holds every lookup open until the request's token is cancelled."""

    def __init__(self):
        self.started = threading.Event()
        self.stopped = threading.Event()
        self.token = None

    def verify(self, provider, *, timeout_seconds=None, cancel_token=None):
        self.token = cancel_token
        self.started.set()
        cancel_token.wait(timeout_seconds)
        self.stopped.set()
        return None


def _endpoint(app, path):
    return next(r.endpoint for r in app.routes if isinstance(r, APIRoute) and r.path == path)


def test_cancelled_smart_match_cancels_lookups(fixtures_dir, load_json):
    verifier = _HangingVerifier()
    app = create_app(
        contractor_provider=JsonContractorDirectory(fixtures_dir / "contractors.json"),
        scheme_registries=[JsonSchemeRegistry(fixtures_dir / "schemes.json")],
        verifier=verifier,
        enhancer_factory=lambda: None,
    )
    smart_match = _endpoint(app, "/api/contractors/smart-match")
    body = ContractorMatchRequest.model_validate(load_json("contractor_request.json"))

    async def cancel_mid_verification():
        task = asyncio.create_task(smart_match(body))
        for _ in range(200):
            if verifier.started.is_set():
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(cancel_mid_verification())

    assert verifier.started.is_set()
    assert verifier.token.cancelled is True
    assert verifier.stopped.wait(2.0)
