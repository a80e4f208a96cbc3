import pytest
from fastapi.testclient import TestClient

from studyjams.config import Settings
from studyjams.errors import NetworkTimeout, PrivateProfile
from studyjams.pipeline import ProfileScorer
from studyjams.server import GENERIC_ERROR_MESSAGE, NOT_ENROLLED_MESSAGE, PRIVATE_MESSAGE, create_app

from .conftest import PROFILE_URL, StubFetcher


def make_client(roster, rules, fetcher=None, environment="production"):
    scorer = ProfileScorer(roster, rules, fetcher=fetcher or StubFetcher())
    return TestClient(create_app(scorer=scorer, settings=Settings(environment=environment)))


@pytest.fixture
def client(roster, default_rules):
    return make_client(roster, default_rules)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_calculate_points(client):
    response = client.post("/api/calculate-points", json={"profileUrl": PROFILE_URL})
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["userName"] == "Jane Doe"
    breakdown = data["breakdown"]
    assert data["totalPoints"] == (
        breakdown["badges"]["points"] + breakdown["games"]["points"] + breakdown["bonuses"]["points"]
    )
    assert len(data["completedBadges"]) == 2
    assert data["progress"]["overall"]["percentage"] == 0


@pytest.mark.parametrize(
    "body, error",
    [
        ({}, "Profile URL is required"),
        ({"profileUrl": "   "}, "Profile URL is required"),
        ({"profileUrl": "https://example.com/profile/123"}, "Invalid profile URL format"),
    ],
)
def test_calculate_points_bad_request(client, body, error):
    response = client.post("/api/calculate-points", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": error}


def test_calculate_points_not_enrolled(client):
    response = client.post(
        "/api/calculate-points",
        json={"profileUrl": "https://www.cloudskillsboost.google/public_profiles/stranger"},
    )
    assert response.status_code == 403
    assert response.json() == {"error": NOT_ENROLLED_MESSAGE, "enrolled": False}


def test_calculate_points_private(roster, default_rules):
    client = make_client(roster, default_rules, StubFetcher(errors=[PrivateProfile()]))
    response = client.post("/api/calculate-points", json={"profileUrl": PROFILE_URL})
    assert response.status_code == 500
    assert response.json() == {"error": PRIVATE_MESSAGE, "private": True}


def test_calculate_points_failure_hides_details_in_production(roster, default_rules):
    client = make_client(roster, default_rules, StubFetcher(errors=[NetworkTimeout("Request timeout")]))
    response = client.post("/api/calculate-points", json={"profileUrl": PROFILE_URL})
    assert response.status_code == 500
    assert response.json() == {"error": GENERIC_ERROR_MESSAGE}


def test_calculate_points_failure_details_in_development(roster, default_rules):
    client = make_client(
        roster, default_rules, StubFetcher(errors=[RuntimeError("boom")]), environment="development"
    )
    response = client.post("/api/calculate-points", json={"profileUrl": PROFILE_URL})
    assert response.status_code == 500
    assert response.json() == {"error": GENERIC_ERROR_MESSAGE, "details": "boom"}


def test_check_profile(roster, default_rules):
    client = make_client(roster, default_rules, StubFetcher(errors=[PrivateProfile()]))
    response = client.post(
        "/api/check-profile",
        json={"profileUrl": "https://www.cloudskillsboost.google/public_profiles/anyone"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "private"
    assert data["accessible"] is False


def test_check_profile_bad_request(client):
    response = client.post("/api/check-profile", json={"profileUrl": "nope"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid profile URL format"}


def test_participants(client):
    data = client.get("/api/participants").json()
    assert data["success"] is True
    assert data["testMode"] is False
    assert data["totalParticipants"] == 1
    assert data["participants"][0]["profileUrl"] == PROFILE_URL


def test_scoring_config(client):
    data = client.get("/api/scoring-config").json()
    assert data["success"] is True
    assert data["config"]["limits"]["max_badge_points"] == 500


@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": "not json", "headers": {"content-type": "application/json"}},
        {"json": {"profileUrl": 123}},
        {"json": {"profileUrl": ["a"]}},
    ],
)
def test_malformed_body_is_bad_request(client, kwargs):
    response = client.post("/api/calculate-points", **kwargs)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid profile URL format"}


def test_check_profile_malformed_body(client):
    response = client.post(
        "/api/check-profile", content="{", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid profile URL format"}


def test_calculate_points_includes_profile_statistics(client):
    data = client.post("/api/calculate-points", json={"profileUrl": PROFILE_URL}).json()
    stats = data["profileStatistics"]
    assert stats["total"] == {"badges": 2, "games": 1}
    assert stats["completion"]["overallPercentage"] == 100
    assert "kubernetes" in stats["tags"]
    assert set(stats["recentCompletions"]) == {"badges", "games"}
