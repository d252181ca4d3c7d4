# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Binome Rotation Service HTTP API.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError

from binomes.core.config import settings
from binomes.core.dependencies import get_cycle_service
from binomes.core.errors import CycleConflictError
from binomes.middleware import route_label
from binomes.services.dates import utcnow
from conftest import add_cycle, add_meeting, add_member, add_section
from main import app

client = TestClient(app)

BASE = "/api/v1/binomes"


# ============================================
# Fixtures
# ============================================
@pytest.fixture
def section():
    """A section with four S3 men and two S3 women."""
    sid = add_section()
    for mid in ("m1", "m2", "m3", "m4"):
        add_member(sid, f"{sid}-{mid}", gender="M", first_name=mid.upper())
    for mid in ("f1", "f2"):
        add_member(sid, f"{sid}-{mid}", gender="F", first_name=mid.upper())
    return sid


@pytest.fixture
def broken_service():
    service = MagicMock()
    app.dependency_overrides[get_cycle_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_cycle_service, None)


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_returns_ok(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["version"] == settings.SERVICE_VERSION
        assert data["rotation_job_running"] is False

    def test_ready_with_database(self):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    def test_ready_without_database(self):
        repo = MagicMock()
        repo.verify_connection.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
        with patch("binomes.controllers.system_controller.get_cycle_repo", return_value=repo):
            response = client.get("/health/ready")
        assert response.status_code == 503

    def test_metrics_exposes_binome_counters(self, section):
        client.get(f"{BASE}/status", params={"section_id": section})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "binome_requests_total" in response.text
        assert 'endpoint="/api/v1/binomes/status"' in response.text


class TestRequestId:
    def test_generated_when_missing(self):
        response = client.get("/health")
        assert response.headers.get("X-Request-ID")

    def test_propagated_when_given(self):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"


class TestMetricsMiddleware:
    @staticmethod
    def _count(endpoint: str, status: str = "200", method: str = "GET") -> float:
        value = REGISTRY.get_sample_value(
            "binome_requests_total", {"method": method, "endpoint": endpoint, "status": status}
        )
        return value or 0.0

    @pytest.mark.parametrize("path,expected", [
        ("/", "/"),
        ("/api/v1/binomes/current", "/api/v1/binomes/current"),
        ("/api/v1/age-brackets/", "/api/v1/age-brackets"),
        ("/api/v1/binomes/3f2a-9c/report", "/api/v1/binomes/{param}/report"),
    ])
    def test_route_label(self, path, expected):
        assert route_label(path) == expected

    def test_api_request_counted(self, section):
        before = self._count("/api/v1/binomes/status")
        client.get(f"{BASE}/status", params={"section_id": section})
        assert self._count("/api/v1/binomes/status") == before + 1

    def test_error_status_counted(self):
        before = self._count("/api/v1/binomes/status", status="422")
        client.get(f"{BASE}/status")
        assert self._count("/api/v1/binomes/status", status="422") == before + 1

    def test_health_checks_not_counted(self):
        before = self._count("/health")
        client.get("/health")
        client.get("/health/ready")
        assert self._count("/health") == before
        assert self._count("/health/ready") == 0.0


# ============================================
# Validation
# ============================================
class TestValidation:
    @pytest.mark.parametrize("method,path", [
        ("get", "/current"), ("get", "/report"), ("get", "/status"),
        ("post", "/generate"), ("post", "/rotate"),
    ])
    def test_section_id_required(self, method, path):
        response = getattr(client, method)(f"{BASE}{path}")
        assert response.status_code == 422

    def test_empty_section_id_rejected(self):
        response = client.get(f"{BASE}/status", params={"section_id": ""})
        assert response.status_code == 422


# ============================================
# Status
# ============================================
class TestStatus:
    def test_no_cycle(self, section):
        response = client.get(f"{BASE}/status", params={"section_id": section})
        assert response.status_code == 200
        assert response.json() == {"cycle": None}

    def test_does_not_create_cycle(self, section):
        client.get(f"{BASE}/status", params={"section_id": section})
        response = client.get(f"{BASE}/status", params={"section_id": section})
        assert response.json()["cycle"] is None


# ============================================
# Generate / Rotate
# ============================================
class TestGenerate:
    def test_generate_returns_201(self, section):
        response = client.post(f"{BASE}/generate", params={"section_id": section})
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Binômes générés"
        assert data["cycle_id"]
        assert data["solos"] == []

    def test_generate_becomes_active(self, section):
        cycle_id = client.post(f"{BASE}/generate", params={"section_id": section}).json()["cycle_id"]
        status = client.get(f"{BASE}/status", params={"section_id": section}).json()
        assert status["cycle"]["id"] == cycle_id

    def test_generate_twice_keeps_one_active(self, section):
        client.post(f"{BASE}/generate", params={"section_id": section})
        second = client.post(f"{BASE}/generate", params={"section_id": section}).json()["cycle_id"]
        status = client.get(f"{BASE}/status", params={"section_id": section}).json()
        assert status["cycle"]["id"] == second

    def test_generate_reports_solo(self, section):
        add_member(section, f"{section}-m5", gender="M")
        data = client.post(f"{BASE}/generate", params={"section_id": section}).json()
        assert len(data["solos"]) == 1
        assert data["solos"][0]["gender"] == "M"

    def test_conflict_returns_409(self, broken_service):
        broken_service.generate.side_effect = CycleConflictError("s1")
        response = client.post(f"{BASE}/generate", params={"section_id": "s1"})
        assert response.status_code == 409


class TestRotate:
    def test_rotate_returns_201_with_period(self, section):
        add_meeting(section, utcnow() - timedelta(days=3), [f"{section}-m1"])
        response = client.post(f"{BASE}/rotate", params={"section_id": section})
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Rotation effectuée"
        assert data["period"] == {"last_days": settings.ATTENDANCE_WINDOW_DAYS, "total_meetings": 1}

    def test_conflict_returns_409(self, broken_service):
        broken_service.rotate.side_effect = CycleConflictError("s1")
        response = client.post(f"{BASE}/rotate", params={"section_id": "s1"})
        assert response.status_code == 409


# ============================================
# Current
# ============================================
class TestCurrent:
    def test_creates_first_cycle_lazily(self, section):
        response = client.get(f"{BASE}/current", params={"section_id": section})
        assert response.status_code == 200
        cycle = response.json()["cycle"]
        assert cycle["is_active"] is True
        assert cycle["section_id"] == section
        assert len(cycle["pairs"]) == 3
        for pair in cycle["pairs"]:
            assert pair["age_bracket"]["name"] == "S3"
            assert pair["member_a"]["first_name"][0] == pair["member_b"]["first_name"][0]

    def test_returns_existing_cycle(self, section):
        cycle_id = client.post(f"{BASE}/generate", params={"section_id": section}).json()["cycle_id"]
        cycle = client.get(f"{BASE}/current", params={"section_id": section}).json()["cycle"]
        assert cycle["id"] == cycle_id
        assert cycle["next_rotation_at"]

    def test_rotates_expired_cycle(self, section):
        old_id = add_cycle(section, utcnow() - timedelta(days=120))
        cycle = client.get(f"{BASE}/current", params={"section_id": section}).json()["cycle"]
        assert cycle["id"] != old_id
        assert len(cycle["pairs"]) == 3


# ============================================
# Report
# ============================================
class TestReport:
    def test_report_with_stats(self, section):
        client.post(f"{BASE}/generate", params={"section_id": section})
        everyone = [f"{section}-{mid}" for mid in ("m1", "m2", "m3", "m4", "f1", "f2")]
        add_meeting(section, utcnow() - timedelta(days=1), everyone)
        add_meeting(section, utcnow() - timedelta(days=2), [])

        response = client.get(f"{BASE}/report", params={"section_id": section})

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == {"last_days": 90, "total_meetings": 2}
        assert len(data["pairs"]) == 3
        for pair in data["pairs"]:
            assert pair["stats"] == {
                "total_meetings": 2, "present_all": 1, "absent_either": 1, "percent": 50.0,
            }
        assert data["singles"] == []

    def test_report_creates_cycle_when_missing(self, section):
        data = client.get(f"{BASE}/report", params={"section_id": section}).json()
        assert data["cycle"]["is_active"] is True

    def test_report_shows_trio(self, section):
        add_member(section, f"{section}-m5", gender="M", first_name="M5")
        client.post(f"{BASE}/generate", params={"section_id": section})
        data = client.get(f"{BASE}/report", params={"section_id": section}).json()
        trios = [p for p in data["pairs"] if p["member_c"]]
        assert len(trios) == 1
        assert trios[0]["gender"] == "M"


# ============================================
# Age brackets
# ============================================
class TestAgeBrackets:
    def test_lists_default_catalog(self):
        response = client.get("/api/v1/age-brackets")
        assert response.status_code == 200
        data = response.json()
        assert [b["name"] for b in data] == ["S1", "S2", "S3"]
        assert data[2]["age_max"] is None


# ============================================
# Error handling
# ============================================
class TestErrorHandling:
    def test_database_error_returns_503(self, broken_service):
        broken_service.get_status.side_effect = OperationalError("SELECT", {}, Exception("down"))
        response = client.get(
            f"{BASE}/status", params={"section_id": "s1"}, headers={"X-Request-ID": "req-db"}
        )
        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "database_unavailable"
        assert data["retryable"] is True
        assert data["request_id"] == "req-db"


# ============================================
# Lifespan
# ============================================
class TestLifespan:
    def test_startup_and_shutdown(self):
        with patch("main.engine") as fake_engine, patch("main.create_schema") as fake_schema:
            with TestClient(app) as lifespan_client:
                assert lifespan_client.get("/health").status_code == 200
        fake_schema.assert_called_once_with(fake_engine)
        fake_engine.dispose.assert_called_once()
