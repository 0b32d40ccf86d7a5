"""
Security Test Suite: JWT Authentication

Tests that the centralized JWT verification in dependencies.py correctly:
- Rejects missing Authorization headers
- Rejects malformed tokens
- Rejects expired tokens
- Rejects tokens with invalid signatures
- Rejects tokens claiming the internal system role
- Accepts properly signed tokens and builds the Actor from their claims
"""

from uuid import uuid4

import pytest
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from app.api.dependencies import get_current_actor
from app.domain.workflow import Actor
from tests.conftest import make_token


# ---------------------------------------------------------------------------
# Minimal app that uses the real dependency
# ---------------------------------------------------------------------------

test_app = FastAPI()


@test_app.get("/protected")
async def protected_endpoint(actor: Actor = Depends(get_current_actor)):
    return {
        "user_id": str(actor.user_id),
        "role": actor.role.value,
        "hospital_id": str(actor.hospital_id) if actor.hospital_id else None,
    }


client = TestClient(test_app, raise_server_exceptions=False)


# ---------------------------------------------------------------------------
# Tests: rejection scenarios
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("jwt_secret")
class TestJWTRejection:
    """Verify that invalid/missing JWTs are rejected with 401."""

    def test_no_auth_header(self):
        resp = client.get("/protected")
        assert resp.status_code == 401

    def test_malformed_scheme(self):
        resp = client.get("/protected", headers={"Authorization": "Basic abc123"})
        assert resp.status_code == 401

    def test_garbage_token(self):
        resp = client.get("/protected", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401

    def test_wrong_signature(self):
        token = make_token(uuid4(), "student", secret="some-other-secret-value-that-is-long-enough")
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_expired_token(self):
        token = make_token(uuid4(), "student", expires_in=-60)
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Token has expired"

    def test_system_role_cannot_be_claimed(self):
        token = make_token(uuid4(), "system")
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_unknown_role(self):
        token = make_token(uuid4(), "janitor")
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_raw_uuid_rejected(self):
        """'Bearer <raw-uuid>' is not a token."""
        resp = client.get(
            "/protected",
            headers={"Authorization": f"Bearer {uuid4()}"},
        )
        assert resp.status_code == 401


def test_unconfigured_secret_rejects_everything(monkeypatch):
    from app.config.settings import settings

    monkeypatch.setattr(settings, "jwt_secret", None)
    token = make_token(uuid4(), "admin")
    resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Tests: acceptance scenarios
# ---------------------------------------------------------------------------


@pytest.mark.usefixtures("jwt_secret")
class TestJWTAcceptance:
    """Verify that valid JWTs are accepted."""

    def test_valid_student_token(self):
        user_id = uuid4()
        token = make_token(user_id, "student")
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json() == {"user_id": str(user_id), "role": "student", "hospital_id": None}

    def test_hospital_claim_is_carried(self):
        user_id, hospital_id = uuid4(), uuid4()
        token = make_token(user_id, "hospital", hospital_id=hospital_id)
        resp = client.get("/protected", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["hospital_id"] == str(hospital_id)
