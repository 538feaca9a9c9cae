"""
Tests for session tokens and account endpoints
"""

from datetime import datetime, timedelta
import uuid

from fastapi.testclient import TestClient
from jose import jwt
from sqlmodel import Session, select

from campus_order.core.auth import SessionResolver, hash_password, hash_reset_token, verify_password
from campus_order.core.config import get_settings
from campus_order.models.user import PasswordResetToken, User
from campus_order.services.accounts import FORGOT_PASSWORD_MESSAGE, AccountService


# Tokens

def test_password_hashing():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert not verify_password("anything", None)


def test_issued_token_resolves_to_identity():
    resolver = SessionResolver(get_settings())
    user_id = uuid.uuid4()

    identity = resolver.decode(resolver.issue(user_id, "student@example.com", "Student"))

    assert identity.user_id == user_id
    assert identity.email == "student@example.com"
    assert identity.name == "Student"


def test_tampered_and_expired_tokens_are_rejected():
    """Signatures and expiry are verified before a token is trusted"""
    settings = get_settings()
    resolver = SessionResolver(settings)
    user_id = uuid.uuid4()

    forged = jwt.encode({"sub": str(user_id), "email": "x@example.com"}, "other-secret", algorithm="HS256")
    expired = resolver.issue(user_id, "x@example.com", expires_delta=timedelta(minutes=-5))
    no_email = jwt.encode({"sub": str(user_id)}, settings.SESSION_SECRET_KEY, algorithm="HS256")

    assert resolver.decode(forged) is None
    assert resolver.decode(expired) is None
    assert resolver.decode(no_email) is None
    assert resolver.decode("not-a-token") is None
    assert resolver.decode(None) is None


# Sign-up and sign-in

def test_sign_up_creates_account_and_session(client: TestClient, db: Session):
    response = client.post("/api/sign-up", json={
        "email": "New.Student@Example.com",
        "password": "supersecret",
        "name": "New Student",
    })

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "new.student@example.com"
    assert data["user"]["emailVerified"] is False
    assert data["token"]
    assert get_settings().SESSION_COOKIE_NAME in response.cookies

    me = client.get("/api/user/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "New Student"


def test_sign_up_rejects_duplicate_email(client: TestClient, make_user):
    make_user(email="taken@example.com", password="supersecret")

    response = client.post("/api/sign-up", json={
        "email": "taken@example.com",
        "password": "supersecret",
        "name": "Someone",
    })

    assert response.status_code == 409


def test_sign_up_validation_errors_list_issues(client: TestClient):
    response = client.post("/api/sign-up", json={"email": "not-an-email", "password": "short", "name": "X"})

    assert response.status_code == 400
    body = response.json()
    assert "error" in body
    paths = {issue["path"] for issue in body["issues"]}
    assert {"email", "password"} <= paths


def test_sign_in(client: TestClient, make_user):
    make_user(email="student@example.com", password="supersecret")

    ok = client.post("/api/sign-in", json={"email": "student@example.com", "password": "supersecret"})
    bad = client.post("/api/sign-in", json={"email": "student@example.com", "password": "wrongpassword"})

    assert ok.status_code == 200
    assert ok.json()["tokenType"] == "bearer"
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid email or password"}


def test_me_requires_session(client: TestClient):
    response = client.get("/api/user/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_update_phone(client: TestClient, customer: User, auth_headers):
    response = client.put("/api/user/phone", json={"phoneNumber": "+66 81 234 5678"}, headers=auth_headers(customer))

    assert response.status_code == 200
    assert response.json()["phoneNumber"] == "+66 81 234 5678"


# Password reset

def test_forgot_password_gives_same_answer_for_unknown_email(client: TestClient, make_user, db: Session):
    make_user(email="student@example.com", password="supersecret")

    known = client.post("/api/auth/forgot-password", json={"email": "student@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json() == {"status": True, "message": FORGOT_PASSWORD_MESSAGE}
    assert len(db.exec(select(PasswordResetToken)).all()) == 1


def test_reset_password_with_valid_token(client: TestClient, make_user, db: Session):
    user = make_user(email="student@example.com", password="oldpassword")
    _, token = AccountService(db).create_password_reset("student@example.com", expire_minutes=60)

    response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "newpassword"})

    assert response.status_code == 200
    db.refresh(user)
    assert verify_password("newpassword", user.password_hash)
    assert db.exec(select(PasswordResetToken)).first() is None


def test_reset_password_rejects_expired_token(client: TestClient, make_user, db: Session):
    user = make_user(email="student@example.com", password="oldpassword")
    db.add(PasswordResetToken(
        user_id=user.id,
        token_hash=hash_reset_token("stale-token"),
        expires_at=datetime.utcnow() - timedelta(minutes=1),
    ))
    db.commit()

    response = client.post("/api/auth/reset-password", json={"token": "stale-token", "newPassword": "newpassword"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired reset token"}
