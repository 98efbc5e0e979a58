"""
Tests for mapping Firebase ID-token claims onto an Identity.
"""
import pytest
from firebase_admin import auth

from services import identity as identity_service
from services.errors import Unauthorized
from services.identity import Identity, identity_from_claims, require_verified_email


def test_identity_from_claims():
    claims = {
        "uid": "abc",
        "email": "ada@example.com",
        "name": "Ada",
        "picture": "http://p/ada.png",
        "email_verified": True,
        "firebase": {"sign_in_provider": "google.com"},
    }

    identity = identity_from_claims(claims)

    assert identity == Identity(
        uid="abc",
        email="ada@example.com",
        display_name="Ada",
        photo_url="http://p/ada.png",
        email_verified=True,
        sign_in_provider="google.com",
    )


def test_identity_from_minimal_claims():
    identity = identity_from_claims({"uid": "abc"})
    assert identity.email == ""
    assert identity.display_name == ""
    assert identity.sign_in_provider is None


def test_unverified_password_accounts_are_rejected():
    with pytest.raises(Unauthorized):
        require_verified_email(Identity(uid="a", email_verified=False, sign_in_provider="password"))

    oauth = Identity(uid="b", email_verified=False, sign_in_provider="github.com")
    assert require_verified_email(oauth) is oauth


def test_verify_id_token_maps_invalid_tokens(monkeypatch):
    monkeypatch.setattr(identity_service, "initialize_firebase_admin", lambda: None)

    def reject(token, check_revoked=False):
        raise auth.InvalidIdTokenError("bad token")

    monkeypatch.setattr(identity_service.auth, "verify_id_token", reject)

    with pytest.raises(Unauthorized):
        identity_service.verify_id_token("garbage")


def test_verify_id_token_returns_identity(monkeypatch):
    monkeypatch.setattr(identity_service, "initialize_firebase_admin", lambda: None)
    monkeypatch.setattr(
        identity_service.auth,
        "verify_id_token",
        lambda token, check_revoked=False: {"uid": token, "email_verified": True,
                                            "firebase": {"sign_in_provider": "password"}},
    )

    assert identity_service.verify_id_token("u1").uid == "u1"
