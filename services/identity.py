import os
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from services.errors import StoreUnavailable, Unauthorized
from utils.logger import setup_api_logger

logger = setup_api_logger()

# Inicializar Firebase Admin (solo una vez)
_initialized = False


@dataclass
class Identity:
    """Verified caller identity as supplied by Firebase Authentication."""
    uid: str
    email: str = ""
    display_name: str = ""
    photo_url: str = ""
    email_verified: bool = False
    sign_in_provider: Optional[str] = None


def initialize_firebase_admin():
    """Inicializar Firebase Admin SDK"""
    global _initialized
    if _initialized:
        return

    options = {}
    bucket = os.getenv("FIREBASE_STORAGE_BUCKET")
    if bucket:
        options["storageBucket"] = bucket

    # Ruta al archivo de credenciales
    cred_path = os.getenv(
        "FIREBASE_CREDENTIALS_PATH",
        os.path.join(os.path.dirname(__file__), "..", "serviceAccountKey.json")
    )

    if os.path.exists(cred_path):
        firebase_admin.initialize_app(credentials.Certificate(cred_path), options or None)
        logger.info("Firebase Admin initialized with %s", cred_path)
    elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
        # Intentar usar variable de entorno (para producción)
        firebase_admin.initialize_app(options=options or None)
        logger.info("Firebase Admin initialized from GOOGLE_APPLICATION_CREDENTIALS")
    else:
        raise StoreUnavailable(
            f"Firebase credentials not found at {cred_path} and GOOGLE_APPLICATION_CREDENTIALS is unset"
        )
    _initialized = True


def identity_from_claims(claims: dict) -> Identity:
    firebase_claims = claims.get("firebase") or {}
    return Identity(
        uid=claims["uid"],
        email=claims.get("email") or "",
        display_name=claims.get("name") or "",
        photo_url=claims.get("picture") or "",
        email_verified=bool(claims.get("email_verified")),
        sign_in_provider=firebase_claims.get("sign_in_provider"),
    )


def require_verified_email(identity: Identity) -> Identity:
    """Email/password accounts must verify their address before using the API."""
    if identity.sign_in_provider == "password" and not identity.email_verified:
        raise Unauthorized("Email address not verified")
    return identity


def verify_id_token(token: str) -> Identity:
    """Verify a Firebase ID token and return the caller's identity."""
    initialize_firebase_admin()
    try:
        claims = auth.verify_id_token(token, check_revoked=True)
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError,
            auth.UserDisabledError, ValueError) as exc:
        logger.warning("Rejected ID token: %s", exc)
        raise Unauthorized("Invalid or expired session") from exc
    except (auth.CertificateFetchError, FirebaseError) as exc:
        raise StoreUnavailable(f"Identity provider unavailable: {exc}") from exc
    return require_verified_email(identity_from_claims(claims))
