import logging
from typing import Any

import firebase_admin
from django.conf import settings
from firebase_admin import auth, credentials

logger = logging.getLogger(__name__)


def initialize_firebase() -> None:
    """Initializes the Firebase Admin SDK once per process."""
    if firebase_admin._apps:
        return

    if not settings.FIREBASE_PROJECT_ID:
        logger.warning("Firebase Project ID not set. Firebase Admin SDK not initialized.")
        return

    try:
        if settings.FIREBASE_SERVICE_ACCOUNT_JSON_PATH:
            cred = credentials.Certificate(settings.FIREBASE_SERVICE_ACCOUNT_JSON_PATH)
            firebase_admin.initialize_app(cred, {"projectId": settings.FIREBASE_PROJECT_ID})
        else:
            # Application Default Credentials
            firebase_admin.initialize_app(options={"projectId": settings.FIREBASE_PROJECT_ID})
        logger.info("Firebase Admin SDK initialized successfully.")
    except (ValueError, OSError) as e:
        logger.error("Failed to initialize Firebase Admin SDK: %s", e)


def verify_id_token(id_token: str) -> dict[str, Any]:
    """
    Verify a Firebase ID token and return its decoded claims.

    Raises ``auth.ExpiredIdTokenError`` / ``auth.InvalidIdTokenError`` (and
    ``ValueError`` for malformed input or an uninitialized SDK).
    """
    if not firebase_admin._apps:
        initialize_firebase()
    return auth.verify_id_token(id_token)
