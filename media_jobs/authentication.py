import logging
from dataclasses import dataclass

from firebase_admin import auth as firebase_auth
from rest_framework import authentication, exceptions

from . import firebase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FirebaseUser:
    uid: str

    is_authenticated = True
    is_anonymous = False


class FirebaseAuthentication(authentication.BaseAuthentication):
    """
    ``Authorization: Bearer <Firebase ID token>`` -> FirebaseUser(uid).
    """

    keyword = "Bearer"

    def authenticate(self, request):
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header.startswith(f"{self.keyword} "):
            return None

        token = header[len(self.keyword) + 1:].strip()
        if not token:
            raise exceptions.AuthenticationFailed("Unauthorized")

        try:
            decoded = firebase.verify_id_token(token)
        except firebase_auth.ExpiredIdTokenError:
            raise exceptions.AuthenticationFailed("Token expired, please sign in again.")
        except (firebase_auth.InvalidIdTokenError, firebase_auth.RevokedIdTokenError, ValueError) as e:
            logger.info("Rejected ID token: %s", e)
            raise exceptions.AuthenticationFailed("Unauthorized")

        uid = (decoded or {}).get("uid")
        if not uid:
            raise exceptions.AuthenticationFailed("Unauthorized")
        return FirebaseUser(uid=uid), token

    def authenticate_header(self, request):
        return self.keyword
