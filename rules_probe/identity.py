"""Principal lookup for probe runs.

A probe writes under someone's identity; the remote rules compare the record's
`createdBy` with that identity. The principal carries the Firebase ID token
the store sends with each call, so the rules see the same user. Providers are
passed into the probe so tests can substitute their own.
"""
import abc
import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth
from firebase_admin import exceptions as firebase_exceptions
from google.auth import exceptions as gauth_exc
from pydantic import BaseModel

from .config import PROBE_UID
from .exceptions import IdentityError

logger = logging.getLogger(__name__)


class Principal(BaseModel):
    uid: str
    display_name: Optional[str] = None
    # None for uid-only principals; those only work against the emulator
    id_token: Optional[str] = None


class IdentityProvider(abc.ABC):

    @abc.abstractmethod
    def current_principal(self) -> Optional[Principal]:
        ...


class StaticIdentityProvider(IdentityProvider):
    """Always answers with the same principal, or with nobody if uid is empty."""

    def __init__(self, uid: Optional[str], display_name: Optional[str] = None, id_token: Optional[str] = None):
        self.uid = uid
        self.display_name = display_name
        self.id_token = id_token

    @classmethod
    def from_env(cls):
        return cls(PROBE_UID)

    @classmethod
    def of(cls, principal: Principal):
        return cls(principal.uid, principal.display_name, principal.id_token)

    def current_principal(self) -> Optional[Principal]:
        if not self.uid:
            return None
        return Principal(uid=self.uid, display_name=self.display_name, id_token=self.id_token)


def _get_firebase_app():
    try:
        return firebase_admin.get_app()
    except ValueError:
        # Uses GOOGLE_APPLICATION_CREDENTIALS / ADC like the Firestore client
        return firebase_admin.initialize_app()


class FirebaseTokenIdentityProvider(IdentityProvider):
    """Resolves the principal from a Firebase Auth ID token."""

    def __init__(self, id_token: Optional[str]):
        self.id_token = id_token

    def current_principal(self) -> Optional[Principal]:
        if not self.id_token:
            return None
        try:
            claims = auth.verify_id_token(self.id_token, app=_get_firebase_app())
        except (ValueError, firebase_exceptions.FirebaseError, gauth_exc.GoogleAuthError) as e:
            logger.error('ID token verification failed: %s', e)
            raise IdentityError(str(e))
        return Principal(uid=claims['uid'], display_name=claims.get('name'), id_token=self.id_token)
