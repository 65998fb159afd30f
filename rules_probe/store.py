"""Firestore-backed keyed store used by the probe.

The probe needs only five operations, so this is deliberately not a general
data-access layer. Security rules are only evaluated for end-user
credentials, so a probe run works on a store bound to the principal's
Firebase ID token (`for_principal`). The unbound store uses the service
account (`GOOGLE_APPLICATION_CREDENTIALS` or `rules-probe-firestore.json` in
the repo root) and is meant for admin jobs such as the orphan sweep.

With `FIRESTORE_EMULATOR_HOST` set, a principal without an ID token gets an
unsigned emulator token for its uid, which the emulator's rules accept.
"""
import abc
import base64
import json
import os
import time
import logging
from typing import Dict, List, Optional, Tuple

from google.api_core import exceptions as gexc
from google.auth import exceptions as gauth_exc
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2.credentials import Credentials

from .config import DEFAULT_SA, FIRESTORE_EMULATOR_HOST, FIRESTORE_PROJECT
from .exceptions import StoreError
from .identity import Principal

logger = logging.getLogger(__name__)

# Errors from the client library or from resolving its credentials
CLIENT_ERRORS = (gexc.GoogleAPIError, gauth_exc.GoogleAuthError)


def _ensure_credentials_env():
    # If env var not set and default service account exists in repo root, set it.
    if not os.getenv("GOOGLE_APPLICATION_CREDENTIALS") and DEFAULT_SA.exists():
        os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = str(DEFAULT_SA)


def get_firestore_client(project: Optional[str] = None, credentials=None):
    if credentials is None:
        _ensure_credentials_env()
    return firestore.AsyncClient(project=project or FIRESTORE_PROJECT, credentials=credentials)


def _b64(obj: dict) -> str:
    raw = json.dumps(obj, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def emulator_user_token(uid: str, project: str) -> str:
    """Unsigned ID token for `uid`; only the Firestore emulator accepts it."""
    now = int(time.time())
    header = {"alg": "none", "kid": "fakekid", "typ": "JWT"}
    payload = {
        "iss": f"https://securetoken.google.com/{project}",
        "aud": project,
        "iat": now,
        "exp": now + 3600,
        "auth_time": now,
        "sub": uid,
        "user_id": uid,
        "firebase": {"sign_in_provider": "custom", "identities": {}},
    }
    return f"{_b64(header)}.{_b64(payload)}."


class RemoteStore(abc.ABC):
    """Async keyed document store: collections of documents addressed by key."""

    def for_principal(self, principal: Principal) -> "RemoteStore":
        """Store whose calls carry `principal`'s credential."""
        return self

    @abc.abstractmethod
    async def allocate_key(self, collection: str) -> str:
        ...

    @abc.abstractmethod
    async def write(self, collection: str, key: str, data: dict) -> None:
        ...

    @abc.abstractmethod
    async def read(self, collection: str, key: str) -> Optional[dict]:
        """Return the stored document, or None when nothing exists at `key`."""

    @abc.abstractmethod
    async def delete(self, collection: str, key: str) -> None:
        ...

    @abc.abstractmethod
    async def list_where(self, collection: str, field: str, value) -> List[Tuple[str, dict]]:
        ...


class FirestoreStore(RemoteStore):

    def __init__(self, client=None, credentials=None, project: Optional[str] = None):
        self._client = client
        self._credentials = credentials
        self._project = project

    @property
    def client(self):
        if self._client is None:
            self._client = get_firestore_client(self._project, self._credentials)
        return self._client

    def for_principal(self, principal: Principal) -> "FirestoreStore":
        token = principal.id_token
        if not token:
            if not FIRESTORE_EMULATOR_HOST:
                # service account credentials would bypass the rules under test
                raise StoreError("for_principal", f"principal {principal.uid} has no ID token")
            project = self._project or FIRESTORE_PROJECT or "demo-rules-probe"
            token = emulator_user_token(principal.uid, project)
            return FirestoreStore(credentials=Credentials(token=token), project=project)
        return FirestoreStore(credentials=Credentials(token=token), project=self._project)

    def _doc(self, collection: str, key: Optional[str] = None):
        coll = self.client.collection(collection)
        return coll.document(key) if key is not None else coll.document()

    async def allocate_key(self, collection: str) -> str:
        # document() with no id picks a random auto-id locally; nothing is written
        try:
            return self._doc(collection).id
        except CLIENT_ERRORS + (ValueError,) as e:
            raise StoreError("allocate_key", str(e)) from e

    async def write(self, collection: str, key: str, data: dict) -> None:
        try:
            await self._doc(collection, key).set(data)
        except CLIENT_ERRORS as e:
            raise StoreError("write", str(e)) from e

    async def read(self, collection: str, key: str) -> Optional[dict]:
        try:
            snap = await self._doc(collection, key).get()
        except CLIENT_ERRORS as e:
            raise StoreError("read", str(e)) from e
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    async def delete(self, collection: str, key: str) -> None:
        try:
            await self._doc(collection, key).delete()
        except CLIENT_ERRORS as e:
            raise StoreError("delete", str(e)) from e

    async def list_where(self, collection: str, field: str, value) -> List[Tuple[str, dict]]:
        out: List[Tuple[str, Dict]] = []
        try:
            query = self.client.collection(collection).where(filter=FieldFilter(field, "==", value))
            async for snap in query.stream():
                out.append((snap.id, snap.to_dict() or {}))
        except CLIENT_ERRORS as e:
            raise StoreError("list_where", str(e)) from e
        return out
