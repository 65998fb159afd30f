from contextlib import asynccontextmanager

from fastapi import FastAPI, BackgroundTasks, Depends, HTTPException
from .config import PROBE_ACTION, PROBE_COLLECTION
from .core.security import api_key_auth, bearer_token
from .api.models import SignalRequest, SignalAck, HealthResponse
from .exceptions import IdentityError
from .identity import IdentityProvider, StaticIdentityProvider, FirebaseTokenIdentityProvider
from .log import setup_logging
from .probe import RulesProbe
from .store import FirestoreStore, RemoteStore


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    yield


app = FastAPI(title="Security Rules Probe", lifespan=lifespan)

_store = None


def get_store() -> RemoteStore:
    # Unbound store; each run rebinds it to the principal's credential
    global _store
    if _store is None:
        _store = FirestoreStore()
    return _store


def get_identity(token: str | None = Depends(bearer_token)) -> IdentityProvider:
    """Principal for this request: the verified ID token's user, else PROBE_UID."""
    if not token:
        return StaticIdentityProvider.from_env()
    try:
        principal = FirebaseTokenIdentityProvider(token).current_principal()
    except IdentityError as e:
        raise HTTPException(status_code=401, detail=e.message)
    return StaticIdentityProvider.of(principal)


@app.get('/v1/health', response_model=HealthResponse)
async def health():
    return HealthResponse(status='ok', action=PROBE_ACTION, collection=PROBE_COLLECTION)


@app.post('/v1/signals', response_model=SignalAck, status_code=202)
async def receive_signal(
    payload: SignalRequest,
    background_tasks: BackgroundTasks,
    store: RemoteStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity),
    _auth=Depends(api_key_auth),
):
    probe = RulesProbe(store, identity)
    if not probe.matches(payload.action):
        return SignalAck(accepted=False)
    # Runs after the response is sent; outcome is only logged
    background_tasks.add_task(probe.trigger, payload.action)
    return SignalAck(accepted=True)
