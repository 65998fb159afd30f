"""FirestoreStore against a mocked AsyncClient."""
import base64
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.api_core import exceptions as gexc
from google.auth.exceptions import DefaultCredentialsError
from google.cloud.firestore_v1.base_query import FieldFilter

from rules_probe import store as store_mod
from rules_probe.exceptions import StoreError
from rules_probe.identity import Principal
from rules_probe.store import FirestoreStore, RemoteStore


def make_client(doc_ref):
    client = MagicMock()
    client.collection.return_value.document.return_value = doc_ref
    return client


@pytest.mark.asyncio
async def test_allocate_key_does_not_write():
    doc_ref = MagicMock()
    doc_ref.id = "auto123"
    doc_ref.set = AsyncMock()
    store = FirestoreStore(make_client(doc_ref))

    assert await store.allocate_key("groups") == "auto123"
    doc_ref.set.assert_not_called()


@pytest.mark.asyncio
async def test_read_missing_returns_none():
    snap = MagicMock(exists=False)
    doc_ref = MagicMock(get=AsyncMock(return_value=snap))
    assert await FirestoreStore(make_client(doc_ref)).read("groups", "k") is None


@pytest.mark.asyncio
async def test_read_returns_document():
    snap = MagicMock(exists=True)
    snap.to_dict.return_value = {"createdBy": "u1"}
    doc_ref = MagicMock(get=AsyncMock(return_value=snap))
    assert await FirestoreStore(make_client(doc_ref)).read("groups", "k") == {"createdBy": "u1"}


@pytest.mark.asyncio
async def test_permission_denied_surfaces_diagnostic():
    doc_ref = MagicMock(set=AsyncMock(side_effect=gexc.PermissionDenied("Missing or insufficient permissions.")))
    store = FirestoreStore(make_client(doc_ref))

    with pytest.raises(StoreError) as ei:
        await store.write("groups", "k", {"a": 1})
    assert "insufficient permissions" in str(ei.value)
    assert ei.value.operation == "write"


@pytest.mark.asyncio
async def test_delete_calls_document_delete():
    doc_ref = MagicMock(delete=AsyncMock())
    client = make_client(doc_ref)
    await FirestoreStore(client).delete("groups", "k")

    client.collection.assert_called_with("groups")
    client.collection.return_value.document.assert_called_with("k")
    doc_ref.delete.assert_awaited_once()


def async_doc(doc_id="auto123", data=None):
    snap = MagicMock(exists=data is not None)
    snap.to_dict.return_value = data
    doc_ref = MagicMock(set=AsyncMock(), get=AsyncMock(return_value=snap), delete=AsyncMock())
    doc_ref.id = doc_id
    return doc_ref


@pytest.mark.asyncio
async def test_principal_store_sends_the_id_token():
    principal = Principal(uid="u9", id_token="user-id-token")
    with patch.object(store_mod.firestore, "AsyncClient", return_value=make_client(async_doc())) as ctor:
        bound = FirestoreStore().for_principal(principal)
        await bound.allocate_key("groups")

    assert ctor.call_args.kwargs["credentials"].token == "user-id-token"


def test_uid_only_principal_gets_emulator_token():
    with patch.object(store_mod, "FIRESTORE_EMULATOR_HOST", "localhost:8080"):
        bound = FirestoreStore(project="demo-x").for_principal(Principal(uid="u1"))

    header, payload, signature = bound._credentials.token.split(".")
    claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    assert signature == ""
    assert claims["sub"] == claims["user_id"] == "u1"
    assert claims["aud"] == "demo-x"


def test_uid_only_principal_refused_against_real_backend():
    with patch.object(store_mod, "FIRESTORE_EMULATOR_HOST", None):
        with pytest.raises(StoreError):
            FirestoreStore().for_principal(Principal(uid="u1"))


@pytest.mark.asyncio
async def test_client_credential_errors_become_store_errors():
    with patch.object(store_mod, "get_firestore_client", side_effect=DefaultCredentialsError("no ADC")):
        with pytest.raises(StoreError) as ei:
            await FirestoreStore().write("groups", "k", {"a": 1})
    assert "no ADC" in str(ei.value)


@pytest.mark.asyncio
async def test_list_where_uses_field_filter():
    snap = MagicMock(id="g1")
    snap.to_dict.return_value = {"to": "Test Destination"}

    async def stream():
        yield snap

    client = MagicMock()
    query = client.collection.return_value.where.return_value
    query.stream.side_effect = stream

    rows = await FirestoreStore(client).list_where("groups", "to", "Test Destination")

    assert rows == [("g1", {"to": "Test Destination"})]
    f = client.collection.return_value.where.call_args.kwargs["filter"]
    assert isinstance(f, FieldFilter)
    assert (f.field_path, f.op_string, f.value) == ("to", "==", "Test Destination")


def test_remote_store_is_abstract():
    with pytest.raises(TypeError):
        RemoteStore()
