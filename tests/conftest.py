"""Shared fixtures: an in-memory store that records every remote call."""
import asyncio
import itertools

import pytest

from rules_probe.exceptions import StoreError
from rules_probe.identity import StaticIdentityProvider
from rules_probe.store import RemoteStore


class FakeStore(RemoteStore):
    def __init__(self):
        self.docs = {}
        self.calls = []
        self.fail = {}
        self.hang = set()
        self.missing_after_write = False
        self.key_override = None
        self.bound = []
        self._ids = itertools.count(1)

    def for_principal(self, principal):
        self.bound.append(principal)
        return self

    async def _enter(self, op, *args):
        self.calls.append((op,) + args)
        if op in self.hang:
            await asyncio.Event().wait()
        if op in self.fail:
            raise StoreError(op, self.fail[op])

    async def allocate_key(self, collection):
        await self._enter("allocate_key", collection)
        if self.key_override is not None:
            return self.key_override
        return f"key-{next(self._ids)}"

    async def write(self, collection, key, data):
        await self._enter("write", collection, key)
        if not self.missing_after_write:
            self.docs[(collection, key)] = dict(data)

    async def read(self, collection, key):
        await self._enter("read", collection, key)
        doc = self.docs.get((collection, key))
        return dict(doc) if doc is not None else None

    async def delete(self, collection, key):
        await self._enter("delete", collection, key)
        self.docs.pop((collection, key), None)

    async def list_where(self, collection, field, value):
        await self._enter("list_where", collection, field, value)
        return [(k, dict(d)) for (c, k), d in self.docs.items() if c == collection and d.get(field) == value]

    @property
    def ops(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def u1():
    return StaticIdentityProvider("u1", "Probe User")


@pytest.fixture
def nobody():
    return StaticIdentityProvider(None)
