"""Quick smoke test for Firestore connectivity.

Usage:
  python scripts/check_firestore_conn.py
"""
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rules_probe.store import FirestoreStore


async def ping():
    store = FirestoreStore()
    await store.write("__rules_probe_conn__", "ping", {"ok": True})
    got = await store.read("__rules_probe_conn__", "ping")
    print("Firestore test document:", got)
    await store.delete("__rules_probe_conn__", "ping")


if __name__ == "__main__":
    asyncio.run(ping())
