#!/usr/bin/env python3
"""Run one security rules probe from the command line.

Usage:
    python scripts/run_probe.py --uid u1
    python scripts/run_probe.py --id-token "$ID_TOKEN"

Without --uid or --id-token the PROBE_UID env var is used. Exit code is 0 when
the write/read/delete sequence completed, 1 otherwise.
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

# Ensure project root on sys.path so `rules_probe` imports work when running the script directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rules_probe.config import PROBE_COLLECTION, PROBE_TIMEOUT_SECONDS
from rules_probe.identity import FirebaseTokenIdentityProvider, StaticIdentityProvider
from rules_probe.log import setup_logging
from rules_probe.probe import RulesProbe
from rules_probe.store import FirestoreStore


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('--uid', type=str, default=None, help='Principal uid to write as (emulator only)')
    ap.add_argument('--id-token', type=str, default=None, help='Firebase ID token naming the principal')
    ap.add_argument('--collection', type=str, default=PROBE_COLLECTION)
    ap.add_argument('--timeout', type=float, default=PROBE_TIMEOUT_SECONDS, help='Per-call timeout in seconds (0 = none)')
    ap.add_argument('--log-level', type=str, default=None)
    args = ap.parse_args()

    setup_logging(args.log_level)
    if args.id_token:
        identity = FirebaseTokenIdentityProvider(args.id_token)
    elif args.uid:
        identity = StaticIdentityProvider(args.uid)
    else:
        identity = StaticIdentityProvider.from_env()

    probe = RulesProbe(FirestoreStore(), identity, collection=args.collection, timeout=args.timeout)
    report = asyncio.run(probe.run_probe())
    print(json.dumps(report.model_dump(mode='json'), indent=2))
    sys.exit(0 if report.succeeded else 1)


if __name__ == '__main__':
    main()
