#!/usr/bin/env python3
"""List or delete probe records left behind by failed read-backs.

Usage:
    python scripts/sweep_orphans.py              # dry run
    python scripts/sweep_orphans.py --delete --max-age 60
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rules_probe.config import ORPHAN_MAX_AGE_MINUTES, PROBE_COLLECTION
from rules_probe.log import setup_logging
from rules_probe.store import FirestoreStore
from rules_probe.sweep import sweep_orphans


def main():
    p = argparse.ArgumentParser()
    p.add_argument('--collection', default=PROBE_COLLECTION)
    p.add_argument('--max-age', type=int, default=ORPHAN_MAX_AGE_MINUTES, help='Age threshold in minutes')
    p.add_argument('--delete', action='store_true', help='Delete orphans instead of only listing them')
    args = p.parse_args()

    setup_logging()
    summary = asyncio.run(sweep_orphans(FirestoreStore(), args.collection, args.max_age, dry_run=not args.delete))
    print(json.dumps(summary, indent=2))


if __name__ == '__main__':
    main()
