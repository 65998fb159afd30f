import logging
from typing import List, Optional, Tuple

from .config import ORPHAN_MAX_AGE_MINUTES, PROBE_COLLECTION
from .exceptions import StoreError
from .record import DESTINATION_LABEL, now_millis
from .store import RemoteStore

logger = logging.getLogger(__name__)


async def find_orphans(
    store: RemoteStore,
    collection: str = PROBE_COLLECTION,
    max_age_minutes: int = ORPHAN_MAX_AGE_MINUTES,
    now_ms: Optional[int] = None,
) -> List[Tuple[str, dict]]:
    """Probe records older than `max_age_minutes`, i.e. left behind by failed read-backs."""
    now = now_ms if now_ms is not None else now_millis()
    cutoff = now - max_age_minutes * 60 * 1000
    orphans = []
    for key, data in await store.list_where(collection, 'to', DESTINATION_LABEL):
        created = data.get('createdAt')
        if not isinstance(created, (int, float)):
            logger.debug('Skipping %s: no numeric createdAt', key)
            continue
        if created <= cutoff:
            orphans.append((key, data))
    return orphans


async def sweep_orphans(
    store: RemoteStore,
    collection: str = PROBE_COLLECTION,
    max_age_minutes: int = ORPHAN_MAX_AGE_MINUTES,
    dry_run: bool = True,
    now_ms: Optional[int] = None,
) -> dict:
    orphans = await find_orphans(store, collection, max_age_minutes, now_ms)
    ids = [k for k, _ in orphans]
    if dry_run:
        logger.info('Found %d orphaned probe records (dry run): %s', len(ids), ids)
        return {'collection': collection, 'orphans_found': len(ids), 'ids': ids}
    deleted, failed = [], []
    for key in ids:
        try:
            await store.delete(collection, key)
            deleted.append(key)
        except StoreError as e:
            logger.error('Could not delete orphan %s: %s', key, e)
            failed.append(key)
    logger.info('Cleaned up %d orphaned probe records: %s', len(deleted), deleted)
    return {'collection': collection, 'orphans_deleted': len(deleted), 'ids': deleted, 'failed': failed}
