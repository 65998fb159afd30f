"""Security rules probe.

One run allocates a key in the target collection, writes a minimal group
record under the current principal, reads it back and deletes it. Every
failure ends the run; nothing is retried. Outcomes go to the log, and
`run_probe()` also returns a `ProbeReport` for callers that want it.
"""
import asyncio
import enum
import logging
from typing import Callable, Optional

from pydantic import BaseModel

from .config import PROBE_ACTION, PROBE_COLLECTION, PROBE_TIMEOUT_SECONDS
from .exceptions import (
    DeleteFailedError,
    IdentityError,
    KeyAllocationError,
    NoPrincipalError,
    ProbeError,
    ReadFailedError,
    StoreError,
    WriteRejectedError,
)
from .identity import IdentityProvider
from .record import build_probe_record, now_millis, payload_mismatches
from .store import RemoteStore

logger = logging.getLogger(__name__)


class ProbeState(str, enum.Enum):
    IDLE = 'Idle'
    KEY_ALLOCATED = 'KeyAllocated'
    WRITING = 'Writing'
    WRITE_FAILED = 'WriteFailed'
    WRITE_SUCCEEDED = 'WriteSucceeded'
    READING = 'Reading'
    READ_FAILED = 'ReadFailed'
    READ_SUCCEEDED = 'ReadSucceeded'
    DELETING = 'Deleting'
    DONE = 'Done'


class ProbeFailure(BaseModel):
    code: str
    message: str


class ProbeReport(BaseModel):
    state: ProbeState = ProbeState.IDLE
    record_id: Optional[str] = None
    written: Optional[dict] = None
    read_back: Optional[dict] = None
    error: Optional[ProbeFailure] = None
    cleanup_confirmed: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == ProbeState.DONE


class RulesProbe:

    def __init__(
        self,
        store: RemoteStore,
        identity: IdentityProvider,
        collection: str = PROBE_COLLECTION,
        timeout: Optional[float] = PROBE_TIMEOUT_SECONDS,
        clock: Optional[Callable[[], int]] = None,
        action: str = PROBE_ACTION,
    ):
        self.store = store
        self.identity = identity
        self.collection = collection
        # 0 or None means wait forever
        self.timeout = timeout or None
        self.clock = clock or now_millis
        self.action = action

    def matches(self, signal: Optional[str]) -> bool:
        return signal is not None and signal == self.action

    async def trigger(self, signal: Optional[str]) -> None:
        """Run a probe if `signal` is exactly the configured action; ignore it otherwise."""
        if not self.matches(signal):
            logger.debug('Ignoring signal %r', signal)
            return
        logger.debug('Starting security rules compliance probe...')
        await self.run_probe()

    async def _call(self, coro):
        if self.timeout is None:
            return await coro
        return await asyncio.wait_for(coro, self.timeout)

    def _fail(self, report: ProbeReport, state: ProbeState, err: ProbeError, cause=None) -> ProbeReport:
        report.state = state
        report.error = ProbeFailure(code=err.code, message=err.message)
        if cause is not None:
            logger.error(err.message, exc_info=cause)
        else:
            logger.error(err.message)
        return report

    async def run_probe(self) -> ProbeReport:
        report = ProbeReport()

        try:
            principal = self.identity.current_principal()
        except IdentityError as e:
            logger.error(e.message)
            principal = None
        if principal is None:
            # IDLE is terminal here: no remote call has been made
            return self._fail(report, ProbeState.IDLE, NoPrincipalError())
        logger.debug('Current user ID: %s', principal.uid)

        try:
            # every call below runs as the principal so the rules apply to it
            store = self.store.for_principal(principal)
            key = await self._call(store.allocate_key(self.collection))
        except (StoreError, asyncio.TimeoutError) as e:
            return self._fail(report, ProbeState.IDLE, KeyAllocationError(self.collection, str(e) or 'timed out'), e)
        if not key:
            return self._fail(report, ProbeState.IDLE, KeyAllocationError(self.collection, 'store returned no key'))
        report.state = ProbeState.KEY_ALLOCATED
        report.record_id = key
        logger.debug('Testing with new record ID: %s', key)

        payload = build_probe_record(key, principal, self.clock()).to_payload()
        report.written = payload
        logger.debug('Writing minimal record: %s', payload)

        report.state = ProbeState.WRITING
        try:
            await self._call(store.write(self.collection, key, payload))
        except (StoreError, asyncio.TimeoutError) as e:
            return self._fail(report, ProbeState.WRITE_FAILED, WriteRejectedError(key, str(e) or 'timed out'), e)
        report.state = ProbeState.WRITE_SUCCEEDED
        logger.info('Record %s written; security rules accepted the payload.', key)

        report.state = ProbeState.READING
        try:
            data = await self._call(store.read(self.collection, key))
        except (StoreError, asyncio.TimeoutError) as e:
            # the written record stays behind; see sweep.py
            return self._fail(report, ProbeState.READ_FAILED, ReadFailedError(key, str(e) or 'timed out'), e)
        if data is None:
            return self._fail(report, ProbeState.READ_FAILED, ReadFailedError(key, 'record not found'))
        report.state = ProbeState.READ_SUCCEEDED
        report.read_back = data
        logger.info('Read-back of %s succeeded. Data: %s', key, data)

        diff = payload_mismatches(payload, data)
        if diff:
            logger.warning('Read-back differs from written record: %s', diff)

        report.state = ProbeState.DELETING
        try:
            await self._call(store.delete(self.collection, key))
            report.cleanup_confirmed = True
        except (StoreError, asyncio.TimeoutError) as e:
            # best-effort cleanup; the run still counts as done
            logger.debug(DeleteFailedError(key, str(e) or 'timed out').message)
        report.state = ProbeState.DONE
        return report
