"""
Job poller: follows one analysis job until the service reports a terminal
status or the caller cancels.

    idle -> polling -> completed | failed | cancelled

A session fetches once immediately, then sleeps ``interval`` seconds between
fetches while the job is still processing. The next sleep starts only after
the previous fetch resolved, so a session never has two fetches outstanding.
Transport errors go to error subscribers and polling carries on at the normal
interval; no snapshot is published for a failed fetch. Any other exception
from the service is reported the same way, wrapped in a ``TransportError``.
A subscriber that raises is logged and skipped.

The sleep function is injectable so tests can run on a virtual clock.
"""
from __future__ import annotations
import asyncio
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from deepcheck.core.config import get_settings
from deepcheck.core.errors import TransportError
from deepcheck.core.logging import get_logger
from deepcheck.core.scoring import JobStatus
from deepcheck.schemas.analysis import AnalysisJob
from deepcheck.services.analysis_gateway import AnalysisService

logger = get_logger(__name__)

SnapshotListener = Callable[[AnalysisJob], None]
ErrorListener = Callable[[TransportError], None]
Sleep = Callable[[float], Awaitable[None]]
FinishHook = Callable[["TrackingSession"], None]

_END = object()


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_final(self) -> bool:
        return self in (PollState.COMPLETED, PollState.FAILED, PollState.CANCELLED)


_TERMINAL_STATES = {
    JobStatus.COMPLETE: PollState.COMPLETED,
    JobStatus.FAILED: PollState.FAILED,
}


class TrackingSession:
    """One tracking run for one job id. Create through ``JobPoller.track``."""

    def __init__(
        self,
        job_id: str,
        service: AnalysisService,
        interval: float,
        sleep: Sleep,
        on_finish: Optional[FinishHook] = None,
    ) -> None:
        self.job_id = job_id
        self._service = service
        self._interval = interval
        self._sleep = sleep
        self._on_finish = on_finish

        self.state = PollState.IDLE
        self.latest: Optional[AnalysisJob] = None
        self.last_error: Optional[TransportError] = None
        self.fetch_count = 0

        self._cancelled = False
        self._in_flight = False
        self._finished = False
        self._task: Optional[asyncio.Task] = None
        self._snapshot_listeners: list[SnapshotListener] = []
        self._error_listeners: list[ErrorListener] = []
        self._queues: list[asyncio.Queue] = []

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------
    def subscribe(
        self,
        on_snapshot: Optional[SnapshotListener] = None,
        on_error: Optional[ErrorListener] = None,
    ) -> Callable[[], None]:
        """Register listeners; returns a callable that removes them."""
        if on_snapshot is not None:
            self._snapshot_listeners.append(on_snapshot)
        if on_error is not None:
            self._error_listeners.append(on_error)

        def unsubscribe() -> None:
            if on_snapshot in self._snapshot_listeners:
                self._snapshot_listeners.remove(on_snapshot)
            if on_error in self._error_listeners:
                self._error_listeners.remove(on_error)

        return unsubscribe

    async def snapshots(self) -> AsyncIterator[AnalysisJob]:
        """Yield the current snapshot (if any), then each new one until the session ends."""
        if self._finished:
            if self.latest is not None:
                yield self.latest
            return
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        try:
            if self.latest is not None:
                yield self.latest
            while True:
                item = await queue.get()
                if item is _END:
                    return
                yield item
        finally:
            self._queues.remove(queue)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def done(self) -> bool:
        return self.state.is_final

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def start(self) -> "TrackingSession":
        if self.state is not PollState.IDLE:
            raise RuntimeError(f"session for {self.job_id} already started")
        self.state = PollState.POLLING
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"poll:{self.job_id}")
        logger.debug("tracking job=%s interval=%.1fs", self.job_id, self._interval)
        return self

    def cancel(self) -> bool:
        """Stop tracking. Returns False if the session had already ended."""
        if self.done:
            return False
        self._cancelled = True
        self.state = PollState.CANCELLED
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._finish()
        logger.info("tracking cancelled job=%s after %d fetch(es)", self.job_id, self.fetch_count)
        return True

    async def wait(self) -> PollState:
        """Wait for the session to end and return its final state."""
        if self._task is not None:
            await asyncio.wait({self._task})
            if not self._task.cancelled() and self._task.exception() is not None:
                raise self._task.exception()
        return self.state

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    async def _run(self) -> None:
        try:
            while True:
                await self._poll_once()
                if self.state is not PollState.POLLING:
                    return
                await self._sleep(self._interval)
                if self._cancelled:
                    return
        except Exception:
            logger.exception("tracking aborted job=%s after %d fetch(es)", self.job_id, self.fetch_count)
            if not self._cancelled:
                self.state = PollState.FAILED
        finally:
            self._finish()

    async def _fetch(self) -> AnalysisJob:
        try:
            return await self._service.get_status(self.job_id)
        except TransportError:
            raise
        except Exception as exc:
            raise TransportError("get_status", f"unreadable status: {exc}", job_id=self.job_id) from exc

    async def _poll_once(self) -> None:
        self._in_flight = True
        self.fetch_count += 1
        try:
            snapshot = await self._fetch()
        except TransportError as exc:
            if self._cancelled:
                return
            self.last_error = exc
            logger.warning("poll failed job=%s fetch=%d: %s", self.job_id, self.fetch_count, exc.message)
            self._emit(self._error_listeners, exc)
            return
        finally:
            self._in_flight = False

        if self._cancelled:
            logger.debug("discarding snapshot for cancelled job=%s", self.job_id)
            return

        self.latest = snapshot
        self.last_error = None
        terminal = _TERMINAL_STATES.get(snapshot.status)
        if terminal is not None:
            self.state = terminal
            logger.info("job=%s reached %s after %d fetch(es)", self.job_id, snapshot.status.value, self.fetch_count)
        self._emit(self._snapshot_listeners, snapshot)
        for queue in self._queues:
            queue.put_nowait(snapshot)

    def _emit(self, listeners: list, item) -> None:
        # a failing subscriber must not stop the loop or starve the others
        for listener in list(listeners):
            try:
                listener(item)
            except Exception:
                logger.exception("listener %r failed for job=%s", listener, self.job_id)

    def _finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        for queue in self._queues:
            queue.put_nowait(_END)
        if self._on_finish is not None:
            self._on_finish(self)


class JobPoller:
    """
    Hands out one TrackingSession per job id. Tracking a job that already has
    a live session returns that session, so a job is never polled twice at
    once. Sessions for different jobs share no state. A session is released
    as soon as it ends; tracking the job again starts a fresh one.

    ``track`` must be called from inside a running event loop.
    """

    def __init__(
        self,
        service: AnalysisService,
        interval: Optional[float] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._service = service
        self.interval = get_settings().POLL_INTERVAL_SECONDS if interval is None else interval
        self._sleep = sleep or asyncio.sleep
        self._sessions: dict[str, TrackingSession] = {}

    def track(
        self,
        job_id: str,
        on_snapshot: Optional[SnapshotListener] = None,
        on_error: Optional[ErrorListener] = None,
    ) -> TrackingSession:
        session = self._sessions.get(job_id)
        if session is None or session.done:
            session = TrackingSession(job_id, self._service, self.interval, self._sleep, on_finish=self._release)
            self._sessions[job_id] = session
            session.subscribe(on_snapshot, on_error)
            return session.start()
        session.subscribe(on_snapshot, on_error)
        return session

    def _release(self, session: TrackingSession) -> None:
        if self._sessions.get(session.job_id) is session:
            del self._sessions[session.job_id]

    def session(self, job_id: str) -> Optional[TrackingSession]:
        """The live session for ``job_id``, or None once it has ended."""
        return self._sessions.get(job_id)

    def cancel(self, job_id: str) -> bool:
        session = self._sessions.get(job_id)
        return session.cancel() if session is not None else False

    def cancel_all(self) -> None:
        for session in list(self._sessions.values()):
            session.cancel()
