# =============================================================================
# cleantrack_core/offline/propagator.py
# Fire-and-Forget Remote Propagation
# =============================================================================
"""
RemotePropagator - pushes local mutations to the remote store in the background.

Features:
- Detached background jobs (the caller never waits)
- Jobs run in submission order with the default single worker
- Outcome tracking and event callbacks
- No retries: a failed job is logged, counted and dropped
"""

from __future__ import annotations
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Set
import logging

logger = logging.getLogger(__name__)

RemoteCall = Callable[[], None]


@dataclass
class PropagationOutcome:
    """Result of one background job."""
    label: str
    succeeded: bool
    error: Optional[str] = None
    finished_at: datetime = field(default_factory=datetime.now)


@dataclass
class PropagationState:
    """Running totals since start-up."""
    submitted: int = 0
    succeeded: int = 0
    failed: int = 0
    in_flight: int = 0
    last_success: Optional[datetime] = None
    last_error: Optional[str] = None


class RemotePropagator:
    """
    Runs remote calls off the caller's thread.

    Usage:
        propagator = RemotePropagator()
        propagator.submit("upsert task 42", lambda: gateway.upsert(record))
        # returns immediately; outcome only visible via logs/callbacks/state
    """

    def __init__(self, max_workers: int = 1):
        """
        Args:
            max_workers: Background threads; 0 runs every job inline
        """
        self._state = PropagationState()
        self._callbacks: List[Callable[[PropagationOutcome], None]] = []
        self._lock = threading.Lock()
        self._pending: Set[Future] = set()
        self._executor: Optional[ThreadPoolExecutor] = None
        if max_workers > 0:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="RemotePropagator",
            )

    @property
    def state(self) -> PropagationState:
        return self._state

    @property
    def is_inline(self) -> bool:
        return self._executor is None

    def submit(self, label: str, *calls: RemoteCall) -> None:
        """
        Schedule ``calls`` to run one after another in the background.

        The sequence stops at the first failing call. Nothing is returned:
        the outcome is reported through logging and callbacks only.
        """
        with self._lock:
            self._state.submitted += 1
            self._state.in_flight += 1

        if self._executor is None:
            self._run(label, calls)
            return

        try:
            future = self._executor.submit(self._run, label, calls)
        except RuntimeError as e:
            # Executor already shut down (process teardown)
            self._record(PropagationOutcome(label, succeeded=False, error=str(e)))
            logger.warning(f"Dropped remote propagation '{label}': {e}")
            return

        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _run(self, label: str, calls) -> None:
        try:
            for call in calls:
                call()
        except Exception as e:
            logger.warning(f"Remote propagation failed for {label}: {e}")
            self._record(PropagationOutcome(label, succeeded=False, error=str(e)))
            return

        logger.debug(f"Remote propagation done: {label}")
        self._record(PropagationOutcome(label, succeeded=True))

    def _record(self, outcome: PropagationOutcome) -> None:
        with self._lock:
            self._state.in_flight = max(0, self._state.in_flight - 1)
            if outcome.succeeded:
                self._state.succeeded += 1
                self._state.last_success = outcome.finished_at
            else:
                self._state.failed += 1
                self._state.last_error = outcome.error
            callbacks = list(self._callbacks)

        for callback in callbacks:
            try:
                callback(outcome)
            except Exception as e:
                logger.error(f"Error in propagation callback: {e}")

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every submitted job has finished.

        Only for tests and orderly shutdown; the mutation path never calls it.

        Returns:
            True if nothing is left in flight
        """
        with self._lock:
            pending = list(self._pending)
        if pending:
            _, not_done = wait(pending, timeout=timeout)
            if not_done:
                return False
        return self._state.in_flight == 0

    def register_callback(self, callback: Callable[[PropagationOutcome], None]) -> None:
        """Register a callback invoked with every job outcome."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[PropagationOutcome], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting jobs; in-flight requests are dropped unless ``wait``."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=not wait)
            logger.info("Remote propagator stopped")

    def get_status_display(self) -> dict:
        """Status information for UI display."""
        return {
            "submitted": self._state.submitted,
            "succeeded": self._state.succeeded,
            "failed": self._state.failed,
            "in_flight": self._state.in_flight,
            "last_success": self._state.last_success.isoformat() if self._state.last_success else None,
            "last_error": self._state.last_error,
        }
