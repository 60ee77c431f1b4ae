# Mazegen Scheduler: cooperative execution of long-running generation passes
#
# A generation pass is a plain Python generator: every `yield` is a suspension
# point where the host may service other work. Two drivers are provided:
# - run_to_completion(): drain synchronously (tests, CLI, headless use)
# - GenerationTask: advance a bounded number of steps per bpy.app.timers tick
#
# Cancellation is cooperative: passes call CancellationToken.raise_if_cancelled()
# at each suspension point.

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Generator, Optional, Set

try:
    import bpy  # for timers
except Exception:
    bpy = None

logger = logging.getLogger(__name__)


class GenerationCancelled(Exception):
    """Raised at a suspension point once cancellation has been requested."""
    pass


class GenerationInProgressError(RuntimeError):
    """Raised when a second pass (or clear) is requested while one is running."""
    pass


class CancellationToken:
    """Thread-safe cancellation flag checked at every suspension point."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled(self.reason or "cancelled")


def checkpoint(cancel: Optional[CancellationToken]) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled()


def run_to_completion(steps: Generator[Any, None, Any]) -> Any:
    """Drain a step generator without suspending and return its return value."""
    while True:
        try:
            next(steps)
        except StopIteration as stop:
            return stop.value


# Tasks currently driven by timers; unregister() cancels whatever is left.
_ACTIVE_LOCK = threading.Lock()
_ACTIVE_TASKS: Set["GenerationTask"] = set()


def cancel_all_tasks(reason: str = "add-on unregistered") -> int:
    with _ACTIVE_LOCK:
        tasks = list(_ACTIVE_TASKS)
    for task in tasks:
        task.cancel(reason)
    return len(tasks)


class GenerationTask:
    """Drives a step generator from Blender's main-thread timers.

    Each tick advances up to `steps_per_tick` suspension points, then hands
    control back to Blender. When bpy is unavailable the task runs to
    completion inside start().
    """

    def __init__(
        self,
        steps: Generator[Any, None, Any],
        request_id: str,
        on_complete: Optional[Callable[["GenerationTask"], None]] = None,
        cancel: Optional[CancellationToken] = None,
        steps_per_tick: int = 32,
        interval_sec: float = 0.0,
    ) -> None:
        self.request_id = request_id
        self.cancel_token = cancel or CancellationToken()
        self.steps_per_tick = max(1, int(steps_per_tick))
        self.interval_sec = max(0.0, float(interval_sec))
        self.status = "pending"
        self.result: Any = None
        self.error: Optional[BaseException] = None
        self.ticks = 0
        self._steps = steps
        self._on_complete = on_complete
        self._started_at = 0.0

    @property
    def done(self) -> bool:
        return self.status in {"finished", "failed", "cancelled"}

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self.cancel_token.cancel(reason)

    def start(self) -> "GenerationTask":
        if self.status != "pending":
            raise RuntimeError(f"[{self.request_id}] Task already started (status={self.status})")
        self.status = "running"
        self._started_at = time.perf_counter()

        timers = getattr(getattr(bpy, "app", None), "timers", None) if bpy is not None else None
        if timers is None:
            # No host scheduler (tests/CI): run inline
            logger.debug(f"[{self.request_id}] bpy timers unavailable; running generation inline")
            while self._tick() is not None:
                pass
            return self

        with _ACTIVE_LOCK:
            _ACTIVE_TASKS.add(self)
        timers.register(self._tick, first_interval=0.0)
        return self

    def _tick(self) -> Optional[float]:
        if self.done:
            return None
        self.ticks += 1
        try:
            for _ in range(self.steps_per_tick):
                next(self._steps)
        except StopIteration as stop:
            self._finish("finished", result=stop.value)
            return None
        except GenerationCancelled as ex:
            logger.warning(f"[{self.request_id}] Generation cancelled: {ex}")
            self._finish("cancelled", error=ex)
            return None
        except Exception as ex:
            logger.error(f"[{self.request_id}] Generation failed: {ex}")
            self._finish("failed", error=ex)
            return None
        return self.interval_sec

    def _finish(self, status: str, result: Any = None, error: Optional[BaseException] = None) -> None:
        self.status = status
        self.result = result
        self.error = error
        with _ACTIVE_LOCK:
            _ACTIVE_TASKS.discard(self)
        dur = time.perf_counter() - self._started_at
        logger.debug(f"[{self.request_id}] Task {status} after {self.ticks} tick(s) in {dur:.3f}s")
        if self._on_complete is not None:
            try:
                self._on_complete(self)
            except Exception as ex:
                logger.error(f"[{self.request_id}] on_complete callback raised: {ex}")
