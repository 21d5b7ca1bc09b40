"""
smartpick/pipeline/worker_bridge.py
Run engine calls on a background thread pool.

Every call gets a unique request id and a caller-facing future. A
CancelToken abandons a pending call: the caller's future fails with
TaskCancelled right away and the worker's eventual reply is dropped. The
work itself is not interrupted.
"""
from __future__ import annotations

import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Mapping

from smartpick.models.errors import TaskCancelled
from smartpick.models.statistical.digits import compute_digit_stats
from smartpick.models.statistical.frequency_analyzer import compute_stats
from smartpick.models.statistical.k_of_n import compute_k_of_n_stats
from smartpick.models.statistical.patterns import build_lotto_insights
from smartpick.models.statistical.recommendation import analyze_game
from smartpick.models.ticket_generator import (
    generate_digit_ticket,
    generate_k_of_n_ticket,
    generate_ticket,
    generate_tickets,
)
from smartpick.pipeline.ticket_service import build_pick_report
from smartpick.scratchers.scoring import rank_scratchers
from smartpick.utils.logger import get_logger

log = get_logger("pipeline.worker")

DEFAULT_TASKS: dict[str, Callable[..., Any]] = {
    "compute_stats": compute_stats,
    "analyze_game": analyze_game,
    "generate_ticket": generate_ticket,
    "generate_tickets": generate_tickets,
    "compute_digit_stats": compute_digit_stats,
    "generate_digit_ticket": generate_digit_ticket,
    "compute_k_of_n_stats": compute_k_of_n_stats,
    "generate_k_of_n_ticket": generate_k_of_n_ticket,
    "rank_scratchers": rank_scratchers,
    "build_pick_report": build_pick_report,
    "build_lotto_insights": build_lotto_insights,
}


class CancelToken:
    """Cooperative cancellation flag shared between a caller and the bridge."""

    def __init__(self):
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            cb()

    def add_callback(self, cb: Callable[[], None]) -> None:
        """Run cb on cancel; immediately if the token is already cancelled."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(cb)
                return
        cb()


class TaskFuture(Future):
    def __init__(self, request_id: str, task: str):
        super().__init__()
        self.request_id = request_id
        self.task = task


class WorkerBridge:
    def __init__(self, tasks: Mapping[str, Callable[..., Any]] | None = None, max_workers: int | None = None):
        self._tasks = dict(tasks if tasks is not None else DEFAULT_TASKS)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="smartpick")
        self._pending: dict[str, TaskFuture] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> "WorkerBridge":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def run_task(self, task: str, *args: Any, token: CancelToken | None = None, **kwargs: Any) -> TaskFuture:
        fn = self._tasks.get(task)
        if fn is None:
            raise ValueError(f"Unknown task: {task}")

        request_id = uuid.uuid4().hex
        reply = TaskFuture(request_id, task)
        # cancellation goes through CancelToken, not Future.cancel()
        reply.set_running_or_notify_cancel()
        if token is not None and token.cancelled:
            reply.set_exception(TaskCancelled(f"{task} [{request_id}] cancelled before dispatch"))
            return reply

        with self._lock:
            self._pending[request_id] = reply
        try:
            work = self._executor.submit(fn, *args, **kwargs)
        except RuntimeError:
            # executor already shut down; nothing will ever deliver this reply
            self._take(request_id)
            raise
        work.add_done_callback(lambda f: self._deliver(request_id, f))
        if token is not None:
            token.add_callback(lambda: self._abandon(request_id))
        log.debug(f"[{request_id}] dispatched {task}")
        return reply

    def _take(self, request_id: str) -> TaskFuture | None:
        with self._lock:
            return self._pending.pop(request_id, None)

    def _deliver(self, request_id: str, work: Future) -> None:
        reply = self._take(request_id)
        if reply is None:
            log.debug(f"[{request_id}] dropped late reply")
            return
        if work.cancelled():
            reply.set_exception(TaskCancelled(f"{reply.task} [{request_id}] never ran"))
            return
        exc = work.exception()
        if exc is not None:
            log.warning(f"[{request_id}] {reply.task} failed: {exc}")
            reply.set_exception(exc)
        else:
            reply.set_result(work.result())

    def _abandon(self, request_id: str) -> None:
        reply = self._take(request_id)
        if reply is not None:
            log.debug(f"[{request_id}] cancelled {reply.task}")
            reply.set_exception(TaskCancelled(f"{reply.task} [{request_id}] cancelled"))

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; anything still pending fails with TaskCancelled."""
        self._executor.shutdown(wait=wait, cancel_futures=True)
        with self._lock:
            leftover, self._pending = self._pending, {}
        for request_id, reply in leftover.items():
            reply.set_exception(TaskCancelled(f"{reply.task} [{request_id}] bridge shut down"))
