"""
Sequential per-subject consumers.

Each subject has one worker thread and a bounded queue; messages are handled one at a time,
to completion, in arrival order. dispatch() blocks until the handler finished (ack) or failed
(no ack, caller redelivers). Different subjects run concurrently. stop() lets the in-flight
message finish and fails whatever is still queued.
"""
import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable

from inbox_feed.core.errors import FeedError

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.5


class ConsumerUnavailableError(FeedError):
    """Unknown subject, consumer stopped, or queue full."""


class SubjectWorker:
    def __init__(self, subject: str, handler: Callable[[Any], Any], max_pending: int = 100) -> None:
        self.subject = subject
        self._handler = handler
        self._queue: queue.Queue[tuple[Any, Future]] = queue.Queue(maxsize=max_pending)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"consumer:{self.subject}", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._fail_pending()

    def submit(self, payload: Any) -> Future:
        if self._stop.is_set() or not self.running:
            raise ConsumerUnavailableError(f"consumer for {self.subject} is not running")
        future: Future = Future()
        try:
            self._queue.put_nowait((payload, future))
        except queue.Full as e:
            raise ConsumerUnavailableError(f"consumer for {self.subject} has too many pending messages") from e
        return future

    def _run(self) -> None:
        logger.info("Consumer for %s started", self.subject)
        while not self._stop.is_set():
            try:
                payload, future = self._queue.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            if not future.set_running_or_notify_cancel():
                continue
            try:
                future.set_result(self._handler(payload))
            except Exception as e:
                future.set_exception(e)
        logger.info("Consumer for %s stopped", self.subject)

    def _fail_pending(self) -> None:
        while True:
            try:
                _, future = self._queue.get_nowait()
            except queue.Empty:
                return
            if future.set_running_or_notify_cancel():
                future.set_exception(ConsumerUnavailableError(f"consumer for {self.subject} stopped"))


class FeedConsumer:
    """One SubjectWorker per subject."""

    def __init__(
        self,
        handlers: dict[str, Callable[[Any], Any]],
        *,
        max_pending: int = 100,
        ack_wait_seconds: float = 60.0,
    ) -> None:
        self._workers = {subject: SubjectWorker(subject, h, max_pending) for subject, h in handlers.items()}
        self._ack_wait_seconds = ack_wait_seconds

    @property
    def subjects(self) -> list[str]:
        return list(self._workers)

    @property
    def running(self) -> bool:
        """True while any subject worker thread is alive."""
        return any(w.running for w in self._workers.values())

    def start(self) -> None:
        for worker in self._workers.values():
            worker.start()
        logger.info("Feed consumer started for %s", ", ".join(self._workers))

    def stop(self, timeout: float | None = None) -> None:
        for worker in self._workers.values():
            worker.stop(timeout)

    def dispatch(self, subject: str, payload: Any) -> Any:
        """Handle payload on the subject's worker and wait for the result. Re-raises handler errors."""
        worker = self._workers.get(subject)
        if worker is None:
            raise ConsumerUnavailableError(f"no consumer for subject {subject}")
        return worker.submit(payload).result(timeout=self._ack_wait_seconds)
