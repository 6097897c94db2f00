"""
Worker Thread Module
Runs blocking jobs (fetching and decoding images) off the UI thread.
"""


import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DoneCallback = Callable[[Any, Optional[BaseException]], None]
StaleCheck = Callable[[], bool]


class Worker(threading.Thread):
    """Worker thread for executing jobs from the queue.

    The thread dispatches each queued job onto a small pool, so one job that
    blocks (a stalled download) never holds up the jobs queued after it.
    A job whose `is_stale` check returns True when its turn comes is skipped
    and nothing is delivered for it.

    Each job result is handed back through `deliver`, normally the UI
    scheduler's thread-safe call_soon, so completion callbacks run on the
    UI thread.
    """

    def __init__(
        self,
        deliver: Callable[[Callable[[], None]], None],
        slow_job_threshold_ms: float = 1000.0,
        max_parallel: int = 4,
    ):
        super().__init__(daemon=True, name="DecodeWorker")
        self.deliver = deliver
        self.slow_job_threshold_ms = float(slow_job_threshold_ms)
        self.task_queue: "queue.Queue[Optional[dict]]" = queue.Queue()
        self._pool = ThreadPoolExecutor(max_workers=max(1, int(max_parallel)), thread_name_prefix="DecodeJob")

    def submit(self, label: str, action: Callable[[], Any], on_done: DoneCallback,
               is_stale: Optional[StaleCheck] = None) -> None:
        self.task_queue.put({"label": label, "action": action, "on_done": on_done, "is_stale": is_stale})

    def stop(self) -> None:
        self.task_queue.put(None)

    def run(self):
        """Main loop delegating to a per-iteration handler."""
        while self._process_queue_iteration():
            pass
        # Running jobs finish on their own; their results are still delivered.
        self._pool.shutdown(wait=False)

    def _process_queue_iteration(self) -> bool:
        """Dispatch a single queue item. Return False to break the loop."""
        task = self.task_queue.get()
        try:
            if task is None:
                return False
            self._pool.submit(self._run_task, task)
            return True
        finally:
            self.task_queue.task_done()

    def _run_task(self, task: dict) -> None:
        label = str(task.get("label", "job"))
        is_stale = task.get("is_stale")
        if is_stale is not None and is_stale():
            logger.debug("worker: skipping superseded job %s", label)
            return
        t0 = time.perf_counter()
        result: Any = None
        error: Optional[BaseException] = None
        try:
            result = task["action"]()
        except Exception as e:
            error = e
        finally:
            dur_ms = (time.perf_counter() - t0) * 1000.0
            if dur_ms > self.slow_job_threshold_ms:
                logger.warning("worker: slow job %s took %.1fms", label, dur_ms)
            else:
                logger.debug("worker: job %s finished in %.1fms", label, dur_ms)
        on_done = task["on_done"]
        self.deliver(lambda: on_done(result, error))
