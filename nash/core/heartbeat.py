"""
Heartbeat - periodic background tasks (credential sweep, auto-learning).
Tasks run on one background thread, separate from request handling.
"""

import threading
import time
from typing import Callable, Dict, List, Optional

from .config import is_heartbeat_enabled
from ..util.logging import logger


class Heartbeat:
    """Cooperative scheduler that runs registered tasks when their interval elapses."""

    def __init__(self, poll_interval: float = 1.0):
        self.tasks: Dict[str, Dict] = {}  # task_name -> {func, interval, last_run, last_status}
        self.poll_interval = poll_interval
        self.running = False
        self.shutdown_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def register_task(self, name: str, interval_sec: float, func: Callable, run_immediately: bool = False):
        """
        Register a task to be executed periodically.

        Args:
            name: Unique task identifier
            interval_sec: How often to run this task in seconds
            func: Function to call
            run_immediately: Run on the first loop cycle instead of one interval after start
        """
        if not callable(func):
            raise ValueError(f"Task function must be callable: {func}")

        if interval_sec <= 0:
            raise ValueError(f"Interval must be > 0 seconds: {interval_sec}")

        with self._lock:
            self.tasks[name] = {
                "func": func,
                "interval": interval_sec,
                "last_run": None if run_immediately else time.monotonic(),
                "last_status": None
            }

        logger.info(f"Registered heartbeat task '{name}' (every {interval_sec}s)")

    def unregister_task(self, name: str):
        """Remove a task from the registry."""
        with self._lock:
            if name in self.tasks:
                del self.tasks[name]
                logger.info(f"Unregistered heartbeat task '{name}'")

    def list_tasks(self) -> List[str]:
        """Return list of registered task names."""
        with self._lock:
            return list(self.tasks.keys())

    def should_run_task(self, name: str, task_info: Dict) -> bool:
        """Check if a task should run this cycle."""
        if task_info["last_run"] is None:
            return True  # Run immediately if never run

        elapsed = time.monotonic() - task_info["last_run"]
        return elapsed >= task_info["interval"]

    def _record_run(self, task_info: Dict, finished_at: float, status: str):
        with self._lock:
            task_info["last_run"] = finished_at
            task_info["last_status"] = status

    def run_task(self, name: str, task_info: Dict) -> bool:
        """
        Execute a task and record timing.

        A failure is logged and recorded; the task is retried on its next
        scheduled tick rather than on the next loop cycle.
        """
        start_time = time.monotonic()
        try:
            result = task_info["func"]()
        except Exception as e:
            end_time = time.monotonic()
            self._record_run(task_info, end_time, "failed")
            logger.log_heartbeat_task(name, start_time, end_time, status="failed", details={"error": str(e)})
            return False

        end_time = time.monotonic()
        self._record_run(task_info, end_time, "success")
        details = result if isinstance(result, dict) else None
        logger.log_heartbeat_task(name, start_time, end_time, details=details)
        return True

    def run_pending(self) -> int:
        """Run every due task once; returns the number of tasks executed."""
        with self._lock:
            due = [(name, info) for name, info in self.tasks.items() if self.should_run_task(name, info)]

        for name, task_info in due:
            self.run_task(name, task_info)
        return len(due)

    def _loop(self):
        try:
            while self.running and not self.shutdown_event.is_set():
                self.run_pending()
                self.shutdown_event.wait(self.poll_interval)
        finally:
            self.running = False
            logger.info("Heartbeat loop stopped")

    def start_background(self) -> bool:
        """Start the heartbeat loop on a daemon thread. Returns False when disabled."""
        if not is_heartbeat_enabled():
            logger.info("Heartbeat disabled (HEARTBEAT_ENABLED=false). Skipping start.")
            return False

        if self.running:
            raise RuntimeError("Heartbeat already running")

        self.running = True
        self.shutdown_event.clear()
        self._thread = threading.Thread(target=self._loop, name="nash-heartbeat", daemon=True)
        self._thread.start()

        logger.info(f"Starting heartbeat loop with tasks: {self.list_tasks()}")
        return True

    def stop(self, timeout: float = 5.0):
        """Stop the heartbeat loop and wait for the current task to finish."""
        if not self.running:
            logger.info("Heartbeat not running")
            return

        self.running = False
        self.shutdown_event.set()

        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        logger.info("Heartbeat stopped")

    def reset_task(self, name: str):
        """Reset a task's last_run time to force immediate execution."""
        with self._lock:
            if name in self.tasks:
                self.tasks[name]["last_run"] = None

    def get_status(self) -> Dict:
        """Return current heartbeat status for monitoring."""
        if not is_heartbeat_enabled():
            return {"status": "disabled", "reason": "HEARTBEAT_ENABLED=false"}

        with self._lock:
            return {
                "status": "running" if self.running else "stopped",
                "tasks": {
                    name: {
                        "interval_sec": info["interval"],
                        "last_run": info["last_run"],
                        "last_status": info["last_status"],
                        "next_run": info["last_run"] + info["interval"] if info["last_run"] else None
                    }
                    for name, info in self.tasks.items()
                }
            }
