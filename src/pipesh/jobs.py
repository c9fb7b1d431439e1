"""Background-job registry.

Every background launch gets a dedicated daemon listener thread that waits on
exactly that child, so exited children are reaped without blocking the read
loop and without a process-wide signal handler.
"""

from __future__ import annotations

import subprocess
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger


@dataclass
class BackgroundJob:
    """One detached pipeline stage."""

    pid: int
    command: str
    process: subprocess.Popen[bytes]
    returncode: int | None = None

    @property
    def done(self) -> bool:
        return self.returncode is not None


JobListener = Callable[[BackgroundJob], None]


class JobRegistry:
    """Tracks background children until they exit, then reports them."""

    def __init__(self, on_exit: JobListener | None = None) -> None:
        self._on_exit = on_exit
        self._jobs: dict[int, BackgroundJob] = {}
        self._listeners: dict[int, threading.Thread] = {}
        self._lock = threading.Lock()

    def set_listener(self, on_exit: JobListener | None) -> None:
        with self._lock:
            self._on_exit = on_exit

    def track(self, process: subprocess.Popen[bytes], command: str) -> BackgroundJob:
        job = BackgroundJob(pid=process.pid, command=command, process=process)
        thread = threading.Thread(
            target=self._watch,
            args=(job,),
            name=f"pipesh-job-{job.pid}",
            daemon=True,
        )
        with self._lock:
            self._jobs[job.pid] = job
            self._listeners[job.pid] = thread
        logger.info("jobs.start pid={} command={}", job.pid, command)
        thread.start()
        return job

    def active(self) -> list[BackgroundJob]:
        with self._lock:
            return sorted(self._jobs.values(), key=lambda job: job.pid)

    def wait_all(self, timeout: float | None = None) -> bool:
        """Join every listener; returns False if any is still running at `timeout`."""

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            threads = list(self._listeners.values())
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        return not any(thread.is_alive() for thread in threads)

    def _watch(self, job: BackgroundJob) -> None:
        returncode = job.process.wait()
        with self._lock:
            job.returncode = returncode
            self._jobs.pop(job.pid, None)
            listener = self._on_exit
        logger.info("jobs.exit pid={} returncode={}", job.pid, returncode)
        try:
            if listener is not None:
                listener(job)
        except Exception:
            logger.exception("jobs.listener.error pid={}", job.pid)
        finally:
            with self._lock:
                self._listeners.pop(job.pid, None)
