"""PID file management for the daemon.

The PID file holds two lines: the process id and the start time (epoch
seconds). A PID file whose process is gone is stale and may be replaced.
"""

import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path

import psutil


class DaemonAlreadyRunningError(RuntimeError):
    """Another live daemon owns the PID file."""

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Daemon already running (PID {pid})")


@dataclass
class ProcessInfo:
    """Process information from PID file."""

    pid: int
    start_time: float
    alive: bool

    @property
    def uptime_seconds(self) -> float | None:
        if not self.alive or not self.start_time:
            return None
        return max(0.0, time.time() - self.start_time)


def write_pid_file(pid_path: Path, pid: int | None = None) -> None:
    """Write the PID file for ``pid`` (defaults to the current process)."""
    pid_path.parent.mkdir(parents=True, exist_ok=True)
    pid_path.write_text(f"{pid or os.getpid()}\n{time.time()}\n")


def read_pid_file(pid_path: Path) -> ProcessInfo | None:
    """Read the PID file and check whether its process is alive.

    Returns:
        ProcessInfo if the file exists and parses, None otherwise.
    """
    if not pid_path.exists():
        return None

    try:
        content = pid_path.read_text().strip().split("\n")
        pid = int(content[0])
        start_time = float(content[1]) if len(content) > 1 else 0.0
    except (OSError, ValueError, IndexError):
        return None
    return ProcessInfo(pid=pid, start_time=start_time, alive=is_process_alive(pid))


def acquire_pid_file(pid_path: Path) -> None:
    """Claim the PID file for this process.

    Raises:
        DaemonAlreadyRunningError: If the file names another live process.
    """
    existing = read_pid_file(pid_path)
    if existing and existing.alive and existing.pid != os.getpid():
        raise DaemonAlreadyRunningError(existing.pid)
    write_pid_file(pid_path)


def remove_pid_file(pid_path: Path) -> None:
    pid_path.unlink(missing_ok=True)


def is_process_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return psutil.pid_exists(pid)


def send_signal(pid: int, sig: signal.Signals) -> bool:
    """Send ``sig`` to ``pid``. Returns False if the process is gone."""
    try:
        os.kill(pid, sig)
        return True
    except OSError:
        return False


def wait_for_exit(pid: int, timeout: float = 30.0) -> bool:
    """Wait for a process to exit. Returns True if it exited in time."""
    try:
        psutil.Process(pid).wait(timeout=timeout)
    except psutil.NoSuchProcess:
        return True
    except psutil.TimeoutExpired:
        return False
    return True


def get_process_info(pid: int) -> dict[str, float] | None:
    """Get memory (MB) and CPU usage for ``pid``, or None if unavailable."""
    try:
        proc = psutil.Process(pid)
        mem_info = proc.memory_info()
        return {
            "memory_mb": mem_info.rss / (1024 * 1024),
            "cpu_percent": proc.cpu_percent(interval=0.1),
        }
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return None
